"""
The PGO run supervisor.

Composes the launcher, the signal relay and the artifact uploader:

    launch -> wait (natural exit or relayed signal) -> upload -> exit status

The uploader only ever runs after the worker's exit status is confirmed, and
it runs whatever the worker's outcome was. The final exit status reflects
both the worker's exit and the upload outcome.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence

from .artifacts import (
    ArtifactUploader,
    RunIdentity,
    Transport,
    UploadSummary,
    create_transport,
    discover_artifacts,
)
from .config import SupervisorConfig
from .exceptions import ChildRuntimeError, ConfigError, LaunchError, UploadError
from .log import Logger, LoggerFactory
from .process import ChildProcess, ProcessLauncher, SignalRelay
from .report import print_report


class ExitCode(enum.IntEnum):
    """Supervisor exit statuses, one per outcome category."""

    OK = 0
    UPLOAD_FAILED = 3
    CHILD_FAILED = 4
    CHILD_AND_UPLOAD_FAILED = 5
    LAUNCH_FAILED = 6
    CONFIG_INVALID = 7

    @classmethod
    def from_outcome(cls, child_ok: bool, upload_ok: bool) -> ExitCode:
        if child_ok and upload_ok:
            return cls.OK
        if child_ok:
            return cls.UPLOAD_FAILED
        if upload_ok:
            return cls.CHILD_FAILED
        return cls.CHILD_AND_UPLOAD_FAILED


def _collect_and_upload(
    config: SupervisorConfig,
    uploader: ArtifactUploader,
    identity: RunIdentity,
    lg: Logger,
    newer_than: float | None = None,
    forced: bool = False,
) -> UploadSummary:
    """Scan the profile directory and upload what it holds."""
    try:
        artifacts = discover_artifacts(
            config.worker.profile_dir,
            config.upload.patterns,
            newer_than=newer_than,
            lg=lg,
        )
    except UploadError as e:
        lg.error(
            "cannot scan profile directory",
            extra={"dir": str(config.worker.profile_dir), "cause": e.cause},
        )
        return UploadSummary(scan_error=e)

    summary = uploader.upload(artifacts, identity, forced=forced)
    if config.upload.report and summary.found:
        print_report(summary)
    return summary


def _reap(child: ChildProcess, lg: Logger) -> None:
    """Kill and reap the worker so it never outlives the supervisor."""
    if child.poll() is None:
        lg.warning("killing worker", extra={"pid": child.pid})
        child.kill()
    child.wait()


class Supervisor:
    """
    Runs one worker to completion and uploads its profiles.

    Example:
        config = load_config("etc/pgosup.yaml")
        lg = create_root_lg(config.logging.level)
        code = Supervisor(config, lg).run(["./prover-worker", "--port", "8080"])
        sys.exit(code)
    """

    def __init__(
        self,
        config: SupervisorConfig,
        lg: Logger,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._lg = lg
        self._transport = transport
        self.identity: RunIdentity | None = None
        self.child: ChildProcess | None = None
        self.relay: SignalRelay | None = None
        self.summary: UploadSummary | None = None

    def run(self, argv: Sequence[str] | None = None) -> ExitCode:
        """
        Launch the worker, wait for it, upload its artifacts.

        Args:
            argv: Worker command; defaults to worker.executable + worker.args

        Returns:
            ExitCode for the run
        """
        self.identity = RunIdentity.create(self._config.upload.host)
        self._lg.info(
            "supervisor started",
            extra={"host": self.identity.host, "run_id": self.identity.run_id},
        )

        try:
            uploader = self._make_uploader()
        except ConfigError as e:
            self._lg.error("invalid upload configuration", extra={"exception": e})
            return self._finish(ExitCode.CONFIG_INVALID)

        launcher = ProcessLauncher(
            self._config.worker, LoggerFactory.derive(self._lg, "launcher")
        )

        # The relay stays installed through the upload so late signals are
        # absorbed instead of killing the supervisor mid-upload
        with SignalRelay(
            self._config.relay, LoggerFactory.derive(self._lg, "relay")
        ) as relay:
            self.relay = relay
            try:
                child = launcher.launch(argv)
            except LaunchError as e:
                self._lg.error("cannot launch worker", extra={"exception": e})
                return self._finish(ExitCode.LAUNCH_FAILED)
            self.child = child

            try:
                relay.attach(child)
                relay.wait()
            except BaseException:
                _reap(child, self._lg)
                raise

            child_ok = self._check_child(child, relay)

            upload_ok = True
            if uploader is not None:
                newer_than = (
                    child.started_at.timestamp() if self._config.upload.only_new else None
                )
                self.summary = self._upload(uploader, newer_than, forced=relay.escalated)
                upload_ok = self.summary.ok
            else:
                self._lg.info("uploads disabled, skipping")

        return self._finish(ExitCode.from_outcome(child_ok, upload_ok))

    def _make_uploader(self) -> ArtifactUploader | None:
        upload = self._config.upload
        if not upload.enabled:
            return None
        if not upload.bucket:
            raise ConfigError("upload.bucket is not set")
        transport = self._transport or create_transport(upload)
        return ArtifactUploader(transport, upload, LoggerFactory.derive(self._lg, "upload"))

    def _check_child(self, child: ChildProcess, relay: SignalRelay) -> bool:
        """Log the worker's outcome; a failure never suppresses the upload."""
        clean_signals: list[str] = []
        if relay.request is not None and self._config.relay.signal_exit_is_clean:
            clean_signals.append(relay.request.kind.signal_name)
        try:
            child.check_returncode(clean_signals)
        except ChildRuntimeError as e:
            self._lg.error(
                "worker failed",
                extra={"exception": e, "escalated": relay.escalated or None},
            )
            return False
        return True

    def _upload(
        self, uploader: ArtifactUploader, newer_than: float | None, forced: bool
    ) -> UploadSummary:
        assert self.identity is not None
        return _collect_and_upload(
            self._config, uploader, self.identity, self._lg, newer_than, forced
        )

    def _finish(self, code: ExitCode) -> ExitCode:
        log = self._lg.info if code is ExitCode.OK else self._lg.error
        log("supervisor done", extra={"status": code.name, "code": int(code)})
        return code


def upload_pending(
    config: SupervisorConfig, lg: Logger, transport: Transport | None = None
) -> ExitCode:
    """
    Upload whatever artifacts are in the profile directory, without a worker.

    Recovery path for profiles left behind by a run whose supervisor was
    killed outright. Files are not filtered by age.

    Raises:
        ConfigError: If uploads are disabled or misconfigured
    """
    if not config.upload.enabled:
        raise ConfigError("uploads are disabled")

    identity = RunIdentity.create(config.upload.host)
    uploader = ArtifactUploader(
        transport or create_transport(config.upload),
        config.upload,
        LoggerFactory.derive(lg, "upload"),
    )
    summary = _collect_and_upload(config, uploader, identity, lg)

    code = ExitCode.OK if summary.ok else ExitCode.UPLOAD_FAILED
    lg.info(
        "pending upload done",
        extra={"status": code.name, "run_id": identity.run_id},
    )
    return code
