"""
Artifact uploader.

Uploads each artifact independently: one file failing never stops the
others, and nothing is retried. Uploads run sequentially, or on a bounded
thread pool when upload.workers > 1.
"""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from ..config import UploadConfig
from ..exceptions import ConfigError, UploadError
from ..log import Logger
from ..size import size_str
from ..time import since, start
from .naming import RunIdentity, remote_key
from .scanner import ArtifactState, ProfileArtifact
from .transport import Transport


@dataclass
class UploadResult:
    """Outcome of one artifact transfer."""

    artifact: ProfileArtifact
    key: str
    location: str | None = None
    error: UploadError | None = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class UploadSummary:
    """Aggregate of all transfers for one run."""

    results: list[UploadResult] = field(default_factory=list)
    # Set when the profile directory could not be listed at all
    scan_error: UploadError | None = None

    @property
    def found(self) -> int:
        return len(self.results)

    @property
    def uploaded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return self.found - self.uploaded

    @property
    def failed_names(self) -> list[str]:
        return [r.artifact.name for r in self.results if not r.ok]

    @property
    def bytes_uploaded(self) -> int:
        return sum(r.artifact.size for r in self.results if r.ok)

    @property
    def ok(self) -> bool:
        return self.failed == 0 and self.scan_error is None


class ArtifactUploader:
    """
    Uploads profiling artifacts through a Transport.

    Example:
        uploader = ArtifactUploader(create_transport(config.upload), config.upload, lg)
        summary = uploader.upload(artifacts, RunIdentity.create())
        if not summary.ok:
            ...
    """

    def __init__(self, transport: Transport, config: UploadConfig, lg: Logger) -> None:
        if not config.bucket:
            raise ConfigError("upload.bucket is not set")
        self._transport = transport
        self._config = config
        self._bucket = config.bucket
        self._lg = lg

    @property
    def transport(self) -> Transport:
        return self._transport

    def key_for(
        self, artifact: ProfileArtifact, identity: RunIdentity, forced: bool = False
    ) -> str:
        """Object key; force-killed runs go under forced_prefix when set."""
        prefix = self._config.prefix
        if forced and self._config.forced_prefix:
            prefix = self._config.forced_prefix
        return remote_key(prefix, identity, artifact.name)

    def upload(
        self,
        artifacts: Sequence[ProfileArtifact],
        identity: RunIdentity,
        forced: bool = False,
    ) -> UploadSummary:
        """
        Upload every artifact, attempting all of them regardless of failures.

        Args:
            artifacts: Files to upload
            identity: Run identity used in the remote keys
            forced: Whether the worker had to be force-killed

        Returns:
            Summary with one result per artifact, in input order
        """
        if not artifacts:
            self._lg.info("no profiling artifacts to upload")
            return UploadSummary()

        t = start()
        jobs = [(a, self.key_for(a, identity, forced)) for a in artifacts]
        workers = min(self._config.workers, len(jobs))
        self._lg.info(
            "uploading artifacts",
            extra={
                "count": len(jobs),
                "bucket": self._bucket,
                "transport": self._transport.name,
                "workers": workers,
            },
        )

        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="upload") as pool:
                results = list(pool.map(lambda job: self._upload_one(*job), jobs))
        else:
            results = [self._upload_one(a, key) for a, key in jobs]

        summary = UploadSummary(results)
        extra = {
            "uploaded": summary.uploaded,
            "failed": summary.failed,
            "size": size_str(summary.bytes_uploaded),
            "after": since(t),
        }
        if summary.ok:
            self._lg.info("all artifacts uploaded", extra=extra)
        else:
            self._lg.error("some artifacts were not uploaded", extra=extra)
        return summary

    def _upload_one(self, artifact: ProfileArtifact, key: str) -> UploadResult:
        t = start()
        try:
            location = self._transport.put(artifact.path, self._bucket, key)
        except UploadError as e:
            return self._failed(artifact, key, e, since(t))
        except Exception as e:
            # Transport bugs count against this file only
            err = UploadError(artifact.name, f"{e.__class__.__name__}: {e}")
            return self._failed(artifact, key, err, since(t))

        artifact.state = ArtifactState.UPLOADED
        elapsed = since(t)
        self._lg.info(
            "uploaded artifact",
            extra={
                "file": artifact.name,
                "location": location,
                "size": size_str(artifact.size),
                "after": elapsed,
            },
        )
        return UploadResult(artifact, key, location=location, elapsed=elapsed)

    def _failed(
        self, artifact: ProfileArtifact, key: str, error: UploadError, elapsed: float
    ) -> UploadResult:
        self._lg.error(
            "upload failed",
            extra={"file": artifact.name, "cause": error.cause, "after": elapsed},
        )
        return UploadResult(artifact, key, error=error, elapsed=elapsed)
