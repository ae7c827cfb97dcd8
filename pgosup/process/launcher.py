"""
Process launcher for the instrumented worker.

Starts the worker as a direct child with stdout/stderr inherited, so
operators see the worker's own output unmodified. The returned ChildProcess is
the only handle to the worker: the relay signals it, the supervisor reaps it.
"""

from __future__ import annotations

import os
import shutil
import signal
import subprocess
import time
from collections.abc import Mapping, Sequence
from datetime import datetime
from pathlib import Path

from ..config import WorkerConfig
from ..exceptions import ChildRuntimeError, LaunchError
from ..log import Logger
from ..time import utc_now

PROFILE_ENV = "LLVM_PROFILE_FILE"


class ChildProcess:
    """
    Handle to the running worker.

    Wraps a subprocess.Popen and records when the worker started. Exit status
    is None until the process has been reaped by poll() or wait().
    """

    def __init__(self, popen: subprocess.Popen, argv: Sequence[str]) -> None:
        self._popen = popen
        self.argv = list(argv)
        self.started_at: datetime = utc_now()
        self.start_time = time.monotonic()

    def __repr__(self) -> str:
        return f"ChildProcess(pid={self.pid}, returncode={self.returncode})"

    @property
    def pid(self) -> int:
        return self._popen.pid

    @property
    def returncode(self) -> int | None:
        return self._popen.returncode

    @property
    def running(self) -> bool:
        return self.poll() is None

    @property
    def uptime(self) -> float:
        return time.monotonic() - self.start_time

    @property
    def killed_by(self) -> str | None:
        """Name of the signal that ended the worker, if it died by one."""
        rc = self.returncode
        if rc is None or rc >= 0:
            return None
        try:
            return signal.Signals(-rc).name
        except ValueError:
            return f"signal {-rc}"

    def poll(self) -> int | None:
        """Reap the worker if it has exited; never blocks."""
        return self._popen.poll()

    def wait(self, timeout: float | None = None) -> int | None:
        """
        Wait for the worker to exit.

        Returns:
            The exit status, or None if the timeout elapsed first
        """
        try:
            return self._popen.wait(timeout)
        except subprocess.TimeoutExpired:
            return None

    def send_signal(self, sig: int) -> bool:
        """
        Deliver a signal to the worker.

        Returns:
            True if delivered, False if the worker had already exited
        """
        if self.poll() is not None:
            return False
        try:
            self._popen.send_signal(sig)
        except ProcessLookupError:
            return False
        return True

    def kill(self) -> bool:
        return self.send_signal(signal.SIGKILL)

    def check_returncode(self, clean_signals: Sequence[str] = ()) -> None:
        """
        Raise if the worker did not exit successfully.

        Args:
            clean_signals: Signal names whose deaths count as a clean exit

        Raises:
            ChildRuntimeError: On non-zero exit or death by another signal
        """
        rc = self.returncode
        if rc is None:
            raise ChildRuntimeError(-1, pid=self.pid, reason="still running")
        if rc == 0:
            return
        sig_name = self.killed_by
        if sig_name is not None and sig_name in clean_signals:
            return
        raise ChildRuntimeError(rc, sig_name, pid=self.pid)


class ProcessLauncher:
    """
    Launches the worker described by a WorkerConfig.

    Example:
        launcher = ProcessLauncher(config.worker, lg)
        child = launcher.launch(["./prover-worker", "--port", "8080"])
    """

    def __init__(
        self,
        config: WorkerConfig,
        lg: Logger,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._config = config
        self._lg = lg
        self._environ = dict(os.environ if environ is None else environ)

    @property
    def profile_dir(self) -> Path:
        return self._config.profile_dir.expanduser().absolute()

    def command(self, argv: Sequence[str] | None = None) -> list[str]:
        """Worker command: explicit argv wins over the configured executable."""
        if argv:
            return list(argv)
        if self._config.executable:
            return [self._config.executable, *self._config.args]
        return []

    def build_env(self) -> dict[str, str]:
        """Worker environment: inherited, plus profile location and extras."""
        env = dict(self._environ)
        env.update(self._config.env)
        if self._config.set_profile_env and PROFILE_ENV not in env:
            env[PROFILE_ENV] = str(self.profile_dir / self._config.profile_file_pattern)
        return env

    def resolve(self, executable: str) -> str:
        """
        Resolve the executable to a path that can be run.

        Bare names are looked up on PATH; anything with a directory component
        must name an executable file.

        Raises:
            LaunchError: If the executable cannot be found or run
        """
        if os.sep in executable:
            if not os.path.isfile(executable):
                raise LaunchError("executable not found", executable=executable)
            if not os.access(executable, os.X_OK):
                raise LaunchError("executable is not executable", executable=executable)
            return executable

        found = shutil.which(executable, path=self._environ.get("PATH", os.defpath))
        if found is None:
            raise LaunchError("executable not found on PATH", executable=executable)
        return found

    def launch(self, argv: Sequence[str] | None = None) -> ChildProcess:
        """
        Start the worker.

        Args:
            argv: Worker command; defaults to worker.executable + worker.args

        Returns:
            Handle to the started worker

        Raises:
            LaunchError: If no process could be created. No child exists then.
        """
        cmd = self.command(argv)
        if not cmd:
            raise LaunchError("no worker command given", executable="")

        path = self.resolve(cmd[0])
        env = self.build_env()

        try:
            self.profile_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LaunchError(
                "cannot create profile directory",
                executable=cmd[0],
                profile_dir=str(self.profile_dir),
                error=e,
            ) from e

        try:
            popen = subprocess.Popen(
                [path, *cmd[1:]],
                env=env,
                start_new_session=self._config.new_session,
            )
        except OSError as e:
            raise LaunchError("cannot start worker", executable=cmd[0], error=e) from e

        child = ChildProcess(popen, cmd)
        self._lg.info(
            "worker started",
            extra={
                "pid": child.pid,
                "cmd": " ".join(cmd),
                PROFILE_ENV: env.get(PROFILE_ENV),
            },
        )
        return child
