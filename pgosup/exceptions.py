"""
Exception hierarchy for the supervisor.

Every supervisor-specific failure derives from SupervisorError, which carries
a message plus keyword context rendered into str(). The subclasses map onto
the supervisor's failure categories:

- LaunchError: the worker could not be started (fatal, nothing to upload)
- ChildRuntimeError: the worker exited unsuccessfully (upload still runs)
- UploadError: one artifact failed to transfer (contained, aggregated)
"""

from typing import Any


class SupervisorError(Exception):
    """
    Base exception for all supervisor errors.

    Example:
        try:
            supervisor.run(argv)
        except SupervisorError as e:
            lg.error("supervisor failed", extra={"exception": e})
    """

    def __init__(self, message: str, **context: Any) -> None:
        """
        Initialize the exception with a message and optional context.

        Args:
            message: Human-readable error message
            **context: Additional context information (stored in self.context)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class ConfigError(SupervisorError):
    """
    Configuration-related errors.

    Examples:
        - Config file not found or not valid YAML
        - Bucket name carrying a scheme prefix (s3://, gs://)
        - Missing worker executable
    """

    pass


class LaunchError(SupervisorError):
    """
    The worker process could not be created.

    Raised when the executable cannot be found or is not executable, or the
    OS refuses process creation. No child exists when this is raised.
    """

    def __init__(self, message: str, executable: str, **context: Any) -> None:
        super().__init__(message, executable=executable, **context)
        self.executable = executable


class ChildRuntimeError(SupervisorError):
    """The worker exited with a non-zero status or was killed by a signal."""

    def __init__(
        self, returncode: int, signal_name: str | None = None, **context: Any
    ) -> None:
        if signal_name:
            message = f"worker killed by {signal_name}"
        else:
            message = "worker exited with non-zero status"
        super().__init__(message, returncode=returncode, **context)
        self.returncode = returncode
        self.signal_name = signal_name


class UploadError(SupervisorError):
    """A single artifact failed to transfer to remote storage."""

    def __init__(self, artifact: str, cause: str, **context: Any) -> None:
        super().__init__("upload failed", artifact=artifact, cause=cause, **context)
        self.artifact = artifact
        self.cause = cause


class RelayStateError(SupervisorError):
    """An illegal Signal Relay state transition was requested."""

    pass


class InvalidLogLevelError(ConfigError):
    """An unknown log level name was configured."""

    def __init__(self, level: Any) -> None:
        super().__init__("invalid log level", level=level)
        self.level = level
