"""
Configuration schemas using Pydantic for validation.

The supervisor's whole configuration is one SupervisorConfig value, built
once at startup and handed to each component.
"""

import shlex
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from ..time import InvalidDurationError, delta_to_secs

# Termination-class signals the relay can intercept and forward
_RELAYABLE = ("SIGTERM", "SIGINT", "SIGHUP")

_VALID_LEVELS = ["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "FALSE"]


def _split_csv(v: Any) -> Any:
    """Accept a comma-separated string where a list is expected."""
    if isinstance(v, str):
        return [part.strip() for part in v.split(",") if part.strip()]
    return v


def _to_seconds(v: Any) -> Any:
    """Accept a duration string ("30s", "2m") where seconds are expected."""
    if isinstance(v, str):
        try:
            return delta_to_secs(v)
        except InvalidDurationError as e:
            raise ValueError(str(e)) from e
    return v


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str | int | bool = Field(default="info", description="Global log level")
    location: bool | int = Field(default=0, description="Show file locations in logs")
    micros: bool = Field(default=False, description="Show microsecond timestamps")
    colors: bool = Field(default=False, description="ANSI level colors")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: Any) -> Any:
        """Validate log level is a recognized level."""
        if isinstance(v, str) and v.strip().isdigit():
            return int(v)
        if isinstance(v, str) and v.upper() not in _VALID_LEVELS:
            raise ValueError(
                f"Invalid log level '{v}'. Must be one of: {', '.join(_VALID_LEVELS)}"
            )
        if isinstance(v, str):
            return v.lower()
        return v

    model_config = ConfigDict(extra="forbid", coerce_numbers_to_str=True)


class WorkerConfig(BaseModel):
    """The instrumented worker binary and where it writes profiles."""

    executable: str | None = Field(
        default=None, description="Worker binary; overridden by argv after '--'"
    )
    args: list[str] = Field(default_factory=list, description="Worker arguments")
    profile_dir: Path = Field(
        default=Path("/tmp/pgo-profiles"),
        description="Directory the worker writes profiling artifacts into",
    )
    set_profile_env: bool = Field(
        default=True,
        description="Point LLVM_PROFILE_FILE at profile_dir unless already set",
    )
    profile_file_pattern: str = Field(
        default="worker-%p-%m.profraw",
        description="LLVM_PROFILE_FILE basename (%p pid, %m binary signature)",
    )
    env: dict[str, str] = Field(
        default_factory=dict, description="Extra environment for the worker"
    )
    new_session: bool = Field(
        default=True,
        description="Start the worker in its own session so it only sees relayed signals",
    )

    @field_validator("args", mode="before")
    @classmethod
    def split_args(cls, v: Any) -> Any:
        """Accept a shell-quoted string for args (e.g. from the environment)."""
        if isinstance(v, str):
            return shlex.split(v)
        return v

    @field_validator("profile_file_pattern")
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        if not v or "/" in v:
            raise ValueError("profile_file_pattern must be a bare file name")
        return v

    model_config = ConfigDict(extra="forbid", coerce_numbers_to_str=True)


class RelayConfig(BaseModel):
    """Signal relay behaviour."""

    signals: Annotated[list[str], BeforeValidator(_split_csv)] = Field(
        default_factory=lambda: ["SIGTERM", "SIGINT"],
        description="Interceptable signals forwarded to the worker",
    )
    grace_period: Annotated[float | None, BeforeValidator(_to_seconds)] = Field(
        default=None,
        gt=0,
        description="Seconds to wait after forwarding before escalating; None waits forever",
    )
    escalate: bool = Field(
        default=True, description="SIGKILL the worker once the grace period expires"
    )
    poll_interval: float = Field(
        default=0.2, gt=0, le=10, description="Child exit polling interval (seconds)"
    )
    signal_exit_is_clean: bool = Field(
        default=True,
        description="Treat death by the forwarded signal as a clean exit",
    )

    @field_validator("signals")
    @classmethod
    def validate_signals(cls, v: list[str]) -> list[str]:
        """Normalize names (TERM -> SIGTERM) and reject non-termination signals."""
        names = []
        for raw in v:
            name = raw.upper()
            if not name.startswith("SIG"):
                name = "SIG" + name
            if name not in _RELAYABLE:
                raise ValueError(
                    f"Cannot relay '{raw}'. Must be one of: {', '.join(_RELAYABLE)}"
                )
            if name not in names:
                names.append(name)
        if not names:
            raise ValueError("At least one signal must be relayed")
        return names

    model_config = ConfigDict(extra="forbid", coerce_numbers_to_str=True)


class UploadConfig(BaseModel):
    """Remote storage destination and upload behaviour."""

    enabled: bool = Field(default=True, description="Upload artifacts after exit")
    transport: Literal["s3", "command", "local"] = Field(
        default="s3", description="How artifacts are transferred"
    )
    bucket: str | None = Field(
        default=None, description="Bucket/container name, without scheme prefix"
    )
    prefix: str = Field(default="pgo", description="Key prefix inside the bucket")
    forced_prefix: str | None = Field(
        default=None,
        description="Key prefix for runs whose worker had to be force-killed",
    )
    host: str | None = Field(
        default=None, description="Host identifier in remote keys (default: hostname)"
    )
    patterns: Annotated[list[str], BeforeValidator(_split_csv)] = Field(
        default_factory=lambda: ["*.profraw"],
        description="Glob patterns naming profiling artifacts",
    )
    only_new: bool = Field(
        default=True, description="Skip files older than the worker's start"
    )
    workers: int = Field(default=1, ge=1, le=32, description="Concurrent uploads")
    timeout: Annotated[float, BeforeValidator(_to_seconds)] = Field(
        default=300.0, gt=0, description="Per-file timeout (seconds)"
    )
    endpoint_url: str | None = Field(
        default=None, description="S3-compatible endpoint (e.g. GCS interoperability)"
    )
    region: str | None = Field(default=None, description="S3 region")
    command: list[str] = Field(
        default_factory=lambda: ["gsutil", "-q", "cp", "{src}", "gs://{bucket}/{key}"],
        description="Copy command for the command transport",
    )
    local_root: Path | None = Field(
        default=None, description="Destination root for the local transport"
    )
    report: bool = Field(default=False, description="Print an upload summary table")

    @field_validator("command", mode="before")
    @classmethod
    def split_command(cls, v: Any) -> Any:
        if isinstance(v, str):
            return shlex.split(v)
        return v

    @field_validator("bucket")
    @classmethod
    def validate_bucket(cls, v: str | None) -> str | None:
        """Bucket names carry no transfer-protocol prefix."""
        if v is None:
            return v
        v = v.strip()
        if "://" in v:
            raise ValueError(
                f"bucket '{v}' must be a plain name without a scheme prefix"
            )
        if not v or "/" in v:
            raise ValueError(f"bucket '{v}' is not a valid bucket name")
        return v

    @field_validator("prefix", "forced_prefix")
    @classmethod
    def strip_slashes(cls, v: str | None) -> str | None:
        return v.strip("/") if v is not None else v

    @model_validator(mode="after")
    def validate_destination(self) -> "UploadConfig":
        """Transport-specific settings must be present for an enabled uploader."""
        if not self.enabled:
            return self
        if self.transport == "local" and self.local_root is None:
            raise ValueError("upload.local_root is required for the local transport")
        if self.transport == "command" and not any("{src}" in a for a in self.command):
            raise ValueError("upload.command must reference {src}")
        return self

    model_config = ConfigDict(extra="forbid", coerce_numbers_to_str=True)


class SupervisorConfig(BaseModel):
    """Root configuration schema for the supervisor."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    worker: WorkerConfig = Field(default_factory=WorkerConfig)
    relay: RelayConfig = Field(default_factory=RelayConfig)
    upload: UploadConfig = Field(default_factory=UploadConfig)

    model_config = ConfigDict(extra="forbid", coerce_numbers_to_str=True)


__all__ = [
    "LoggingConfig",
    "RelayConfig",
    "SupervisorConfig",
    "UploadConfig",
    "WorkerConfig",
]
