"""
pgosup: supervisor for profile-guided-optimization training runs.

Launches an instrumented worker, relays termination signals to it exactly
once, and uploads the profiles it wrote before exiting.
"""

from importlib.metadata import PackageNotFoundError, version

from .exceptions import (
    ChildRuntimeError,
    ConfigError,
    LaunchError,
    RelayStateError,
    SupervisorError,
    UploadError,
)
from .supervisor import ExitCode, Supervisor, upload_pending

# Version is read from package metadata (pyproject.toml)
try:
    __version__ = version("pgosup")
except PackageNotFoundError:
    # Package not installed, use fallback (development mode)
    __version__ = "0.3.0-dev"

__all__ = [
    "__version__",
    # Supervisor
    "ExitCode",
    "Supervisor",
    "upload_pending",
    # Exceptions
    "ChildRuntimeError",
    "ConfigError",
    "LaunchError",
    "RelayStateError",
    "SupervisorError",
    "UploadError",
]
