"""
Configuration management package.

This module provides:
- load_config() layering YAML, environment and command-line overrides
- Pydantic schemas validating the result into a SupervisorConfig
"""

from .config import collect_env_overrides, env_key_to_path, load_config, load_yaml, merge
from .constants import CONFIG_ENV, ENV_PREFIX, MAX_CONFIG_SIZE_BYTES
from .schemas import (
    LoggingConfig,
    RelayConfig,
    SupervisorConfig,
    UploadConfig,
    WorkerConfig,
)

__all__ = [
    # Loading
    "load_config",
    "load_yaml",
    "collect_env_overrides",
    "env_key_to_path",
    "merge",
    # Constants
    "CONFIG_ENV",
    "ENV_PREFIX",
    "MAX_CONFIG_SIZE_BYTES",
    # Schemas
    "LoggingConfig",
    "RelayConfig",
    "SupervisorConfig",
    "UploadConfig",
    "WorkerConfig",
]
