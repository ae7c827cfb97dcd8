"""
Configuration loading for the supervisor.

Layers are applied in increasing precedence:

1. Schema defaults
2. YAML configuration file (optional)
3. `PGOSUP_<SECTION>_<KEY>` environment variables
4. Command-line overrides

The result is validated once into a SupervisorConfig. The environment is read
here and nowhere else.
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from ..exceptions import ConfigError
from .constants import CONFIG_ENV, ENV_PREFIX, MAX_CONFIG_SIZE_BYTES
from .schemas import SupervisorConfig

SECTIONS = tuple(SupervisorConfig.model_fields)


def _check_file_size(path: Path) -> None:
    """Check file size limit before parsing."""
    file_size = os.path.getsize(path)
    if file_size > MAX_CONFIG_SIZE_BYTES:
        raise ConfigError(
            f"configuration file is {file_size} bytes, "
            f"exceeding maximum size of {MAX_CONFIG_SIZE_BYTES} bytes",
            path=str(path),
        )


def load_yaml(path: str | Path) -> dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        path: Path to the YAML file

    Returns:
        Parsed mapping (empty for an empty file)

    Raises:
        ConfigError: If the file is missing, too large, malformed, or not a mapping
    """
    path = Path(path).expanduser()
    if not path.is_file():
        raise ConfigError("configuration file not found", path=str(path))
    _check_file_size(path)

    with open(path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError("invalid YAML", path=str(path), error=e) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            "configuration root must be a mapping",
            path=str(path),
            type=type(data).__name__,
        )
    return data


def _convert_env_value(value: str) -> str | None:
    """
    Convert an environment variable string to an override value.

    Only the null spellings are interpreted; everything else is passed
    through as text and converted by the section's field validators, so
    commas and leading zeros survive where the field is a string.

    Args:
        value: Environment variable value as string

    Returns:
        None for null/none/empty, otherwise the string unchanged
    """
    if value.strip().lower() in ("null", "none", ""):
        return None
    return value


def env_key_to_path(env_key: str, prefix: str = ENV_PREFIX) -> list[str] | None:
    """
    Convert an environment variable name to a configuration path.

    The first component names the section and the rest is the key, so keys
    may themselves contain underscores.

    Examples:
        >>> env_key_to_path("PGOSUP_WORKER_PROFILE_DIR")
        ['worker', 'profile_dir']
        >>> env_key_to_path("PGOSUP_UNKNOWN_THING") is None
        True

    Returns:
        [section, key], or None when the name does not address a section key
    """
    if not env_key.startswith(prefix):
        return None
    section, _, key = env_key[len(prefix) :].lower().partition("_")
    if section not in SECTIONS or not key:
        return None
    return [section, key]


def collect_env_overrides(
    environ: Mapping[str, str] | None = None, prefix: str = ENV_PREFIX
) -> dict[str, dict[str, Any]]:
    """
    Collect configuration overrides from environment variables.

    Args:
        environ: Environment mapping, defaults to os.environ
        prefix: Variable name prefix

    Returns:
        Nested overrides, e.g. {"upload": {"bucket": "pgo-data"}}
    """
    if environ is None:
        environ = os.environ

    overrides: dict[str, dict[str, Any]] = {}
    for env_key, env_value in environ.items():
        path = env_key_to_path(env_key, prefix)
        if path is None:
            continue
        section, key = path
        overrides.setdefault(section, {})[key] = _convert_env_value(env_value)
    return overrides


def merge(base: dict[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """
    Recursively merge overrides into a copy of base.

    Override values of None are skipped so unset CLI flags do not mask lower
    layers.
    """
    result = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        if isinstance(value, Mapping) and isinstance(result.get(key), dict):
            result[key] = merge(result[key], value)
        elif isinstance(value, Mapping):
            result[key] = merge({}, value)
        else:
            result[key] = value
    return result


def load_config(
    path: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    env_prefix: str = ENV_PREFIX,
) -> SupervisorConfig:
    """
    Build the validated supervisor configuration.

    Args:
        path: Optional YAML configuration file; when omitted, the file named
            by $PGOSUP_CONFIG in environ is used if set
        overrides: Nested overrides from the command line (highest precedence)
        environ: Environment mapping, defaults to os.environ
        env_prefix: Prefix for environment overrides

    Returns:
        Validated SupervisorConfig

    Raises:
        ConfigError: If any layer cannot be read or the result fails validation

    Example:
        config = load_config("etc/pgosup.yaml", overrides={"upload": {"report": True}})
    """
    if environ is None:
        environ = os.environ
    if path is None:
        path = environ.get(CONFIG_ENV) or None

    data: dict[str, Any] = load_yaml(path) if path else {}
    data = merge(data, collect_env_overrides(environ, env_prefix))
    if overrides:
        data = merge(data, overrides)

    try:
        return SupervisorConfig.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError("invalid configuration", errors=problems) from e
