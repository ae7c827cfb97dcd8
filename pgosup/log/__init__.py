"""
Structured logging for the supervisor.

Extends Python's standard logging with:
- A TRACE level below DEBUG
- Structured `[key:value]` fields and an `after` duration field
- A `/`-separated topic hierarchy of loggers sharing the root's handler
"""

import logging

from ..exceptions import InvalidLogLevelError
from .config import LogConfig, resolve_level
from .constants import TRACE, LogConstants
from .factory import LoggerFactory
from .formatters import LogFormatter
from .logger import Logger

logging.addLevelName(TRACE, "TRACE")


def create_root_lg(
    level: str | int | bool = "info",
    location: bool | int = False,
    micros: bool = False,
    colors: bool = False,
) -> Logger:
    """Create a root logger, the shortcut used by scripts and tests."""
    config = LogConfig.from_params(level, location=location, micros=micros, colors=colors)
    return LoggerFactory.create_root(config)


__all__ = [
    "TRACE",
    "InvalidLogLevelError",
    "LogConfig",
    "LogConstants",
    "LogFormatter",
    "Logger",
    "LoggerFactory",
    "create_root_lg",
    "resolve_level",
]
