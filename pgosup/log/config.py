"""
Logging configuration.

LogConfig is frozen so the root logger, its formatter and every derived
topic logger can share one instance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..exceptions import InvalidLogLevelError
from .constants import LogConstants


def resolve_level(level: str | int | bool) -> int | bool:
    """
    Resolve a level name, number or boolean to a numeric level or False.

    Examples:
        >>> resolve_level("DEBUG")
        10
        >>> resolve_level("false")
        False

    Raises:
        InvalidLogLevelError: For unknown level names
    """
    if isinstance(level, bool):
        return logging.INFO if level else False
    if isinstance(level, int):
        return level
    name = str(level).strip().lower()
    if name.isdigit():
        return int(name)
    if name not in LogConstants.LEVEL_NAMES:
        raise InvalidLogLevelError(level)
    return LogConstants.LEVEL_NAMES[name]


@dataclass(frozen=True)
class LogConfig:
    level: int | bool = logging.INFO
    location: int = 0
    micros: bool = False
    colors: bool = True

    @classmethod
    def from_params(
        cls,
        level: str | int | bool,
        location: bool | int = 0,
        micros: bool = False,
        colors: bool = True,
    ) -> LogConfig:
        """
        Args:
            level: Level name, number, or False to silence the logger
            location: Show `file:line`; True means depth 1
            micros: Microsecond timestamps
            colors: ANSI level colors
        """
        return cls(
            level=resolve_level(level),
            location=int(location),
            micros=micros,
            colors=colors,
        )

    @classmethod
    def from_config(cls, section: Any) -> LogConfig:
        """Build from the `logging` config section, a LoggingConfig or a dict."""
        if hasattr(section, "model_dump"):
            section = section.model_dump()
        return cls.from_params(
            level=section.get("level", "info"),
            location=section.get("location", 0),
            micros=section.get("micros", False),
            colors=section.get("colors", True),
        )
