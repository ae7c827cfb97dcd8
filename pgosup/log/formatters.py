"""
Log formatters for the logging system.

Renders records as a single line: timestamp, level initial, message, the
record's extra fields as `[key:value]`, then process id and logger topic.
"""

import collections
import logging
import os
from typing import Any

from .colors import ColorManager
from .config import LogConfig
from .constants import LogConstants


def _ordered_keys(extra: dict[str, Any]) -> list[str]:
    """Extra keys in display order: `after` first, then sorted unless ordered."""
    keys = [k for k in extra.keys() if k != "after"]
    if not isinstance(extra, collections.OrderedDict):
        keys.sort()
    if "after" in extra:
        keys.insert(0, "after")
    return keys


def _render_value(key: str, value: Any, micros: bool) -> str:
    """Render one extra value as text."""
    if key == "after" and isinstance(value, (int, float)):
        from ..time import delta_str

        return delta_str(float(value), precise=micros)
    if isinstance(value, BaseException):
        return f"{value.__class__.__name__}: {value}"
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


class LogFormatter(logging.Formatter):
    """
    Single-line formatter with structured extra fields and optional colors.

    Fields come from the record attribute Logger.makeRecord sets, so records
    from plain stdlib loggers format without them.
    """

    def __init__(self, config: LogConfig) -> None:
        super().__init__(LogConstants.DEFAULT_FORMAT)
        self._config = config

    @property
    def config(self) -> LogConfig:
        return self._config

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        """Format timestamp, appending microseconds when configured."""
        s = super().formatTime(record, datefmt)
        if self._config.micros:
            micros = int((record.created % 1) * 1_000_000) % 1000
            s += f".{micros:03d}"
        return s

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        record.asctime = self.formatTime(record)

        head = f"[{record.asctime}] [{record.levelname[:1]}] {record.message}"
        fields = self._format_fields(record)
        tail = f"[{record.process}] [{record.name}]" + self._format_location(record)

        rule = (
            LogConstants.MICRO_RULE_WIDTH
            if self._config.micros
            else LogConstants.DEFAULT_RULE_WIDTH
        )
        pad = " " * max(1, rule - len(head))
        body = head + pad + " ".join(p for p in (fields, tail) if p)

        if self._config.colors:
            col = ColorManager.for_level(record.levelno)
            body = col + "m" + body + ColorManager.RESET

        if record.exc_info:
            body += "\n" + self.formatException(record.exc_info)
        return body

    def _format_fields(self, record: logging.LogRecord) -> str:
        extra = getattr(record, LogConstants.FIELDS_ATTR, None)
        if not extra:
            return ""
        parts = []
        for key in _ordered_keys(extra):
            if extra[key] is None:
                continue
            value = _render_value(key, extra[key], self._config.micros)
            parts.append(f"[{value}]" if key == "after" else f"[{key}:{value}]")
        return " ".join(parts)

    def _format_location(self, record: logging.LogRecord) -> str:
        if self._config.location <= 0:
            return ""
        return f" [{os.path.basename(record.pathname)}:{record.lineno}]"
