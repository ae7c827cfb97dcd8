"""
Logger with structured fields.

Each record carries the logger's bound fields merged with the call's
`extra`, rendered by LogFormatter as `[key:value]`. Topic loggers derived
from the root own no handlers; records propagate up to the root's.
"""

import logging
from typing import Any

from .config import LogConfig
from .constants import TRACE, LogConstants


class Logger(logging.Logger):
    """
    Supervisor logger: stdlib Logger plus a TRACE level and bound fields.

    A LogConfig level of False disables the logger entirely.
    """

    def __init__(
        self,
        name: str,
        config: LogConfig | None = None,
        fields: dict[str, Any] | None = None,
    ) -> None:
        config = config or LogConfig()
        level = logging.CRITICAL + 1 if config.level is False else config.level
        super().__init__(name, level)
        self.config = config
        self.fields: dict[str, Any] = dict(fields or {})
        self.disabled = config.level is False

    def makeRecord(
        self,
        name: str,
        level: int,
        fn: str,
        lno: int,
        msg: object,
        args: Any,
        exc_info: Any,
        func: str | None = None,
        extra: dict[str, Any] | None = None,
        sinfo: str | None = None,
    ) -> logging.LogRecord:
        record = super().makeRecord(
            name, level, fn, lno, msg, args, exc_info, func=func, sinfo=sinfo
        )
        setattr(record, LogConstants.FIELDS_ATTR, {**self.fields, **(extra or {})})
        return record

    def trace(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log below DEBUG; used for relay state changes and logger setup."""
        if self.isEnabledFor(TRACE):
            # Report the caller's location, not this frame
            kwargs["stacklevel"] = kwargs.get("stacklevel", 1) + 1
            self._log(TRACE, msg, args, **kwargs)
