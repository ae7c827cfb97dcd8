"""
Factory for creating and configuring loggers.

The supervisor builds one root logger at `/` and derives a topic logger per
component (`/launcher`, `/relay`, `/upload`). Derived loggers carry a name
and bound fields only; their level and output come from the root.
"""

import logging
import sys
from typing import Any, TextIO

from .config import LogConfig
from .formatters import LogFormatter
from .logger import Logger


def _registered(name: str) -> Logger | None:
    existing = logging.root.manager.loggerDict.get(name)
    return existing if isinstance(existing, Logger) else None


def _register(lg: Logger) -> Logger:
    logging.root.manager.loggerDict[lg.name] = lg
    return lg


class LoggerFactory:
    """Factory for creating and configuring loggers."""

    @staticmethod
    def create_root(config: LogConfig, stream: TextIO | None = None) -> Logger:
        """
        Create the root logger at `/`.

        Example:
            >>> config = LogConfig.from_params(level="info", colors=False)
            >>> lg = LoggerFactory.create_root(config)
            >>> lg.info("supervisor started", extra={"pid": 1234})
            [12:34:56,789] [I] supervisor started          [pid:1234] [1234] [/]
        """
        return LoggerFactory.create("/", config, stream=stream)

    @staticmethod
    def create(
        name: str,
        config: LogConfig,
        fields: dict[str, Any] | None = None,
        stream: TextIO | None = None,
    ) -> Logger:
        """
        Create a logger with its own stream handler, or return the one
        already registered under `name`.

        Args:
            name: Logger name
            config: Logger configuration
            fields: Fields included in every record
            stream: Output stream, defaults to stderr so worker stdout stays clean
        """
        lg = _registered(name)
        if lg is not None:
            return lg

        lg = Logger(name, config, fields)
        handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
        handler.setFormatter(LogFormatter(config))
        lg.addHandler(handler)
        lg.propagate = False
        lg.parent = logging.root

        _register(lg)
        lg.trace("created logger", extra={"level": logging.getLevelName(lg.level)})
        return lg

    @staticmethod
    def derive(parent: Logger, tags: str | list[str]) -> Logger:
        """
        Derive a topic logger writing through the parent's handlers.

        Examples:
            >>> LoggerFactory.derive(root, "relay").name
            '/relay'
            >>> LoggerFactory.derive(root, ["upload", "s3"]).name
            '/upload/s3'
        """
        if isinstance(tags, str):
            tags = [tags]
        prefix = parent.name.rstrip("/")
        name = prefix + "/" + "/".join(tags)

        lg = _registered(name)
        if lg is not None:
            return lg

        lg = Logger(name, parent.config, parent.fields)
        lg.setLevel(logging.NOTSET)
        lg.disabled = parent.disabled
        lg.parent = parent
        lg.propagate = True
        return _register(lg)
