"""
Constants for the logging system.

Format strings, rule widths and the custom level numbers used by the
supervisor's loggers.
"""

import logging

TRACE = 5


class LogConstants:
    """Constants for the logging system."""

    DEFAULT_FORMAT: str = "[%(asctime)s] [%(levelname).1s] %(message)s"

    # Column at which extra fields start
    DEFAULT_RULE_WIDTH: int = 60
    MICRO_RULE_WIDTH: int = 64

    # Record attribute holding the merged fields; a single attribute keeps
    # keys like "name" or "args" from clashing with LogRecord's own
    FIELDS_ATTR: str = "__pgosup__extra"

    LEVEL_NAMES: dict[str, int | bool] = {
        "critical": logging.CRITICAL,
        "error": logging.ERROR,
        "warning": logging.WARNING,
        "info": logging.INFO,
        "debug": logging.DEBUG,
        "trace": TRACE,
        "false": False,
    }

    RESET: str = "\x1b[0m"
