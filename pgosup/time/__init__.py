"""Time utilities: monotonic timing, UTC stamps and duration formatting."""

from .delta import InvalidDurationError, delta_str, delta_to_secs
from .time import since, start, utc_now, utc_stamp

__all__ = [
    "InvalidDurationError",
    "delta_str",
    "delta_to_secs",
    "since",
    "start",
    "utc_now",
    "utc_stamp",
]
