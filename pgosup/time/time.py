"""
Timing helpers.

Monotonic timing for elapsed measurements (`start`/`since`), wall-clock UTC
stamps for anything that leaves the process (run identifiers, log fields).
"""

import datetime
import time


def start() -> float:
    """Current monotonic time, for use with since()."""
    return time.monotonic()


def since(start_t: float) -> float:
    """Seconds elapsed since a start() value."""
    return time.monotonic() - start_t


def utc_now() -> datetime.datetime:
    """Current time as an aware UTC datetime."""
    return datetime.datetime.now(datetime.UTC)


def utc_stamp(dt: datetime.datetime | None = None) -> str:
    """Compact UTC stamp, e.g. 20261018T120304Z. Sorts lexicographically."""
    return (dt or utc_now()).astimezone(datetime.UTC).strftime("%Y%m%dT%H%M%SZ")
