"""
Duration formatting and parsing.

    >>> delta_str(3661.5)
    '1h1m1s'
    >>> delta_str(1.25)
    '1.250s'
    >>> delta_to_secs('2m30s')
    150.0
"""

import math
import re

SECONDS_PER_DAY = 86400
SECONDS_PER_HOUR = 3600
SECONDS_PER_MINUTE = 60

_UNIT_SECONDS = {
    "d": SECONDS_PER_DAY,
    "h": SECONDS_PER_HOUR,
    "m": SECONDS_PER_MINUTE,
    "s": 1.0,
    "ms": 1e-3,
    "μs": 1e-6,
    "us": 1e-6,
}

# Longer units first so "ms" is not read as "m" + "s"
_COMPONENT = re.compile(r"(\d+(?:\.\d+)?)(ms|μs|us|d|h|m|s)")


class InvalidDurationError(ValueError):
    """Raised when an invalid duration value or string is provided."""

    pass


def _check(secs: float) -> None:
    if not isinstance(secs, (int, float)) or isinstance(secs, bool):
        raise InvalidDurationError(
            f"Duration must be a number, got {type(secs).__name__}"
        )
    if math.isnan(secs) or math.isinf(secs):
        raise InvalidDurationError(f"Duration must be finite, got {secs}")
    if secs < 0:
        raise InvalidDurationError(f"Duration cannot be negative, got {secs}")


def _sub_second(secs: float, precise: bool) -> str:
    if secs < 1e-3:
        return f"{int(secs * 1_000_000)}μs"
    msecs = secs * 1000
    if precise or msecs < 10:
        return f"{msecs:.3f}".rstrip("0").rstrip(".") + "ms"
    return f"{round(msecs)}ms"


def delta_str(secs: float | None, precise: bool = False) -> str:
    """
    Format a duration in seconds as a compact human-readable string.

    Durations under a minute keep millisecond precision below 10s; longer
    ones are shown as whole d/h/m/s components.

    Raises:
        InvalidDurationError: If secs is negative, NaN, or infinite
    """
    if secs is None:
        return ""
    _check(secs)
    if secs == 0:
        return "0s"
    if secs < 1:
        return _sub_second(secs, precise)
    if secs < SECONDS_PER_MINUTE:
        if secs < 10 or precise:
            return f"{secs:.3f}s"
        return f"{int(secs)}s"

    whole = int(secs)
    days, rem = divmod(whole, SECONDS_PER_DAY)
    hours, rem = divmod(rem, SECONDS_PER_HOUR)
    minutes, seconds = divmod(rem, SECONDS_PER_MINUTE)

    out = ""
    if days:
        out += f"{days}d"
    if days or hours:
        out += f"{hours}h"
    return out + f"{minutes}m{seconds}s"


def delta_to_secs(duration: str) -> float:
    """
    Parse a duration string such as "90s", "2m30s" or "1h" to seconds.

    A bare number is taken as seconds.

    Raises:
        InvalidDurationError: If the string cannot be parsed
    """
    if not isinstance(duration, str) or not duration.strip():
        raise InvalidDurationError("Duration string cannot be empty")

    text = duration.strip().replace(" ", "")
    try:
        value = float(text)
    except ValueError:
        pass
    else:
        _check(value)
        return value

    matches = _COMPONENT.findall(text)
    if not matches or "".join(v + u for v, u in matches) != text:
        raise InvalidDurationError(f"Could not parse duration string: '{duration}'")

    seen: set[str] = set()
    total = 0.0
    for value_str, unit in matches:
        if unit in seen:
            raise InvalidDurationError(f"Duplicate unit '{unit}' in '{duration}'")
        seen.add(unit)
        total += float(value_str) * _UNIT_SECONDS[unit]
    return total


__all__ = ["InvalidDurationError", "delta_str", "delta_to_secs"]
