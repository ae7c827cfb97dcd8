"""
Size formatting.

    >>> size_str(1536)
    '1.5KB'
    >>> size_str(0)
    '0B'
"""

BYTES_PER_KB = 1024

_UNITS = ["B", "KB", "MB", "GB", "TB", "PB"]


class InvalidSizeError(ValueError):
    """Raised when an invalid size value is provided."""

    pass


def size_str(size: int | float, precise: bool = False) -> str:
    """
    Format a byte count using binary (1024-based) units.

    Values are shown with one decimal place, two when precise, and trailing
    zeros are dropped.

    Raises:
        InvalidSizeError: If size is negative or not a number
    """
    if isinstance(size, bool) or not isinstance(size, (int, float)):
        raise InvalidSizeError(f"Size must be a number, got {type(size).__name__}")
    if size < 0:
        raise InvalidSizeError(f"Size cannot be negative, got {size}")

    value = float(size)
    unit = 0
    while value >= BYTES_PER_KB and unit < len(_UNITS) - 1:
        value /= BYTES_PER_KB
        unit += 1

    if unit == 0:
        return f"{int(value)}B"
    digits = 2 if precise else 1
    text = f"{value:.{digits}f}".rstrip("0").rstrip(".")
    return f"{text}{_UNITS[unit]}"
