"""Human-readable size and duration formatting."""

from __future__ import annotations

_SIZE_UNITS: tuple[str, ...] = ("B", "KB", "MB", "GB")


def format_bytes(num_bytes: int) -> str:
    """``1536`` → ``"1.5 KB"``."""
    if num_bytes <= 0:
        return "0 B"
    value = float(num_bytes)
    unit_index = 0
    while value >= 1024 and unit_index < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit_index += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[unit_index]}"


def format_time(seconds: float) -> str:
    """``75`` → ``"1:15"``."""
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}:{secs:02d}"
