"""Display helpers for index statistics."""

from datetime import datetime

_SIZE_UNITS = ["B", "KB", "MB", "GB", "TB"]


def format_file_size(size: int) -> str:
    """Human readable size, 1024 based, one decimal (``"1.5 KB"``)."""
    if size <= 0:
        return "0 B"
    value = float(size)
    exponent = 0
    while value >= 1024 and exponent < len(_SIZE_UNITS) - 1:
        value /= 1024
        exponent += 1
    text = f"{value:.1f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[exponent]}"


def format_timestamp(
    timestamp_ms: int, never: str = "Never", fmt: str = "%Y-%m-%d %H:%M:%S"
) -> str:
    """Local time for an epoch-ms value; 0 means the event never happened."""
    if timestamp_ms <= 0:
        return never
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime(fmt)
