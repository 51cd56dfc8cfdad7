"""Formatting helpers for progress and log output."""

from datetime import datetime

TIMESTAMP_FMT = "%Y-%m-%d %H:%M:%S.%f %Z%z"


def time_str(seconds: float) -> str:
    """Format a duration as "HH:MM:SS.ss"."""
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{int(hours):02}:{int(minutes):02}:{secs:05.2f}"


def int_comma(n: int) -> str:
    """Format an integer with commas as thousands separators."""
    return f"{n:,}"


def byte_str(n_bytes: int) -> str:
    """Format a byte count with a binary unit suffix, e.g. "1.50 GiB"."""
    size = float(n_bytes)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if size < 1024 or unit == "GiB":
            break
        size /= 1024
    if unit == "B":
        return f"{n_bytes} B"
    return f"{size:.2f} {unit}"


def timestamp(when: float) -> str:
    """Format a UNIX timestamp in the local timezone."""
    return datetime.fromtimestamp(when).astimezone().strftime(TIMESTAMP_FMT)
