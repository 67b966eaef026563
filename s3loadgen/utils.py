"""Utility functions — payload generation, key naming, formatting."""

from __future__ import annotations

import os
import re
import time

_SIZE_UNITS: dict[str, int] = {
    "": 1,
    "b": 1,
    "k": 1024,
    "kb": 1024,
    "kib": 1024,
    "m": 1024**2,
    "mb": 1024**2,
    "mib": 1024**2,
    "g": 1024**3,
    "gb": 1024**3,
    "gib": 1024**3,
    "t": 1024**4,
    "tb": 1024**4,
    "tib": 1024**4,
}

_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([a-zA-Z]*)\s*$")


def generate_data(size: int) -> bytes:
    """Generate random data of specified size.

    Args:
        size: Number of bytes to generate.

    Returns:
        Random bytes.

    Raises:
        ValueError: If size is negative.
    """
    if size < 0:
        raise ValueError(f"Payload size cannot be negative: {size}")
    return os.urandom(size)


def make_object_key(prefix: str, counter: int) -> str:
    """Build the key for the ``counter``-th PUT of a run.

    Keys look like ``{prefix}{counter}-{nanosecond timestamp}`` so
    later GET and LIST runs can find them by prefix.
    """
    return f"{prefix}{counter}-{time.time_ns()}"


def first_bytes_range(length: int) -> str:
    """HTTP Range header value for the first ``length`` bytes."""
    if length <= 0:
        raise ValueError(f"Range length must be positive: {length}")
    return f"bytes=0-{length - 1}"


def parse_size(size_str: str | int) -> int:
    """Parse a size like ``1048576``, ``8MB`` or ``1GiB`` to bytes.

    Units are binary (``1KB`` is 1024 bytes).

    Raises:
        ValueError: If format is invalid.
    """
    if isinstance(size_str, int):
        value = size_str
    else:
        match = _SIZE_RE.match(size_str)
        if not match:
            raise ValueError(f"Invalid size format: {size_str}")
        number, unit = match.groups()
        multiplier = _SIZE_UNITS.get(unit.lower())
        if multiplier is None:
            raise ValueError(f"Unknown size unit in: {size_str}")
        value = int(float(number) * multiplier)

    if value < 0:
        raise ValueError(f"Size cannot be negative: {size_str}")
    return value


def parse_duration(duration_str: str) -> int:
    """Parse duration string to seconds.

    Args:
        duration_str: Duration like '90', '30s', '5m', '1h', '2d', '1w'.

    Returns:
        Duration in seconds.

    Raises:
        ValueError: If format is invalid.
    """
    duration_str = duration_str.strip().lower()

    if not duration_str:
        raise ValueError("Duration cannot be empty")

    if duration_str.isdigit():
        value = int(duration_str)
        unit = "s"
    elif duration_str[-1] in ("s", "m", "h", "d", "w"):
        try:
            value = int(duration_str[:-1])
            unit = duration_str[-1]
        except ValueError:
            raise ValueError(
                f"Invalid duration format: {duration_str}"
            )
    else:
        raise ValueError(
            f"Invalid duration format: {duration_str}. "
            f"Must end with s/m/h/d/w"
        )

    if value <= 0:
        raise ValueError(
            f"Duration must be positive: {duration_str}"
        )

    multipliers = {
        "s": 1, "m": 60, "h": 3600, "d": 86400, "w": 604800,
    }
    return value * multipliers[unit]


def format_duration(seconds: int) -> str:
    """Format seconds into human-readable duration.

    Args:
        seconds: Duration in seconds.

    Returns:
        Human-readable duration string.
    """
    if seconds < 60:
        return f"{seconds}s"
    elif seconds < 3600:
        return f"{seconds // 60}m"
    elif seconds < 86400:
        return f"{seconds // 3600}h"
    elif seconds < 604800:
        return f"{seconds // 86400}d"
    else:
        return f"{seconds // 604800}w"


def format_bytes(size: float) -> str:
    """Format bytes as human-readable string.

    Args:
        size: Size in bytes.

    Returns:
        Human-readable size string.
    """
    if size < 1024:
        return f"{size}B"
    elif size < 1024**2:
        return f"{size / 1024:.1f}KB"
    elif size < 1024**3:
        return f"{size / 1024**2:.1f}MB"
    else:
        return f"{size / 1024**3:.1f}GB"
