"""Utility functions - size parsing and formatting."""

from __future__ import annotations

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


def parse_size(size_str: str) -> int:
    """Parse a size string to bytes.

    Units are binary (``1KB`` == 1024 bytes); a bare number is bytes.

    Args:
        size_str: Size like '4096', '64KB', '10MiB', '1g'.

    Returns:
        Size in bytes.

    Raises:
        ValueError: If format is invalid.
    """
    text = size_str.strip().lower()
    if not text:
        raise ValueError("Size cannot be empty")

    digits = len(text) - len(text.lstrip("0123456789"))
    number, unit = text[:digits], text[digits:].strip()
    if not number:
        raise ValueError(f"Invalid size format: {size_str}")
    if unit not in _SIZE_UNITS:
        raise ValueError(
            f"Invalid size unit in {size_str!r}. "
            f"Use B, KB, MB, GB or TB"
        )
    return int(number) * _SIZE_UNITS[unit]


def format_duration(seconds: float) -> str:
    """Format seconds into a short human-readable duration.

    Args:
        seconds: Duration in seconds.

    Returns:
        Human-readable duration string.
    """
    if seconds < 1:
        return f"{seconds * 1000:.1f}ms"
    elif seconds < 60:
        return f"{seconds:.3f}s"
    elif seconds < 3600:
        return f"{int(seconds // 60)}m{int(seconds % 60)}s"
    else:
        return f"{int(seconds // 3600)}h{int(seconds % 3600 // 60)}m"


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
