"""Utility functions for RTM Deck."""

import hashlib
import json
import math
import os
from datetime import datetime
from typing import Any


def expand_env(value: str) -> str:
    """Expand ``~`` and ``$VAR`` / ``${VAR}`` references in a config value."""
    return os.path.expanduser(os.path.expandvars(value))


def md5_hex(text: str) -> str:
    """Hex md5 digest of a string, used for cache keys and value hashes."""
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def hash_payload(payload: Any) -> str:
    """Fingerprint a JSON-able payload independent of key order.

    Example:
        >>> hash_payload({"b": 1, "a": 2}) == hash_payload({"a": 2, "b": 1})
        True
    """
    return md5_hex(json.dumps(payload, sort_keys=True, default=str))


def is_numeric(value: Any) -> bool:
    """Check if a value is a finite number or a string holding one.

    Mirrors what a browser widget would accept: ``"12.5"`` is numeric,
    ``True``, ``""`` and ``"abc"`` are not.
    """
    if isinstance(value, bool) or value is None:
        return False
    if isinstance(value, (int, float)):
        return math.isfinite(value)
    if isinstance(value, str):
        try:
            return math.isfinite(float(value))
        except ValueError:
            return False
    return False


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def format_timestamp_ago(timestamp: float) -> str:
    """Convert Unix timestamp to relative time string.

    Args:
        timestamp: Unix timestamp (seconds since epoch)

    Returns:
        Human-readable relative time (e.g., "5m ago", "2h ago", "3d ago")
    """
    try:
        diff = datetime.now() - datetime.fromtimestamp(timestamp)
    except (TypeError, ValueError, OverflowError, OSError):
        return ""

    if diff.days > 0:
        return f"{diff.days}d ago"
    elif diff.seconds >= 3600:
        return f"{diff.seconds // 3600}h ago"
    elif diff.seconds >= 60:
        return f"{diff.seconds // 60}m ago"
    else:
        return "just now"


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """Truncate text to maximum length, adding suffix if truncated.

    Example:
        >>> truncate_text("This is a very long text", max_length=15)
        'This is a ve...'
    """
    if not text or len(text) <= max_length:
        return text

    return text[:max_length - len(suffix)] + suffix
