"""
ID generation utilities for GymLog.

Identifiers are globally unique and sort by creation time, so a backup
made on one install never collides with ids minted on another.
"""

from __future__ import annotations

import secrets
import threading
import time


# ============================================================================
# Thread-Safe Counter
# ============================================================================


class _ThreadSafeCounter:
    """Thread-safe wrapping counter (16 bits)."""

    def __init__(self):
        self._value = 0
        self._lock = threading.Lock()

    def next(self) -> int:
        """Get the next counter value."""
        with self._lock:
            self._value = (self._value + 1) & 0xFFFF
            return self._value


_counter = _ThreadSafeCounter()


# ============================================================================
# ID Generation Functions
# ============================================================================


def generate_id(prefix: str = "") -> str:
    """Generate a unique, time-sortable identifier.

    Format: {prefix}_{millis:012x}_{counter:04x}{random:8 hex}

    Args:
        prefix: Optional prefix for the ID

    Returns:
        Unique string identifier

    Example:
        >>> generate_id("EV")
        "EV_018f3a2b4c10_0001a3f29c1e"
    """
    millis = time.time_ns() // 1_000_000
    body = f"{millis:012x}_{_counter.next():04x}{secrets.token_hex(4)}"
    if prefix:
        return f"{prefix}_{body}"
    return body


def generate_event_id() -> str:
    """Generate an ID for an event."""
    return generate_id("EV")


def generate_session_id() -> str:
    """Generate an ID for a workout session."""
    return generate_id("WK")


def generate_entity_id(kind: str) -> str:
    """Generate an ID for a gym, exercise, template, plan or rotation.

    Args:
        kind: Entity kind, e.g. "gym" or "exercise"
    """
    prefixes = {
        "gym": "GYM",
        "exercise": "EXR",
        "template": "TPL",
        "plan": "PLN",
        "rotation": "ROT",
    }
    return generate_id(prefixes.get(kind, "ENT"))

