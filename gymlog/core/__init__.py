"""
GymLog Core - events, the event store and the error taxonomy.
"""

from gymlog.core.errors import GymLogError
from gymlog.core.store import EventQuery, EventStore, StoredEvent

__all__ = ["GymLogError", "EventQuery", "EventStore", "StoredEvent"]
