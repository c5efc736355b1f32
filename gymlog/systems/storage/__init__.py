"""
GymLog Storage - durable image of the event log.
"""

from gymlog.systems.storage.database import EventDatabase
from gymlog.systems.storage.checkpoint import CheckpointManager, CheckpointResult, RecoveryResult

__all__ = [
    "EventDatabase",
    "CheckpointManager",
    "CheckpointResult",
    "RecoveryResult",
]
