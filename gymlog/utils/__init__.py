"""
GymLog Utils - logging setup and ID generation.
"""

from gymlog.utils.logging import setup_logging, get_logger
from gymlog.utils.ids import generate_id, generate_event_id

__all__ = [
    "setup_logging",
    "get_logger",
    "generate_id",
    "generate_event_id",
]
