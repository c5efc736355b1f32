"""
GymLog App - engine facade, configuration and CLI.
"""

from gymlog.app.config import GymLogConfig, get_config, reload_config, set_config
from gymlog.app.engine import GymLogEngine, QuickStart

__all__ = [
    "GymLogConfig",
    "get_config",
    "set_config",
    "reload_config",
    "GymLogEngine",
    "QuickStart",
]
