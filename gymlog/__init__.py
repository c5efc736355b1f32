"""GymLog - local event-sourced workout log engine."""

from .app.engine import GymLogEngine
from .app.config import GymLogConfig

__version__ = "0.1.0"

__all__ = ["GymLogEngine", "GymLogConfig", "__version__"]
