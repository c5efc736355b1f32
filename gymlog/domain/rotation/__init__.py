"""
GymLog Rotation - cyclic plan scheduling.
"""

from gymlog.domain.rotation.scheduler import RotationScheduler, RotationState

__all__ = ["RotationScheduler", "RotationState"]
