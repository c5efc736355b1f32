"""
Catalog and Structure Events.

Gyms and exercises define identity; templates, plans and rotations define
workout structure. Deletions are tombstone events, never removals.
"""

from __future__ import annotations

from typing import Optional

from pydantic import ConfigDict, Field, field_validator

from gymlog.core.events.base import BaseEvent, EventType


# ============================================================================
# Identity Events
# ============================================================================


class GymCreatedEvent(BaseEvent):
    """A gym was added."""

    event_type: EventType = Field(default=EventType.GYM_CREATED, frozen=True)
    gym_id: str = Field(description="Gym identifier")
    name: str = Field(description="Display name")
    location: Optional[str] = Field(default=None, description="Free-form location")

    model_config = ConfigDict(frozen=True, extra="forbid")


class GymUpdatedEvent(BaseEvent):
    """A gym was renamed or moved."""

    event_type: EventType = Field(default=EventType.GYM_UPDATED, frozen=True)
    gym_id: str
    name: str
    location: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="forbid")


class ExerciseCreatedEvent(BaseEvent):
    """An exercise was added to the library.

    Global exercises are available at every gym; gym-specific ones carry
    the owning ``gym_id``.
    """

    event_type: EventType = Field(default=EventType.EXERCISE_CREATED, frozen=True)
    exercise_id: str = Field(description="Exercise identifier")
    name: str = Field(description="Display name")
    muscle_group: str = Field(description="Primary muscle group")
    is_global: bool = Field(default=True, description="Available at all gyms")
    gym_id: Optional[str] = Field(default=None, description="Owning gym when not global")

    model_config = ConfigDict(frozen=True, extra="forbid")


class ExerciseUpdatedEvent(BaseEvent):
    """An exercise definition changed."""

    event_type: EventType = Field(default=EventType.EXERCISE_UPDATED, frozen=True)
    exercise_id: str
    name: str
    muscle_group: str
    is_global: bool = True
    gym_id: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="forbid")


# ============================================================================
# Structure Events
# ============================================================================


class TemplateCreatedEvent(BaseEvent):
    """A workout template was defined."""

    event_type: EventType = Field(default=EventType.TEMPLATE_CREATED, frozen=True)
    template_id: str
    name: str
    exercise_ids: list[str] = Field(default_factory=list, description="Ordered exercises")

    model_config = ConfigDict(frozen=True, extra="forbid")


class TemplateDeletedEvent(BaseEvent):
    """Tombstone for a template. Sessions run from it keep their history."""

    event_type: EventType = Field(default=EventType.TEMPLATE_DELETED, frozen=True)
    template_id: str

    model_config = ConfigDict(frozen=True, extra="forbid")


class PlanCreatedEvent(BaseEvent):
    """A workout plan was defined."""

    event_type: EventType = Field(default=EventType.PLAN_CREATED, frozen=True)
    plan_id: str
    name: str
    exercise_ids: list[str] = Field(default_factory=list, description="Ordered exercises")

    model_config = ConfigDict(frozen=True, extra="forbid")


class PlanDeletedEvent(BaseEvent):
    """Tombstone for a plan."""

    event_type: EventType = Field(default=EventType.PLAN_DELETED, frozen=True)
    plan_id: str

    model_config = ConfigDict(frozen=True, extra="forbid")


# ============================================================================
# Rotation Events
# ============================================================================


class RotationCreatedEvent(BaseEvent):
    """An ordered, cyclic sequence of plans."""

    event_type: EventType = Field(default=EventType.ROTATION_CREATED, frozen=True)
    rotation_id: str
    name: str
    plan_ids: list[str] = Field(description="Ordered plan ids, never empty")
    default_gym_id: Optional[str] = Field(default=None, description="Gym suggested for quick start")

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("plan_ids")
    @classmethod
    def _non_empty(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("rotation needs at least one plan")
        return value


class RotationActivatedEvent(BaseEvent):
    """Makes a rotation the active one, starting at index 0."""

    event_type: EventType = Field(default=EventType.ROTATION_ACTIVATED, frozen=True)
    rotation_id: str

    model_config = ConfigDict(frozen=True, extra="forbid")


class RotationAdvancedEvent(BaseEvent):
    """Moves the active rotation to ``current_index``."""

    event_type: EventType = Field(default=EventType.ROTATION_ADVANCED, frozen=True)
    rotation_id: str
    current_index: int = Field(ge=0)
    session_id: Optional[str] = Field(default=None, description="Workout that triggered the advance")

    model_config = ConfigDict(frozen=True, extra="forbid")
