"""
Base Event Classes for GymLog.

Defines the immutable Event model. Every state change in the app is an
event appended to the log; current state is always a fold over it.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Any, ClassVar

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

from gymlog.utils.ids import generate_event_id


def ensure_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC and normalise aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_now() -> datetime:
    return datetime.now(UTC)


UtcDateTime = Annotated[datetime, AfterValidator(ensure_utc)]


# ============================================================================
# Event Type Enum
# ============================================================================


class EventType(str, Enum):
    """Closed set of event tags."""
    # Catalog events
    GYM_CREATED = "gym_created"
    GYM_UPDATED = "gym_updated"
    EXERCISE_CREATED = "exercise_created"
    EXERCISE_UPDATED = "exercise_updated"

    # Structure events
    TEMPLATE_CREATED = "template_created"
    TEMPLATE_DELETED = "template_deleted"
    PLAN_CREATED = "plan_created"
    PLAN_DELETED = "plan_deleted"

    # Rotation events
    ROTATION_CREATED = "rotation_created"
    ROTATION_ACTIVATED = "rotation_activated"
    ROTATION_ADVANCED = "rotation_advanced"

    # Session events
    WORKOUT_STARTED = "workout_started"
    WORKOUT_FINISHED = "workout_finished"
    WORKOUT_SAVED = "workout_saved"
    SET_LOGGED = "set_logged"
    EXERCISE_NOTE_LOGGED = "exercise_note_logged"


# Events that survive clear_historical
IDENTITY_EVENT_TYPES: frozenset[EventType] = frozenset({
    EventType.GYM_CREATED,
    EventType.GYM_UPDATED,
    EventType.EXERCISE_CREATED,
    EventType.EXERCISE_UPDATED,
})

# Payload fields whose values name other entities (indexed by the store)
REFERENCE_FIELDS: tuple[str, ...] = (
    "gym_id",
    "exercise_id",
    "template_id",
    "plan_id",
    "rotation_id",
    "session_id",
    "default_gym_id",
)
REFERENCE_LIST_FIELDS: tuple[str, ...] = ("exercise_ids", "plan_ids")


# ============================================================================
# Base Event
# ============================================================================


class BaseEvent(BaseModel):
    """Immutable atomic fact.

    Attributes:
        id: Globally unique event id, the dedup key on append and import
        event_type: Tag selecting the payload shape
        timestamp: When the event was recorded (UTC)
    """

    ENVELOPE_FIELDS: ClassVar[tuple[str, ...]] = ("id", "event_type", "timestamp")

    id: str = Field(
        default_factory=generate_event_id,
        min_length=1,
        description="Unique event ID",
    )
    event_type: EventType = Field(description="Type tag")
    timestamp: UtcDateTime = Field(
        default_factory=utc_now,
        description="When the event was recorded",
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("event_type")
    @classmethod
    def _tag_owned_by_class(cls, value: EventType) -> EventType:
        # Each subclass pins its tag as the field default
        owned = cls.model_fields["event_type"].default
        if isinstance(owned, EventType) and value is not owned:
            raise ValueError(f"{cls.__name__} is tagged {owned.value}, got {value.value}")
        return value

    def __str__(self) -> str:
        return f"Event({self.event_type.value}: {self.id})"

    def payload(self) -> dict[str, Any]:
        """Type-specific fields, without the envelope."""
        return self.model_dump(exclude=set(self.ENVELOPE_FIELDS))

    def entity_ids(self) -> set[str]:
        """Ids of every entity this event references."""
        refs: set[str] = set()
        for name in REFERENCE_FIELDS:
            value = getattr(self, name, None)
            if value:
                refs.add(value)
        for name in REFERENCE_LIST_FIELDS:
            refs.update(getattr(self, name, None) or ())
        return refs

    @property
    def is_identity(self) -> bool:
        return self.event_type in IDENTITY_EVENT_TYPES

    def to_db_dict(self) -> dict[str, Any]:
        """Convert to a flat dictionary for database storage."""
        return {
            "id": self.id,
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "payload": self.model_dump(mode="json", exclude=set(self.ENVELOPE_FIELDS)),
        }
