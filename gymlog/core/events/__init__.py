"""
Core Events - immutable facts that make up the GymLog event log.
"""

from gymlog.core.events.base import (
    BaseEvent,
    EventType,
    IDENTITY_EVENT_TYPES,
    ensure_utc,
)
from gymlog.core.events.catalog import (
    ExerciseCreatedEvent,
    ExerciseUpdatedEvent,
    GymCreatedEvent,
    GymUpdatedEvent,
    PlanCreatedEvent,
    PlanDeletedEvent,
    RotationActivatedEvent,
    RotationAdvancedEvent,
    RotationCreatedEvent,
    TemplateCreatedEvent,
    TemplateDeletedEvent,
)
from gymlog.core.events.session import (
    ExerciseNoteLoggedEvent,
    SetLoggedEvent,
    WorkoutFinishedEvent,
    WorkoutSavedEvent,
    WorkoutStartedEvent,
)
from gymlog.core.events.registry import (
    EVENT_CLASSES,
    Event,
    event_class_for,
    event_from_dict,
)

__all__ = [
    "BaseEvent",
    "EventType",
    "IDENTITY_EVENT_TYPES",
    "ensure_utc",
    "GymCreatedEvent",
    "GymUpdatedEvent",
    "ExerciseCreatedEvent",
    "ExerciseUpdatedEvent",
    "TemplateCreatedEvent",
    "TemplateDeletedEvent",
    "PlanCreatedEvent",
    "PlanDeletedEvent",
    "RotationCreatedEvent",
    "RotationActivatedEvent",
    "RotationAdvancedEvent",
    "WorkoutStartedEvent",
    "WorkoutFinishedEvent",
    "WorkoutSavedEvent",
    "SetLoggedEvent",
    "ExerciseNoteLoggedEvent",
    "EVENT_CLASSES",
    "Event",
    "event_class_for",
    "event_from_dict",
]
