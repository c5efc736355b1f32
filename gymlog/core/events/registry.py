"""
Event type registry.

Maps each tag of the closed ``EventType`` set to its model class and
rebuilds events from flat dictionaries (database rows, decoded backups).
"""

from __future__ import annotations

from typing import Any, Union

from gymlog.core.events.base import BaseEvent, EventType
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

Event = Union[
    GymCreatedEvent,
    GymUpdatedEvent,
    ExerciseCreatedEvent,
    ExerciseUpdatedEvent,
    TemplateCreatedEvent,
    TemplateDeletedEvent,
    PlanCreatedEvent,
    PlanDeletedEvent,
    RotationCreatedEvent,
    RotationActivatedEvent,
    RotationAdvancedEvent,
    WorkoutStartedEvent,
    WorkoutFinishedEvent,
    WorkoutSavedEvent,
    SetLoggedEvent,
    ExerciseNoteLoggedEvent,
]

EVENT_CLASSES: dict[EventType, type[BaseEvent]] = {
    EventType.GYM_CREATED: GymCreatedEvent,
    EventType.GYM_UPDATED: GymUpdatedEvent,
    EventType.EXERCISE_CREATED: ExerciseCreatedEvent,
    EventType.EXERCISE_UPDATED: ExerciseUpdatedEvent,
    EventType.TEMPLATE_CREATED: TemplateCreatedEvent,
    EventType.TEMPLATE_DELETED: TemplateDeletedEvent,
    EventType.PLAN_CREATED: PlanCreatedEvent,
    EventType.PLAN_DELETED: PlanDeletedEvent,
    EventType.ROTATION_CREATED: RotationCreatedEvent,
    EventType.ROTATION_ACTIVATED: RotationActivatedEvent,
    EventType.ROTATION_ADVANCED: RotationAdvancedEvent,
    EventType.WORKOUT_STARTED: WorkoutStartedEvent,
    EventType.WORKOUT_FINISHED: WorkoutFinishedEvent,
    EventType.WORKOUT_SAVED: WorkoutSavedEvent,
    EventType.SET_LOGGED: SetLoggedEvent,
    EventType.EXERCISE_NOTE_LOGGED: ExerciseNoteLoggedEvent,
}


def event_class_for(event_type: EventType | str) -> type[BaseEvent]:
    """Return the model class for a tag.

    Raises:
        ValueError: If the tag is not part of the closed set
    """
    return EVENT_CLASSES[EventType(event_type)]


def event_from_dict(data: dict[str, Any]) -> BaseEvent:
    """Build an event from a flat dict containing ``event_type``.

    Raises:
        ValueError: Unknown tag
        pydantic.ValidationError: Payload does not match the tag's model
    """
    if "event_type" not in data:
        raise ValueError("event_type missing")
    cls = event_class_for(data["event_type"])
    return cls.model_validate(data)


def payload_fields() -> dict[str, list[EventType]]:
    """Every payload field name mapped to the tags that carry it."""
    fields: dict[str, list[EventType]] = {}
    for event_type, cls in EVENT_CLASSES.items():
        for name in cls.model_fields:
            if name in BaseEvent.ENVELOPE_FIELDS:
                continue
            fields.setdefault(name, []).append(event_type)
    return fields
