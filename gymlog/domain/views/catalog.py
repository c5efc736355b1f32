"""
Current-state catalog folds.

Gyms and exercises are folded from create/update events; templates and
plans from create events minus tombstones. Tombstoned structures vanish
from these lists only; sessions run from them keep their history.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from gymlog.core.events import (
    BaseEvent,
    EventType,
    ExerciseCreatedEvent,
    ExerciseUpdatedEvent,
    GymCreatedEvent,
    GymUpdatedEvent,
    PlanCreatedEvent,
    TemplateCreatedEvent,
)


@dataclass(frozen=True)
class Gym:
    gym_id: str
    name: str
    location: Optional[str] = None


@dataclass(frozen=True)
class Exercise:
    exercise_id: str
    name: str
    muscle_group: str
    is_global: bool = True
    gym_id: Optional[str] = None

    def available_at(self, gym_id: str) -> bool:
        return self.is_global or self.gym_id == gym_id


@dataclass(frozen=True)
class Template:
    template_id: str
    name: str
    exercise_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class Plan:
    plan_id: str
    name: str
    exercise_ids: tuple[str, ...] = ()


def gyms(events: Iterable[BaseEvent]) -> list[Gym]:
    """Current gyms in creation order; updates replace name and location."""
    current: dict[str, Gym] = {}
    for event in events:
        if isinstance(event, (GymCreatedEvent, GymUpdatedEvent)):
            current[event.gym_id] = Gym(event.gym_id, event.name, event.location)
    return list(current.values())


def exercises(events: Iterable[BaseEvent]) -> list[Exercise]:
    current: dict[str, Exercise] = {}
    for event in events:
        if isinstance(event, (ExerciseCreatedEvent, ExerciseUpdatedEvent)):
            current[event.exercise_id] = Exercise(
                exercise_id=event.exercise_id,
                name=event.name,
                muscle_group=event.muscle_group,
                is_global=event.is_global,
                gym_id=event.gym_id,
            )
    return list(current.values())


def templates(events: Iterable[BaseEvent]) -> list[Template]:
    current: dict[str, Template] = {}
    for event in events:
        if isinstance(event, TemplateCreatedEvent):
            current[event.template_id] = Template(
                event.template_id, event.name, tuple(event.exercise_ids)
            )
        elif event.event_type is EventType.TEMPLATE_DELETED:
            current.pop(event.template_id, None)
    return list(current.values())


def plans(events: Iterable[BaseEvent]) -> list[Plan]:
    current: dict[str, Plan] = {}
    for event in events:
        if isinstance(event, PlanCreatedEvent):
            current[event.plan_id] = Plan(event.plan_id, event.name, tuple(event.exercise_ids))
        elif event.event_type is EventType.PLAN_DELETED:
            current.pop(event.plan_id, None)
    return list(current.values())
