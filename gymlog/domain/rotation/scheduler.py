"""
Rotation Scheduler for GymLog.

Answers "what should I train next". The active rotation and its position
are a fold over rotation events; completing a workout from the current
plan appends a ``rotation_advanced`` event that moves the position on,
wrapping around at the end of the plan list.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from gymlog.core.events import (
    EventType,
    RotationActivatedEvent,
    RotationAdvancedEvent,
    RotationCreatedEvent,
    WorkoutStartedEvent,
)
from gymlog.core.store import EventStore
from gymlog.utils.ids import generate_entity_id
from gymlog.utils.logging import get_logger


logger = get_logger("domain.rotation")


@dataclass(frozen=True)
class RotationState:
    """The active rotation and where it currently stands."""

    rotation_id: str
    name: str
    plan_ids: tuple[str, ...]
    current_index: int
    default_gym_id: Optional[str] = None

    @property
    def current_plan_id(self) -> str:
        return self.plan_ids[self.current_index]

    @property
    def position(self) -> tuple[int, int]:
        """1-based position and length, e.g. ``(1, 2)``."""
        return self.current_index + 1, len(self.plan_ids)


class RotationScheduler:
    """Folds rotation events into the current state and advances it.

    Usage:
        scheduler = RotationScheduler(store)
        rotation = scheduler.create_rotation("PPL", ["PLN_push", "PLN_pull"])
        scheduler.activate(rotation.rotation_id)
        scheduler.current_plan()   # "PLN_push"
    """

    def __init__(self, store: EventStore):
        self.store = store

    # ========== State ==========

    def _fold(self) -> tuple[dict[str, RotationCreatedEvent], Optional[RotationState], set[str]]:
        definitions: dict[str, RotationCreatedEvent] = {}
        active: Optional[str] = None
        index = 0
        advanced_sessions: set[str] = set()

        for event in self.store.query(event_types=[
            EventType.ROTATION_CREATED,
            EventType.ROTATION_ACTIVATED,
            EventType.ROTATION_ADVANCED,
        ]):
            if isinstance(event, RotationCreatedEvent):
                definitions[event.rotation_id] = event
            elif isinstance(event, RotationActivatedEvent):
                if event.rotation_id in definitions:
                    active = event.rotation_id
                    index = 0
            elif isinstance(event, RotationAdvancedEvent):
                if event.session_id:
                    advanced_sessions.add(event.session_id)
                if event.rotation_id == active:
                    index = event.current_index % len(definitions[active].plan_ids)

        state = None
        if active is not None:
            rotation = definitions[active]
            state = RotationState(
                rotation_id=rotation.rotation_id,
                name=rotation.name,
                plan_ids=tuple(rotation.plan_ids),
                current_index=index,
                default_gym_id=rotation.default_gym_id,
            )
        return definitions, state, advanced_sessions

    def state(self) -> Optional[RotationState]:
        """Active rotation, or None when no rotation has been activated."""
        return self._fold()[1]

    def rotations(self) -> list[RotationCreatedEvent]:
        """Every rotation definition ever created."""
        return list(self._fold()[0].values())

    def current_plan(self) -> Optional[str]:
        state = self.state()
        return state.current_plan_id if state else None

    def current_gym(self) -> Optional[str]:
        state = self.state()
        return state.default_gym_id if state else None

    def position(self) -> Optional[tuple[int, int]]:
        state = self.state()
        return state.position if state else None

    # ========== Commands ==========

    def create_rotation(
        self,
        name: str,
        plan_ids: Sequence[str],
        default_gym_id: Optional[str] = None,
        rotation_id: Optional[str] = None,
    ) -> RotationCreatedEvent:
        """Define a rotation. It does not become active until ``activate``.

        Raises:
            ValueError: If ``plan_ids`` is empty
        """
        if not plan_ids:
            raise ValueError("A rotation needs at least one plan")
        event = RotationCreatedEvent(
            rotation_id=rotation_id or generate_entity_id("rotation"),
            name=name,
            plan_ids=list(plan_ids),
            default_gym_id=default_gym_id,
        )
        self.store.append(event)
        logger.info(f"Created rotation '{name}' with {len(plan_ids)} plans")
        return event

    def activate(self, rotation_id: str) -> RotationActivatedEvent:
        """Make ``rotation_id`` the active rotation, starting at its first plan.

        Raises:
            KeyError: Unknown rotation
        """
        definitions = self._fold()[0]
        if rotation_id not in definitions:
            raise KeyError(rotation_id)
        event = RotationActivatedEvent(rotation_id=rotation_id)
        self.store.append(event)
        logger.info(f"Activated rotation {rotation_id}")
        return event

    def record_completion(self, session_id: str) -> Optional[RotationAdvancedEvent]:
        """Advance the active rotation if ``session_id`` completed its current plan.

        The session must be both finished and saved, must have been started
        from the current plan, and must not have advanced the rotation
        before. Returns the appended event, or None when nothing moved.
        """
        with self.store.exclusive():
            _, state, advanced_sessions = self._fold()
            if state is None or session_id in advanced_sessions:
                return None

            seen = {
                event.event_type: event
                for event in self.store.query(entity_id=session_id, event_types=[
                    EventType.WORKOUT_STARTED,
                    EventType.WORKOUT_FINISHED,
                    EventType.WORKOUT_SAVED,
                ])
            }
            if EventType.WORKOUT_FINISHED not in seen or EventType.WORKOUT_SAVED not in seen:
                return None

            started = seen.get(EventType.WORKOUT_STARTED)
            launched_from = (started or seen[EventType.WORKOUT_SAVED]).plan_id
            if launched_from != state.current_plan_id:
                logger.debug(f"Session {session_id} ran {launched_from}, not {state.current_plan_id}")
                return None

            event = RotationAdvancedEvent(
                rotation_id=state.rotation_id,
                current_index=(state.current_index + 1) % len(state.plan_ids),
                session_id=session_id,
            )
            self.store.append(event)

        logger.info(
            f"Rotation {state.rotation_id} advanced to "
            f"{event.current_index + 1}/{len(state.plan_ids)}"
        )
        return event
