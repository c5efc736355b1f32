"""
Workout Session Events.

A session is opened by ``workout_started`` and closed by the
``workout_finished`` + ``workout_saved`` pair. Sets and notes reference
the session by ``session_id``.
"""

from __future__ import annotations

from typing import Optional

from pydantic import ConfigDict, Field

from gymlog.core.events.base import BaseEvent, EventType, UtcDateTime, utc_now


class _WorkoutEvent(BaseEvent):
    """Shared shape of the three workout lifecycle events."""

    session_id: str = Field(description="Workout session identifier")
    gym_id: str = Field(description="Gym the session ran at")
    plan_id: str = Field(description="Plan or template the session was launched from")
    started_at: UtcDateTime = Field(description="Session start time")

    model_config = ConfigDict(frozen=True, extra="forbid")


class WorkoutStartedEvent(_WorkoutEvent):
    event_type: EventType = Field(default=EventType.WORKOUT_STARTED, frozen=True)


class WorkoutFinishedEvent(_WorkoutEvent):
    event_type: EventType = Field(default=EventType.WORKOUT_FINISHED, frozen=True)


class WorkoutSavedEvent(_WorkoutEvent):
    event_type: EventType = Field(default=EventType.WORKOUT_SAVED, frozen=True)


class SetLoggedEvent(BaseEvent):
    """One working set.

    ``weight`` is stored as a float at full precision; ``rir`` (reps in
    reserve) is optional.
    """

    event_type: EventType = Field(default=EventType.SET_LOGGED, frozen=True)
    session_id: str
    exercise_id: str
    set_number: int = Field(ge=1, description="1-based position within the exercise")
    weight: float = Field(ge=0, description="Load in kg")
    reps: int = Field(ge=0)
    rir: Optional[int] = Field(default=None, ge=0, description="Reps in reserve")

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def volume(self) -> float:
        return self.weight * self.reps


class ExerciseNoteLoggedEvent(BaseEvent):
    """Free-text note about an exercise within a session."""

    event_type: EventType = Field(default=EventType.EXERCISE_NOTE_LOGGED, frozen=True)
    exercise_id: str
    session_id: str
    text: str
    logged_at: UtcDateTime = Field(default_factory=utc_now)

    model_config = ConfigDict(frozen=True, extra="forbid")
