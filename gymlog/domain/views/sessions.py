"""
Session Index.

Groups the flat event log into workout sessions. Every derived view is a
fold over this index, rebuilt from a store snapshot on each query.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, Optional

from gymlog.core.events import (
    EventType,
    ExerciseNoteLoggedEvent,
    SetLoggedEvent,
    WorkoutStartedEvent,
)
from gymlog.core.store import StoredEvent


class TieBreak(str, Enum):
    """Which session counts as more recent when ``started_at`` is equal."""
    LATEST_APPENDED = "latest_appended"
    EARLIEST_APPENDED = "earliest_appended"


@dataclass
class Session:
    """One workout session and everything logged in it."""

    session_id: str
    started_at: datetime
    start_sequence: int
    gym_id: Optional[str] = None
    plan_id: Optional[str] = None
    finished: bool = False
    saved: bool = False
    sets: list[SetLoggedEvent] = field(default_factory=list)
    notes: list[tuple[int, ExerciseNoteLoggedEvent]] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        return self.finished and self.saved

    @property
    def exercise_ids(self) -> set[str]:
        return {s.exercise_id for s in self.sets}

    def sets_for(self, exercise_id: str) -> list[SetLoggedEvent]:
        """Sets for one exercise, in the order they were logged."""
        return [s for s in self.sets if s.exercise_id == exercise_id]


class SessionIndex:
    """Sessions keyed by id and ordered oldest to newest.

    Sets logged for a session whose ``workout_started`` event is absent
    still form a session (without gym or plan), so their history is
    never lost to the views.

    Usage:
        index = SessionIndex(store.entries())
        latest = index.latest(lambda s: exercise_id in s.exercise_ids)
    """

    def __init__(
        self,
        entries: Iterable[StoredEvent],
        tie_break: TieBreak | str = TieBreak.LATEST_APPENDED,
    ):
        self.tie_break = TieBreak(tie_break)
        self._sessions: dict[str, Session] = {}
        self._build(list(entries))

    def _build(self, entries: list[StoredEvent]) -> None:
        # Starts first so sets appended before their start event still attach
        for stored in entries:
            event = stored.event
            if isinstance(event, WorkoutStartedEvent) and event.session_id not in self._sessions:
                self._sessions[event.session_id] = Session(
                    session_id=event.session_id,
                    started_at=event.started_at,
                    start_sequence=stored.sequence,
                    gym_id=event.gym_id,
                    plan_id=event.plan_id,
                )

        for stored in entries:
            event = stored.event
            if event.event_type is EventType.WORKOUT_FINISHED:
                self._session_for(event.session_id, stored).finished = True
            elif event.event_type is EventType.WORKOUT_SAVED:
                self._session_for(event.session_id, stored).saved = True
            elif isinstance(event, SetLoggedEvent):
                self._session_for(event.session_id, stored).sets.append(event)
            elif isinstance(event, ExerciseNoteLoggedEvent):
                self._session_for(event.session_id, stored).notes.append((stored.sequence, event))

    def _session_for(self, session_id: str, stored: StoredEvent) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            session = Session(
                session_id=session_id,
                started_at=stored.event.timestamp,
                start_sequence=stored.sequence,
            )
            self._sessions[session_id] = session
        return session

    def _order_key(self, session: Session) -> tuple:
        if self.tie_break is TieBreak.EARLIEST_APPENDED:
            return (session.started_at, -session.start_sequence)
        return (session.started_at, session.start_sequence)

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def sessions(self) -> list[Session]:
        """All sessions, oldest first."""
        return sorted(self._sessions.values(), key=self._order_key)

    def latest(
        self,
        predicate: Callable[[Session], bool],
        exclude_session_id: Optional[str] = None,
    ) -> Optional[Session]:
        """Most recent session satisfying ``predicate``."""
        candidates = [
            s for s in self._sessions.values()
            if s.session_id != exclude_session_id and predicate(s)
        ]
        if not candidates:
            return None
        return max(candidates, key=self._order_key)

    def __len__(self) -> int:
        return len(self._sessions)

    def set_count(self) -> int:
        return sum(len(s.sets) for s in self._sessions.values())
