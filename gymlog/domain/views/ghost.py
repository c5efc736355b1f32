"""
Ghost data: the previous session's values for an exercise at a gym,
shown as placeholders while logging the next one.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from gymlog.domain.views.sessions import SessionIndex


@dataclass(frozen=True)
class GhostSet:
    set_number: int
    weight: float
    reps: int
    rir: Optional[int] = None


@dataclass(frozen=True)
class GhostData:
    """Placeholder sets from the most recent matching session."""

    session_id: Optional[str] = None
    started_at: Optional[datetime] = None
    sets: tuple[GhostSet, ...] = ()

    @property
    def has_data(self) -> bool:
        return self.session_id is not None

    def for_set(self, set_number: int) -> Optional[GhostSet]:
        for ghost in self.sets:
            if ghost.set_number == set_number:
                return ghost
        return None


def ghost_sets(
    index: SessionIndex,
    exercise_id: str,
    gym_id: str,
    exclude_session_id: Optional[str] = None,
) -> GhostData:
    """Find the most recent session at ``gym_id`` that logged ``exercise_id``.

    Per set number the last logged values win, so a corrected set replaces
    the original entry.

    Args:
        index: Session index over the current log
        exercise_id: Exercise being logged
        gym_id: Gym of the session being logged
        exclude_session_id: The in-progress session, so it never ghosts itself

    Returns:
        GhostData sorted by set number; ``has_data`` is False when no prior
        session exists
    """
    session = index.latest(
        lambda s: s.gym_id == gym_id and exercise_id in s.exercise_ids,
        exclude_session_id=exclude_session_id,
    )
    if session is None:
        return GhostData()

    by_number: dict[int, GhostSet] = {}
    for logged in session.sets_for(exercise_id):
        by_number[logged.set_number] = GhostSet(
            set_number=logged.set_number,
            weight=logged.weight,
            reps=logged.reps,
            rir=logged.rir,
        )

    return GhostData(
        session_id=session.session_id,
        started_at=session.started_at,
        sets=tuple(by_number[n] for n in sorted(by_number)),
    )
