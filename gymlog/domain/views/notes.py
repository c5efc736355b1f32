"""
Exercise note history.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from gymlog.domain.views.sessions import SessionIndex


@dataclass(frozen=True)
class NoteEntry:
    exercise_id: str
    session_id: str
    text: str
    logged_at: datetime
    gym_id: Optional[str] = None


def note_history(index: SessionIndex, exercise_id: str) -> list[NoteEntry]:
    """Every note for the exercise, newest first.

    Notes with the same ``logged_at`` are ordered by append position,
    later first.
    """
    found = []
    for session in index.sessions():
        for sequence, note in session.notes:
            if note.exercise_id == exercise_id:
                found.append((note.logged_at, sequence, session.gym_id, note))

    found.sort(key=lambda item: (item[0], item[1]), reverse=True)
    return [
        NoteEntry(
            exercise_id=note.exercise_id,
            session_id=note.session_id,
            text=note.text,
            logged_at=logged_at,
            gym_id=gym_id,
        )
        for logged_at, _, gym_id, note in found
    ]
