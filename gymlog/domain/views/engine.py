"""
Derived View Engine.

Read-only queries over the event log. Nothing is cached: each call folds
a fresh snapshot of the store, so results always reflect the latest
appends.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from gymlog.core.store import EventStore
from gymlog.domain.views import analytics, catalog
from gymlog.domain.views.ghost import GhostData, ghost_sets
from gymlog.domain.views.notes import NoteEntry, note_history
from gymlog.domain.views.sessions import SessionIndex, TieBreak
from gymlog.domain.views.warmup import (
    DEFAULT_INCREMENT,
    DEFAULT_TIERS,
    WarmupHint,
    coerce_tiers,
    warmup_hint,
)
from gymlog.utils.logging import get_logger


logger = get_logger("domain.views")


class DerivedViewEngine:
    """Pure folds over the store for ghost data, warm-ups, analytics,
    notes and the current catalog.

    Usage:
        views = DerivedViewEngine(store)
        ghost = views.ghost_sets("EXR_bench", "GYM_home")
        hint = views.warmup("EXR_bench")
    """

    def __init__(
        self,
        store: EventStore,
        warmup_tiers: Optional[Iterable] = None,
        weight_increment: float = DEFAULT_INCREMENT,
        ghost_tie_break: TieBreak | str = TieBreak.LATEST_APPENDED,
    ):
        self.store = store
        self.warmup_tiers = coerce_tiers(warmup_tiers) if warmup_tiers is not None else DEFAULT_TIERS
        self.weight_increment = weight_increment
        self.ghost_tie_break = TieBreak(ghost_tie_break)

    def sessions(self) -> SessionIndex:
        """Session index over the current log."""
        return SessionIndex(self.store.entries(), tie_break=self.ghost_tie_break)

    # ========== Workout Pre-fill ==========

    def ghost_sets(
        self,
        exercise_id: str,
        gym_id: str,
        exclude_session_id: Optional[str] = None,
    ) -> GhostData:
        return ghost_sets(self.sessions(), exercise_id, gym_id, exclude_session_id)

    def warmup(self, exercise_id: str, exclude_session_id: Optional[str] = None) -> WarmupHint:
        return warmup_hint(
            self.sessions(),
            exercise_id,
            tiers=self.warmup_tiers,
            increment=self.weight_increment,
            exclude_session_id=exclude_session_id,
        )

    # ========== Analytics ==========

    def exercise_progress(self, exercise_id: str) -> list[analytics.SessionSummary]:
        return analytics.exercise_progress(self.sessions(), exercise_id)

    def personal_records(self, exercise_id: str) -> list[analytics.PersonalRecord]:
        return analytics.personal_records(self.sessions(), exercise_id)

    def volume_by_muscle_group(self, since: Optional[datetime] = None) -> dict[str, float]:
        events = self.store.events()
        groups = {e.exercise_id: e.muscle_group for e in catalog.exercises(events)}
        return analytics.volume_by_muscle_group(self.sessions(), groups, since=since)

    def note_history(self, exercise_id: str) -> list[NoteEntry]:
        return note_history(self.sessions(), exercise_id)

    def progression_status(
        self,
        exercise_id: str,
        gym_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> analytics.ProgressionStatus:
        return analytics.progression_status(self.sessions(), exercise_id, gym_id=gym_id, now=now)

    def progression_dashboard(self, now: Optional[datetime] = None) -> list[analytics.ProgressionStatus]:
        """Status of every exercise with logged sets, problems first."""
        index = self.sessions()
        names = {e.exercise_id: e.name for e in catalog.exercises(self.store.events())}
        logged = {s.exercise_id for session in index.sessions() for s in session.sets}
        statuses = [analytics.progression_status(index, exercise_id, now=now) for exercise_id in logged]
        return analytics.sort_by_attention(statuses, names)

    def summary_stats(self, days: Optional[int] = None, now: Optional[datetime] = None) -> analytics.SummaryStats:
        return analytics.summary_stats(self.sessions(), days=days, now=now)

    def comparison_stats(
        self,
        exercise_ids: Iterable[str],
        days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> list[analytics.ExerciseComparison]:
        return analytics.comparison_stats(self.sessions(), exercise_ids, days=days, now=now)

    def workout_summary(self, session_id: str) -> Optional[analytics.WorkoutSummary]:
        return analytics.workout_summary(self.sessions(), session_id)

    # ========== Catalog ==========

    def gyms(self) -> list[catalog.Gym]:
        return catalog.gyms(self.store.events())

    def exercises(self) -> list[catalog.Exercise]:
        return catalog.exercises(self.store.events())

    def templates(self) -> list[catalog.Template]:
        return catalog.templates(self.store.events())

    def plans(self) -> list[catalog.Plan]:
        return catalog.plans(self.store.events())

    # ========== Diagnostics ==========

    def session_count(self) -> int:
        return len(self.sessions())

    def set_count(self) -> int:
        return self.sessions().set_count()
