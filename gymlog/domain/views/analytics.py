"""
Training analytics: per-session progress, personal records, volume by
muscle group, progression status and workout summaries.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Iterable, Mapping, Optional

from gymlog.core.events.base import ensure_utc
from gymlog.domain.views.sessions import Session, SessionIndex

UNKNOWN_MUSCLE_GROUP = "unknown"


def estimate_1rm(weight: float, reps: int) -> float:
    """Epley estimate: ``weight * (1 + reps / 30)``."""
    return weight * (1 + reps / 30.0)


@dataclass(frozen=True)
class SessionSummary:
    session_id: str
    date: datetime
    top_weight: float
    total_volume: float
    set_count: int
    estimated_1rm: float


@dataclass(frozen=True)
class PersonalRecord:
    """A set that raised the running best weight and/or estimated 1RM."""

    session_id: str
    date: datetime
    set_number: int
    weight: float
    reps: int
    estimated_1rm: float
    pr_type: str  # "weight", "1rm" or "weight_and_1rm"


def _pr_type(is_weight_pr: bool, is_1rm_pr: bool) -> Optional[str]:
    if is_weight_pr and is_1rm_pr:
        return "weight_and_1rm"
    if is_weight_pr:
        return "weight"
    if is_1rm_pr:
        return "1rm"
    return None


def exercise_progress(index: SessionIndex, exercise_id: str) -> list[SessionSummary]:
    """One summary per session containing the exercise, oldest first."""
    summaries = []
    for session in index.sessions():
        sets = session.sets_for(exercise_id)
        if not sets:
            continue
        summaries.append(SessionSummary(
            session_id=session.session_id,
            date=session.started_at,
            top_weight=max(s.weight for s in sets),
            total_volume=sum(s.volume for s in sets),
            set_count=len(sets),
            estimated_1rm=max(estimate_1rm(s.weight, s.reps) for s in sets),
        ))
    return summaries


def personal_records(index: SessionIndex, exercise_id: str) -> list[PersonalRecord]:
    """Walk every set in time order and keep those that set a new best.

    The first set ever logged is a record for both measures.
    """
    records = []
    best_weight: Optional[float] = None
    best_1rm: Optional[float] = None

    for session in index.sessions():
        for logged in session.sets_for(exercise_id):
            e1rm = estimate_1rm(logged.weight, logged.reps)
            is_weight_pr = best_weight is None or logged.weight > best_weight
            is_1rm_pr = best_1rm is None or e1rm > best_1rm
            pr_type = _pr_type(is_weight_pr, is_1rm_pr)
            if pr_type is None:
                continue

            records.append(PersonalRecord(
                session_id=session.session_id,
                date=session.started_at,
                set_number=logged.set_number,
                weight=logged.weight,
                reps=logged.reps,
                estimated_1rm=e1rm,
                pr_type=pr_type,
            ))
            if is_weight_pr:
                best_weight = logged.weight
            if is_1rm_pr:
                best_1rm = e1rm

    return records


def volume_by_muscle_group(
    index: SessionIndex,
    muscle_groups: Mapping[str, str],
    since: Optional[datetime] = None,
) -> dict[str, float]:
    """Total ``weight * reps`` per muscle group, largest first.

    Args:
        index: Session index over the current log
        muscle_groups: exercise_id -> muscle group, from the catalog
        since: Only sessions started at or after this time
    """
    since = ensure_utc(since) if since is not None else None
    totals: dict[str, float] = defaultdict(float)
    for session in index.sessions():
        if since is not None and session.started_at < since:
            continue
        for logged in session.sets:
            group = muscle_groups.get(logged.exercise_id, UNKNOWN_MUSCLE_GROUP)
            totals[group] += logged.volume
    return dict(sorted(totals.items(), key=lambda item: item[1], reverse=True))


# ========== Progression Status ==========

PROGRESSION_WINDOW = timedelta(weeks=4)
REGRESSION_THRESHOLD_PCT = 10.0


class ProgressionState(str, Enum):
    PROGRESSING = "progressing"
    PLATEAU = "plateau"
    REGRESSING = "regressing"
    UNKNOWN = "unknown"


# Problems first when listing several exercises
_STATE_ORDER = {
    ProgressionState.REGRESSING: 0,
    ProgressionState.PLATEAU: 1,
    ProgressionState.PROGRESSING: 2,
    ProgressionState.UNKNOWN: 3,
}


@dataclass(frozen=True)
class ProgressionStatus:
    """Where an exercise stands over the last four weeks.

    ``weight_drop_pct``/``volume_drop_pct`` compare the latest session with
    the average of the earlier sessions in the window and are only set when
    the latest session is lower.
    """

    exercise_id: str
    status: ProgressionState
    last_pr_date: Optional[datetime]
    session_count_4wk: int
    weight_drop_pct: Optional[float] = None
    volume_drop_pct: Optional[float] = None

    @property
    def needs_attention(self) -> bool:
        return self.status in (ProgressionState.PLATEAU, ProgressionState.REGRESSING)


def _now(now: Optional[datetime]) -> datetime:
    return ensure_utc(now) if now is not None else datetime.now(UTC)


def _drop_pct(average: float, latest: float) -> Optional[float]:
    if average <= 0 or latest >= average:
        return None
    return round((average - latest) / average * 100.0, 1)


def progression_status(
    index: SessionIndex,
    exercise_id: str,
    gym_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ProgressionStatus:
    """Classify an exercise as progressing, plateaued, regressing or unknown.

    Rules, evaluated over sessions in the four weeks before ``now``:
        fewer than two sessions                         unknown
        latest top weight or volume 10%+ below average  regressing
        a weight or 1RM record inside the window        progressing
        otherwise                                       plateau

    Args:
        gym_id: Only count sessions at this gym
        now: Reference time, defaults to the current time
    """
    now = _now(now)
    window_start = now - PROGRESSION_WINDOW

    progress = [
        summary for summary in exercise_progress(index, exercise_id)
        if gym_id is None or index.get(summary.session_id).gym_id == gym_id
    ]
    recent = [s for s in progress if window_start <= s.date <= now]
    records = [r for r in personal_records(index, exercise_id) if r.date <= now]
    last_pr_date = records[-1].date if records else None

    if len(recent) < 2:
        return ProgressionStatus(exercise_id, ProgressionState.UNKNOWN, last_pr_date, len(recent))

    latest, earlier = recent[-1], recent[:-1]
    weight_drop = _drop_pct(sum(s.top_weight for s in earlier) / len(earlier), latest.top_weight)
    volume_drop = _drop_pct(sum(s.total_volume for s in earlier) / len(earlier), latest.total_volume)

    if any(drop is not None and drop >= REGRESSION_THRESHOLD_PCT for drop in (weight_drop, volume_drop)):
        status = ProgressionState.REGRESSING
    elif last_pr_date is not None and last_pr_date >= window_start:
        status = ProgressionState.PROGRESSING
    else:
        status = ProgressionState.PLATEAU

    return ProgressionStatus(
        exercise_id=exercise_id,
        status=status,
        last_pr_date=last_pr_date,
        session_count_4wk=len(recent),
        weight_drop_pct=weight_drop,
        volume_drop_pct=volume_drop,
    )


def sort_by_attention(statuses: Iterable[ProgressionStatus], names: Mapping[str, str]) -> list[ProgressionStatus]:
    """Regressing, then plateau, then progressing, then unknown; by name within each."""
    return sorted(
        statuses,
        key=lambda p: (_STATE_ORDER[p.status], names.get(p.exercise_id, p.exercise_id).lower()),
    )


# ========== Summary and Comparison ==========


@dataclass(frozen=True)
class SummaryStats:
    total_workouts: int
    total_volume_kg: float
    total_prs: int


def _in_range(session: Session, since: Optional[datetime]) -> bool:
    return since is None or session.started_at >= since


def summary_stats(
    index: SessionIndex,
    days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> SummaryStats:
    """Completed workouts, their volume and records set during them.

    ``days=None`` covers all time. Records are counted against all earlier
    history, so a set is a record even when the previous best lies before
    the range.
    """
    since = _now(now) - timedelta(days=days) if days is not None else None
    completed = [s for s in index.sessions() if s.completed and _in_range(s, since)]
    session_ids = {s.session_id for s in completed}

    exercise_ids = {logged.exercise_id for s in index.sessions() for logged in s.sets}
    total_prs = sum(
        1
        for exercise_id in exercise_ids
        for record in personal_records(index, exercise_id)
        if record.session_id in session_ids
    )
    return SummaryStats(
        total_workouts=len(completed),
        total_volume_kg=sum(logged.volume for s in completed for logged in s.sets),
        total_prs=total_prs,
    )


@dataclass(frozen=True)
class ExerciseComparison:
    """Side-by-side numbers for one exercise over a date range."""

    exercise_id: str
    max_weight: float
    max_estimated_1rm: float
    total_volume: float
    total_sets: int
    session_count: int
    sessions_per_week: float
    progression_status: ProgressionState = ProgressionState.UNKNOWN


def comparison_stats(
    index: SessionIndex,
    exercise_ids: Iterable[str],
    days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> list[ExerciseComparison]:
    """Compare exercises over the last ``days`` (all time when None).

    Frequency is sessions per week across the range; for all time the range
    runs from the first session with the exercise to ``now``, at least a week.
    Exercises with no sets in range still get a zeroed row.
    """
    now = _now(now)
    since = now - timedelta(days=days) if days is not None else None

    rows = []
    for exercise_id in exercise_ids:
        progress = [
            s for s in exercise_progress(index, exercise_id)
            if (since is None or s.date >= since) and s.date <= now
        ]
        if since is not None:
            span = timedelta(days=days)
        elif progress:
            span = now - progress[0].date
        else:
            span = timedelta(0)
        weeks = max(span / timedelta(weeks=1), 1.0)

        rows.append(ExerciseComparison(
            exercise_id=exercise_id,
            max_weight=max((s.top_weight for s in progress), default=0.0),
            max_estimated_1rm=max((s.estimated_1rm for s in progress), default=0.0),
            total_volume=sum(s.total_volume for s in progress),
            total_sets=sum(s.set_count for s in progress),
            session_count=len(progress),
            sessions_per_week=round(len(progress) / weeks, 2),
            progression_status=progression_status(index, exercise_id, now=now).status,
        ))
    return rows


# ========== Post-workout Summary ==========


@dataclass(frozen=True)
class ExercisePRCount:
    exercise_id: str
    weight_prs: int
    estimated_1rm_prs: int


@dataclass(frozen=True)
class WorkoutSummary:
    """What a just-finished workout achieved.

    ``previous_*`` describe the latest earlier completed session of the same
    plan; they are None when there is none.
    """

    session_id: str
    total_volume_kg: float
    set_count: int
    prs: list[ExercisePRCount]
    previous_session_id: Optional[str] = None
    previous_date: Optional[datetime] = None
    previous_volume_kg: Optional[float] = None

    @property
    def volume_delta_kg(self) -> Optional[float]:
        if self.previous_volume_kg is None:
            return None
        return self.total_volume_kg - self.previous_volume_kg

    @property
    def pr_count(self) -> int:
        return sum(max(p.weight_prs, p.estimated_1rm_prs) for p in self.prs)


def workout_summary(index: SessionIndex, session_id: str) -> Optional[WorkoutSummary]:
    """Records and plan-over-plan volume for one session; None if unknown."""
    session = index.get(session_id)
    if session is None:
        return None

    prs = []
    for exercise_id in sorted(session.exercise_ids):
        records = [r for r in personal_records(index, exercise_id) if r.session_id == session_id]
        if not records:
            continue
        prs.append(ExercisePRCount(
            exercise_id=exercise_id,
            weight_prs=sum(1 for r in records if r.pr_type in ("weight", "weight_and_1rm")),
            estimated_1rm_prs=sum(1 for r in records if r.pr_type in ("1rm", "weight_and_1rm")),
        ))

    previous = None
    if session.plan_id is not None:
        previous = index.latest(
            lambda s: (
                s.completed
                and s.plan_id == session.plan_id
                and s.started_at < session.started_at
                and bool(s.sets)
            ),
            exclude_session_id=session_id,
        )

    return WorkoutSummary(
        session_id=session_id,
        total_volume_kg=sum(s.volume for s in session.sets),
        set_count=len(session.sets),
        prs=prs,
        previous_session_id=previous.session_id if previous else None,
        previous_date=previous.started_at if previous else None,
        previous_volume_kg=sum(s.volume for s in previous.sets) if previous else None,
    )
