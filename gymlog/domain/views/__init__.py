"""
GymLog Views - read-only projections of the event log.
"""

from gymlog.domain.views.engine import DerivedViewEngine
from gymlog.domain.views.ghost import GhostData, GhostSet
from gymlog.domain.views.warmup import WarmupHint, WarmupStep, WarmupTier, calculate_warmup_steps
from gymlog.domain.views.analytics import (
    ExerciseComparison,
    PersonalRecord,
    ProgressionState,
    ProgressionStatus,
    SessionSummary,
    SummaryStats,
    WorkoutSummary,
    estimate_1rm,
)
from gymlog.domain.views.notes import NoteEntry
from gymlog.domain.views.sessions import Session, SessionIndex, TieBreak

__all__ = [
    "DerivedViewEngine",
    "GhostData",
    "GhostSet",
    "WarmupHint",
    "WarmupStep",
    "WarmupTier",
    "calculate_warmup_steps",
    "ExerciseComparison",
    "PersonalRecord",
    "ProgressionState",
    "ProgressionStatus",
    "SummaryStats",
    "WorkoutSummary",
    "SessionSummary",
    "estimate_1rm",
    "NoteEntry",
    "Session",
    "SessionIndex",
    "TieBreak",
]
