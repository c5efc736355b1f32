"""
Warm-up hints derived from the most recent top set.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from gymlog.domain.views.sessions import SessionIndex


@dataclass(frozen=True)
class WarmupTier:
    """A warm-up set at ``percentage`` (0-100) of the top weight."""

    percentage: float
    reps: int


DEFAULT_TIERS: tuple[WarmupTier, ...] = (
    WarmupTier(percentage=50, reps=5),
    WarmupTier(percentage=75, reps=3),
)
DEFAULT_INCREMENT = 2.5


@dataclass(frozen=True)
class WarmupStep:
    percentage: float
    weight: float
    reps: int


@dataclass(frozen=True)
class WarmupHint:
    """Suggested warm-up sets.

    ``has_history`` distinguishes "never trained" from a legitimate
    0 kg top set (bodyweight work).
    """

    has_history: bool
    top_weight: Optional[float]
    steps: tuple[WarmupStep, ...] = ()
    session_id: Optional[str] = None

    @classmethod
    def no_history(cls) -> "WarmupHint":
        return cls(has_history=False, top_weight=None)


def round_to_increment(value: float, increment: float) -> float:
    """Round half up to the nearest multiple of ``increment``."""
    if increment <= 0:
        return value
    return math.floor(value / increment + 0.5) * increment


def coerce_tiers(tiers: Iterable) -> tuple[WarmupTier, ...]:
    """Accept WarmupTier objects, ``(percentage, reps)`` pairs or dicts."""
    result = []
    for tier in tiers:
        if isinstance(tier, WarmupTier):
            result.append(tier)
        elif isinstance(tier, dict):
            result.append(WarmupTier(float(tier["percentage"]), int(tier["reps"])))
        else:
            percentage, reps = tier
            result.append(WarmupTier(float(percentage), int(reps)))
    return tuple(result)


def calculate_warmup_steps(
    top_weight: float,
    tiers: Sequence[WarmupTier] = DEFAULT_TIERS,
    increment: float = DEFAULT_INCREMENT,
) -> list[WarmupStep]:
    """One step per tier, weight rounded to ``increment``.

    Example:
        >>> calculate_warmup_steps(100.0)
        [WarmupStep(percentage=50, weight=50.0, reps=5), WarmupStep(percentage=75, weight=75.0, reps=3)]
    """
    return [
        WarmupStep(
            percentage=tier.percentage,
            weight=round_to_increment(top_weight * tier.percentage / 100, increment),
            reps=tier.reps,
        )
        for tier in tiers
    ]


def warmup_hint(
    index: SessionIndex,
    exercise_id: str,
    tiers: Sequence[WarmupTier] = DEFAULT_TIERS,
    increment: float = DEFAULT_INCREMENT,
    exclude_session_id: Optional[str] = None,
) -> WarmupHint:
    """Warm-up ladder from the heaviest set of the latest completed session
    with the exercise. Abandoned sessions never set the working weight."""
    session = index.latest(
        lambda s: s.completed and exercise_id in s.exercise_ids,
        exclude_session_id=exclude_session_id,
    )
    if session is None:
        return WarmupHint.no_history()

    top_weight = max(s.weight for s in session.sets_for(exercise_id))
    return WarmupHint(
        has_history=True,
        top_weight=top_weight,
        steps=tuple(calculate_warmup_steps(top_weight, tiers, increment)),
        session_id=session.session_id,
    )
