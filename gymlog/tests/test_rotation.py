"""
Test Suite: Rotation

Tests for the rotation fold and completion-driven advancement.
"""
from datetime import UTC, datetime

import pytest


def _complete(store, session_id, plan_id, gym_id="GYM_1", finish=True, save=True):
    from gymlog.core import events as ev

    shape = {"session_id": session_id, "gym_id": gym_id, "plan_id": plan_id,
             "started_at": datetime(2026, 5, 1, tzinfo=UTC)}
    store.append(ev.WorkoutStartedEvent(**shape))
    if finish:
        store.append(ev.WorkoutFinishedEvent(**shape))
    if save:
        store.append(ev.WorkoutSavedEvent(**shape))


def _scheduler():
    from gymlog.core.store import EventStore
    from gymlog.domain.rotation import RotationScheduler

    store = EventStore()
    return store, RotationScheduler(store)


def test_rotation_wraps_around():
    """Two plans: index 0 -> 1 -> 0."""
    print("\nTesting rotation wrap-around...")

    store, scheduler = _scheduler()
    rotation = scheduler.create_rotation("Upper/Lower", ["PLN_U", "PLN_L"], default_gym_id="GYM_1")
    assert scheduler.state() is None
    scheduler.activate(rotation.rotation_id)

    assert scheduler.current_plan() == "PLN_U"
    assert scheduler.current_gym() == "GYM_1"
    assert scheduler.position() == (1, 2)
    print("  ✓ Starts at plan 1 of 2")

    _complete(store, "WK_1", "PLN_U")
    advanced = scheduler.record_completion("WK_1")
    assert advanced.current_index == 1
    assert scheduler.current_plan() == "PLN_L"
    assert scheduler.position() == (2, 2)
    print("  ✓ Advanced to plan 2")

    _complete(store, "WK_2", "PLN_L")
    assert scheduler.record_completion("WK_2").current_index == 0
    assert scheduler.current_plan() == "PLN_U"
    print("  ✓ Wrapped back to plan 1")

    print("\n✅ Rotation wrap-around tests passed!")


def test_completion_requires_finished_and_saved():
    store, scheduler = _scheduler()
    rotation = scheduler.create_rotation("AB", ["PLN_A", "PLN_B"])
    scheduler.activate(rotation.rotation_id)

    _complete(store, "WK_1", "PLN_A", save=False)
    assert scheduler.record_completion("WK_1") is None
    _complete(store, "WK_2", "PLN_A", finish=False)
    assert scheduler.record_completion("WK_2") is None
    assert scheduler.record_completion("WK_missing") is None
    assert scheduler.state().current_index == 0


def test_completion_of_other_plan_does_not_advance():
    store, scheduler = _scheduler()
    rotation = scheduler.create_rotation("AB", ["PLN_A", "PLN_B"])
    scheduler.activate(rotation.rotation_id)

    _complete(store, "WK_1", "PLN_B")
    assert scheduler.record_completion("WK_1") is None
    assert scheduler.current_plan() == "PLN_A"


def test_session_advances_only_once():
    store, scheduler = _scheduler()
    rotation = scheduler.create_rotation("ABC", ["PLN_A", "PLN_B", "PLN_C"])
    scheduler.activate(rotation.rotation_id)

    _complete(store, "WK_1", "PLN_A")
    assert scheduler.record_completion("WK_1") is not None
    assert scheduler.record_completion("WK_1") is None
    assert scheduler.position() == (2, 3)


def test_activation_replaces_and_resets():
    store, scheduler = _scheduler()
    first = scheduler.create_rotation("AB", ["PLN_A", "PLN_B"])
    second = scheduler.create_rotation("XY", ["PLN_X", "PLN_Y"])
    scheduler.activate(first.rotation_id)
    _complete(store, "WK_1", "PLN_A")
    scheduler.record_completion("WK_1")

    scheduler.activate(second.rotation_id)
    assert scheduler.current_plan() == "PLN_X"
    assert len(scheduler.rotations()) == 2

    scheduler.activate(first.rotation_id)
    assert scheduler.current_plan() == "PLN_A"


def test_rotation_command_validation():
    _, scheduler = _scheduler()

    with pytest.raises(ValueError):
        scheduler.create_rotation("Empty", [])
    with pytest.raises(KeyError):
        scheduler.activate("ROT_unknown")
