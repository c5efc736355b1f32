"""
Test Suite: App

Tests for configuration and the engine facade.
"""
import tempfile
from datetime import date
from pathlib import Path

import pytest


def test_config_defaults():
    """Test default configuration values."""
    print("\nTesting configuration...")

    from gymlog.app.config import GymLogConfig

    config = GymLogConfig(data_dir="/tmp/gymlog-test")
    assert isinstance(config.data_dir, Path)
    assert config.db_path == Path("/tmp/gymlog-test/events.db")
    assert config.backup_path == Path("/tmp/gymlog-test/events.db.bak")
    assert config.export_dir == Path("/tmp/gymlog-test/backups")
    assert config.views.warmup_tiers == [(50, 5), (75, 3)]
    assert config.views.weight_increment == 2.5
    assert config.views.ghost_tie_break == "latest_appended"
    assert config.backup.extension == ".parquet"
    print("  ✓ Defaults")

    print("\n✅ Configuration tests passed!")


def test_config_env_override(monkeypatch):
    from gymlog.app.config import GymLogConfig, get_default_data_dir

    monkeypatch.setenv("GYMLOG_DATA_DIR", "/srv/gymlog")
    assert get_default_data_dir() == Path("/srv/gymlog")
    assert GymLogConfig().data_dir == Path("/srv/gymlog")


def test_config_save_and_load():
    from gymlog.app.config import GymLogConfig, ViewConfig

    with tempfile.TemporaryDirectory() as tmpdir:
        config = GymLogConfig(
            data_dir=Path(tmpdir),
            views=ViewConfig(warmup_tiers=[(40.0, 8), (70.0, 4)], ghost_tie_break="earliest_appended"),
            log_level="DEBUG",
        )
        path = config.save()
        assert path == Path(tmpdir) / "gymlog_config.json"

        loaded = GymLogConfig.load(path)
        assert loaded.to_dict() == config.to_dict()
        assert loaded.views.warmup_tiers == [(40.0, 8), (70.0, 4)]
        assert loaded.log_level == "DEBUG"

        assert GymLogConfig.load(Path(tmpdir) / "missing.json").log_level == "INFO"


def test_global_config():
    from gymlog.app.config import GymLogConfig, get_config, set_config

    config = GymLogConfig(data_dir="/tmp/gymlog-global")
    set_config(config)
    assert get_config() is config


def test_engine_commands():
    """Test the engine facade end to end in memory and on disk."""
    print("\nTesting engine facade...")

    from gymlog.app.config import GymLogConfig
    from gymlog.app.engine import GymLogEngine

    with tempfile.TemporaryDirectory() as tmpdir:
        engine = GymLogEngine.open(GymLogConfig(data_dir=tmpdir))
        assert engine.recovery.empty

        gym = engine.create_gym("Home")
        bench = engine.create_exercise("Bench", "chest")
        push = engine.create_plan("Push", [bench.exercise_id])
        pull = engine.create_plan("Pull", [])
        rotation = engine.create_rotation("PP", [push.plan_id, pull.plan_id], default_gym_id=gym.gym_id)
        engine.activate_rotation(rotation.rotation_id)

        quick = engine.next_workout()
        assert (quick.plan_id, quick.gym_id, quick.position, quick.total) == (push.plan_id, gym.gym_id, 1, 2)
        print("  ✓ Quick start suggests plan 1 of 2")

        session = engine.start_workout(gym.gym_id, push.plan_id)
        engine.log_set(session.session_id, bench.exercise_id, 1, 100.0, 5)
        engine.log_note(session.session_id, bench.exercise_id, "Paused reps")
        advanced = engine.finish_workout(session.session_id)
        assert advanced is not None
        assert engine.next_workout().plan_id == pull.plan_id
        print("  ✓ Finishing the workout advanced the rotation")

        assert engine.event_counts()["set_logged"] == 1
        assert engine.views.warmup(bench.exercise_id).top_weight == 100.0

        with pytest.raises(KeyError):
            engine.finish_workout("WK_missing")

        path = engine.export_backup(day=date(2026, 6, 1))
        assert path.parent == Path(tmpdir) / "backups"
        assert engine.import_backup(path).imported_count == 0

        count = engine.event_count()
        engine.close()
        reopened = GymLogEngine.open(GymLogConfig(data_dir=tmpdir))
        assert reopened.event_count() == count
        print(f"  ✓ Reopened with {count} events")

    print("\n✅ Engine facade tests passed!")


def test_engine_open_corrupt_store():
    from gymlog.app.config import GymLogConfig
    from gymlog.app.engine import GymLogEngine
    from gymlog.core.errors import EngineInitError

    with tempfile.TemporaryDirectory() as tmpdir:
        config = GymLogConfig(data_dir=tmpdir)
        config.db_path.write_bytes(b"corrupt" * 200)

        with pytest.raises(EngineInitError):
            GymLogEngine.open(config)
