"""
Test Suite: CLI

Drives the typer app against a temporary data directory.
"""
import pytest
from typer.testing import CliRunner


runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep the default config lookup inside the test directory."""
    from gymlog.utils.logging import setup_logging

    monkeypatch.setenv("GYMLOG_DATA_DIR", str(tmp_path / "default"))
    yield
    # The CLI points its console handler at the runner's stream
    setup_logging(console_output=False)


def _seed(data_dir):
    """One finished workout with two sets: seven events."""
    from gymlog.app.config import GymLogConfig
    from gymlog.app.engine import GymLogEngine

    with GymLogEngine.open(GymLogConfig(data_dir=data_dir)) as engine:
        gym = engine.create_gym("Home")
        bench = engine.create_exercise("Bench", "chest")
        session = engine.start_workout(gym.gym_id, "PLN_push")
        engine.log_set(session.session_id, bench.exercise_id, 1, 100.0, 5)
        engine.log_set(session.session_id, bench.exercise_id, 2, 100.0, 4)
        engine.finish_workout(session.session_id)
        return engine.event_count()


def _event_count(data_dir):
    from gymlog.app.config import GymLogConfig
    from gymlog.app.engine import GymLogEngine

    return GymLogEngine.open(GymLogConfig(data_dir=data_dir)).event_count()


def _invoke(*args):
    from gymlog.app.cli import app

    return runner.invoke(app, [str(arg) for arg in args])


def test_cli_stats(tmp_path):
    print("\nTesting gymlog stats...")

    data_dir = tmp_path / "data"
    assert _seed(data_dir) == 7

    result = _invoke("--data-dir", data_dir, "stats")
    assert result.exit_code == 0, result.output
    assert "GymLog Status" in result.output
    assert "Events: 7" in result.output
    assert "Sessions: 1" in result.output
    assert "Sets: 2" in result.output
    assert "set_logged" in result.output
    print("  ✓ Status panel and per-type table printed")

    bad_level = _invoke("--log-level", "LOUD", "--data-dir", data_dir, "stats")
    assert bad_level.exit_code == 1
    assert "Unknown log level" in bad_level.output

    print("\n✅ Stats command tests passed!")


def test_cli_export_then_import(tmp_path):
    print("\nTesting gymlog export and import...")

    source = tmp_path / "source"
    target = tmp_path / "target"
    out = tmp_path / "out"
    _seed(source)

    exported = _invoke("--data-dir", source, "export", "--out", out)
    assert exported.exit_code == 0, exported.output
    assert "Exported 7 events" in exported.output
    (backup,) = list(out.glob("gymlog-backup-*.parquet"))
    print(f"  ✓ Exported {backup.name}")

    first = _invoke("--data-dir", target, "import", backup)
    assert first.exit_code == 0, first.output
    assert "Imported 7 events (0 duplicates skipped)" in first.output

    again = _invoke("--data-dir", target, "import", backup)
    assert again.exit_code == 0, again.output
    assert "Imported 0 events (7 duplicates skipped)" in again.output
    print("  ✓ Second import skipped every event")

    assert _event_count(target) == 7

    missing = _invoke("--data-dir", target, "import", tmp_path / "nope.parquet")
    assert missing.exit_code == 1
    assert "File not found" in missing.output

    print("\n✅ Export/import command tests passed!")


def test_cli_clear_history(tmp_path):
    print("\nTesting gymlog clear-history...")

    data_dir = tmp_path / "data"
    _seed(data_dir)

    refused = _invoke("--data-dir", data_dir, "clear-history")
    assert refused.exit_code == 1
    assert "Refusing to clear history without --yes" in refused.output
    assert _event_count(data_dir) == 7
    print("  ✓ Nothing cleared without --yes")

    cleared = _invoke("--data-dir", data_dir, "clear-history", "--yes")
    assert cleared.exit_code == 0, cleared.output
    assert "Cleared 5 events" in cleared.output
    assert "2 remain" in cleared.output

    # Gym and exercise survive, on disk as well
    assert _event_count(data_dir) == 2
    print("  ✓ Only gyms and exercises remain")

    print("\n✅ Clear-history command tests passed!")
