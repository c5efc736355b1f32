"""
Test Suite: Backup

Tests for the columnar backup codec, import deduplication and backup files.
"""
import tempfile
from datetime import UTC, date, datetime
from pathlib import Path

import pytest


def _sample_events():
    """One event of every type, including edge-case values."""
    from gymlog.core import events as ev

    started = datetime(2026, 2, 14, 7, 30, 15, 123456, tzinfo=UTC)
    shape = {"session_id": "WK_1", "gym_id": "GYM_1", "plan_id": "PLN_1", "started_at": started}
    return [
        ev.GymCreatedEvent(gym_id="GYM_1", name="Home"),
        ev.GymUpdatedEvent(gym_id="GYM_1", name="Home Gym", location="Garage"),
        ev.ExerciseCreatedEvent(exercise_id="EXR_1", name="Bench Press", muscle_group="chest"),
        ev.ExerciseUpdatedEvent(exercise_id="EXR_1", name="Bench", muscle_group="chest",
                                is_global=False, gym_id="GYM_1"),
        ev.TemplateCreatedEvent(template_id="TPL_1", name="Empty", exercise_ids=[]),
        ev.TemplateDeletedEvent(template_id="TPL_1"),
        ev.PlanCreatedEvent(plan_id="PLN_1", name="Push", exercise_ids=["EXR_1", "EXR_2"]),
        ev.PlanDeletedEvent(plan_id="PLN_9"),
        ev.RotationCreatedEvent(rotation_id="ROT_1", name="Split", plan_ids=["PLN_1", "PLN_2"]),
        ev.RotationActivatedEvent(rotation_id="ROT_1"),
        ev.WorkoutStartedEvent(**shape),
        ev.SetLoggedEvent(session_id="WK_1", exercise_id="EXR_1", set_number=1, weight=500.0, reps=100),
        ev.SetLoggedEvent(session_id="WK_1", exercise_id="EXR_1", set_number=2, weight=0.1, reps=0, rir=3),
        ev.ExerciseNoteLoggedEvent(exercise_id="EXR_1", session_id="WK_1", text="Felt heavy ✓ ünïcödé"),
        ev.WorkoutFinishedEvent(**shape),
        ev.WorkoutSavedEvent(**shape),
        ev.RotationAdvancedEvent(rotation_id="ROT_1", current_index=1, session_id="WK_1"),
    ]


def _dump(events):
    return [(type(e).__name__, e.model_dump()) for e in events]


def test_codec_round_trip():
    """Every event type survives encode/decode unchanged and in order."""
    print("\nTesting codec round trip...")

    from gymlog.core.events import SetLoggedEvent
    from gymlog.systems.backup import decode, encode

    events = _sample_events()
    data = encode(events)
    assert data[:4] == b"PAR1" and data[-4:] == b"PAR1"
    print(f"  ✓ Encoded {len(events)} events into {len(data)} Parquet bytes")

    decoded = decode(data)
    assert _dump(decoded) == _dump(events)
    print("  ✓ Decoded identical events")

    heavy = [e for e in decoded if isinstance(e, SetLoggedEvent)][0]
    assert heavy.weight == 500.0
    assert isinstance(heavy.weight, float)
    assert heavy.reps == 100
    assert decoded[10].started_at.microsecond == 123456
    assert decoded[10].started_at.tzinfo is not None
    print("  ✓ Weight 500.0 x 100 reps exact")

    print("\n✅ Codec round trip tests passed!")


def test_codec_empty_log():
    from gymlog.systems.backup import decode, encode

    assert decode(encode([])) == []


def test_backup_is_plain_parquet():
    """Any DuckDB session can query an exported backup."""
    import duckdb

    from gymlog.systems.backup import BackupCodec

    codec = BackupCodec()
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "backup.parquet"
        codec.write(_sample_events(), path)

        with duckdb.connect() as con:
            count, top = con.execute(
                f"SELECT count(*), max(weight) FROM read_parquet('{path}')"
            ).fetchone()
        assert (count, top) == (len(_sample_events()), 500.0)
        assert codec.metadata(path)["schema_version"] == "1"


def test_codec_rejects_unknown_version(monkeypatch):
    from gymlog.core.errors import SchemaMismatchError
    from gymlog.systems.backup import codec

    monkeypatch.setattr(codec, "SUPPORTED_VERSIONS", (1, 99))
    data = codec.BackupCodec(version=99).encode(_sample_events())
    monkeypatch.undo()

    with pytest.raises(SchemaMismatchError) as info:
        codec.decode(data)
    assert info.value.found == 99
    assert info.value.supported == (1,)


def test_codec_rejects_corrupt_bytes():
    """Non-Parquet input and truncation are CorruptFileError."""
    print("\nTesting corrupt backup detection...")

    from gymlog.core.errors import CorruptFileError
    from gymlog.systems.backup import decode, encode

    data = encode(_sample_events())

    with pytest.raises(CorruptFileError):
        decode(b'{"events": []}' * 20)
    print("  ✓ Not Parquet")

    with pytest.raises(CorruptFileError):
        decode(data[:-10])
    with pytest.raises(CorruptFileError):
        decode(data[:12])
    with pytest.raises(CorruptFileError):
        decode(b"")
    print("  ✓ Truncation")

    print("\n✅ Corrupt backup tests passed!")


def test_codec_detects_altered_rows():
    """Rows edited after export fail the digest check."""
    import duckdb

    from gymlog.core.errors import CorruptFileError
    from gymlog.systems.backup import BackupCodec

    codec = BackupCodec()
    with tempfile.TemporaryDirectory() as tmpdir:
        original = Path(tmpdir) / "original.parquet"
        altered = Path(tmpdir) / "altered.parquet"
        codec.write(_sample_events(), original)
        digest = codec.metadata(original)["digest"]

        with duckdb.connect() as con:
            con.execute(
                f"COPY (SELECT * REPLACE (weight * 2 AS weight) FROM read_parquet('{original}')) "
                f"TO '{altered}' (FORMAT parquet, KV_METADATA {{schema_version: '1', digest: '{digest}'}})"
            )

        with pytest.raises(CorruptFileError, match="digest"):
            codec.read(altered)


def test_codec_requires_backup_metadata():
    """A Parquet file not written by GymLog is rejected."""
    import duckdb

    from gymlog.core.errors import CorruptFileError
    from gymlog.systems.backup import BackupCodec

    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "foreign.parquet"
        with duckdb.connect() as con:
            con.execute(f"COPY (SELECT 1 AS id) TO '{path}' (FORMAT parquet)")

        with pytest.raises(CorruptFileError, match="schema_version"):
            BackupCodec().read(path)


def test_codec_missing_column(monkeypatch):
    from gymlog.core.errors import CorruptFileError
    from gymlog.systems.backup import codec

    reduced = tuple(c for c in codec.COLUMNS if c[0] != "weight")
    monkeypatch.setattr(codec, "COLUMNS", reduced)
    data = codec.BackupCodec().encode(_sample_events())
    monkeypatch.undo()

    with pytest.raises(CorruptFileError, match="weight"):
        codec.BackupCodec().decode(data)


def test_codec_wrong_column_type(monkeypatch):
    from gymlog.core.errors import CorruptFileError
    from gymlog.systems.backup import codec

    retyped = tuple(
        (name, codec.ColumnType.BIGINT if name == "weight" else kind)
        for name, kind in codec.COLUMNS
    )
    monkeypatch.setattr(codec, "COLUMNS", retyped)
    data = codec.BackupCodec().encode(_sample_events())
    monkeypatch.undo()

    with pytest.raises(CorruptFileError, match="weight"):
        codec.BackupCodec().decode(data)


def test_codec_ignores_unknown_columns(monkeypatch):
    from gymlog.systems.backup import codec

    extended = codec.COLUMNS + (("mood", codec.ColumnType.VARCHAR),)
    monkeypatch.setattr(codec, "COLUMNS", extended)
    events = _sample_events()
    data = codec.BackupCodec().encode(events)
    monkeypatch.undo()

    assert _dump(codec.BackupCodec().decode(data)) == _dump(events)


# ============================================================================
# Import
# ============================================================================


def test_import_is_idempotent():
    """Importing the same backup twice adds nothing the second time."""
    print("\nTesting idempotent import...")

    from gymlog.core.store import EventStore
    from gymlog.systems.backup import ImportDeduplicator, encode

    events = _sample_events()
    data = encode(events)
    store = EventStore()
    importer = ImportDeduplicator(store)

    first = importer.import_bytes(data)
    assert (first.imported_count, first.skipped_count) == (len(events), 0)
    print(f"  ✓ {first.message()}")

    snapshot = _dump(store.events())
    second = importer.import_bytes(data)
    assert (second.imported_count, second.skipped_count) == (0, len(events))
    assert _dump(store.events()) == snapshot
    assert second.message() == f"Imported 0 events ({len(events)} duplicates skipped)"
    print(f"  ✓ {second.message()}")

    print("\n✅ Idempotent import tests passed!")


def test_import_totality_with_overlap():
    from gymlog.core.store import EventStore
    from gymlog.systems.backup import ImportDeduplicator

    events = _sample_events()
    store = EventStore()
    for event in events[:5]:
        store.append(event)

    result = ImportDeduplicator(store).import_all(events)
    assert result.imported_count == len(events) - 5
    assert result.skipped_count == 5
    assert result.total == len(events)
    assert len(store) == len(events)


def test_import_interrupted_keeps_tally():
    from gymlog.core.errors import ImportInterruptedError
    from gymlog.core.store import EventStore
    from gymlog.systems.backup import ImportDeduplicator

    class FailingStore(EventStore):
        def append(self, event):
            if len(self) == 3:
                raise OSError("device unavailable")
            return super().append(event)

    events = _sample_events()
    store = FailingStore()
    store.append(events[0])

    with pytest.raises(ImportInterruptedError) as info:
        ImportDeduplicator(store).import_all(events)

    result = info.value.result
    assert result.imported_count == 2
    assert result.skipped_count == 1
    assert result.total == 3
    assert len(store) == 3
    assert isinstance(info.value.cause, OSError)


def test_import_file_checks_extension():
    from gymlog.core.errors import CorruptFileError
    from gymlog.core.store import EventStore
    from gymlog.systems.backup import ImportDeduplicator, encode

    with tempfile.TemporaryDirectory() as tmpdir:
        wrong = Path(tmpdir) / "backup.json"
        wrong.write_bytes(encode(_sample_events()))

        with pytest.raises(CorruptFileError):
            ImportDeduplicator(EventStore()).import_file(wrong)


# ============================================================================
# Backup Files
# ============================================================================


def test_export_and_read_backup_file():
    """Test backup naming, atomic write and read back."""
    print("\nTesting backup files...")

    from gymlog.core.store import EventStore
    from gymlog.systems.backup import ImportDeduplicator, backup_filename, export_backup, read_backup

    assert backup_filename(date(2026, 1, 31)) == "gymlog-backup-2026-01-31.parquet"
    print("  ✓ Backup file name")

    store = EventStore()
    for event in _sample_events():
        store.append(event)

    with tempfile.TemporaryDirectory() as tmpdir:
        path = export_backup(store, Path(tmpdir) / "exports", day=date(2026, 1, 31))
        assert path.name == "gymlog-backup-2026-01-31.parquet"
        assert [p.name for p in path.parent.iterdir()] == [path.name]
        print(f"  ✓ Exported to {path.name}")

        assert _dump(read_backup(path)) == _dump(store.events())

        fresh = EventStore()
        result = ImportDeduplicator(fresh).import_file(path)
        assert result.imported_count == len(store)
        print(f"  ✓ {result.message()}")

    print("\n✅ Backup file tests passed!")


def test_read_missing_backup():
    from gymlog.core.errors import CorruptFileError
    from gymlog.systems.backup import read_backup

    with pytest.raises(CorruptFileError):
        read_backup(Path(tempfile.gettempdir()) / "does-not-exist.parquet")


def test_import_missing_file():
    from gymlog.core.errors import CorruptFileError
    from gymlog.core.store import EventStore
    from gymlog.systems.backup import ImportDeduplicator

    store = EventStore()
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(CorruptFileError, match="not found"):
            ImportDeduplicator(store).import_file(Path(tmpdir) / "gone.parquet")
    assert len(store) == 0
