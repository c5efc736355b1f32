"""
Test Suite: Utilities

Tests for ID generation and logging setup.
"""
import logging
import tempfile
import time
from pathlib import Path


def test_id_generation():
    """Test unique, prefixed, time-sortable IDs."""
    print("\nTesting ID generation...")

    from gymlog.utils.ids import generate_entity_id, generate_event_id, generate_session_id

    ids = [generate_event_id() for _ in range(500)]
    assert len(set(ids)) == 500
    assert all(i.startswith("EV_") for i in ids)
    print(f"  ✓ Generated {len(ids)} unique event IDs")

    assert generate_session_id().startswith("WK_")
    assert generate_entity_id("gym").startswith("GYM_")
    assert generate_entity_id("exercise").startswith("EXR_")
    assert generate_entity_id("rotation").startswith("ROT_")
    assert generate_entity_id("something").startswith("ENT_")
    print("  ✓ Entity prefixes")

    _, millis, suffix = ids[0].split("_")
    assert len(millis) == 12 and int(millis, 16) > 0
    assert len(suffix) == 12
    print("  ✓ ID layout")

    print("\n✅ ID generation tests passed!")


def test_ids_sort_by_time():
    """IDs from a later millisecond sort after earlier ones."""
    from gymlog.utils.ids import generate_event_id

    first = generate_event_id()
    time.sleep(0.002)
    second = generate_event_id()
    assert second > first


def test_logging_setup():
    """Test logger namespacing and file output."""
    print("\nTesting logging setup...")

    from gymlog.utils.logging import get_logger, log_error, log_operation, setup_logging

    logger = get_logger("storage.checkpoint")
    assert logger.name == "gymlog.storage.checkpoint"
    assert get_logger("gymlog.core") is logging.getLogger("gymlog.core")
    print(f"  ✓ Logger name: {logger.name}")

    with tempfile.TemporaryDirectory() as tmpdir:
        setup_logging(level="INFO", log_dir=tmpdir, console_output=False)
        log_operation(logger, "Checkpoint written", {"events": 3, "full_rewrite": False})
        log_error(logger, "checkpoint", RuntimeError("disk full"), {"pending": 3})
        logger.debug("below the configured level")

        root = logging.getLogger("gymlog")
        for handler in root.handlers:
            handler.flush()

        content = (Path(tmpdir) / "gymlog.log").read_text(encoding="utf-8")
        assert "Checkpoint written events=3 full_rewrite=False" in content
        assert "checkpoint failed (RuntimeError: disk full) pending=3" in content
        assert "[storage.checkpoint" in content
        assert "below the configured level" not in content
        print("  ✓ File handler wrote formatted lines")

        # Release the file handle before the directory is removed
        setup_logging(level="WARNING", console_output=False)

    assert logging.getLogger("gymlog").propagate is False
    print("\n✅ Logging tests passed!")
