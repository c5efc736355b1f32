"""
Error taxonomy for the GymLog engine.

Identity collisions are expected during import and are counted rather
than surfaced. Format and storage failures are raised as typed errors.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gymlog.systems.backup.importer import ImportResult


class GymLogError(Exception):
    """Base class for all engine errors."""


class DuplicateIdError(GymLogError):
    """An event with the same id is already in the store."""

    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__(f"Event already present: {event_id}")


class SchemaMismatchError(GymLogError):
    """Backup was written with an unknown or newer schema version."""

    def __init__(self, found: int, supported: tuple[int, ...]):
        self.found = found
        self.supported = supported
        versions = ", ".join(str(v) for v in supported)
        super().__init__(
            f"Backup schema version {found} is not supported (supported: {versions})"
        )


class CorruptFileError(GymLogError):
    """Backup bytes are structurally invalid."""


class CorruptStoreError(GymLogError):
    """Durable store image is truncated or malformed."""


class StorageWriteError(GymLogError):
    """Checkpoint could not be written; the previous image is still valid."""


class ImportInterruptedError(GymLogError):
    """Import stopped part-way; ``result`` holds the exact tally so far."""

    def __init__(self, result: "ImportResult", cause: BaseException):
        self.result = result
        self.cause = cause
        super().__init__(
            f"Import interrupted after {result.total} events "
            f"({result.imported_count} imported, {result.skipped_count} skipped): {cause}"
        )


class EngineInitError(GymLogError):
    """Engine could not start; distinct from a legitimately empty store."""
