"""
Import Deduplicator for GymLog.

Merges a decoded backup into the live store. Event ids are the dedup key,
so importing the same backup twice leaves the store unchanged the second
time and collisions are reported as skipped rather than raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from gymlog.core.errors import CorruptFileError, DuplicateIdError, ImportInterruptedError
from gymlog.core.events.base import BaseEvent
from gymlog.core.store import EventStore
from gymlog.systems.backup.codec import BACKUP_EXTENSION, BackupCodec
from gymlog.utils.logging import get_logger, log_error, log_operation


logger = get_logger("backup.importer")


@dataclass(frozen=True)
class ImportResult:
    """Tally of one import. ``imported_count + skipped_count`` is the
    number of input events processed."""

    imported_count: int
    skipped_count: int

    @property
    def total(self) -> int:
        return self.imported_count + self.skipped_count

    def message(self) -> str:
        return (
            f"Imported {self.imported_count} events "
            f"({self.skipped_count} duplicates skipped)"
        )


class ImportDeduplicator:
    """Appends backup events to a store, skipping ids already present.

    Usage:
        importer = ImportDeduplicator(store)
        result = importer.import_file(path)
        print(result.message())
    """

    def __init__(
        self,
        store: EventStore,
        codec: BackupCodec | None = None,
        extension: str = BACKUP_EXTENSION,
    ):
        self.store = store
        self.codec = codec or BackupCodec()
        self.extension = extension

    def import_all(self, events: Iterable[BaseEvent]) -> ImportResult:
        """Append each event in input order.

        Raises:
            ImportInterruptedError: A non-duplicate failure stopped the
                import; events appended before it stay appended
        """
        imported = skipped = 0
        for event in events:
            try:
                self.store.append(event)
            except DuplicateIdError:
                skipped += 1
                continue
            except Exception as exc:
                partial = ImportResult(imported, skipped)
                log_error(logger, "import", exc, {
                    "imported": imported,
                    "skipped": skipped,
                })
                raise ImportInterruptedError(partial, exc) from exc
            imported += 1

        result = ImportResult(imported, skipped)
        log_operation(logger, "Import complete", {
            "imported": result.imported_count,
            "skipped": result.skipped_count,
        })
        return result

    def import_bytes(self, data: bytes) -> ImportResult:
        """Decode a backup blob and import it.

        Raises:
            SchemaMismatchError: Backup written by an unsupported version
            CorruptFileError: Backup bytes are malformed
        """
        return self.import_all(self.codec.decode(data))

    def import_file(self, path: str | Path) -> ImportResult:
        """Read, decode and import a backup file.

        Nothing is appended unless the whole file decodes.

        Raises:
            CorruptFileError: Missing file, wrong extension or malformed contents
            SchemaMismatchError: Backup written by an unsupported version
        """
        path = Path(path)
        if path.suffix.lower() != self.extension:
            raise CorruptFileError(
                f"{path.name} is not a GymLog backup (expected {self.extension})"
            )
        if not path.is_file():
            raise CorruptFileError(f"Backup not found: {path}")
        logger.info(f"Importing backup {path}")
        return self.import_all(self.codec.read(path))
