"""
Checkpoint Manager for GymLog.

Makes the in-memory log crash-durable: buffer appends in memory, flush
them atomically on demand, and rebuild the store by replay on startup.
"""

from __future__ import annotations

import os
import shutil
import sqlite3
from dataclasses import dataclass
from pathlib import Path

from gymlog.core.errors import CorruptStoreError, StorageWriteError
from gymlog.core.store import EventStore
from gymlog.systems.storage.database import STORE_SCHEMA_VERSION, EventDatabase, log_digest
from gymlog.utils.logging import get_logger, log_error, log_operation


logger = get_logger("storage.checkpoint")


@dataclass(frozen=True)
class CheckpointResult:
    """Outcome of one ``checkpoint()`` call."""

    written: int
    full_rewrite: bool
    last_sequence: int

    @property
    def was_noop(self) -> bool:
        return self.written == 0 and not self.full_rewrite


@dataclass(frozen=True)
class RecoveryResult:
    """Outcome of ``recover()``."""

    event_count: int
    last_sequence: int
    from_backup: bool = False
    empty: bool = False


class CheckpointManager:
    """Flushes an EventStore to an EventDatabase and restores it.

    Usage:
        manager = CheckpointManager(store, data_dir / "events.db")
        manager.recover()
        ...
        manager.checkpoint()
    """

    def __init__(
        self,
        store: EventStore,
        db_path: str | Path,
        backup_path: str | Path | None = None,
    ):
        """Initialize the manager.

        Args:
            store: Store to persist
            db_path: Primary SQLite image
            backup_path: Last-known-good copy; defaults to ``<db_path>.bak``
        """
        self.store = store
        self.db = EventDatabase(db_path)
        self.backup_path = Path(backup_path) if backup_path else Path(f"{db_path}.bak")
        self._persisted_sequence = 0
        self._persisted_generation = store.generation

    @property
    def persisted_sequence(self) -> int:
        return self._persisted_sequence

    def has_pending(self) -> bool:
        with self.store.exclusive():
            return (
                self.store.generation != self._persisted_generation
                or self.store.last_sequence > self._persisted_sequence
            )

    # ========== Write Path ==========

    def checkpoint(self) -> CheckpointResult:
        """Flush everything appended since the last successful checkpoint.

        Appends are blocked for the duration of the flush. Calling this
        with nothing pending does not touch the disk.

        Raises:
            StorageWriteError: The previous durable image is still intact
                and the call can be retried
        """
        with self.store.exclusive() as store:
            full_rewrite = store.generation != self._persisted_generation
            if full_rewrite:
                pending = list(store.entries())
            else:
                pending = store.pending_since(self._persisted_sequence)

            if not pending and not full_rewrite:
                logger.debug("Checkpoint skipped, nothing pending")
                return CheckpointResult(0, False, self._persisted_sequence)

            entries = store.entries()
            meta = {
                "schema_version": STORE_SCHEMA_VERSION,
                "generation": store.generation,
                "event_count": len(entries),
                "last_sequence": store.last_sequence,
                "digest": log_digest(entries),
            }

            try:
                self.db.write_checkpoint(pending, full_rewrite=full_rewrite, meta=meta)
            except StorageWriteError as exc:
                log_error(logger, "checkpoint", exc, {"pending": len(pending)})
                raise

            self._persisted_sequence = store.last_sequence
            self._persisted_generation = store.generation

        self._refresh_backup()
        log_operation(logger, "Checkpoint written", {
            "events": len(pending),
            "full_rewrite": full_rewrite,
            "last_sequence": self._persisted_sequence,
        })
        return CheckpointResult(len(pending), full_rewrite, self._persisted_sequence)

    def _refresh_backup(self) -> None:
        """Copy the committed image to the last-known-good slot."""
        try:
            self.db.backup_to(self.backup_path)
        except (OSError, sqlite3.Error) as exc:
            # The primary image is committed; only the fallback copy is stale
            logger.warning(f"Could not refresh backup image {self.backup_path}: {exc}")

    # ========== Recovery ==========

    def recover(self) -> RecoveryResult:
        """Rehydrate the store from disk.

        A missing database is a legitimately empty store. A corrupt primary
        image falls back to the last-known-good copy, which is then
        restored as the primary.

        Raises:
            CorruptStoreError: Neither image is usable
        """
        if not self.db.exists():
            if self.backup_path.exists():
                logger.warning(f"Primary image {self.db.db_path} missing, trying backup")
                return self._recover_from_backup(
                    CorruptStoreError(f"{self.db.db_path} is missing")
                )
            logger.info("No durable image found, starting empty")
            return RecoveryResult(event_count=0, last_sequence=0, empty=True)

        try:
            entries, meta = self.db.read_image()
        except CorruptStoreError as exc:
            log_error(logger, "recover", exc, {"path": self.db.db_path})
            return self._recover_from_backup(exc)

        return self._hydrate(entries, meta, from_backup=False)

    def _recover_from_backup(self, primary_error: CorruptStoreError) -> RecoveryResult:
        if not self.backup_path.exists():
            raise primary_error

        try:
            entries, meta = self.db.read_image(self.backup_path)
        except CorruptStoreError as exc:
            log_error(logger, "recover from backup", exc, {"path": self.backup_path})
            raise CorruptStoreError(
                f"Primary and backup images are unusable: {primary_error}; {exc}"
            ) from exc

        staging = self.db.db_path.with_name(self.db.db_path.name + ".restore")
        shutil.copyfile(self.backup_path, staging)
        os.replace(staging, self.db.db_path)
        logger.warning(f"Recovered {len(entries)} events from last-known-good backup")
        return self._hydrate(entries, meta, from_backup=True)

    def _hydrate(self, entries, meta, from_backup: bool) -> RecoveryResult:
        with self.store.exclusive() as store:
            try:
                store.load(entries, last_sequence=int(meta.get("last_sequence", 0)))
            except ValueError as exc:
                raise CorruptStoreError(f"Durable image is inconsistent: {exc}") from exc
            self._persisted_sequence = store.last_sequence
            self._persisted_generation = store.generation

        log_operation(logger, "Recovered event log", {
            "events": len(entries),
            "last_sequence": self._persisted_sequence,
            "from_backup": from_backup,
        })
        return RecoveryResult(
            event_count=len(entries),
            last_sequence=self._persisted_sequence,
            from_backup=from_backup,
        )
