"""
Event Database for GymLog.

SQLite image of the event log. Rows mirror the in-memory store (sequence,
id, tag, timestamp, payload JSON); a metadata table records what a
complete image must contain so truncation and tampering are detectable.
"""

from __future__ import annotations

import hashlib
import json
import os
import sqlite3
from pathlib import Path
from typing import Any, Iterable, Sequence

from pydantic import ValidationError

from gymlog.core.errors import CorruptStoreError, StorageWriteError
from gymlog.core.events.registry import event_from_dict
from gymlog.core.store import StoredEvent

STORE_SCHEMA_VERSION = 1


def log_digest(entries: Iterable[StoredEvent]) -> str:
    """SHA-256 over ``sequence|id|event_type`` lines, in order."""
    digest = hashlib.sha256()
    for stored in entries:
        digest.update(f"{stored.sequence}|{stored.id}|{stored.event_type.value}\n".encode("utf-8"))
    return digest.hexdigest()


# ============================================================================
# Event Database
# ============================================================================


class EventDatabase:
    """Manages the events.db SQLite file.

    Usage:
        db = EventDatabase(data_dir / "events.db")
        db.write_checkpoint(pending, full_rewrite=False, meta={...})
        entries, meta = db.read_image()
    """

    def __init__(self, db_path: str | Path):
        """Initialize the database manager.

        Args:
            db_path: Path to the SQLite file (created on first write)
        """
        self.db_path = Path(db_path)

    def exists(self) -> bool:
        return self.db_path.exists()

    def _get_connection(self, path: Path | None = None) -> sqlite3.Connection:
        conn = sqlite3.connect(path or self.db_path, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA synchronous = FULL")
        return conn

    def _create_schema(self, cursor: sqlite3.Cursor) -> None:
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS events (
                sequence INTEGER PRIMARY KEY,
                id TEXT NOT NULL UNIQUE,
                event_type TEXT NOT NULL,
                timestamp TEXT NOT NULL,
                payload_json TEXT NOT NULL
            )
        """)
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS checkpoint_meta (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_events_type ON events(event_type)")

    # ========== Write Path ==========

    def write_checkpoint(
        self,
        entries: Sequence[StoredEvent],
        full_rewrite: bool,
        meta: dict[str, Any],
    ) -> None:
        """Persist entries and metadata in one transaction.

        Args:
            entries: Rows to insert (the pending tail, or the whole log)
            full_rewrite: Delete existing rows first
            meta: Values describing the complete image after this write

        Raises:
            StorageWriteError: Nothing was committed
        """
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = self._get_connection()
        except (OSError, sqlite3.Error) as exc:
            raise StorageWriteError(f"Cannot open {self.db_path}: {exc}") from exc

        try:
            cursor = conn.cursor()
            cursor.execute("BEGIN IMMEDIATE")
            self._create_schema(cursor)
            if full_rewrite:
                cursor.execute("DELETE FROM events")
            cursor.executemany(
                """
                INSERT INTO events (sequence, id, event_type, timestamp, payload_json)
                VALUES (?, ?, ?, ?, ?)
                """,
                [self._entry_to_row(stored) for stored in entries],
            )
            cursor.executemany(
                "INSERT OR REPLACE INTO checkpoint_meta (key, value) VALUES (?, ?)",
                [(key, json.dumps(value)) for key, value in meta.items()],
            )
            cursor.execute("COMMIT")
        except sqlite3.Error as exc:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise StorageWriteError(f"Checkpoint write failed: {exc}") from exc
        finally:
            conn.close()

    def backup_to(self, target: str | Path) -> Path:
        """Copy the database to ``target`` via the SQLite backup API.

        The copy is written next to the target and renamed into place.
        """
        target = Path(target)
        staging = target.with_name(target.name + ".tmp")
        if staging.exists():
            staging.unlink()

        source = self._get_connection()
        dest = sqlite3.connect(staging)
        try:
            source.backup(dest)
        finally:
            dest.close()
            source.close()
        os.replace(staging, target)
        return target

    @staticmethod
    def _entry_to_row(stored: StoredEvent) -> tuple:
        data = stored.event.to_db_dict()
        return (
            stored.sequence,
            data["id"],
            data["event_type"],
            data["timestamp"],
            json.dumps(data["payload"], ensure_ascii=False),
        )

    # ========== Read Path ==========

    def read_image(self, path: str | Path | None = None) -> tuple[list[StoredEvent], dict[str, Any]]:
        """Load and verify a complete image.

        Args:
            path: Alternate file to read (e.g. the last-known-good copy)

        Returns:
            (entries in sequence order, metadata)

        Raises:
            CorruptStoreError: Unreadable file, missing metadata, row
                count/sequence/digest mismatch, or invalid payloads
        """
        path = Path(path) if path is not None else self.db_path
        try:
            conn = self._get_connection(path)
        except sqlite3.Error as exc:
            raise CorruptStoreError(f"Cannot open {path}: {exc}") from exc

        try:
            check = conn.execute("PRAGMA quick_check").fetchone()
            if check is None or check[0] != "ok":
                raise CorruptStoreError(f"{path} failed integrity check: {check[0] if check else 'no result'}")

            tables = {
                row["name"]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
            }
            if not {"events", "checkpoint_meta"} <= tables:
                raise CorruptStoreError(f"{path} is missing checkpoint tables")

            meta = {
                row["key"]: json.loads(row["value"])
                for row in conn.execute("SELECT key, value FROM checkpoint_meta")
            }
            rows = conn.execute(
                "SELECT sequence, id, event_type, timestamp, payload_json FROM events ORDER BY sequence"
            ).fetchall()
        except sqlite3.DatabaseError as exc:
            raise CorruptStoreError(f"{path} is malformed: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise CorruptStoreError(f"{path} has unreadable metadata: {exc}") from exc
        finally:
            conn.close()

        entries = [self._row_to_entry(row, path) for row in rows]
        self._verify(entries, meta, path)
        return entries, meta

    @staticmethod
    def _row_to_entry(row: sqlite3.Row, path: Path) -> StoredEvent:
        try:
            data = json.loads(row["payload_json"])
            data.update(
                id=row["id"],
                event_type=row["event_type"],
                timestamp=row["timestamp"],
            )
            event = event_from_dict(data)
        except (json.JSONDecodeError, ValidationError, ValueError, TypeError) as exc:
            raise CorruptStoreError(
                f"{path}: invalid event at sequence {row['sequence']}: {exc}"
            ) from exc
        return StoredEvent(sequence=row["sequence"], event=event)

    @staticmethod
    def _verify(entries: list[StoredEvent], meta: dict[str, Any], path: Path) -> None:
        version = meta.get("schema_version")
        if version != STORE_SCHEMA_VERSION:
            raise CorruptStoreError(f"{path}: unsupported store schema version {version!r}")

        expected_count = meta.get("event_count")
        if expected_count != len(entries):
            raise CorruptStoreError(
                f"{path}: expected {expected_count} events, found {len(entries)}"
            )

        last_sequence = entries[-1].sequence if entries else 0
        if meta.get("last_sequence", 0) < last_sequence:
            raise CorruptStoreError(f"{path}: rows beyond recorded last sequence")

        if meta.get("digest") != log_digest(entries):
            raise CorruptStoreError(f"{path}: digest mismatch")
