"""
Backup Codec for GymLog.

Writes the event log as a Parquet file through DuckDB, one row per event
in append order, and reads it back. The file is readable by any Parquet
tool; GymLog-specific facts travel in the Parquet key/value metadata:

    schema_version   version of the column layout below
    digest           SHA-256 over the canonical JSON of every event

Values are stored losslessly: weights are DOUBLE (bit exact) and
timestamps are microsecond TIMESTAMP columns holding UTC.
"""

from __future__ import annotations

import hashlib
import json
import tempfile
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Iterable

import duckdb
from pydantic import ValidationError

from gymlog.core.errors import CorruptFileError, SchemaMismatchError
from gymlog.core.events.base import BaseEvent
from gymlog.core.events.registry import event_from_dict
from gymlog.utils.logging import get_logger


logger = get_logger("backup.codec")

SCHEMA_VERSION = 1
SUPPORTED_VERSIONS: tuple[int, ...] = (1,)
BACKUP_EXTENSION = ".parquet"

VERSION_KEY = "schema_version"
DIGEST_KEY = "digest"


class ColumnType(str, Enum):
    """DuckDB column types used by the backup layout."""
    BIGINT = "BIGINT"
    DOUBLE = "DOUBLE"
    VARCHAR = "VARCHAR"
    TIMESTAMP = "TIMESTAMP"
    VARCHAR_LIST = "VARCHAR[]"
    BOOLEAN = "BOOLEAN"


# Column order is part of schema version 1
COLUMNS: tuple[tuple[str, ColumnType], ...] = (
    ("id", ColumnType.VARCHAR),
    ("event_type", ColumnType.VARCHAR),
    ("timestamp", ColumnType.TIMESTAMP),
    ("gym_id", ColumnType.VARCHAR),
    ("name", ColumnType.VARCHAR),
    ("location", ColumnType.VARCHAR),
    ("exercise_id", ColumnType.VARCHAR),
    ("muscle_group", ColumnType.VARCHAR),
    ("is_global", ColumnType.BOOLEAN),
    ("template_id", ColumnType.VARCHAR),
    ("plan_id", ColumnType.VARCHAR),
    ("exercise_ids", ColumnType.VARCHAR_LIST),
    ("rotation_id", ColumnType.VARCHAR),
    ("plan_ids", ColumnType.VARCHAR_LIST),
    ("default_gym_id", ColumnType.VARCHAR),
    ("current_index", ColumnType.BIGINT),
    ("session_id", ColumnType.VARCHAR),
    ("started_at", ColumnType.TIMESTAMP),
    ("set_number", ColumnType.BIGINT),
    ("weight", ColumnType.DOUBLE),
    ("reps", ColumnType.BIGINT),
    ("rir", ColumnType.BIGINT),
    ("text", ColumnType.VARCHAR),
    ("logged_at", ColumnType.TIMESTAMP),
)
ENVELOPE_COLUMNS = ("id", "event_type", "timestamp")


def _sql_path(path: Path) -> str:
    """Quote a file path as a SQL string literal."""
    return "'" + str(path).replace("'", "''") + "'"


def event_digest(events: Iterable[BaseEvent]) -> str:
    """SHA-256 over one canonical JSON line per event."""
    digest = hashlib.sha256()
    for event in events:
        line = json.dumps(event.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))
        digest.update(line.encode("utf-8"))
        digest.update(b"\n")
    return digest.hexdigest()


def _to_cell(event: BaseEvent, name: str) -> Any:
    if name not in type(event).model_fields:
        return None
    value = getattr(event, name)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        # TIMESTAMP columns hold naive UTC
        return value.astimezone(UTC).replace(tzinfo=None)
    if isinstance(value, (list, tuple)):
        return list(value)
    return value


def _from_cell(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.replace(tzinfo=UTC)
    return value


class BackupCodec:
    """Encodes events to a schema-versioned Parquet backup and back.

    ``write``/``read`` work on files; ``encode``/``decode`` wrap them for
    in-memory blobs. File naming lives in ``gymlog.systems.backup.files``.
    """

    def __init__(self, version: int = SCHEMA_VERSION):
        if version not in SUPPORTED_VERSIONS:
            raise SchemaMismatchError(version, SUPPORTED_VERSIONS)
        self.version = version

    # ========== Write ==========

    def write(self, events: Iterable[BaseEvent], path: str | Path) -> int:
        """Write events to ``path`` as Parquet, preserving their order.

        Returns:
            Number of rows written
        """
        events = list(events)
        path = Path(path)
        columns = ", ".join(f'"{name}" {kind.value}' for name, kind in COLUMNS)
        placeholders = ", ".join(f"CAST(? AS {kind.value})" for _, kind in COLUMNS)
        rows = [[_to_cell(event, name) for name, _ in COLUMNS] for event in events]

        with duckdb.connect() as con:
            con.execute(f"CREATE TABLE events ({columns})")
            if rows:
                con.executemany(f"INSERT INTO events VALUES ({placeholders})", rows)
            con.execute(
                f"COPY events TO {_sql_path(path)} (FORMAT parquet, COMPRESSION zstd, "
                f"KV_METADATA {{{VERSION_KEY}: '{self.version}', "
                f"{DIGEST_KEY}: '{event_digest(events)}'}})"
            )

        logger.debug(f"Wrote {len(rows)} events to {path}")
        return len(rows)

    def encode(self, events: Iterable[BaseEvent]) -> bytes:
        """Serialize events to Parquet bytes."""
        with tempfile.TemporaryDirectory(prefix="gymlog-") as tmpdir:
            path = Path(tmpdir) / f"encode{BACKUP_EXTENSION}"
            self.write(events, path)
            return path.read_bytes()

    # ========== Read ==========

    def metadata(self, path: str | Path) -> dict[str, str]:
        """Parquet key/value metadata of a backup file.

        Raises:
            CorruptFileError: The file is not readable as Parquet
        """
        try:
            with duckdb.connect() as con:
                rows = con.execute(
                    f"SELECT key, value FROM parquet_kv_metadata({_sql_path(Path(path))})"
                ).fetchall()
        except duckdb.Error as exc:
            raise CorruptFileError(f"Not a readable Parquet backup: {exc}") from exc

        return {
            bytes(key).decode("utf-8", "replace"): bytes(value).decode("utf-8", "replace")
            for key, value in rows
        }

    def read(self, path: str | Path) -> list[BaseEvent]:
        """Parse a backup file back into events in original order.

        Columns this version does not know are ignored.

        Raises:
            SchemaMismatchError: Unknown or future schema version
            CorruptFileError: Not Parquet, no GymLog metadata, missing or
                mistyped columns, invalid rows or a digest mismatch
        """
        path = Path(path)
        meta = self.metadata(path)
        version = self._check_version(meta)

        try:
            with duckdb.connect() as con:
                source = f"read_parquet({_sql_path(path)})"
                found = {
                    row[0]: row[1]
                    for row in con.execute(f"DESCRIBE SELECT * FROM {source}").fetchall()
                }
                self._check_columns(found)
                selected = ", ".join(f'"{name}"' for name, _ in COLUMNS)
                records = con.execute(f"SELECT {selected} FROM {source}").fetchall()
        except duckdb.Error as exc:
            raise CorruptFileError(f"Backup {path.name} is damaged: {exc}") from exc

        names = [name for name, _ in COLUMNS]
        events = [self._build_row(names, record, row) for row, record in enumerate(records)]

        if event_digest(events) != meta.get(DIGEST_KEY):
            raise CorruptFileError(f"Backup {path.name} failed its digest check")

        logger.debug(f"Read {len(events)} events from {path} (schema v{version})")
        return events

    def decode(self, data: bytes) -> list[BaseEvent]:
        """Parse Parquet backup bytes; see ``read``."""
        with tempfile.TemporaryDirectory(prefix="gymlog-") as tmpdir:
            path = Path(tmpdir) / f"decode{BACKUP_EXTENSION}"
            path.write_bytes(bytes(data))
            return self.read(path)

    @staticmethod
    def _check_version(meta: dict[str, str]) -> int:
        raw = meta.get(VERSION_KEY)
        if raw is None:
            raise CorruptFileError(f"Not a GymLog backup: no {VERSION_KEY} metadata")
        try:
            version = int(raw)
        except ValueError as exc:
            raise CorruptFileError(f"Unreadable {VERSION_KEY}: {raw!r}") from exc
        if version not in SUPPORTED_VERSIONS:
            raise SchemaMismatchError(version, SUPPORTED_VERSIONS)
        return version

    @staticmethod
    def _check_columns(found: dict[str, str]) -> None:
        missing = [name for name, _ in COLUMNS if name not in found]
        if missing:
            raise CorruptFileError(f"Missing columns: {', '.join(missing)}")
        for name, kind in COLUMNS:
            if found[name] != kind.value:
                raise CorruptFileError(
                    f"Column {name!r} has type {found[name]}, expected {kind.value}"
                )

    @staticmethod
    def _build_row(names: list[str], record: tuple, row: int) -> BaseEvent:
        data = {
            name: _from_cell(value)
            for name, value in zip(names, record)
            if value is not None
        }
        absent = [name for name in ENVELOPE_COLUMNS if name not in data]
        if absent:
            raise CorruptFileError(f"Row {row} is missing {', '.join(absent)}")
        try:
            return event_from_dict(data)
        except (ValidationError, ValueError) as exc:
            raise CorruptFileError(f"Row {row} is not a valid event: {exc}") from exc


_default_codec = BackupCodec()


def encode(events: Iterable[BaseEvent]) -> bytes:
    """Encode with the current schema version."""
    return _default_codec.encode(events)


def decode(data: bytes) -> list[BaseEvent]:
    """Decode any supported schema version."""
    return _default_codec.decode(data)
