"""
Backup file helpers.

Exports are named ``gymlog-backup-YYYY-MM-DD.parquet`` and written to a
staging file that is renamed into place, so an interrupted export never
leaves a half-written backup under the final name.
"""

from __future__ import annotations

import os
from datetime import date
from pathlib import Path

from gymlog.core.errors import CorruptFileError
from gymlog.core.events.base import BaseEvent, utc_now
from gymlog.core.store import EventStore
from gymlog.systems.backup.codec import BACKUP_EXTENSION, BackupCodec
from gymlog.utils.logging import get_logger, log_operation


logger = get_logger("backup.files")

DEFAULT_PREFIX = "gymlog-backup"


def backup_filename(
    day: date | None = None,
    prefix: str = DEFAULT_PREFIX,
    extension: str = BACKUP_EXTENSION,
) -> str:
    """File name for a backup taken on ``day`` (today, UTC, by default)."""
    day = day or utc_now().date()
    return f"{prefix}-{day.isoformat()}{extension}"


def export_backup(
    store: EventStore,
    directory: str | Path,
    day: date | None = None,
    codec: BackupCodec | None = None,
    prefix: str = DEFAULT_PREFIX,
    extension: str = BACKUP_EXTENSION,
) -> Path:
    """Write the whole store to ``directory``.

    An existing backup with the same name (same day) is replaced.

    Returns:
        Path of the written backup
    """
    codec = codec or BackupCodec()
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    events = store.events()
    target = directory / backup_filename(day, prefix, extension)
    staging = target.with_name(f".{target.name}.tmp")
    try:
        codec.write(events, staging)
        with open(staging, "rb") as f:
            os.fsync(f.fileno())
        os.replace(staging, target)
    finally:
        staging.unlink(missing_ok=True)

    log_operation(logger, "Exported backup", {
        "path": target,
        "events": len(events),
        "bytes": target.stat().st_size,
    })
    return target


def read_backup(path: str | Path, codec: BackupCodec | None = None) -> list[BaseEvent]:
    """Decode a backup file without importing it.

    Raises:
        CorruptFileError: Missing file or malformed contents
        SchemaMismatchError: Unsupported schema version
    """
    path = Path(path)
    if not path.is_file():
        raise CorruptFileError(f"Backup not found: {path}")
    return (codec or BackupCodec()).read(path)
