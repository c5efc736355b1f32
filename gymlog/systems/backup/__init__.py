"""
GymLog Backup - portable export/import of the event log.
"""

from gymlog.systems.backup.codec import BACKUP_EXTENSION, BackupCodec, SCHEMA_VERSION, SUPPORTED_VERSIONS, decode, encode
from gymlog.systems.backup.importer import ImportDeduplicator, ImportResult
from gymlog.systems.backup.files import backup_filename, export_backup, read_backup

__all__ = [
    "BackupCodec",
    "SCHEMA_VERSION",
    "SUPPORTED_VERSIONS",
    "encode",
    "decode",
    "BACKUP_EXTENSION",
    "ImportDeduplicator",
    "ImportResult",
    "backup_filename",
    "export_backup",
    "read_backup",
]
