"""
GymLog Configuration.

Central configuration management for the GymLog engine.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal


CONFIG_FILENAME = "gymlog_config.json"


# ============================================================================
# Default Paths
# ============================================================================


def get_default_data_dir() -> Path:
    """Get the default data directory for GymLog."""
    # Check for environment override
    if env_path := os.environ.get("GYMLOG_DATA_DIR"):
        return Path(env_path)

    return Path.home() / ".gymlog"


# ============================================================================
# Configuration Classes
# ============================================================================


@dataclass
class StorageConfig:
    """Durable event store files, relative to the data directory."""

    db_filename: str = "events.db"
    backup_filename: str = "events.db.bak"  # Last-known-good copy

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StorageConfig":
        return cls(**{k: v for k, v in data.items() if hasattr(cls, k)})

    def to_dict(self) -> dict[str, Any]:
        return {
            "db_filename": self.db_filename,
            "backup_filename": self.backup_filename,
        }


@dataclass
class ViewConfig:
    """Tuning for derived views."""

    # (percentage of top set, reps)
    warmup_tiers: list[tuple[float, int]] = field(
        default_factory=lambda: [(50, 5), (75, 3)]
    )
    weight_increment: float = 2.5
    ghost_tie_break: Literal["latest_appended", "earliest_appended"] = "latest_appended"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ViewConfig":
        config = cls(**{k: v for k, v in data.items() if hasattr(cls, k) and k != "warmup_tiers"})
        if "warmup_tiers" in data:
            config.warmup_tiers = [(float(p), int(r)) for p, r in data["warmup_tiers"]]
        return config

    def to_dict(self) -> dict[str, Any]:
        return {
            "warmup_tiers": [list(tier) for tier in self.warmup_tiers],
            "weight_increment": self.weight_increment,
            "ghost_tie_break": self.ghost_tie_break,
        }


@dataclass
class BackupConfig:
    """Export file naming and location."""

    export_dir: Path | None = None  # Defaults to <data_dir>/backups
    filename_prefix: str = "gymlog-backup"
    extension: str = ".parquet"

    def __post_init__(self):
        if isinstance(self.export_dir, str):
            self.export_dir = Path(self.export_dir)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BackupConfig":
        return cls(**{k: v for k, v in data.items() if hasattr(cls, k)})

    def to_dict(self) -> dict[str, Any]:
        return {
            "export_dir": str(self.export_dir) if self.export_dir else None,
            "filename_prefix": self.filename_prefix,
            "extension": self.extension,
        }


@dataclass
class GymLogConfig:
    """Main configuration for GymLog.

    Aggregates all sub-configurations and provides load/save functionality.
    """

    data_dir: Path = field(default_factory=get_default_data_dir)

    # Sub-configs
    storage: StorageConfig = field(default_factory=StorageConfig)
    views: ViewConfig = field(default_factory=ViewConfig)
    backup: BackupConfig = field(default_factory=BackupConfig)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    def __post_init__(self):
        if isinstance(self.data_dir, str):
            self.data_dir = Path(self.data_dir)

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.storage.db_filename

    @property
    def backup_path(self) -> Path:
        return self.data_dir / self.storage.backup_filename

    @property
    def export_dir(self) -> Path:
        return self.backup.export_dir or self.data_dir / "backups"

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> "GymLogConfig":
        """Load configuration from a JSON file.

        Args:
            config_path: Path to config file. If None, uses default location.

        Returns:
            GymLogConfig instance (defaults when the file does not exist)
        """
        if config_path is None:
            config_path = get_default_data_dir() / CONFIG_FILENAME

        config_path = Path(config_path)

        if not config_path.exists():
            return cls()

        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GymLogConfig":
        """Create config from dictionary."""
        return cls(
            data_dir=Path(data.get("data_dir", get_default_data_dir())),
            storage=StorageConfig.from_dict(data.get("storage", {})),
            views=ViewConfig.from_dict(data.get("views", {})),
            backup=BackupConfig.from_dict(data.get("backup", {})),
            log_level=data.get("log_level", "INFO"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "data_dir": str(self.data_dir),
            "storage": self.storage.to_dict(),
            "views": self.views.to_dict(),
            "backup": self.backup.to_dict(),
            "log_level": self.log_level,
        }

    def save(self, config_path: str | Path | None = None) -> Path:
        """Save configuration to a JSON file.

        Args:
            config_path: Path to save to. If None, uses <data_dir>/gymlog_config.json.

        Returns:
            Path to saved file
        """
        if config_path is None:
            config_path = self.data_dir / CONFIG_FILENAME

        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

        return config_path

    def ensure_directories(self) -> None:
        """Ensure the data and export directories exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.export_dir.mkdir(parents=True, exist_ok=True)


# ============================================================================
# Global Config Instance
# ============================================================================


_global_config: GymLogConfig | None = None


def get_config() -> GymLogConfig:
    """Get the global configuration instance.

    Returns:
        GymLogConfig singleton
    """
    global _global_config
    if _global_config is None:
        _global_config = GymLogConfig.load()
    return _global_config


def set_config(config: GymLogConfig) -> None:
    """Set the global configuration instance."""
    global _global_config
    _global_config = config


def reload_config(config_path: str | Path | None = None) -> GymLogConfig:
    """Reload configuration from disk.

    Args:
        config_path: Optional path to load from

    Returns:
        Newly loaded configuration
    """
    global _global_config
    _global_config = GymLogConfig.load(config_path)
    return _global_config
