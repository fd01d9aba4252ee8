"""Where exosync keeps its SQLite store and the archive record cache."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

DATA_DIR_ENV: Final[str] = "EXOSYNC_DATA_DIR"
DATABASE_URI_ENV: Final[str] = "DATABASE_URI"
DATABASE_FILENAME: Final[str] = "exosync.db"
RECORD_CACHE_FILENAME: Final[str] = "archive_records.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Root directory for every file the sync engine writes."""

    data_dir: Path

    @property
    def root(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def file(self, filename: str, *, create_dir: bool = True) -> Path:
        if create_dir:
            self.root.mkdir(parents=True, exist_ok=True)
        return self.root / filename

    @property
    def database_file(self) -> Path:
        return self.file(DATABASE_FILENAME)

    @property
    def record_cache_file(self) -> Path:
        return self.file(RECORD_CACHE_FILENAME)


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def _xdg_data_home() -> Path:
    configured = os.getenv("XDG_DATA_HOME")
    return Path(configured) if configured else Path.home() / ".local" / "share"


def get_storage_config() -> StorageConfig:
    configured = os.getenv(DATA_DIR_ENV)
    if configured:
        return StorageConfig(data_dir=Path(configured))
    return StorageConfig(data_dir=_xdg_data_home() / "exosync")


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a SQLite file inside the data directory."""

    uri = os.getenv(DATABASE_URI_ENV)
    if uri:
        return DatabaseConfig(uri=uri)
    database_file = (storage or get_storage_config()).database_file
    return DatabaseConfig(uri=f"sqlite+pysqlite:///{database_file}")
