"""Where returnsync keeps its SQLite database and HTTP cache.

``RETURNSYNC_DATA_DIR`` relocates both files; ``DATABASE_URI`` points the
reconciliation state at another database altogether.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "returnsync"
DEFAULT_DB_FILENAME: Final[str] = "returnsync.db"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"
# Seconds a writer waits on a locked SQLite file; the scheduler and the CLI share it.
SQLITE_BUSY_TIMEOUT: Final[float] = 30.0


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def file(self, name: str) -> Path:
        """Path of ``name`` inside the data directory, creating the directory."""

        directory = self.resolve_data_dir()
        directory.mkdir(parents=True, exist_ok=True)
        return directory / name


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str

    @property
    def is_sqlite(self) -> bool:
        return self.uri.startswith("sqlite")

    def engine_options(self) -> dict[str, object]:
        if self.is_sqlite:
            return {"connect_args": {"timeout": SQLITE_BUSY_TIMEOUT}}
        return {"pool_pre_ping": True}


def _platform_data_home() -> Path:
    xdg = os.getenv("XDG_DATA_HOME")
    return Path(xdg) if xdg else Path.home() / ".local" / "share"


def get_storage_config() -> StorageConfig:
    override = os.getenv("RETURNSYNC_DATA_DIR")
    return StorageConfig(data_dir=Path(override) if override else _platform_data_home() / APP_DIR_NAME)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    uri = os.getenv("DATABASE_URI")
    if uri:
        return DatabaseConfig(uri=uri)
    path = (storage or get_storage_config()).file(DEFAULT_DB_FILENAME)
    return DatabaseConfig(uri=f"sqlite+pysqlite:///{path}")


def get_http_cache_path() -> Path:
    return get_storage_config().file(HTTP_CACHE_FILENAME)
