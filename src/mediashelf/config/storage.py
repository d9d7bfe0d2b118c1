"""Where the catalog keeps its files.

Everything lives below one data directory: the SQLite catalog, the HTTP cache
shared by the provider clients and the run reports. ``MEDIASHELF_DATA_DIR``
moves the whole tree; ``DATABASE_URI`` points the catalog elsewhere on its own.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "mediashelf"
DEFAULT_DB_FILENAME: Final[str] = "mediashelf.db"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"
REPORTS_DIRNAME: Final[str] = "reports"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME
    http_cache_filename: str = HTTP_CACHE_FILENAME
    reports_dirname: str = REPORTS_DIRNAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def _below_data_dir(self, name: str, *, ensure: bool) -> Path:
        root = self.resolve_data_dir()
        if ensure:
            root.mkdir(parents=True, exist_ok=True)
        return root / name

    def database_path(self, *, ensure: bool = True) -> Path:
        return self._below_data_dir(self.database_filename, ensure=ensure)

    def http_cache_path(self, *, ensure: bool = True) -> Path:
        return self._below_data_dir(self.http_cache_filename, ensure=ensure)

    def reports_dir(self, *, ensure: bool = True) -> Path:
        path = self._below_data_dir(self.reports_dirname, ensure=ensure)
        if ensure:
            path.mkdir(exist_ok=True)
        return path

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def _platform_data_home() -> Path:
    if os.name == "nt":
        local_app_data = os.getenv("LOCALAPPDATA")
        return Path(local_app_data) if local_app_data else Path.home() / "AppData" / "Local"
    xdg_data_home = os.getenv("XDG_DATA_HOME")
    return Path(xdg_data_home) if xdg_data_home else Path.home() / ".local" / "share"


def get_storage_config() -> StorageConfig:
    override = os.getenv("MEDIASHELF_DATA_DIR")
    data_dir = Path(override) if override else _platform_data_home() / APP_DIR_NAME
    return StorageConfig(data_dir=data_dir)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    uri = os.getenv("DATABASE_URI") or (storage or get_storage_config()).database_uri()
    return DatabaseConfig(uri=uri)


def get_http_cache_path() -> Path:
    return get_storage_config().http_cache_path()
