"""Where the identity store lives.

``DATABASE_URI`` wins outright. Without it the store is a SQLite file in the
per-user data directory (``HRISYNC_DATA_DIR`` or the platform default).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "hrisync"
DEFAULT_DB_FILENAME: Final[str] = "hrisync.db"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    data_dir: Path | None = None

    @property
    def is_default_sqlite(self) -> bool:
        return self.data_dir is not None


def default_data_dir() -> Path:
    override = os.getenv("HRISYNC_DATA_DIR")
    if override:
        return Path(override).expanduser().resolve()
    if os.name == "nt":
        root = os.getenv("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
    else:
        root = os.getenv("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return (Path(root) / APP_DIR_NAME).expanduser().resolve()


def get_database_config(*, create_dirs: bool = True) -> DatabaseConfig:
    override = os.getenv("DATABASE_URI")
    if override:
        return DatabaseConfig(uri=override)
    data_dir = default_data_dir()
    if create_dirs:
        data_dir.mkdir(parents=True, exist_ok=True)
    return DatabaseConfig(
        uri=f"sqlite+pysqlite:///{data_dir / DEFAULT_DB_FILENAME}",
        data_dir=data_dir,
    )


def get_database_uri() -> str:
    return get_database_config().uri
