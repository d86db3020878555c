from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - TODO_DB_PATH: path to the database file. Default './my.db'
    - TODO_BUCKET: name of the bucket holding todos. Default 'todos'
    - TODO_LOCK_TIMEOUT: seconds to wait for the write lock. Default 5.0
    - TODO_LOG_LEVEL: logging level name for diagnostics on stderr. Default 'WARNING'
    """

    db_path: str
    bucket: str
    lock_timeout: float
    log_level: str

    def with_overrides(self, db_path: Optional[str] = None) -> "Settings":
        """Return a copy with command-line overrides applied."""
        if db_path:
            return replace(self, db_path=db_path)
        return self


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value.strip() == "":
        return default
    return value


def _parse_float(value: str, default: float) -> float:
    try:
        parsed = float(value.strip())
    except ValueError:
        return default
    if parsed < 0:
        return default
    return parsed


def _parse_level(value: str, default: str = "WARNING") -> str:
    """
    Normalize a logging level name. Unknown names fall back to the default.
    """
    name = value.strip().upper()
    if isinstance(logging.getLevelName(name), int):
        return name
    return default


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    return Settings(
        db_path=_get_env("TODO_DB_PATH", "my.db").strip(),
        bucket=_get_env("TODO_BUCKET", "todos").strip(),
        lock_timeout=_parse_float(_get_env("TODO_LOCK_TIMEOUT", "5.0"), 5.0),
        log_level=_parse_level(_get_env("TODO_LOG_LEVEL", "WARNING")),
    )
