from __future__ import annotations

import pytest

from todo_cli.db import Database
from todo_cli.repositories import TodoStore

_ENV_VARS = ("TODO_DB_PATH", "TODO_BUCKET", "TODO_LOCK_TIMEOUT", "TODO_LOG_LEVEL")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # Tests must not pick up the developer's configuration
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def db_path(tmp_path) -> str:
    return str(tmp_path / "todos.db")


@pytest.fixture()
def db(db_path: str) -> Database:
    return Database(db_path, timeout=1.0)


@pytest.fixture()
def store(db: Database) -> TodoStore:
    return TodoStore(db)
