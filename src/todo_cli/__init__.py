"""
Command-line todo list manager backed by a local embedded key-value store.

The public surface re-exported here is the record store and its error kinds;
the command line lives in `todo_cli.main`.
"""

from .db import Database
from .errors import FormatError, NotFound, StoreError, TodoError
from .models import Todo
from .repositories import ListResult, TodoStore, get_repository

__all__ = [
    "Database",
    "FormatError",
    "ListResult",
    "NotFound",
    "StoreError",
    "Todo",
    "TodoError",
    "TodoStore",
    "get_repository",
]
