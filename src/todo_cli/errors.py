from __future__ import annotations

from typing import Optional


class TodoError(Exception):
    """Base class for errors reported by the todo store."""


# PUBLIC_INTERFACE
class NotFound(TodoError):
    """The requested todo id is absent from the store."""

    def __init__(self, todo_id: int) -> None:
        super().__init__(f"todo {todo_id} not found")
        self.todo_id = todo_id


# PUBLIC_INTERFACE
class FormatError(TodoError):
    """
    Stored bytes could not be decoded.

    This signals data corruption (or data written by an incompatible schema
    version), never a normal control path.
    """

    def __init__(self, reason: str, todo_id: Optional[int] = None) -> None:
        if todo_id is None:
            message = f"malformed record: {reason}"
        else:
            message = f"malformed record {todo_id}: {reason}"
        super().__init__(message)
        self.reason = reason
        self.todo_id = todo_id


# PUBLIC_INTERFACE
class StoreError(TodoError):
    """The underlying database or one of its transactions failed."""
