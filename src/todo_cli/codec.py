from __future__ import annotations

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from .errors import FormatError
from .models import Todo
from .schemas import StoredTodo


# PUBLIC_INTERFACE
def encode_todo(todo: Todo) -> bytes:
    """
    Serialize a todo into the bytes stored as a bucket value.

    Raises:
        FormatError: the text cannot be represented as UTF-8.
    """
    try:
        return StoredTodo(id=todo.id, text=todo.text).model_dump_json().encode("utf-8")
    except (PydanticSerializationError, UnicodeEncodeError) as e:
        raise FormatError(f"cannot encode text: {e}", todo.id) from e


# PUBLIC_INTERFACE
def decode_todo(data: bytes) -> Todo:
    """
    Parse bytes produced by `encode_todo`.

    Raises:
        FormatError: the bytes are not a valid record of the current schema version.
    """
    try:
        stored = StoredTodo.model_validate_json(data)
    except ValidationError as e:
        errors = e.errors()
        reason = errors[0]["msg"] if errors else str(e)
        raise FormatError(reason) from e
    except ValueError as e:
        # undecodable bytes
        raise FormatError(str(e)) from e
    return Todo(id=stored.id, text=stored.text)
