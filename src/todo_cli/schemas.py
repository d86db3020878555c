from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .keys import MAX_ID

SCHEMA_VERSION = 1

TextInput = Union[str, List[str]]


def _join_text(value: Optional[TextInput]) -> str:
    """
    Internal helper to normalize text input coming from the command line.
    - None becomes the empty string.
    - A list of words (argparse nargs) is joined with single spaces.
    - A string is kept as-is, including leading/trailing whitespace.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return " ".join(value)
    raise ValueError("text must be a string or a list of strings")


# PUBLIC_INTERFACE
class StoredTodo(BaseModel):
    """
    On-disk representation of a todo record.

    The document carries its schema version in `v`; decoding rejects any other
    version and any unknown field.
    """

    model_config = ConfigDict(
        extra="forbid",
        strict=True,
        frozen=True,
        json_schema_extra={"example": {"v": 1, "id": 1, "text": "buy milk"}},
    )

    v: Literal[1] = Field(default=SCHEMA_VERSION, description="Record schema version")
    id: int = Field(..., ge=0, le=MAX_ID, description="Todo id")
    text: str = Field(..., description="Todo text")


class _IdArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: int = Field(..., ge=0, le=MAX_ID, description="Todo item id")


class _TextArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str = Field(default="", description="Todo item text")

    @field_validator("text", mode="before")
    @classmethod
    def join_text(cls, v: Optional[TextInput]) -> str:
        """
        Join command-line words into a single text value that can be stored as UTF-8.
        """
        text = _join_text(v)
        try:
            text.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ValueError(f"text is not valid UTF-8 at position {e.start}") from e
        return text


# PUBLIC_INTERFACE
class AddArgs(_TextArgs):
    """Arguments of the `add` command."""


# PUBLIC_INTERFACE
class GetArgs(_IdArgs):
    """Arguments of the `get` command."""


# PUBLIC_INTERFACE
class RemoveArgs(_IdArgs):
    """Arguments of the `remove` command."""


# PUBLIC_INTERFACE
class EditArgs(_IdArgs, _TextArgs):
    """Arguments of the `edit` command."""


# PUBLIC_INTERFACE
class ListArgs(BaseModel):
    """The `list` command takes no arguments."""

    model_config = ConfigDict(extra="forbid")
