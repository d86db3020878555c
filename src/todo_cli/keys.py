from __future__ import annotations

import struct

from .errors import FormatError

_KEY = struct.Struct(">Q")

KEY_SIZE = _KEY.size
MAX_ID = 2**64 - 1


# PUBLIC_INTERFACE
def encode_key(todo_id: int) -> bytes:
    """
    Return the 8-byte big-endian key for a todo id.

    Big-endian unsigned keys sort byte-wise in the same order as the ids, so a
    bucket scan in key order yields todos in ascending id order.
    """
    if not 0 <= todo_id <= MAX_ID:
        raise ValueError(f"todo id out of range: {todo_id}")
    return _KEY.pack(todo_id)


# PUBLIC_INTERFACE
def decode_key(key: bytes) -> int:
    """Return the todo id stored in a bucket key."""
    if len(key) != KEY_SIZE:
        raise FormatError(f"key must be {KEY_SIZE} bytes, got {len(key)}")
    return _KEY.unpack(key)[0]
