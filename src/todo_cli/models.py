from __future__ import annotations

from dataclasses import dataclass


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Todo:
    """
    A single todo item.

    Fields:
    - id: Unique non-negative integer identifier, assigned once at creation
    - text: User supplied text; may be empty
    """

    id: int
    text: str
