from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional, TypedDict


# PUBLIC_INTERFACE
class Priority(str, Enum):
    """Priority level for a todo item."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A lightweight domain model representing a Todo item as stored by the
    repositories.

    Fields:
    - id: Unique integer identifier
    - text: Task text (trimmed, non-empty via schemas)
    - completed: Boolean completion flag
    - created_at: Creation timestamp, never changed afterwards
    - due_date: Optional due datetime (normalized to datetime in schemas)
    - priority: One of Priority values
    - category: Optional free-form category label
    - sort_order: Manual ordering position; ties are broken by id
    """

    id: int
    text: str
    completed: bool
    created_at: datetime
    due_date: Optional[datetime]
    priority: str
    category: Optional[str]
    sort_order: int


# PUBLIC_INTERFACE
class TodoNotFoundError(LookupError):
    """Raised by multi-row operations when one or more ids do not exist."""

    def __init__(self, missing_ids: List[int]) -> None:
        self.missing_ids = list(missing_ids)
        super().__init__(f"Todo(s) not found: {', '.join(str(i) for i in self.missing_ids)}")


def manual_order_key(todo: TodoEntity) -> tuple:
    """Display order: sort_order ascending, then id."""
    return (todo["sort_order"], todo["id"])
