"""
Client-side view logic: filtering, sorting and drag reordering.

Everything here is pure; inputs are never mutated. The server always returns
todos in manual order, so `todos` arguments are expected in that order.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, List, NamedTuple, Optional, Sequence

from todo_api.models import Priority
from todo_api.schemas import TodoOut


class StatusFilter(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


class SortMode(str, Enum):
    MANUAL = "manual"
    DUE_DATE = "due_date"
    PRIORITY = "priority"
    CREATED = "created"


_PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}
_UNDATED = datetime.min.replace(tzinfo=timezone.utc)


def _due_date_key(todo: TodoOut) -> tuple:
    # Naive due dates are read as UTC so they compare with aware ones.
    due = todo.due_date
    if due is None:
        return (True, _UNDATED)
    if due.tzinfo is None:
        due = due.replace(tzinfo=timezone.utc)
    return (False, due)


@dataclass
class ViewFilters:
    """Current filter state of the list view. Defaults show everything."""

    search: str = ""
    priority: Optional[Priority] = None
    category: Optional[str] = None
    status: StatusFilter = StatusFilter.ALL

    def is_active(self) -> bool:
        return bool(
            self.search.strip()
            or self.priority is not None
            or self.category is not None
            or self.status != StatusFilter.ALL
        )


class TodoCounts(NamedTuple):
    total: int
    active: int
    completed: int


def matches(todo: TodoOut, filters: ViewFilters) -> bool:
    needle = filters.search.strip().lower()
    if needle and needle not in todo.text.lower():
        return False
    if filters.priority is not None and todo.priority != filters.priority:
        return False
    if filters.category is not None and todo.category != filters.category:
        return False
    if filters.status == StatusFilter.ACTIVE and todo.completed:
        return False
    if filters.status == StatusFilter.COMPLETED and not todo.completed:
        return False
    return True


def filter_todos(todos: Iterable[TodoOut], filters: ViewFilters) -> List[TodoOut]:
    return [t for t in todos if matches(t, filters)]


def sort_todos(todos: Iterable[TodoOut], mode: SortMode = SortMode.MANUAL) -> List[TodoOut]:
    """
    Return `todos` ordered for display.

    - manual: sort_order, then id
    - due_date: earliest first, undated last
    - priority: high, medium, low
    - created: newest first
    Non-manual modes fall back to manual order for ties.
    """
    manual = sorted(todos, key=lambda t: (t.sort_order, t.id))
    if mode == SortMode.DUE_DATE:
        return sorted(manual, key=_due_date_key)
    if mode == SortMode.PRIORITY:
        return sorted(manual, key=lambda t: _PRIORITY_RANK[t.priority])
    if mode == SortMode.CREATED:
        return sorted(manual, key=lambda t: (t.created_at, t.id), reverse=True)
    return manual


def visible_todos(
    todos: Iterable[TodoOut], filters: ViewFilters, mode: SortMode = SortMode.MANUAL
) -> List[TodoOut]:
    return sort_todos(filter_todos(todos, filters), mode)


def categories(todos: Iterable[TodoOut]) -> List[str]:
    """Distinct categories in use, sorted case-insensitively."""
    return sorted({t.category for t in todos if t.category}, key=str.lower)


def count_todos(todos: Iterable[TodoOut]) -> TodoCounts:
    total = completed = 0
    for t in todos:
        total += 1
        completed += int(t.completed)
    return TodoCounts(total=total, active=total - completed, completed=completed)


def move_todo(todos: Sequence[TodoOut], dragged_id: int, target_id: int) -> List[TodoOut]:
    """
    Move the dragged todo into the target's position, shifting the items in
    between, and renumber sort_order densely from 0.

    Raises:
        ValueError: if either id is not in `todos`.
    """
    ids = [t.id for t in todos]
    try:
        src = ids.index(dragged_id)
        dst = ids.index(target_id)
    except ValueError as e:
        raise ValueError(f"cannot move {dragged_id} onto {target_id}: unknown todo") from e

    reordered = list(todos)
    reordered.insert(dst, reordered.pop(src))
    return [t.model_copy(update={"sort_order": i}) for i, t in enumerate(reordered)]
