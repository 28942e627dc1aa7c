from __future__ import annotations

import logging
from enum import Enum
from typing import Any, List, Optional

from todo_api.schemas import TodoOut

from .api_client import TodoClient
from .view import (
    SortMode,
    TodoCounts,
    ViewFilters,
    categories,
    count_todos,
    move_todo,
    visible_todos,
)

logger = logging.getLogger(__name__)


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


# PUBLIC_INTERFACE
class TodoBoard:
    """
    Local UI state of the todo list, backed by a TodoClient.

    `todos` always holds the full list in manual order; filters, search and
    sort mode only affect `visible`. Toggle, edit, add and remove update local
    state from the server's response. Drag reordering is applied locally
    first and then persisted; a failed request leaves the local order as
    moved and propagates the HTTP error.
    """

    def __init__(self, client: TodoClient) -> None:
        self._client = client
        self.todos: List[TodoOut] = []
        self.filters = ViewFilters()
        self.sort_mode = SortMode.MANUAL
        self.theme = Theme.LIGHT
        self.editing_id: Optional[int] = None

    # ---- derived state ----

    @property
    def visible(self) -> List[TodoOut]:
        return visible_todos(self.todos, self.filters, self.sort_mode)

    @property
    def categories(self) -> List[str]:
        return categories(self.todos)

    @property
    def counts(self) -> TodoCounts:
        return count_todos(self.todos)

    def find(self, todo_id: int) -> Optional[TodoOut]:
        return next((t for t in self.todos if t.id == todo_id), None)

    def _replace(self, updated: TodoOut) -> None:
        self.todos = [updated if t.id == updated.id else t for t in self.todos]

    # ---- server-backed actions ----

    def load(self) -> List[TodoOut]:
        self.todos = self._client.list_todos()
        logger.debug("Loaded %d todos", len(self.todos))
        return self.todos

    def add(self, text: str, **fields: Any) -> Optional[TodoOut]:
        """Create a todo; blank text is ignored and returns None."""
        if not text.strip():
            return None
        created = self._client.create_todo(text, **fields)
        self.todos = [*self.todos, created]
        return created

    def toggle(self, todo_id: int) -> TodoOut:
        updated = self._client.toggle_todo(todo_id)
        self._replace(updated)
        return updated

    def update(self, todo_id: int, **fields: Any) -> TodoOut:
        updated = self._client.update_todo(todo_id, **fields)
        self._replace(updated)
        return updated

    def remove(self, todo_id: int) -> None:
        self._client.delete_todo(todo_id)
        self.todos = [t for t in self.todos if t.id != todo_id]
        if self.editing_id == todo_id:
            self.editing_id = None

    def move(self, dragged_id: int, target_id: int) -> List[TodoOut]:
        """Drop `dragged_id` onto `target_id`'s position and persist the new order."""
        if dragged_id == target_id:
            return self.todos
        self.todos = move_todo(self.todos, dragged_id, target_id)
        self.todos = self._client.reorder_todos([t.id for t in self.todos])
        return self.todos

    # ---- inline edit ----

    def start_edit(self, todo_id: int) -> str:
        """Enter edit mode for a todo and return its current text."""
        todo = self.find(todo_id)
        if todo is None:
            raise KeyError(todo_id)
        self.editing_id = todo_id
        return todo.text

    def cancel_edit(self) -> None:
        self.editing_id = None

    def commit_edit(self, text: str) -> Optional[TodoOut]:
        """
        Save the edited text. Blank or unchanged text just leaves edit mode.
        """
        todo_id = self.editing_id
        if todo_id is None:
            return None
        self.editing_id = None
        current = self.find(todo_id)
        new_text = text.strip()
        if not new_text or current is None or new_text == current.text:
            return current
        return self.update(todo_id, text=new_text)

    # ---- local-only state ----

    def set_search(self, search: str) -> None:
        self.filters.search = search

    def clear_filters(self) -> None:
        self.filters = ViewFilters()

    def toggle_theme(self) -> Theme:
        self.theme = Theme.DARK if self.theme is Theme.LIGHT else Theme.LIGHT
        return self.theme
