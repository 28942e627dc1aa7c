from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from functools import lru_cache
from threading import RLock
from typing import List, Optional, Sequence

from .models import TodoEntity, TodoNotFoundError, manual_order_key
from .schemas import TodoCreate, TodoUpdate
from .settings import get_settings

logger = logging.getLogger(__name__)

# Fields a PATCH may touch; anything else in model_fields_set is ignored.
PATCHABLE_FIELDS = ("text", "due_date", "priority", "category")


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract for todo storage backends."""

    @abstractmethod
    def list(self) -> List[TodoEntity]:
        """Return every todo ordered by sort_order, then id."""

    @abstractmethod
    def create(self, data: TodoCreate) -> TodoEntity:
        """Create and return a new TodoEntity placed after all existing ones."""

    @abstractmethod
    def get(self, todo_id: int) -> Optional[TodoEntity]:
        """Return a TodoEntity by id, or None if not found."""

    @abstractmethod
    def toggle(self, todo_id: int) -> Optional[TodoEntity]:
        """Flip the completed flag. Return the updated entity or None if not found."""

    @abstractmethod
    def update(self, todo_id: int, data: TodoUpdate) -> Optional[TodoEntity]:
        """Apply the fields set on `data`. Return the updated entity or None if not found."""

    @abstractmethod
    def reorder(self, ids: Sequence[int]) -> List[TodoEntity]:
        """
        Assign sort_order = position for each id, all-or-nothing.

        Raises:
            TodoNotFoundError: if any id does not exist; nothing is changed.
        """

    @abstractmethod
    def delete(self, todo_id: int) -> bool:
        """Delete a TodoEntity by id. Return True if deleted, False if not found."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and throwaway runs.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: dict[int, TodoEntity] = {}
        self._next_id = 1
        logger.info("InMemoryRepository ready")

    def _now(self) -> datetime:
        return datetime.now()

    def _allocate_id(self) -> int:
        with self._lock:
            i = self._next_id
            self._next_id += 1
            return i

    def _next_sort_order(self) -> int:
        if not self._items:
            return 0
        return max(t["sort_order"] for t in self._items.values()) + 1

    def list(self) -> List[TodoEntity]:
        with self._lock:
            return [t.copy() for t in sorted(self._items.values(), key=manual_order_key)]

    def create(self, data: TodoCreate) -> TodoEntity:
        with self._lock:
            entity: TodoEntity = {
                "id": self._allocate_id(),
                "text": data.text,
                "completed": False,
                "created_at": self._now(),
                "due_date": data.due_date,
                "priority": data.priority.value,
                "category": data.category,
                "sort_order": self._next_sort_order(),
            }
            self._items[entity["id"]] = entity
            logger.info("Created todo id=%s sort_order=%s", entity["id"], entity["sort_order"])
            return entity.copy()

    def get(self, todo_id: int) -> Optional[TodoEntity]:
        with self._lock:
            item = self._items.get(todo_id)
            return None if item is None else item.copy()

    def toggle(self, todo_id: int) -> Optional[TodoEntity]:
        with self._lock:
            item = self._items.get(todo_id)
            if item is None:
                return None
            item["completed"] = not item["completed"]
            logger.info("Toggled todo id=%s completed=%s", todo_id, item["completed"])
            return item.copy()

    def update(self, todo_id: int, data: TodoUpdate) -> Optional[TodoEntity]:
        with self._lock:
            existing = self._items.get(todo_id)
            if existing is None:
                return None

            updated = existing.copy()
            changed = [f for f in PATCHABLE_FIELDS if f in data.model_fields_set]
            for field in changed:
                value = getattr(data, field)
                if field == "priority":
                    value = value.value
                updated[field] = value  # type: ignore[literal-required]

            self._items[todo_id] = updated
            if changed:
                logger.info("Updated todo id=%s fields=%s", todo_id, ",".join(sorted(changed)))
            return updated.copy()

    def reorder(self, ids: Sequence[int]) -> List[TodoEntity]:
        with self._lock:
            missing = [i for i in ids if i not in self._items]
            if missing:
                raise TodoNotFoundError(missing)
            for position, todo_id in enumerate(ids):
                self._items[todo_id]["sort_order"] = position
            logger.info("Reordered %d todos", len(ids))
            return self.list()

    def delete(self, todo_id: int) -> bool:
        with self._lock:
            removed = self._items.pop(todo_id, None) is not None
        if removed:
            logger.info("Deleted todo id=%s", todo_id)
        return removed


def build_repository(backend: str, sqlite_db_path: str) -> Repository:
    """
    Construct a repository for the given backend name.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository at `sqlite_db_path`
    """
    if backend == "memory":
        return InMemoryRepository()
    from .db import SQLiteRepository

    return SQLiteRepository(sqlite_db_path)


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_repository() -> Repository:
    """
    Return the process-wide repository configured by settings.

    Used as a FastAPI dependency; tests replace it through
    `app.dependency_overrides[get_repository]`.
    """
    settings = get_settings()
    repo = build_repository(settings.persistence_backend, settings.sqlite_db_path)
    logger.info("Using %s repository", settings.persistence_backend)
    return repo
