import os
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Import-time settings (health check, CORS) should not touch the filesystem.
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from todo_api.db import SQLiteRepository  # noqa: E402
from todo_api.main import app  # noqa: E402
from todo_api.repositories import InMemoryRepository, Repository, get_repository  # noqa: E402
from todo_client import TodoBoard, TodoClient  # noqa: E402


@pytest.fixture(params=["memory", "sqlite"])
def repo(request, tmp_path: Path) -> Repository:
    """A fresh, empty repository for each backend."""
    if request.param == "sqlite":
        return SQLiteRepository(str(tmp_path / "todos.db"))
    return InMemoryRepository()


@pytest.fixture()
def api(repo: Repository):
    """TestClient whose requests are served by the `repo` fixture."""
    app.dependency_overrides[get_repository] = lambda: repo
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_repository, None)


@pytest.fixture()
def todo_client(api: TestClient) -> TodoClient:
    return TodoClient(http=api)


@pytest.fixture()
def board(todo_client: TodoClient) -> TodoBoard:
    return TodoBoard(todo_client)
