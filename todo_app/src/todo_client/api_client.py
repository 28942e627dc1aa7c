from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, List, Optional, Sequence, Union

import httpx

from todo_api.models import Priority
from todo_api.schemas import ReorderRequest, TodoCreate, TodoOut, TodoUpdate

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://127.0.0.1:3000"


# PUBLIC_INTERFACE
class TodoClient:
    """
    Thin synchronous wrapper over the todo REST API.

    Any non-2xx response raises `httpx.HTTPStatusError`; there is no retry.
    Payloads are built with the API's own pydantic schemas, so obviously bad
    input (blank text, unknown priority) fails locally with a
    `pydantic.ValidationError` before a request is sent.

    Pass `http` to reuse an existing `httpx.Client` (for example FastAPI's
    `TestClient`); otherwise one is created for `base_url` and closed by
    `close()`.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        http: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ) -> None:
        self._owns_http = http is None
        self._http = http if http is not None else httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "TodoClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        response = self._http.request(method, url, **kwargs)
        logger.debug("%s %s -> %s", method, url, response.status_code)
        response.raise_for_status()
        return response

    def list_todos(self) -> List[TodoOut]:
        response = self._request("GET", "/todos")
        return [TodoOut.model_validate(item) for item in response.json()]

    def get_todo(self, todo_id: int) -> TodoOut:
        return TodoOut.model_validate(self._request("GET", f"/todos/{todo_id}").json())

    def create_todo(
        self,
        text: str,
        due_date: Union[date, datetime, str, None] = None,
        priority: Union[Priority, str] = Priority.MEDIUM,
        category: Optional[str] = None,
    ) -> TodoOut:
        payload = TodoCreate(text=text, due_date=due_date, priority=priority, category=category)
        response = self._request("POST", "/todos", json=payload.model_dump(mode="json"))
        return TodoOut.model_validate(response.json())

    def toggle_todo(self, todo_id: int) -> TodoOut:
        return TodoOut.model_validate(self._request("PUT", f"/todos/{todo_id}").json())

    def update_todo(self, todo_id: int, **fields: Any) -> TodoOut:
        """
        PATCH only the given fields (text, due_date, priority, category).
        Passing `due_date=None` or `category=None` clears that field.
        """
        payload = TodoUpdate(**fields)
        response = self._request(
            "PATCH", f"/todos/{todo_id}", json=payload.model_dump(mode="json", exclude_unset=True)
        )
        return TodoOut.model_validate(response.json())

    def reorder_todos(self, ids: Sequence[int]) -> List[TodoOut]:
        payload = ReorderRequest(ids=list(ids))
        response = self._request("PUT", "/todos/reorder", json=payload.model_dump(mode="json"))
        return [TodoOut.model_validate(item) for item in response.json()]

    def delete_todo(self, todo_id: int) -> None:
        self._request("DELETE", f"/todos/{todo_id}")
