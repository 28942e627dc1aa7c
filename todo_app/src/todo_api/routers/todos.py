from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ..models import TodoNotFoundError
from ..repositories import Repository, get_repository
from ..schemas import ReorderRequest, TodoCreate, TodoOut, TodoUpdate

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/todos",
    tags=["todos"],
)

_NOT_FOUND = "Todo not found"


def _get_repo(repo: Repository = Depends(get_repository)) -> Repository:
    """
    Dependency wrapper for repository to keep signatures clean.
    """
    return repo


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TodoOut],
    summary="List Todos",
    description="Return every todo ordered by sort_order, ties broken by id.",
    responses={200: {"description": "List retrieved successfully"}},
)
def list_todos(repo: Repository = Depends(_get_repo)) -> List[TodoOut]:
    return [TodoOut(**it) for it in repo.list()]  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo placed after every existing item and return it.",
    responses={
        201: {"description": "Todo created successfully"},
        400: {"description": "Validation error"},
    },
)
def create_todo(payload: TodoCreate, repo: Repository = Depends(_get_repo)) -> TodoOut:
    """
    Create a new Todo.
    """
    created = repo.create(payload)
    return TodoOut(**created)  # type: ignore[arg-type]


# Declared before the /{todo_id} routes so "reorder" is not parsed as an id.
# PUBLIC_INTERFACE
@router.put(
    "/reorder",
    response_model=List[TodoOut],
    summary="Reorder Todos",
    description=(
        "Assign sort_order from the position of each id in the body. "
        "Applied in a single transaction: if any id is unknown nothing changes."
    ),
    responses={
        200: {"description": "Todos reordered; returns the full list in its new order"},
        400: {"description": "Malformed body or duplicate ids"},
        404: {"description": "One or more ids not found"},
    },
)
def reorder_todos(payload: ReorderRequest, repo: Repository = Depends(_get_repo)) -> List[TodoOut]:
    try:
        items = repo.reorder(payload.ids)
    except TodoNotFoundError as e:
        logger.info("Reorder rejected, unknown ids=%s", e.missing_ids)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND) from e
    return [TodoOut(**it) for it in items]  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Get Todo",
    description="Get a single Todo item by ID.",
    responses={
        200: {"description": "Todo found"},
        404: {"description": "Todo not found"},
    },
)
def get_todo(todo_id: int, repo: Repository = Depends(_get_repo)) -> TodoOut:
    """
    Retrieve a single Todo item by its ID.
    """
    item = repo.get(todo_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return TodoOut(**item)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Toggle Todo",
    description="Flip the completed flag of a Todo item. No request body.",
    responses={
        200: {"description": "Todo toggled"},
        404: {"description": "Todo not found"},
    },
)
def toggle_todo(todo_id: int, repo: Repository = Depends(_get_repo)) -> TodoOut:
    toggled = repo.toggle(todo_id)
    if not toggled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return TodoOut(**toggled)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.patch(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Update Todo",
    description=(
        "Partially update text, due_date, priority or category. "
        "Fields left out of the body are unchanged; null clears due_date or category."
    ),
    responses={
        200: {"description": "Todo updated"},
        400: {"description": "Validation error"},
        404: {"description": "Todo not found"},
    },
)
def patch_todo(todo_id: int, payload: TodoUpdate, repo: Repository = Depends(_get_repo)) -> TodoOut:
    """
    Partial update of a Todo item.
    """
    updated = repo.update(todo_id, payload)
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return TodoOut(**updated)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Todo",
    description="Delete a Todo item by ID.",
    responses={
        204: {"description": "Todo deleted"},
        404: {"description": "Todo not found"},
    },
)
def delete_todo(todo_id: int, repo: Repository = Depends(_get_repo)) -> None:
    """
    Delete a Todo. Returns 204 on success, 404 if not found.
    """
    ok = repo.delete(todo_id)
    if not ok:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return None
