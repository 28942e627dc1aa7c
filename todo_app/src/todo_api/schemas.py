from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator

from .models import Priority

# Shared type for incoming due_date which can be a date, datetime, or ISO8601 string
DueDateInput = Union[date, datetime, str]


def _parse_due_date(value: Optional[DueDateInput]) -> Optional[datetime]:
    """
    Internal helper to normalize due_date input into a datetime.
    - If value is a string, attempt to parse via datetime.fromisoformat; if time is missing, set to 00:00.
    - If value is a date (not datetime), convert to datetime at 00:00.
    - If value is a datetime, return as-is.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, 0, 0, 0)

    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        # fromisoformat only accepts a trailing "Z" from Python 3.11 on
        if s[-1] in "zZ":
            s = s[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(s)
        except ValueError:
            try:
                d = date.fromisoformat(s)
                return datetime(d.year, d.month, d.day, 0, 0, 0)
            except ValueError as e:
                raise ValueError(
                    "Invalid due_date format. Use ISO8601 date or datetime string (e.g., '2025-01-31' or '2025-01-31T13:45:00')."
                ) from e

    raise ValueError("Invalid type for due_date; expected date, datetime, or ISO8601 string.")


def _clean_text(value: str) -> str:
    s = value.strip()
    if not s:
        raise ValueError("text is required")
    return s


def _clean_category(value: Optional[str]) -> Optional[str]:
    # Blank categories are stored as "no category"
    if value is None:
        return None
    s = value.strip()
    return s or None


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a new Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "text": "Buy groceries",
                "due_date": "2025-02-01",
                "priority": "high",
                "category": "errands",
            }
        }
    )

    text: str = Field(..., description="What needs to be done")
    due_date: Optional[datetime] = Field(
        default=None,
        description="Due date/time of the todo item. Accepts ISO8601 date or datetime; dates are set to 00:00",
    )
    priority: Priority = Field(default=Priority.MEDIUM, description="low, medium or high")
    category: Optional[str] = Field(default=None, description="Optional category label")

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        """
        Strip whitespace and reject empty text.
        """
        return _clean_text(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[DueDateInput]) -> Optional[datetime]:
        return _parse_due_date(v)

    @field_validator("category")
    @classmethod
    def normalize_category(cls, v: Optional[str]) -> Optional[str]:
        return _clean_category(v)


# PUBLIC_INTERFACE
class TodoUpdate(BaseModel):
    """
    Schema for partially updating an existing Todo item.
    Only fields present in the request body are applied (see `model_fields_set`);
    an explicit null clears due_date or category.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "text": "Buy groceries and supplies",
                "due_date": "2025-02-02T09:30:00",
                "priority": "low",
                "category": None,
            }
        }
    )

    text: Optional[str] = Field(default=None, description="What needs to be done")
    due_date: Optional[datetime] = Field(
        default=None,
        description="Due date/time of the todo item. Accepts ISO8601 date or datetime; dates are set to 00:00",
    )
    priority: Optional[Priority] = Field(default=None, description="low, medium or high")
    category: Optional[str] = Field(default=None, description="Optional category label")

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: Optional[str]) -> str:
        """
        If text is provided it must be non-empty after stripping; it cannot be null.
        """
        if v is None:
            raise ValueError("text cannot be null")
        return _clean_text(v)

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v: Optional[Priority]) -> Priority:
        if v is None:
            raise ValueError("priority cannot be null")
        return v

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[DueDateInput]) -> Optional[datetime]:
        return _parse_due_date(v)

    @field_validator("category")
    @classmethod
    def normalize_category(cls, v: Optional[str]) -> Optional[str]:
        return _clean_category(v)


# PUBLIC_INTERFACE
class ReorderRequest(BaseModel):
    """
    Body of PUT /todos/reorder: todo ids in their new display order.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"ids": [3, 1, 2]}})

    ids: List[StrictInt] = Field(..., description="Todo ids in the desired order")

    @field_validator("ids")
    @classmethod
    def validate_unique(cls, v: List[int]) -> List[int]:
        if len(set(v)) != len(v):
            raise ValueError("ids must not contain duplicates")
        return v


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 123,
                "text": "Buy groceries",
                "completed": False,
                "created_at": "2025-01-25T10:15:30.123456",
                "due_date": "2025-02-01T00:00:00",
                "priority": "medium",
                "category": "errands",
                "sort_order": 4,
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the todo item")
    text: str = Field(..., description="What needs to be done")
    completed: bool = Field(..., description="Completion status flag")
    created_at: datetime = Field(..., description="Creation timestamp")
    due_date: Optional[datetime] = Field(
        default=None, description="Due date/time of the todo item as an ISO8601 datetime"
    )
    priority: Priority = Field(..., description="low, medium or high")
    category: Optional[str] = Field(default=None, description="Optional category label")
    sort_order: int = Field(..., description="Manual ordering position (ties broken by id)")
