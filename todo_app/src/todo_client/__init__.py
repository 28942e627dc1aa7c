"""
Client component for the todo API.

- `TodoClient`: HTTP wrapper over the REST endpoints
- `TodoBoard`: local list state (filters, search, sort, drag reorder, inline edit, theme)
- `view`: pure filtering/sorting helpers used by the board
"""

from .api_client import TodoClient
from .board import Theme, TodoBoard
from .view import SortMode, StatusFilter, ViewFilters

__all__ = ["TodoClient", "TodoBoard", "Theme", "SortMode", "StatusFilter", "ViewFilters"]
