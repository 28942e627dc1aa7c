from datetime import datetime, timedelta, timezone

import pytest

from todo_api.models import Priority
from todo_api.schemas import TodoOut
from todo_client.view import (
    SortMode,
    StatusFilter,
    ViewFilters,
    categories,
    count_todos,
    filter_todos,
    move_todo,
    sort_todos,
    visible_todos,
)


def make_todo(id, text="task", completed=False, priority=Priority.MEDIUM, category=None,
              due_date=None, sort_order=None, created_at=None):
    return TodoOut(
        id=id,
        text=text,
        completed=completed,
        created_at=created_at or datetime(2025, 1, 1, 12, 0, id),
        due_date=due_date,
        priority=priority,
        category=category,
        sort_order=id if sort_order is None else sort_order,
    )


@pytest.fixture()
def todos():
    return [
        make_todo(1, "Buy Milk", priority=Priority.LOW, category="errands"),
        make_todo(2, "write report", completed=True, priority=Priority.HIGH, category="work",
                  due_date=datetime(2030, 5, 1)),
        make_todo(3, "milkshake run", category="errands", due_date=datetime(2030, 1, 1)),
        make_todo(4, "stretch"),
    ]


class TestFilters:
    def test_default_filters_show_everything(self, todos):
        assert filter_todos(todos, ViewFilters()) == todos
        assert not ViewFilters().is_active()

    def test_search_is_case_insensitive_substring(self, todos):
        result = filter_todos(todos, ViewFilters(search="  MILK "))
        assert [t.id for t in result] == [1, 3]

    def test_priority_category_and_status(self, todos):
        assert [t.id for t in filter_todos(todos, ViewFilters(priority=Priority.HIGH))] == [2]
        assert [t.id for t in filter_todos(todos, ViewFilters(category="errands"))] == [1, 3]
        assert [t.id for t in filter_todos(todos, ViewFilters(status=StatusFilter.ACTIVE))] == [1, 3, 4]
        assert [t.id for t in filter_todos(todos, ViewFilters(status=StatusFilter.COMPLETED))] == [2]

    def test_plain_string_status_values(self, todos):
        assert not ViewFilters(status="all").is_active()
        assert ViewFilters(status="active").is_active()
        assert [t.id for t in filter_todos(todos, ViewFilters(status="completed"))] == [2]

    def test_filters_combine(self, todos):
        filters = ViewFilters(search="milk", category="errands", priority=Priority.MEDIUM)
        assert filters.is_active()
        assert [t.id for t in filter_todos(todos, filters)] == [3]


class TestSorting:
    def test_manual_order_uses_sort_order_then_id(self):
        items = [make_todo(3, sort_order=0), make_todo(1, sort_order=1), make_todo(2, sort_order=0)]
        assert [t.id for t in sort_todos(items)] == [2, 3, 1]

    def test_due_date_puts_undated_last(self, todos):
        assert [t.id for t in sort_todos(todos, SortMode.DUE_DATE)] == [3, 2, 1, 4]

    def test_due_date_mixes_naive_and_aware(self):
        items = [
            make_todo(1, due_date=datetime(2030, 1, 2)),
            make_todo(2, due_date=datetime(2030, 1, 1, 23, 0, tzinfo=timezone(timedelta(hours=-2)))),
            make_todo(3),
            make_todo(4, due_date=datetime(2030, 1, 1, 10, 0, tzinfo=timezone.utc)),
        ]
        # Naive values compare as UTC: 2030-01-01T23:00-02:00 is after 2030-01-02T00:00
        assert [t.id for t in sort_todos(items, SortMode.DUE_DATE)] == [4, 1, 2, 3]

    def test_priority_high_first(self, todos):
        assert [t.id for t in sort_todos(todos, SortMode.PRIORITY)] == [2, 3, 4, 1]

    def test_created_newest_first(self, todos):
        assert [t.id for t in sort_todos(todos, SortMode.CREATED)] == [4, 3, 2, 1]

    def test_visible_filters_then_sorts(self, todos):
        result = visible_todos(todos, ViewFilters(category="errands"), SortMode.DUE_DATE)
        assert [t.id for t in result] == [3, 1]


class TestDerived:
    def test_categories_are_distinct_and_sorted(self, todos):
        todos.append(make_todo(5, category="Admin"))
        assert categories(todos) == ["Admin", "errands", "work"]

    def test_counts(self, todos):
        counts = count_todos(todos)
        assert (counts.total, counts.active, counts.completed) == (4, 3, 1)


class TestMove:
    def test_move_down_and_renumber(self, todos):
        moved = move_todo(todos, 1, 3)
        assert [t.id for t in moved] == [2, 3, 1, 4]
        assert [t.sort_order for t in moved] == [0, 1, 2, 3]
        # Input untouched
        assert [t.sort_order for t in todos] == [1, 2, 3, 4]

    def test_move_up(self, todos):
        assert [t.id for t in move_todo(todos, 4, 2)] == [1, 4, 2, 3]

    def test_unknown_id(self, todos):
        with pytest.raises(ValueError):
            move_todo(todos, 1, 99)
