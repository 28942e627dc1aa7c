from datetime import date, datetime

import httpx
import pytest
from pydantic import ValidationError

from todo_api.models import Priority
from todo_client import SortMode, StatusFilter, Theme


class TestTodoClient:
    def test_create_list_and_get(self, todo_client):
        created = todo_client.create_todo("Write report", due_date=date(2030, 1, 2), priority="high", category="work")
        assert created.text == "Write report"
        assert created.due_date == datetime(2030, 1, 2)
        assert created.priority is Priority.HIGH

        assert [t.id for t in todo_client.list_todos()] == [created.id]
        assert todo_client.get_todo(created.id) == created

    def test_update_sends_only_given_fields(self, todo_client):
        todo = todo_client.create_todo("Call mom", category="family")
        updated = todo_client.update_todo(todo.id, priority=Priority.LOW)
        assert updated.priority is Priority.LOW
        assert updated.category == "family"

        cleared = todo_client.update_todo(todo.id, category=None)
        assert cleared.category is None

    def test_toggle_reorder_delete(self, todo_client):
        a = todo_client.create_todo("a")
        b = todo_client.create_todo("b")
        assert todo_client.toggle_todo(a.id).completed is True
        assert [t.id for t in todo_client.reorder_todos([b.id, a.id])] == [b.id, a.id]
        todo_client.delete_todo(b.id)
        assert [t.id for t in todo_client.list_todos()] == [a.id]

    def test_blank_text_fails_before_request(self, todo_client):
        with pytest.raises(ValidationError):
            todo_client.create_todo("   ")

    def test_http_errors_raise(self, todo_client):
        with pytest.raises(httpx.HTTPStatusError) as excinfo:
            todo_client.delete_todo(31337)
        assert excinfo.value.response.status_code == 404


class TestTodoBoard:
    def seed(self, board):
        board.add("Buy milk", priority="low", category="errands")
        board.add("Write report", priority="high", category="work")
        board.add("Book dentist", due_date="2030-06-01", category="errands")
        return [t.id for t in board.todos]

    def test_load_fetches_full_list(self, board, todo_client):
        todo_client.create_todo("from elsewhere")
        assert board.todos == []
        board.load()
        assert [t.text for t in board.todos] == ["from elsewhere"]

    def test_add_ignores_blank_text(self, board):
        assert board.add("   ") is None
        assert board.todos == []

    def test_filters_apply_locally(self, board):
        milk, report, dentist = self.seed(board)

        board.set_search("BOOK")
        assert [t.id for t in board.visible] == [dentist]

        board.clear_filters()
        board.filters.category = "errands"
        assert [t.id for t in board.visible] == [milk, dentist]

        board.filters.priority = Priority.LOW
        assert [t.id for t in board.visible] == [milk]

        board.clear_filters()
        board.toggle(report)
        board.filters.status = StatusFilter.COMPLETED
        assert [t.id for t in board.visible] == [report]
        board.filters.status = StatusFilter.ACTIVE
        assert [t.id for t in board.visible] == [milk, dentist]

    def test_sort_modes(self, board):
        milk, report, dentist = self.seed(board)
        board.sort_mode = SortMode.PRIORITY
        assert [t.id for t in board.visible] == [report, dentist, milk]
        board.sort_mode = SortMode.DUE_DATE
        assert [t.id for t in board.visible] == [dentist, milk, report]

    def test_due_date_sort_with_offsets(self, board):
        dated = board.add("dated", due_date="2030-01-01")
        offset = board.add("offset", due_date="2030-01-02T10:00:00+02:00")
        zulu = board.add("zulu", due_date="2029-12-31T08:00:00Z")
        board.sort_mode = SortMode.DUE_DATE
        assert [t.id for t in board.visible] == [zulu.id, dated.id, offset.id]

    def test_toggle_updates_local_state(self, board):
        milk, _, _ = self.seed(board)
        board.toggle(milk)
        assert board.find(milk).completed is True
        assert board.counts.completed == 1
        assert board.counts.active == 2

    def test_move_persists_new_order(self, board, todo_client):
        milk, report, dentist = self.seed(board)
        board.move(dentist, milk)
        assert [t.id for t in board.todos] == [dentist, milk, report]
        assert [t.id for t in todo_client.list_todos()] == [dentist, milk, report]

    def test_move_onto_itself_is_noop(self, board):
        ids = self.seed(board)
        board.move(ids[0], ids[0])
        assert [t.id for t in board.todos] == ids

    def test_inline_edit(self, board, todo_client):
        milk, _, _ = self.seed(board)
        assert board.start_edit(milk) == "Buy milk"
        assert board.editing_id == milk
        board.commit_edit("  Buy oat milk ")
        assert board.editing_id is None
        assert board.find(milk).text == "Buy oat milk"
        assert todo_client.get_todo(milk).text == "Buy oat milk"

    def test_inline_edit_blank_text_keeps_original(self, board):
        milk, _, _ = self.seed(board)
        board.start_edit(milk)
        board.commit_edit("   ")
        assert board.editing_id is None
        assert board.find(milk).text == "Buy milk"

    def test_remove(self, board):
        milk, report, dentist = self.seed(board)
        board.start_edit(milk)
        board.remove(milk)
        assert [t.id for t in board.todos] == [report, dentist]
        assert board.editing_id is None
        assert board.categories == ["errands", "work"]

    def test_failed_toggle_propagates(self, board):
        with pytest.raises(httpx.HTTPStatusError):
            board.toggle(555)

    def test_theme_toggle(self, board):
        assert board.theme is Theme.LIGHT
        assert board.toggle_theme() is Theme.DARK
        assert board.toggle_theme() is Theme.LIGHT
