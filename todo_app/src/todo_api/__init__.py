"""
Todo App API package.

FastAPI application serving the todo list (see `todo_api.main.app`) together with
its storage backends (`todo_api.repositories`, `todo_api.db`).
"""
