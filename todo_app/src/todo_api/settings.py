from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'sqlite' (default) or 'memory'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/todos.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: logging level name (default: INFO)
    - HOST / PORT: bind address for `python -m todo_api` (default: 127.0.0.1:3000)
    """

    persistence_backend: str
    sqlite_db_path: str
    cors_allow_origins: List[str]
    log_level: str
    host: str
    port: int


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "sqlite").strip().lower()
    if backend not in {"memory", "sqlite"}:
        backend = "sqlite"

    sqlite_path = _get_env("SQLITE_DB_PATH", "./data/todos.db").strip()
    origins = _parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*"))
    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=sqlite_path,
        cors_allow_origins=origins,
        log_level=log_level,
        host=_get_env("HOST", "127.0.0.1").strip(),
        port=_parse_int(_get_env("PORT", "3000"), 3000),
    )
