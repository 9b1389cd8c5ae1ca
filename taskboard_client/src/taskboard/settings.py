from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_API_BASE_URL = "http://localhost:8000/api"
DEFAULT_TIMEOUT_MS = 10000
DEFAULT_SESSION_BACKEND = "sqlite"
DEFAULT_SESSION_DB_PATH = "./data/session.db"
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class Settings:
    """
    Client settings loaded from environment variables.

    Env vars:
    - TASKBOARD_API_BASE_URL: backend base URL. Default 'http://localhost:8000/api'
    - TASKBOARD_API_TIMEOUT_MS: request timeout in milliseconds. Default 10000
    - TASKBOARD_SESSION_BACKEND: 'sqlite' (default) or 'memory'
    - TASKBOARD_SESSION_DB_PATH: path to the session sqlite file. Default './data/session.db'
    - TASKBOARD_LOG_LEVEL: console log level for the CLI. Default 'WARNING'
    """

    api_base_url: str = DEFAULT_API_BASE_URL
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    session_backend: str = DEFAULT_SESSION_BACKEND
    session_db_path: str = DEFAULT_SESSION_DB_PATH
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return client settings loaded from environment variables."""
    base_url = _get_env("TASKBOARD_API_BASE_URL", DEFAULT_API_BASE_URL).strip().rstrip("/")
    timeout_ms = _parse_int(_get_env("TASKBOARD_API_TIMEOUT_MS", str(DEFAULT_TIMEOUT_MS)), DEFAULT_TIMEOUT_MS)

    backend = _get_env("TASKBOARD_SESSION_BACKEND", DEFAULT_SESSION_BACKEND).strip().lower()
    if backend not in {"memory", "sqlite"}:
        # Fallback to memory if unsupported
        backend = "memory"

    db_path = _get_env("TASKBOARD_SESSION_DB_PATH", DEFAULT_SESSION_DB_PATH).strip()
    log_level = _get_env("TASKBOARD_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()

    return Settings(
        api_base_url=base_url,
        timeout_ms=timeout_ms,
        session_backend=backend,
        session_db_path=db_path,
        log_level=log_level,
    )
