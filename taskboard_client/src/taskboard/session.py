from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from threading import RLock
from typing import Dict, Iterable, Mapping, Optional

from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

TOKEN_KEY = "auth_token"
USER_KEY = "user"
SESSION_KEYS = frozenset({TOKEN_KEY, USER_KEY})


# PUBLIC_INTERFACE
class SessionStore(ABC):
    """
    Device-local key/value storage holding the bearer token and the serialized profile.

    Implementations are fail-soft: a read or write failure is logged and treated as
    absent / no-op, never raised to the caller.

    The API is synchronous and is called from coroutines, so implementations must keep
    each call short; reads on the request path should not touch disk every time.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value for key, or None if absent or unreadable."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key."""

    def set_many(self, items: Mapping[str, str]) -> None:
        """Store every pair in items, all or nothing where the backend allows it."""
        for key, value in items.items():
            self.set(key, value)

    @abstractmethod
    def remove(self, keys: Iterable[str]) -> None:
        """Remove every key in keys; missing keys are ignored."""

    def clear_session(self) -> None:
        """Remove both the token and the profile."""
        self.remove(SESSION_KEYS)


class InMemorySessionStore(SessionStore):
    """
    Thread-safe in-memory store suitable for testing and short-lived processes.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._lock = RLock()
        self._items: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._items[key] = value

    def set_many(self, items: Mapping[str, str]) -> None:
        with self._lock:
            for key, value in items.items():
                self.set(key, value)

    def remove(self, keys: Iterable[str]) -> None:
        with self._lock:
            for key in keys:
                self._items.pop(key, None)


# PUBLIC_INTERFACE
def get_session_store(settings: Optional[Settings] = None) -> SessionStore:
    """
    Factory to return the configured session store based on settings.
    - memory: InMemorySessionStore
    - sqlite: SQLiteSessionStore (requires sqlite3 standard library; optional)
    """
    settings = settings or get_settings()
    if settings.session_backend == "sqlite":
        try:
            from .db import SQLiteSessionStore
        except ImportError:
            logger.warning("sqlite3 unavailable, session will not persist across runs")
            return InMemorySessionStore()
        return SQLiteSessionStore(settings.session_db_path)
    return InMemorySessionStore()
