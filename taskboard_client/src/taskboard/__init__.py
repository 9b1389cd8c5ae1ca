"""
Taskboard client package.

Async client for the Taskboard REST API: session persistence, bearer-token transport,
error normalization, and the task and dashboard resources.
"""

from .auth import AuthSessionManager, AuthState
from .client import TaskboardClient
from .errors import ApiError, ErrorKind, Result, normalize
from .schemas import Task, TaskCreate, TaskFilter, TaskPage, TaskUpdate
from .session import InMemorySessionStore, SessionStore, get_session_store
from .settings import Settings, get_settings

__all__ = [
    "ApiError",
    "AuthSessionManager",
    "AuthState",
    "ErrorKind",
    "InMemorySessionStore",
    "Result",
    "SessionStore",
    "Settings",
    "Task",
    "TaskCreate",
    "TaskFilter",
    "TaskPage",
    "TaskUpdate",
    "TaskboardClient",
    "get_session_store",
    "get_settings",
    "normalize",
]
