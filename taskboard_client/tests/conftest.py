from __future__ import annotations

import json
from typing import Callable, Optional

import httpx
import pytest

from taskboard.client import TaskboardClient
from taskboard.session import InMemorySessionStore, TOKEN_KEY, USER_KEY
from taskboard.settings import Settings

from .fake_backend import FakeBackend, create_app

BASE_URL = "http://testserver/api"

ALICE = {"name": "Alice", "email": "alice@example.com", "password": "secret123"}


@pytest.fixture()
def settings() -> Settings:
    return Settings(api_base_url=BASE_URL, timeout_ms=5000, session_backend="memory")


@pytest.fixture()
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture()
def backend() -> FakeBackend:
    backend = FakeBackend()
    backend.add_user(ALICE["name"], ALICE["email"], ALICE["password"])
    return backend


@pytest.fixture()
def client(backend: FakeBackend, store: InMemorySessionStore, settings: Settings) -> TaskboardClient:
    """Client wired to the in-process fake backend."""
    return TaskboardClient(settings=settings, store=store, transport=httpx.ASGITransport(app=create_app(backend)))


@pytest.fixture()
def signed_in(backend: FakeBackend, store: InMemorySessionStore) -> str:
    """Seed the store with a valid session for ALICE and return the token."""
    token = backend.issue_token(ALICE["email"])
    store.set(TOKEN_KEY, token)
    store.set(USER_KEY, json.dumps(backend.public_user(ALICE["email"])))
    return token


@pytest.fixture()
def mock_client(settings: Settings, store: InMemorySessionStore) -> Callable[..., TaskboardClient]:
    """
    Factory for a client whose traffic goes to an httpx.MockTransport handler, for
    responses the fake backend never produces (429, 5xx, timeouts, garbage bodies).
    """

    def _make(handler: Callable[[httpx.Request], httpx.Response], session: Optional[InMemorySessionStore] = None):
        return TaskboardClient(settings=settings, store=session or store, transport=httpx.MockTransport(handler))

    return _make
