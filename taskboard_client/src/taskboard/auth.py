from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Dict, Optional, cast

from .errors import Result, SessionStorageError
from .models import UserProfile
from .schemas import AuthPayload
from .session import SessionStore, TOKEN_KEY, USER_KEY
from .transport import Transport
from .utils import json_body, parse_model, run_operation

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class AuthState(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


# PUBLIC_INTERFACE
class AuthSessionManager:
    """
    Login, registration and logout against the backend, and the single writer of the
    session store.

    Behavior:
    - login/register store the token and the JSON-encoded profile together, only after a
      response carrying both; a response missing either is a MALFORMED_RESPONSE failure
      and nothing is written.
    - when the store does not keep both halves of a new session, whatever was written is
      cleared and the operation fails.
    - logout always ends Anonymous, whatever the server answers.
    - is_authenticated/current_user read local state only; the token is not verified
      against the server.
    """

    def __init__(self, transport: Transport, store: SessionStore) -> None:
        self._transport = transport
        self._store = store

    async def _exchange(self, path: str, body: Dict[str, Any]) -> AuthPayload:
        response = await self._transport.send("POST", path, json=body)
        payload = parse_model(AuthPayload, json_body(response))
        session = {TOKEN_KEY: payload.token, USER_KEY: json.dumps(payload.user)}
        self._store.set_many(session)
        if any(self._store.get(key) != value for key, value in session.items()):
            logger.warning("Session was not fully stored, clearing it")
            self._store.clear_session()
            raise SessionStorageError()
        return payload

    # PUBLIC_INTERFACE
    async def login(self, email: str, password: str) -> Result[AuthPayload]:
        """
        Exchange credentials for a session.

        Returns:
            Result with the AuthPayload (token and user) on success, or a normalized error.
        """
        body = {"email": email.strip(), "password": password}
        return await run_operation("Login failed", lambda: self._exchange("/login", body))

    # PUBLIC_INTERFACE
    async def register(
        self,
        name: str,
        email: str,
        password: str,
        password_confirmation: Optional[str] = None,
    ) -> Result[AuthPayload]:
        """
        Create an account and start a session with it.

        `password_confirmation` defaults to `password` when not given; the server remains
        the authority on whether the two match.
        """
        body = {
            "name": name.strip(),
            "email": email.strip(),
            "password": password,
            "password_confirmation": password_confirmation or password,
        }
        return await run_operation("Registration failed", lambda: self._exchange("/register", body))

    # PUBLIC_INTERFACE
    async def logout(self) -> None:
        """
        Invalidate the session on the server (best effort) and clear it locally.
        Never raises.
        """
        result = await run_operation("Logout failed", lambda: self._transport.send("POST", "/logout"))
        if not result.success:
            logger.warning("Server-side logout failed: %s", result.error)
        self._store.clear_session()

    # PUBLIC_INTERFACE
    def is_authenticated(self) -> bool:
        """True iff a token is currently stored."""
        return bool(self._store.get(TOKEN_KEY))

    @property
    def state(self) -> AuthState:
        return AuthState.AUTHENTICATED if self.is_authenticated() else AuthState.ANONYMOUS

    # PUBLIC_INTERFACE
    def current_user(self) -> Optional[UserProfile]:
        """
        Return the stored profile, or None when there is none. A stored profile that cannot
        be parsed clears the whole session.
        """
        raw = self._store.get(USER_KEY)
        if not raw:
            return None
        try:
            user = json.loads(raw)
        except ValueError:
            logger.warning("Stored user profile is not valid JSON, clearing session")
            self._store.clear_session()
            return None
        if not isinstance(user, dict):
            logger.warning("Stored user profile is not an object, clearing session")
            self._store.clear_session()
            return None
        return cast(UserProfile, user)

    # PUBLIC_INTERFACE
    def restore_session(self) -> Optional[UserProfile]:
        """
        Startup check of persisted state: return the profile when both halves of the
        session are present and readable, otherwise clear whatever is left and return None.
        """
        token = self._store.get(TOKEN_KEY)
        user = self.current_user()
        if token and user is not None:
            return user
        if token or self._store.get(USER_KEY):
            logger.info("Discarding incomplete stored session")
            self._store.clear_session()
        return None

