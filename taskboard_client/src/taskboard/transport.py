from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from .errors import NetworkUnreachableError, ResponseError
from .session import SessionStore, TOKEN_KEY
from .settings import Settings

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class Transport:
    """
    HTTP transport bound to a fixed base URL and timeout.

    `send` is the composition attach-token -> transmit -> handle-response:
    - the bearer token is read from the session store before every request;
    - a 401 clears the session store exactly once, before the error is raised;
    - a request that gets no response raises NetworkUnreachableError;
    - any other status >= 400 raises ResponseError carrying the parsed body.
    """

    def __init__(
        self,
        settings: Settings,
        store: SessionStore,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._store = store
        self._client = httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=settings.timeout_seconds,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def _attach_token(self, request: httpx.Request) -> httpx.Request:
        token = self._store.get(TOKEN_KEY)
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        return request

    async def _transmit(self, request: httpx.Request) -> httpx.Response:
        try:
            return await self._client.send(request)
        except httpx.TransportError as exc:
            logger.debug("%s %s failed without a response: %r", request.method, request.url, exc)
            raise NetworkUnreachableError(str(exc) or type(exc).__name__) from exc

    def _handle_response(self, response: httpx.Response) -> httpx.Response:
        if response.status_code == 401:
            logger.info("Received 401 from %s, clearing session", response.request.url.path)
            self._store.clear_session()
        if response.status_code >= 400:
            raise ResponseError(response.status_code, error_payload(response))
        return response

    # PUBLIC_INTERFACE
    async def send(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> httpx.Response:
        """
        Build and send a request relative to the base URL.

        Raises:
            NetworkUnreachableError: no response was received.
            ResponseError: the response status was >= 400.
        """
        request = self._client.build_request(method, path.lstrip("/"), json=json, params=params)
        response = await self._transmit(self._attach_token(request))
        return self._handle_response(response)


def error_payload(response: httpx.Response) -> Dict[str, Any]:
    """Parse an error body as a JSON object, or return {} when it is not one."""
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
