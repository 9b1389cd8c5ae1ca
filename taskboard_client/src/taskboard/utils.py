from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, List, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from .errors import MalformedResponseError, Result, SessionStorageError, TransportError, normalize

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


def json_body(response: httpx.Response) -> Any:
    """
    Decode a success body. An empty body (e.g. 204) yields None; anything that is not
    valid JSON raises MalformedResponseError.
    """
    if response.status_code == 204 or not response.content:
        return None
    try:
        return response.json()
    except ValueError as exc:
        raise MalformedResponseError() from exc


def unwrap_data(body: Any) -> Any:
    """Return body['data'] for `{data: ...}` envelopes, otherwise the body itself."""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


def parse_model(model: Type[M], data: Any) -> M:
    """Validate a server payload, mapping schema mismatches to MalformedResponseError."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        logger.debug("Unexpected %s payload: %s", model.__name__, exc)
        raise MalformedResponseError() from exc


def validation_messages(exc: ValidationError) -> List[str]:
    """Human-readable messages from a pydantic ValidationError raised on caller input."""
    messages: List[str] = []
    for err in exc.errors():
        msg = str(err.get("msg", ""))
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        loc = err.get("loc") or ()
        if err.get("type") != "value_error" and loc:
            msg = f"{loc[-1]}: {msg}"
        messages.append(msg)
    return messages


# PUBLIC_INTERFACE
async def run_operation(
    default_message: str,
    operation: Callable[[], Awaitable[T]],
) -> Result[T]:
    """
    Await `operation` and wrap its outcome in a Result.

    Every exception is normalized into an ApiError; nothing raised by the transport or by
    response parsing escapes to the caller.
    """
    try:
        return Result.ok(await operation())
    except (TransportError, SessionStorageError) as exc:
        return Result.fail(normalize(exc, default_message))
    except Exception as exc:
        logger.exception("%s: unexpected error", default_message)
        return Result.fail(normalize(exc, default_message))
