"""
Error taxonomy and normalization for the Taskboard client.

Transport-level failures are raised as exceptions inside the client and turned into a
single user-facing ApiError by `normalize` at the boundary of every public operation.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

T = TypeVar("T")

NETWORK_ERROR_MESSAGE = "Network error. Please check your connection."
UNAUTHORIZED_MESSAGE = "Unauthorized. Please login again."
FORBIDDEN_MESSAGE = "Forbidden. You do not have permission."
NOT_FOUND_MESSAGE = "Resource not found"
VALIDATION_MESSAGE = "Validation error"
RATE_LIMITED_MESSAGE = "Too many requests. Please try again later."
MALFORMED_RESPONSE_MESSAGE = "Invalid response format"
SESSION_STORAGE_MESSAGE = "Could not save your session. Please try again."


# PUBLIC_INTERFACE
class ErrorKind(str, Enum):
    """Closed set of failure categories surfaced to callers."""

    NETWORK_UNREACHABLE = "network_unreachable"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    VALIDATION_FAILED = "validation_failed"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    MALFORMED_RESPONSE = "malformed_response"
    CLIENT_ERROR = "client_error"


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class ApiError:
    """
    A normalized, human-readable failure.

    Fields:
    - kind: failure category
    - message: the single string shown to the user
    - status: HTTP status when a response was received
    - messages: individual validation messages (VALIDATION_FAILED only)
    """

    kind: ErrorKind
    message: str
    status: Optional[int] = None
    messages: Tuple[str, ...] = field(default_factory=tuple)

    def __str__(self) -> str:
        return self.message


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Uniform outcome of a public client operation: either `data` or `error`, never both.
    """

    data: Optional[T] = None
    error: Optional[ApiError] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def ok(cls, data: Optional[T] = None) -> "Result[T]":
        return cls(data=data)

    @classmethod
    def fail(cls, error: ApiError) -> "Result[T]":
        return cls(error=error)


class TransportError(Exception):
    """Base class for failures raised by the HTTP transport."""


class NetworkUnreachableError(TransportError):
    """No response was received (DNS, connection refused, timeout, ...)."""


class ResponseError(TransportError):
    """The backend answered with an error status (>= 400)."""

    def __init__(self, status: int, payload: Optional[Dict[str, Any]] = None) -> None:
        self.status = status
        self.payload: Dict[str, Any] = payload or {}
        super().__init__(f"HTTP {status}")


class MalformedResponseError(TransportError):
    """A success status whose body is missing or does not have the expected shape."""

    def __init__(self, message: str = MALFORMED_RESPONSE_MESSAGE) -> None:
        super().__init__(message)


class SessionStorageError(Exception):
    """The session could not be written to local storage."""

    def __init__(self, message: str = SESSION_STORAGE_MESSAGE) -> None:
        super().__init__(message)


def _server_message(payload: Dict[str, Any]) -> Optional[str]:
    message = payload.get("message")
    if isinstance(message, str) and message:
        return message
    detail = payload.get("detail")
    if isinstance(detail, str) and detail:
        return detail
    return None


def _flatten_errors(errors: Dict[str, Any]) -> List[str]:
    """Flatten a {field: [message, ...]} map in iteration order."""
    flat: List[str] = []
    for value in errors.values():
        if isinstance(value, (list, tuple)):
            flat.extend(str(v) for v in value)
        elif value is not None:
            flat.append(str(value))
    return flat


def _from_response(exc: ResponseError) -> ApiError:
    status = exc.status
    payload = exc.payload
    server_message = _server_message(payload)

    if status == 401:
        return ApiError(ErrorKind.UNAUTHORIZED, server_message or UNAUTHORIZED_MESSAGE, status)
    if status == 403:
        return ApiError(ErrorKind.FORBIDDEN, server_message or FORBIDDEN_MESSAGE, status)
    if status == 404:
        return ApiError(ErrorKind.NOT_FOUND, server_message or NOT_FOUND_MESSAGE, status)
    if status == 422:
        errors = payload.get("errors")
        if isinstance(errors, dict):
            messages = _flatten_errors(errors)
            if messages:
                return ApiError(ErrorKind.VALIDATION_FAILED, ", ".join(messages), status, tuple(messages))
        return ApiError(ErrorKind.VALIDATION_FAILED, server_message or VALIDATION_MESSAGE, status)
    if status == 429:
        return ApiError(ErrorKind.RATE_LIMITED, RATE_LIMITED_MESSAGE, status)
    return ApiError(ErrorKind.SERVER_ERROR, server_message or f"Error: {status}", status)


# PUBLIC_INTERFACE
def normalize(outcome: BaseException, default_message: str) -> ApiError:
    """
    Map a failed outcome to a user-facing ApiError.

    Decision order (first match wins):
    - no response received -> generic network message
    - 401 / 403 / 404 -> server message, else a fixed message
    - 422 with an `errors` map -> all messages joined with ", "
    - 422 without one -> server message, else "Validation error"
    - 429 -> fixed rate-limit message
    - any other status -> server message, else "Error: {status}"
    - success status with an unusable body -> "Invalid response format"
    - anything raised before the request was sent -> the exception's message, else default_message
    """
    if isinstance(outcome, NetworkUnreachableError):
        return ApiError(ErrorKind.NETWORK_UNREACHABLE, NETWORK_ERROR_MESSAGE)
    if isinstance(outcome, ResponseError):
        return _from_response(outcome)
    if isinstance(outcome, MalformedResponseError):
        return ApiError(ErrorKind.MALFORMED_RESPONSE, str(outcome) or MALFORMED_RESPONSE_MESSAGE)
    return ApiError(ErrorKind.CLIENT_ERROR, str(outcome) or default_message)


def validation_error(*messages: str) -> ApiError:
    """Build a client-side VALIDATION_FAILED error without a round trip."""
    return ApiError(ErrorKind.VALIDATION_FAILED, ", ".join(messages), None, tuple(messages))
