from __future__ import annotations

from typing import Any, Literal, TypedDict

Priority = Literal["low", "medium", "high"]
TaskStatus = Literal["open", "in_progress", "done"]

PRIORITIES = ("low", "medium", "high")

# Client-facing status synonyms and their wire values
STATUS_WIRE_VALUES = {
    "pending": "open",
    "completed": "done",
}


# PUBLIC_INTERFACE
class UserProfile(TypedDict, total=False):
    """
    The signed-in user's profile as returned by the backend.

    The client treats it as an opaque JSON object; only `name` and `email` are expected
    to be present. Extra keys are kept as-is.
    """

    id: Any
    name: str
    email: str

