from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .models import PRIORITIES, STATUS_WIRE_VALUES, Priority, TaskStatus

logger = logging.getLogger(__name__)

# Shared type for incoming dates which can be a date, datetime, or ISO8601 string
DateInput = Union[date, datetime, str]

TITLE_MAX_LENGTH = 255


def _parse_date(value: Optional[DateInput]) -> Optional[date]:
    """
    Internal helper to normalize date input into a calendar date.
    - If value is a string, accept 'YYYY-MM-DD' or any ISO8601 datetime and keep the date part.
    - If value is a datetime, drop the time part.
    - If value is a date, return as-is.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            return date.fromisoformat(s[:10]) if len(s) > 10 else date.fromisoformat(s)
        except ValueError as e:
            raise ValueError(
                "Invalid date format. Use ISO8601 date or datetime string (e.g., '2025-01-31' or '2025-01-31T13:45:00')."
            ) from e

    raise ValueError("Invalid type for date; expected date, datetime, or ISO8601 string.")


def _clean_title(v: str) -> str:
    s = v.strip()
    if not s:
        raise ValueError("Title is required")
    if len(s) > TITLE_MAX_LENGTH:
        raise ValueError(f"Title must not be longer than {TITLE_MAX_LENGTH} characters")
    return s


# PUBLIC_INTERFACE
class Task(BaseModel):
    """
    A task record as returned by the backend. The server-assigned `id` is its only identity.
    """

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "id": 12,
                "title": "Write report",
                "description": "Quarterly numbers",
                "priority": "high",
                "status": "in_progress",
                "due_date": "2025-02-01",
                "created_at": "2025-01-25T10:15:30Z",
                "updated_at": "2025-01-26T09:00:00Z",
            }
        },
    )

    id: int = Field(..., description="Server-assigned identifier")
    title: str = Field(..., description="Short title")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    priority: Priority = Field(default="medium", description="low, medium or high")
    status: TaskStatus = Field(default="open", description="open, in_progress or done")
    due_date: Optional[date] = Field(default=None, description="Optional due date")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[DateInput]) -> Optional[date]:
        return _parse_date(v)

    @property
    def is_done(self) -> bool:
        return self.status == "done"


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Payload for creating a task. The title is trimmed and must not be empty; this check
    runs on the client before any request is attempted.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "priority": "medium",
                "due_date": "2025-02-01",
            }
        }
    )

    title: str = Field(..., description="Short title for the task")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    priority: Priority = Field(default="medium", description="low, medium or high")
    status: Optional[TaskStatus] = Field(default=None, description="Initial status; server default when omitted")
    due_date: Optional[date] = Field(default=None, description="Optional due date (ISO8601)")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _clean_title(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[DateInput]) -> Optional[date]:
        return _parse_date(v)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Partial patch for an existing task.
    All fields are optional; only fields explicitly provided are sent, so an explicit
    `due_date=None` clears the due date while an omitted one leaves it untouched.
    Only `description` and `due_date` can be cleared; an explicit None for `title`,
    `priority` or `status` is rejected.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "done",
            }
        }
    )

    title: Optional[str] = Field(default=None, description="Short title for the task")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    priority: Optional[Priority] = Field(default=None, description="low, medium or high")
    status: Optional[TaskStatus] = Field(default=None, description="open, in_progress or done")
    due_date: Optional[date] = Field(default=None, description="Due date, or null to clear it")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            raise ValueError("Title is required")
        return _clean_title(v)

    @field_validator("priority", "status")
    @classmethod
    def reject_null(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        if v is None:
            raise ValueError(f"{info.field_name.capitalize()} cannot be cleared")
        return v

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[DateInput]) -> Optional[date]:
        return _parse_date(v)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


# PUBLIC_INTERFACE
class TaskFilter(BaseModel):
    """
    Client-side listing filter.

    - status: 'all', 'pending' or 'completed' ('pending' -> open, 'completed' -> done on the wire)
    - priority: 'all', 'low', 'medium' or 'high'
    - search: free text; blank means no search
    - None for status, priority or search counts as absent
    - due_from / due_to: optional date bounds
    - page / per_page: optional pagination
    """

    status: str = Field(default="all", description="all, pending or completed")
    priority: str = Field(default="all", description="all, low, medium or high")
    search: str = Field(default="", description="Search text for title/description")
    due_from: Optional[date] = Field(default=None, description="Only tasks due on or after this date")
    due_to: Optional[date] = Field(default=None, description="Only tasks due on or before this date")
    page: Optional[int] = Field(default=None, ge=1, description="1-based page number")
    per_page: Optional[int] = Field(default=None, ge=1, description="Page size")

    @field_validator("status", "priority", mode="before")
    @classmethod
    def none_means_all(cls, v: Optional[str]) -> str:
        return "all" if v is None else v

    @field_validator("search", mode="before")
    @classmethod
    def none_means_no_search(cls, v: Optional[str]) -> str:
        return "" if v is None else v

    @field_validator("due_from", "due_to", mode="before")
    @classmethod
    def parse_dates(cls, v: Optional[DateInput]) -> Optional[date]:
        return _parse_date(v)

    def to_query_params(self) -> Dict[str, str]:
        """
        Translate the filter into wire query parameters, omitting every parameter whose
        value is 'all', blank or absent. Unknown status and priority values are dropped.
        """
        params: Dict[str, str] = {}

        status = self.status.strip().lower()
        if status and status != "all":
            wire_status = STATUS_WIRE_VALUES.get(status)
            if wire_status:
                params["status"] = wire_status
            else:
                logger.debug("Dropping unsupported status filter %r", self.status)

        priority = self.priority.strip().lower()
        if priority and priority != "all":
            if priority in PRIORITIES:
                params["priority"] = priority
            else:
                logger.debug("Dropping unsupported priority filter %r", self.priority)

        search = self.search.strip()
        if search:
            params["search"] = search
        if self.due_from:
            params["due_from"] = self.due_from.isoformat()
        if self.due_to:
            params["due_to"] = self.due_to.isoformat()
        if self.page:
            params["page"] = str(self.page)
        if self.per_page:
            params["per_page"] = str(self.per_page)
        return params


# PUBLIC_INTERFACE
class TaskPage(BaseModel):
    """
    One page of a task listing: the ordered items plus pagination metadata.
    """

    items: List[Task] = Field(default_factory=list, description="Tasks in server order")
    meta: Dict[str, Any] = Field(default_factory=dict, description="Pagination metadata as sent by the server")


# PUBLIC_INTERFACE
class AuthPayload(BaseModel):
    """
    Successful login/register response. Both fields are required; a response missing
    either one is treated as malformed.
    """

    model_config = ConfigDict(extra="allow")

    token: str = Field(..., min_length=1, description="Opaque bearer token")
    user: Dict[str, Any] = Field(..., description="Signed-in user's profile")

    @field_validator("user", mode="before")
    @classmethod
    def require_user(cls, v: Any) -> Any:
        if not v:
            raise ValueError("user is required")
        return v
