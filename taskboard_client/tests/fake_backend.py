"""
In-process stand-in for the Taskboard REST backend, used by the client tests.

Implements the endpoints the client talks to (auth, tasks, dashboard) over an in-memory
store, with Laravel-style `{message, errors}` bodies on validation failures.
"""
from __future__ import annotations

import math
import secrets
from datetime import date, datetime
from threading import RLock
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field, field_validator

_bearer = HTTPBearer(auto_error=False)


class LoginIn(BaseModel):
    email: str
    password: str


class RegisterIn(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str
    password_confirmation: Optional[str] = None


class TaskIn(BaseModel):
    title: str
    description: Optional[str] = None
    priority: Literal["low", "medium", "high"] = "medium"
    status: Literal["open", "in_progress", "done"] = "open"
    due_date: Optional[date] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("The title field is required.")
        return s


class TaskPatch(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[Literal["low", "medium", "high"]] = None
    status: Optional[Literal["open", "in_progress", "done"]] = None
    due_date: Optional[date] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        s = v.strip()
        if not s:
            raise ValueError("The title field is required.")
        return s


class BulkCompleteIn(BaseModel):
    task_ids: List[int] = Field(..., min_length=1)


class FakeBackend:
    """
    Backend state shared by the routes. Tests inspect and tweak it directly.

    Knobs:
    - logout_status: when set, POST /logout answers with this status
    - omit_user_on_auth: when True, login/register answer with a token but no user
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self.users: Dict[str, Dict[str, Any]] = {}
        self.tokens: Dict[str, str] = {}
        self.tasks: Dict[int, Dict[str, Any]] = {}
        self._next_id = 1
        self.logout_status: Optional[int] = None
        self.omit_user_on_auth = False
        self.last_register_body: Optional[Dict[str, Any]] = None
        self.requests: List[Dict[str, Any]] = []

    def add_user(self, name: str, email: str, password: str) -> Dict[str, Any]:
        with self._lock:
            user = {"id": len(self.users) + 1, "name": name, "email": email}
            self.users[email] = {**user, "password": password}
            return user

    def issue_token(self, email: str) -> str:
        token = secrets.token_hex(16)
        with self._lock:
            self.tokens[token] = email
        return token

    def public_user(self, email: str) -> Dict[str, Any]:
        record = self.users[email]
        return {k: v for k, v in record.items() if k != "password"}

    def add_task(self, owner: str, **fields: Any) -> Dict[str, Any]:
        now = datetime.now()
        with self._lock:
            task = {
                "id": self._next_id,
                "title": fields.get("title", f"Task {self._next_id}"),
                "description": fields.get("description"),
                "priority": fields.get("priority", "medium"),
                "status": fields.get("status", "open"),
                "due_date": fields.get("due_date"),
                "created_at": now,
                "updated_at": now,
                "owner": owner,
            }
            self._next_id += 1
            self.tasks[task["id"]] = task
            return task

    def owned_task(self, owner: str, task_id: int) -> Dict[str, Any]:
        task = self.tasks.get(task_id)
        if task is None or task["owner"] != owner:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
        return task


def _out(task: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in task.items() if k != "owner"}


def _validation_response(errors: Dict[str, List[str]], message: str = "The given data was invalid.") -> JSONResponse:
    return JSONResponse(status_code=422, content={"message": message, "errors": errors})


def create_app(backend: FakeBackend) -> FastAPI:
    app = FastAPI(title="Fake Taskboard Backend")
    router = APIRouter(prefix="/api")

    @app.middleware("http")
    async def record_requests(request: Request, call_next):
        backend.requests.append(
            {
                "method": request.method,
                "path": request.url.path,
                "query": dict(request.query_params),
                "authorization": request.headers.get("authorization"),
            }
        )
        return await call_next(request)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors: Dict[str, List[str]] = {}
        for err in exc.errors():
            field = str(err["loc"][-1]) if err.get("loc") else "body"
            msg = str(err.get("msg", "Invalid value"))
            if msg.startswith("Value error, "):
                msg = msg[len("Value error, "):]
            errors.setdefault(field, []).append(msg)
        return _validation_response(errors)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})

    def current_user(creds: Optional[HTTPAuthorizationCredentials] = Depends(_bearer)) -> str:
        if creds is None or creds.credentials not in backend.tokens:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthenticated.")
        return backend.tokens[creds.credentials]

    def _auth_response(email: str) -> Dict[str, Any]:
        body: Dict[str, Any] = {"token": backend.issue_token(email)}
        if not backend.omit_user_on_auth:
            body["user"] = backend.public_user(email)
        return body

    @router.post("/login")
    def login(payload: LoginIn):
        record = backend.users.get(payload.email)
        if record is None or record["password"] != payload.password:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
        return _auth_response(payload.email)

    @router.post("/register", status_code=status.HTTP_201_CREATED)
    def register(payload: RegisterIn):
        backend.last_register_body = payload.model_dump()
        errors: Dict[str, List[str]] = {}
        if payload.email in backend.users:
            errors.setdefault("email", []).append("The email has already been taken.")
        if len(payload.password) < 8:
            errors.setdefault("password", []).append("The password must be at least 8 characters.")
        if payload.password_confirmation != payload.password:
            errors.setdefault("password", []).append("The password confirmation does not match.")
        if errors:
            return _validation_response(errors)
        backend.add_user(payload.name, payload.email, payload.password)
        return _auth_response(payload.email)

    @router.post("/logout")
    def logout(creds: Optional[HTTPAuthorizationCredentials] = Depends(_bearer)):
        if backend.logout_status is not None:
            return JSONResponse(status_code=backend.logout_status, content={"message": "Server Error"})
        if creds is not None:
            backend.tokens.pop(creds.credentials, None)
        return {"message": "Logged out"}

    @router.get("/tasks")
    def list_tasks(
        status_: Optional[str] = Query(None, alias="status"),
        priority: Optional[str] = Query(None),
        search: Optional[str] = Query(None),
        due_from: Optional[date] = Query(None),
        due_to: Optional[date] = Query(None),
        page: int = Query(1, ge=1),
        per_page: int = Query(15, ge=1, le=100),
        user: str = Depends(current_user),
    ):
        items = [t for t in backend.tasks.values() if t["owner"] == user]
        if status_:
            items = [t for t in items if t["status"] == status_]
        if priority:
            items = [t for t in items if t["priority"] == priority]
        if search:
            s = search.lower()
            items = [
                t for t in items
                if s in t["title"].lower() or s in (t["description"] or "").lower()
            ]
        if due_from:
            items = [t for t in items if t["due_date"] and t["due_date"] >= due_from]
        if due_to:
            items = [t for t in items if t["due_date"] and t["due_date"] <= due_to]

        items.sort(key=lambda t: t["id"], reverse=True)
        total = len(items)
        start = (page - 1) * per_page
        return {
            "data": [_out(t) for t in items[start:start + per_page]],
            "meta": {
                "current_page": page,
                "per_page": per_page,
                "total": total,
                "last_page": max(1, math.ceil(total / per_page)),
            },
        }

    @router.post("/tasks", status_code=status.HTTP_201_CREATED)
    def create_task(payload: TaskIn, user: str = Depends(current_user)):
        task = backend.add_task(user, **payload.model_dump())
        return {"data": _out(task)}

    @router.post("/tasks/bulk-complete")
    def bulk_complete(payload: BulkCompleteIn, user: str = Depends(current_user)):
        updated = 0
        for task_id in payload.task_ids:
            task = backend.tasks.get(task_id)
            if task is not None and task["owner"] == user:
                task["status"] = "done"
                task["updated_at"] = datetime.now()
                updated += 1
        return {"message": "Tasks completed", "updated": updated}

    @router.get("/tasks/{task_id}")
    def get_task(task_id: int, user: str = Depends(current_user)):
        return {"data": _out(backend.owned_task(user, task_id))}

    @router.put("/tasks/{task_id}")
    def update_task(task_id: int, payload: TaskPatch, user: str = Depends(current_user)):
        task = backend.owned_task(user, task_id)
        task.update(payload.model_dump(exclude_unset=True))
        task["updated_at"] = datetime.now()
        return {"data": _out(task)}

    @router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_task(task_id: int, user: str = Depends(current_user)):
        backend.owned_task(user, task_id)
        del backend.tasks[task_id]
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.get("/dashboard/stats")
    def dashboard_stats(user: str = Depends(current_user)):
        owned = [t for t in backend.tasks.values() if t["owner"] == user]
        return {
            "data": {
                "total": len(owned),
                "open": sum(1 for t in owned if t["status"] == "open"),
                "in_progress": sum(1 for t in owned if t["status"] == "in_progress"),
                "done": sum(1 for t in owned if t["status"] == "done"),
            }
        }

    @router.get("/dashboard/priority-stats")
    def dashboard_priority_stats(user: str = Depends(current_user)):
        owned = [t for t in backend.tasks.values() if t["owner"] == user]
        return {"data": {p: sum(1 for t in owned if t["priority"] == p) for p in ("low", "medium", "high")}}

    @router.get("/dashboard/recent-tasks")
    def dashboard_recent_tasks(user: str = Depends(current_user)):
        owned = sorted(
            (t for t in backend.tasks.values() if t["owner"] == user), key=lambda t: t["id"], reverse=True
        )
        return {"data": [_out(t) for t in owned[:5]]}

    app.include_router(router)
    return app
