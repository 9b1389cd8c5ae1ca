from __future__ import annotations

from typing import Any, Dict, Iterable, List, Union

from pydantic import ValidationError

from ..errors import MalformedResponseError, Result, validation_error
from ..schemas import Task, TaskCreate, TaskFilter, TaskPage, TaskUpdate
from ..transport import Transport
from ..utils import json_body, parse_model, run_operation, unwrap_data, validation_messages

TASKS_PATH = "/tasks"

TaskFilterInput = Union[TaskFilter, Dict[str, Any], None]
TaskCreateInput = Union[TaskCreate, Dict[str, Any]]
TaskUpdateInput = Union[TaskUpdate, Dict[str, Any]]


def _task_path(task_id: int) -> str:
    return f"{TASKS_PATH}/{int(task_id)}"


def _parse_page(body: Any) -> TaskPage:
    """
    Accept `{data: [...], meta: {...}}` or a bare list. Missing `data` means an empty page.
    """
    if isinstance(body, list):
        return TaskPage(items=[parse_model(Task, t) for t in body], meta={})
    if body is None:
        return TaskPage()
    if not isinstance(body, dict):
        raise MalformedResponseError()
    items = body.get("data") or []
    meta = body.get("meta") or {}
    if not isinstance(items, list) or not isinstance(meta, dict):
        raise MalformedResponseError()
    return TaskPage(items=[parse_model(Task, t) for t in items], meta=meta)


# PUBLIC_INTERFACE
class TaskClient:
    """
    Queries and commands against the `/tasks` resource.

    Every method returns a Result: the success value or a normalized ApiError.
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    async def _fetch_task(self, method: str, path: str, json: Any = None) -> Task:
        response = await self._transport.send(method, path, json=json)
        return parse_model(Task, unwrap_data(json_body(response)))

    # PUBLIC_INTERFACE
    async def list(self, filters: TaskFilterInput = None) -> Result[TaskPage]:
        """
        List tasks matching the filter.

        The filter is translated to wire parameters ('pending' -> open, 'completed' -> done)
        and any parameter that is 'all', blank or absent is omitted. An empty page is a
        success.
        """
        try:
            task_filter = filters if isinstance(filters, TaskFilter) else TaskFilter.model_validate(filters or {})
        except ValidationError as exc:
            return Result.fail(validation_error(*validation_messages(exc)))

        async def _list() -> TaskPage:
            response = await self._transport.send("GET", TASKS_PATH, params=task_filter.to_query_params())
            return _parse_page(json_body(response))

        return await run_operation("Failed to load tasks", _list)

    # PUBLIC_INTERFACE
    async def get(self, task_id: int) -> Result[Task]:
        """Fetch a single task by id."""
        return await run_operation("Failed to load task", lambda: self._fetch_task("GET", _task_path(task_id)))

    # PUBLIC_INTERFACE
    async def create(self, task: TaskCreateInput) -> Result[Task]:
        """
        Create a task and return the server's copy.

        A title that is empty after trimming fails as VALIDATION_FAILED before any request
        is made.
        """
        try:
            payload = task if isinstance(task, TaskCreate) else TaskCreate.model_validate(task)
        except ValidationError as exc:
            return Result.fail(validation_error(*validation_messages(exc)))
        return await run_operation(
            "Failed to create task", lambda: self._fetch_task("POST", TASKS_PATH, json=payload.to_wire())
        )

    # PUBLIC_INTERFACE
    async def update(self, task_id: int, patch: TaskUpdateInput) -> Result[Task]:
        """
        Apply a partial patch. Only fields present in the patch are sent; the full updated
        task is returned.
        """
        try:
            payload = patch if isinstance(patch, TaskUpdate) else TaskUpdate.model_validate(patch)
        except ValidationError as exc:
            return Result.fail(validation_error(*validation_messages(exc)))
        return await run_operation(
            "Failed to update task",
            lambda: self._fetch_task("PUT", _task_path(task_id), json=payload.to_wire()),
        )

    # PUBLIC_INTERFACE
    async def delete(self, task_id: int) -> Result[None]:
        """
        Delete a task. Deleting an id that is already gone yields NOT_FOUND from the
        server, never a different error.
        """

        async def _delete() -> None:
            await self._transport.send("DELETE", _task_path(task_id))
            return None

        return await run_operation("Failed to delete task", _delete)

    # PUBLIC_INTERFACE
    async def toggle_status(self, task: Task) -> Result[Task]:
        """Flip a task between open and done, sending only the status field."""
        new_status = "open" if task.status == "done" else "done"
        return await self.update(task.id, TaskUpdate(status=new_status))

    # PUBLIC_INTERFACE
    async def bulk_complete(self, task_ids: Iterable[int]) -> Result[Dict[str, Any]]:
        """Mark several tasks done in one request and return the server's summary."""
        ids: List[int] = [int(i) for i in task_ids]
        if not ids:
            return Result.fail(validation_error("Select at least one task"))

        async def _bulk() -> Dict[str, Any]:
            response = await self._transport.send("POST", f"{TASKS_PATH}/bulk-complete", json={"task_ids": ids})
            body = json_body(response)
            if body is None:
                return {}
            if not isinstance(body, dict):
                raise MalformedResponseError()
            return body

        return await run_operation("Failed to complete tasks", _bulk)

