from __future__ import annotations

from typing import Any, Dict, List

from ..errors import MalformedResponseError, Result
from ..schemas import Task
from ..transport import Transport
from ..utils import json_body, parse_model, run_operation, unwrap_data

DASHBOARD_PATH = "/dashboard"


# PUBLIC_INTERFACE
class DashboardClient:
    """
    Read-only aggregate summaries for the dashboard view.
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    async def _get_summary(self, name: str) -> Dict[str, Any]:
        response = await self._transport.send("GET", f"{DASHBOARD_PATH}/{name}")
        data = unwrap_data(json_body(response))
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise MalformedResponseError()
        return data

    async def _get_recent(self) -> List[Task]:
        response = await self._transport.send("GET", f"{DASHBOARD_PATH}/recent-tasks")
        data = unwrap_data(json_body(response)) or []
        if not isinstance(data, list):
            raise MalformedResponseError()
        return [parse_model(Task, t) for t in data]

    # PUBLIC_INTERFACE
    async def stats(self) -> Result[Dict[str, Any]]:
        """Task counts by state, as computed by the server."""
        return await run_operation("Failed to load statistics", lambda: self._get_summary("stats"))

    # PUBLIC_INTERFACE
    async def priority_stats(self) -> Result[Dict[str, Any]]:
        """Task counts per priority ('low', 'medium', 'high')."""
        return await run_operation("Failed to load statistics", lambda: self._get_summary("priority-stats"))

    # PUBLIC_INTERFACE
    async def recent_tasks(self) -> Result[List[Task]]:
        return await run_operation("Failed to load recent tasks", self._get_recent)
