from __future__ import annotations

from typing import Optional

import httpx

from .auth import AuthSessionManager
from .resources.dashboard import DashboardClient
from .resources.tasks import TaskClient
from .session import SessionStore, get_session_store
from .settings import Settings, get_settings
from .transport import Transport


# PUBLIC_INTERFACE
class TaskboardClient:
    """
    Entry point wiring the session store, the HTTP transport and the resource clients.

    Usage:
        async with TaskboardClient() as client:
            result = await client.auth.login("me@example.com", "secret")
            page = await client.tasks.list({"status": "pending"})

    Attributes:
    - auth: AuthSessionManager (login/register/logout, local session state)
    - tasks: TaskClient (list/get/create/update/delete/toggle_status/bulk_complete)
    - dashboard: DashboardClient (stats/priority_stats/recent_tasks)
    - store: the SessionStore shared by the transport and the auth manager
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[SessionStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.store = store if store is not None else get_session_store(self.settings)
        self.transport = Transport(self.settings, self.store, transport=transport)
        self.auth = AuthSessionManager(self.transport, self.store)
        self.tasks = TaskClient(self.transport)
        self.dashboard = DashboardClient(self.transport)

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> "TaskboardClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
