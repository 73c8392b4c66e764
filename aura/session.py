"""
AgentTaskSession — builds and owns the whole agent-task subsystem.

One session per signed-in user. It wires storage, task store, backend,
notification channels, dispatcher and engine from an AuraConfig, and it
is the only owner of the scheduler clock: stop() tears the clock down and
closes the display slot so nothing surfaces after sign-out.

    async with AgentTaskSession.from_config(config) as session:
        await session.tasks.create_task("Inbox", "Summarize my inbox", "daily", "09:00")
        async for visible in session.display.listen():
            ...
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from aura.backend.base import AssistantBackend, UserContext
from aura.backend.orcha import OrchaBackend
from aura.conversations.tagger import StorageConversationTagger
from aura.core.config import AuraConfig
from aura.notifications.channels.display import DisplayChannel
from aura.notifications.channels.file import FileChannel
from aura.notifications.pipeline import ResultPipeline
from aura.notifications.router import NotificationRouter
from aura.scheduler.dispatcher import TaskDispatcher
from aura.scheduler.engine import SchedulerEngine
from aura.store.base import StorageProvider
from aura.store.sqlite import SQLiteStorage
from aura.tasks.lifecycle import TaskLifecycle
from aura.tasks.store import TaskStore

logger = logging.getLogger(__name__)


class AgentTaskSession:
    def __init__(
        self,
        storage: StorageProvider,
        backend: AssistantBackend,
        user: UserContext,
        *,
        period: float = 60.0,
        display_seconds: float = 20.0,
        search_max_results: int = 5,
        notification_log: FileChannel | None = None,
        clock_now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.storage = storage
        self.backend = backend
        self.user = user

        self.store = TaskStore(storage)
        self.tasks = TaskLifecycle(self.store, clock_now=clock_now)
        self.tagger = StorageConversationTagger(storage)

        self.display = DisplayChannel(display_seconds=display_seconds)
        self.router = NotificationRouter()
        self.router.register(self.display)
        if notification_log is not None:
            self.router.register(notification_log)

        self.pipeline = ResultPipeline(self.router, self.tagger)
        self.dispatcher = TaskDispatcher(
            self.store,
            backend,
            self.pipeline,
            user,
            search_max_results=search_max_results,
        )
        self.engine = SchedulerEngine(self.store, self.dispatcher, period=period, clock_now=clock_now)
        self._started = False

    @classmethod
    def from_config(
        cls,
        config: AuraConfig,
        backend: AssistantBackend | None = None,
        storage: StorageProvider | None = None,
    ) -> "AgentTaskSession":
        """Build a session from configuration, using the real backend and SQLite by default."""
        backend = backend or OrchaBackend(
            base_url=config.backend.base_url,
            chat_path=config.backend.chat_path,
            search_path=config.backend.search_path,
            api_key=config.backend.api_key,
            timeout=config.backend.timeout,
        )
        return cls(
            storage=storage or SQLiteStorage(config.get_storage_path()),
            backend=backend,
            user=UserContext(user_id=config.user.user_id, tenant_id=config.user.tenant_id),
            period=config.scheduler.poll_interval,
            display_seconds=config.notifications.display_seconds,
            search_max_results=config.search.max_results,
            notification_log=FileChannel(config.get_notification_log_path()),
        )

    async def start(self) -> None:
        """Start the scheduler clock; the first scan runs immediately."""
        if self._started:
            return
        self._started = True
        logger.info(f"Agent task session starting for user {self.user.user_id!r}")
        await self.engine.start()

    async def stop(self) -> None:
        """
        Tear the session down.

        The clock stops first so no new dispatch starts. Dispatches already
        running are not cancelled; their notifications are dropped by the
        closed display slot.
        """
        if not self._started:
            return
        self._started = False
        await self.engine.stop()
        self.display.close()
        logger.info("Agent task session stopped")

    async def close(self) -> None:
        """Stop, then release the backend and storage."""
        await self.stop()
        self.display.close()
        await self.dispatcher.wait_idle()
        await self.backend.close()
        await self.storage.close()

    async def __aenter__(self) -> "AgentTaskSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
