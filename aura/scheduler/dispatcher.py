"""
TaskDispatcher — executes due agent tasks against the assistant backend.

Each due task becomes its own asyncio task. Dispatches found in the same
scan are never awaited as a batch, so a slow or failing backend call holds
up nobody but itself.

Outcome handling per run:
    success              last_run advanced, result handed to the pipeline
    definitive failure   last_run advanced (no retry loop), failure logged
    transient failure    logged only; last_run untouched so the next scan
                         retries the same window

A task that is still executing is skipped by later scans.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from enum import Enum

from aura.backend.base import (
    AssistantBackend,
    BackendResponse,
    ChatRequest,
    SearchRequest,
    UserContext,
)
from aura.core.errors import BackendError, StorageError
from aura.notifications.pipeline import ResultPipeline
from aura.tasks.store import TaskStore
from aura.tasks.task import AgentTask

logger = logging.getLogger(__name__)


class DispatchOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED_DEFINITIVE = "failed_definitive"
    FAILED_TRANSIENT = "failed_transient"


class TaskDispatcher:
    """
    Usage:
        dispatcher = TaskDispatcher(store, backend, pipeline, UserContext("7"))
        dispatcher.spawn(task, now)       # fire and forget
        await dispatcher.wait_idle()      # e.g. in tests or a one-shot CLI run
    """

    def __init__(
        self,
        store: TaskStore,
        backend: AssistantBackend,
        pipeline: ResultPipeline,
        user: UserContext,
        search_max_results: int = 5,
    ) -> None:
        self._store = store
        self._backend = backend
        self._pipeline = pipeline
        self._user = user
        self._search_max_results = search_max_results
        self._in_flight: dict[str, asyncio.Task] = {}

    @property
    def in_flight(self) -> frozenset[str]:
        """Ids of tasks currently executing."""
        return frozenset(self._in_flight)

    def spawn(self, task: AgentTask, scanned_at: datetime) -> asyncio.Task | None:
        """
        Start executing `task` in the background.

        `scanned_at` is the scan time that found the task due; it becomes
        the task's last_run once the run is settled. Returns None if the
        task is already executing.
        """
        if task.id in self._in_flight:
            logger.debug(f"Agent task {task.task_name!r} still executing, skipping")
            return None
        runner = asyncio.create_task(
            self.run(task, scanned_at), name=f"agent-task:{task.id}"
        )
        self._in_flight[task.id] = runner
        runner.add_done_callback(lambda _: self._in_flight.pop(task.id, None))
        return runner

    async def wait_idle(self) -> None:
        """Wait until every in-flight dispatch has settled."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight.values()), return_exceptions=True)

    async def run(self, task: AgentTask, scanned_at: datetime) -> DispatchOutcome:
        """Execute one task and settle its outcome. Never raises."""
        logger.info(
            f"Executing agent task: {task.task_name!r} (id={task.id}, "
            f"{'web search' if task.is_search else 'chat'})"
        )

        try:
            response = await self._execute(task)
        except BackendError as e:
            if e.retryable:
                logger.warning(f"Agent task {task.task_name!r} hit a transient failure, will retry: {e}")
                return DispatchOutcome.FAILED_TRANSIENT
            await self._settle(task, scanned_at)
            self._pipeline.handle_failure(task, e)
            return DispatchOutcome.FAILED_DEFINITIVE
        except Exception as e:
            logger.exception(f"Agent task {task.task_name!r} failed unexpectedly, will retry: {e}")
            return DispatchOutcome.FAILED_TRANSIENT

        # Store first so a later scan cannot pick the same window up again
        await self._settle(task, scanned_at)
        try:
            await self._pipeline.handle_success(task, response)
        except Exception as e:
            logger.warning(f"Publishing result of {task.task_name!r} failed: {e}")
        return DispatchOutcome.SUCCEEDED

    # ── Request building ──────────────────────────────────────────────────────

    def build_request(self, task: AgentTask) -> ChatRequest | SearchRequest:
        """The backend request for `task`. Raises BackendError for malformed tasks."""
        instructions = (task.instructions or "").strip()
        if not instructions:
            raise BackendError(
                f"Agent task {task.id} has no instructions", retryable=False
            )
        if not self._user.user_id:
            raise BackendError("No user id configured for scheduled requests", retryable=False)

        if task.is_search:
            return SearchRequest(
                user_id=self._user.user_id,
                tenant_id=self._user.tenant_id,
                query=instructions,
                max_results=self._search_max_results,
            )
        return ChatRequest(
            user_id=self._user.user_id,
            tenant_id=self._user.tenant_id,
            message=instructions,
            conversation_history=[],
        )

    async def _settle(self, task: AgentTask, scanned_at: datetime) -> None:
        try:
            await self._store.record_run(task.id, scanned_at)
        except StorageError as e:
            logger.error(f"Could not record run of {task.task_name!r}: {e}")

    async def _execute(self, task: AgentTask) -> BackendResponse:
        request = self.build_request(task)
        if isinstance(request, SearchRequest):
            return await self._backend.send_search(request)
        return await self._backend.send_chat(request)
