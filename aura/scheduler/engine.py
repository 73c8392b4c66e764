"""
SchedulerEngine — one scan of the task store per clock tick.

scan():
    1. list all tasks (an unreadable store yields none; the scan still runs)
    2. keep the ones the due-detector accepts at `now`
    3. hand each to the dispatcher, which runs them independently
    4. remember when the store was last checked

The engine owns the clock so callers only deal with start()/stop().
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from aura.core.errors import StorageError
from aura.scheduler.clock import DEFAULT_PERIOD, SchedulerClock
from aura.scheduler.dispatcher import TaskDispatcher
from aura.scheduler.windows import is_due
from aura.tasks.store import TaskStore
from aura.tasks.task import AgentTask

logger = logging.getLogger(__name__)


class SchedulerEngine:
    """
    Usage:
        engine = SchedulerEngine(store, dispatcher, period=60)
        await engine.start()
        ...
        await engine.stop()

    `clock_now` supplies the current local time; tests pass a fixed one.
    """

    def __init__(
        self,
        store: TaskStore,
        dispatcher: TaskDispatcher,
        period: float = DEFAULT_PERIOD,
        clock_now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._now = clock_now
        self._clock = SchedulerClock(self._tick, period=period)

    @property
    def running(self) -> bool:
        return self._clock.running

    @property
    def dispatcher(self) -> TaskDispatcher:
        return self._dispatcher

    async def start(self) -> None:
        await self._clock.start()

    async def stop(self) -> None:
        """Stop the clock. Dispatches already running are left to finish."""
        await self._clock.stop()

    async def scan(self, now: datetime | None = None) -> list[AgentTask]:
        """Dispatch every due task once. Returns the tasks that were started."""
        now = now or self._now()
        tasks = await self._store.list()
        due = [t for t in tasks if is_due(t, now)]

        started: list[AgentTask] = []
        for task in due:
            if self._dispatcher.spawn(task, now) is not None:
                started.append(task)

        if started:
            logger.info(f"{len(started)} agent task(s) ready to execute")

        try:
            await self._store.set_last_check(now)
        except StorageError as e:
            logger.warning(f"Could not record scan time: {e}")
        return started

    async def _tick(self) -> None:
        await self.scan()
