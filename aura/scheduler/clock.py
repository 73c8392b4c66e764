"""
SchedulerClock — the single low-frequency tick source.

One asyncio task calls `on_tick` immediately on start() and then once per
period. There are no per-task timers, so cost and drift stay flat however
many tasks exist. stop() cancels the timer; no tick starts after it
returns. A tick that raises is logged and the clock keeps going.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

DEFAULT_PERIOD = 60.0  # seconds

TickHandler = Callable[[], Awaitable[None]]


class SchedulerClock:
    """
    Usage:
        clock = SchedulerClock(engine.scan, period=60)
        await clock.start()   # first tick fires right away
        ...
        await clock.stop()
    """

    def __init__(self, on_tick: TickHandler, period: float = DEFAULT_PERIOD) -> None:
        if period <= 0:
            raise ValueError("Clock period must be positive")
        self._on_tick = on_tick
        self._period = period
        self._task: asyncio.Task | None = None
        self._running = False
        self.tick_count = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def period(self) -> float:
        return self._period

    async def start(self) -> None:
        """Start ticking. A second start() on a running clock is a no-op."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop(), name="aura-scheduler-clock")
        logger.info(f"Agent task scheduler started (every {self._period:g}s)")

    async def stop(self) -> None:
        """Stop ticking and wait for the timer task to end."""
        if not self._running:
            return
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Agent task scheduler stopped")

    # ── Internal loop ─────────────────────────────────────────────────────────

    async def _loop(self) -> None:
        while self._running:
            self.tick_count += 1
            try:
                await self._on_tick()
            except Exception as e:
                logger.warning(f"Scheduler tick error (non-fatal): {e}")
            await asyncio.sleep(self._period)
