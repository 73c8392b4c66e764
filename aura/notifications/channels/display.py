"""
DisplayChannel — the single on-screen notification slot.

At most one notification is visible. A new one replaces the current one.
Each notification disappears on its own after `display_seconds` or when
the user dismisses it, whichever comes first.

Display surfaces follow the slot through listen(), which yields the newly
visible Notification, or None when the slot empties. After close() the
slot accepts nothing: results of dispatches that outlive the session are
dropped here.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator

from aura.notifications.base import Notification, NotificationChannel

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_SECONDS = 20.0

_CLOSED = object()


class DisplayChannel(NotificationChannel):
    """
    Single-slot, replace-on-new, self-expiring notification sink.

    Usage:
        display = DisplayChannel(display_seconds=20)
        await display.deliver(notification)   # visible now
        display.current                       # → notification
        display.dismiss()                     # or wait 20 s

        async for visible in display.listen():
            render(visible)                   # None means "hide"
    """

    def __init__(self, display_seconds: float = DEFAULT_DISPLAY_SECONDS) -> None:
        self._display_seconds = display_seconds
        self._current: Notification | None = None
        self._expiry: asyncio.TimerHandle | None = None
        self._listeners: set[asyncio.Queue] = set()
        self._closed = False

    @property
    def name(self) -> str:
        return "display"

    @property
    def is_active(self) -> bool:
        return not self._closed

    @property
    def current(self) -> Notification | None:
        """The visible notification, if any."""
        return self._current

    async def deliver(self, notification: Notification) -> bool:
        if self._closed:
            logger.debug(f"Display closed, dropping notification for {notification.task_name!r}")
            return False
        self._cancel_expiry()
        if self._current is not None:
            logger.debug(f"Replacing visible notification {self._current.id}")
        self._current = notification
        loop = asyncio.get_running_loop()
        self._expiry = loop.call_later(self._display_seconds, self._expire, notification.id)
        logger.info(f"Showing agent notification: {notification.task_name!r}")
        self._publish(notification)
        return True

    def dismiss(self, notification_id: str | None = None) -> bool:
        """
        Hide the visible notification.

        With an id, only that notification is dismissed; a stale id (the
        notification was already replaced) is a no-op. Returns True if
        something was hidden.
        """
        if self._current is None:
            return False
        if notification_id is not None and notification_id != self._current.id:
            return False
        self._cancel_expiry()
        self._current = None
        self._publish(None)
        return True

    async def listen(self) -> AsyncIterator[Notification | None]:
        """Yield every change of the slot until the channel is closed."""
        queue: asyncio.Queue = asyncio.Queue()
        self._listeners.add(queue)
        try:
            while not self._closed or not queue.empty():
                item = await queue.get()
                if item is _CLOSED:
                    return
                yield item
        finally:
            self._listeners.discard(queue)

    def close(self) -> None:
        """Empty the slot and stop accepting notifications."""
        if self._closed:
            return
        self._cancel_expiry()
        self._current = None
        self._closed = True
        for queue in self._listeners:
            queue.put_nowait(_CLOSED)

    # ── Internals ─────────────────────────────────────────────────────────────

    def _expire(self, notification_id: str) -> None:
        self._expiry = None
        if self._current is not None and self._current.id == notification_id:
            logger.debug(f"Auto-closing notification {notification_id}")
            self._current = None
            self._publish(None)

    def _cancel_expiry(self) -> None:
        if self._expiry is not None:
            self._expiry.cancel()
            self._expiry = None

    def _publish(self, item: Notification | None) -> None:
        for queue in self._listeners:
            queue.put_nowait(item)
