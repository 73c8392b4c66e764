"""
NotificationRouter — hands each notification to every active channel.

In a running session that is the display slot (what the user sees) and
the file log (a silent, permanent record). A failing channel never stops
the others and never propagates into the dispatcher.
"""

from __future__ import annotations

import logging

from aura.notifications.base import Notification, NotificationChannel

logger = logging.getLogger(__name__)


class NotificationRouter:
    """
    Routes notifications to the registered channels.

    Usage:
        router = NotificationRouter()
        router.register(DisplayChannel(display_seconds=20))
        router.register(FileChannel())

        delivered = await router.route(notification)
    """

    def __init__(self) -> None:
        self._channels: list[NotificationChannel] = []

    def register(self, channel: NotificationChannel) -> None:
        self._channels.append(channel)
        logger.debug(f"Notification channel registered: {channel.name}")

    def unregister(self, name: str) -> None:
        """Remove a channel by name."""
        self._channels = [c for c in self._channels if c.name != name]

    @property
    def channel_names(self) -> list[str]:
        return [c.name for c in self._channels]

    async def route(self, notification: Notification) -> list[str]:
        """
        Deliver to all active channels.

        Never raises — failures are logged and swallowed. Returns the names
        of the channels that accepted the notification.
        """
        delivered: list[str] = []
        for channel in self._channels:
            if not channel.is_active:
                logger.debug(f"Channel {channel.name} inactive, skipping {notification.id}")
                continue
            try:
                if await channel.deliver(notification):
                    delivered.append(channel.name)
            except Exception as e:
                logger.warning(f"Channel {channel.name} delivery failed: {e}")
        return delivered
