"""
Notification primitives — Notification dataclass and NotificationChannel ABC.

Every delivery target (the on-screen display slot, the notification log)
implements NotificationChannel. The NotificationRouter fans out to them.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class Notification:
    """The result of one scheduled task run, shown to the user briefly."""

    task_id: str
    task_name: str
    message: str
    is_search: bool = False
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:16])
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def display_name(self) -> str:
        """Task name as shown in the notification title."""
        return f"{self.task_name} 🌐" if self.is_search else self.task_name


class NotificationChannel(ABC):
    """
    Abstract delivery target.

    The router skips channels whose is_active is False. deliver() returns
    True if the notification actually reached the channel.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier, e.g. 'display', 'file'."""
        ...

    @property
    @abstractmethod
    def is_active(self) -> bool:
        """Whether this channel can currently receive notifications."""
        ...

    @abstractmethod
    async def deliver(self, notification: Notification) -> bool:
        ...
