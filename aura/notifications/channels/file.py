"""
FileChannel — always-on record that appends to ~/.aura/notifications.log.

The display slot forgets a notification after a few seconds; this keeps
every one of them.
"""

from __future__ import annotations

import logging
from pathlib import Path

from aura.notifications.base import Notification, NotificationChannel

logger = logging.getLogger(__name__)


class FileChannel(NotificationChannel):
    """Appends notifications to a plain-text log file."""

    def __init__(self, log_path: Path | None = None) -> None:
        self._log_path = log_path or (Path.home() / ".aura" / "notifications.log")

    @property
    def name(self) -> str:
        return "file"

    @property
    def is_active(self) -> bool:
        return True

    async def deliver(self, notification: Notification) -> bool:
        try:
            self._log_path.parent.mkdir(parents=True, exist_ok=True)
            ts = notification.timestamp.strftime("%Y-%m-%d %H:%M:%S")
            entry = (
                f"[{ts}] [{notification.display_name}]\n"
                f"{notification.message}\n"
                f"{'─' * 60}\n"
            )
            with open(self._log_path, "a", encoding="utf-8") as f:
                f.write(entry)
            return True
        except OSError as e:
            logger.warning(f"FileChannel write failed: {e}")
            return False
