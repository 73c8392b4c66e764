"""
ConsoleChannel — prints notifications to the terminal as Rich panels.

Used by the `aura run` and `aura check` commands, where the terminal is
the display surface.
"""

from __future__ import annotations

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel

from aura.notifications.base import Notification, NotificationChannel


class ConsoleChannel(NotificationChannel):
    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()
        self._active = True
        self.delivered = 0

    @property
    def name(self) -> str:
        return "console"

    @property
    def is_active(self) -> bool:
        return self._active

    def set_active(self, active: bool) -> None:
        self._active = active

    async def deliver(self, notification: Notification) -> bool:
        if not self._active:
            return False
        self._console.print(
            Panel(
                Markdown(notification.message),
                title=f"[bold]{notification.display_name}[/bold]",
                subtitle=notification.timestamp.strftime("%Y-%m-%d %H:%M"),
                border_style="green",
            )
        )
        self.delivered += 1
        return True
