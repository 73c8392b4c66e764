"""
TaskLifecycle — the create/edit/enable/disable/delete surface for UIs.

A thin façade over TaskStore that validates input and raises
TaskValidationError / TaskNotFoundError straight back to the caller.
Nothing here triggers a scan: the next clock tick (at most one period
later) picks every change up.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable

from aura.core.errors import TaskNotFoundError, TaskValidationError
from aura.tasks.store import TaskStore
from aura.tasks.task import AgentTask, Schedule, normalize_time

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset(
    {"task_name", "instructions", "schedule", "time", "is_search", "enabled", "last_run"}
)


def _require_text(value: Any, field: str, label: str) -> str:
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise TaskValidationError(f"{label} must not be empty", field=field)
    return text


class TaskLifecycle:
    """
    Usage:
        tasks = TaskLifecycle(store)
        task = await tasks.create_task("Inbox", "Summarize my inbox", "daily", "09:00 AM")
        await tasks.edit_task(task.id, time="10:30")
        await tasks.toggle_enabled(task.id)
        await tasks.delete_task(task.id)
    """

    def __init__(self, store: TaskStore, clock_now: Callable[[], datetime] = datetime.now) -> None:
        self._store = store
        self._now = clock_now

    async def list_tasks(self) -> list[AgentTask]:
        return await self._store.list()

    async def get_task(self, task_id: str) -> AgentTask:
        task = await self._store.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def create_task(
        self,
        task_name: str,
        instructions: str,
        schedule: str | Schedule,
        time: str,
        is_search: bool = False,
        enabled: bool = True,
    ) -> AgentTask:
        task = AgentTask(
            task_name=_require_text(task_name, "task_name", "Task name"),
            instructions=_require_text(instructions, "instructions", "Instructions"),
            schedule=Schedule.parse(schedule),
            time=normalize_time(time),
            is_search=bool(is_search),
            enabled=bool(enabled),
            created_at=self._now().replace(microsecond=0),
        )
        return await self._store.create(task)

    async def edit_task(self, task_id: str, **changes: Any) -> AgentTask:
        """
        Replace some or all editable fields.

        id and created_at never change. last_run is kept unless the caller
        passes last_run=None to clear it; an earlier datetime is rejected.
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise TaskValidationError(
                f"Cannot edit field(s): {', '.join(sorted(unknown))}", field=sorted(unknown)[0]
            )

        current = await self.get_task(task_id)
        fields: dict[str, Any] = {}
        if "task_name" in changes:
            fields["task_name"] = _require_text(changes["task_name"], "task_name", "Task name")
        if "instructions" in changes:
            fields["instructions"] = _require_text(
                changes["instructions"], "instructions", "Instructions"
            )
        if "schedule" in changes:
            fields["schedule"] = Schedule.parse(changes["schedule"])
        if "time" in changes:
            fields["time"] = normalize_time(changes["time"])
        if "is_search" in changes:
            fields["is_search"] = bool(changes["is_search"])
        if "last_run" in changes:
            last_run = changes["last_run"]
            if last_run is not None and not isinstance(last_run, datetime):
                raise TaskValidationError("last_run must be a datetime or None", field="last_run")
            if (
                last_run is not None
                and current.last_run is not None
                and last_run < current.last_run
            ):
                # last_run only moves forward; None is the one way back
                raise TaskValidationError(
                    f"last_run cannot move back from {current.last_run.isoformat()}; "
                    f"pass None to clear it",
                    field="last_run",
                )
            fields["last_run"] = last_run
        if "enabled" in changes:
            fields.update(self._enabled_fields(current, bool(changes["enabled"])))

        updated = await self._store.update(task_id, **fields)
        logger.info(f"Agent task edited: {updated.task_name!r} (id={task_id})")
        return updated

    async def set_enabled(self, task_id: str, enabled: bool) -> AgentTask:
        current = await self.get_task(task_id)
        return await self._store.update(task_id, **self._enabled_fields(current, enabled))

    async def toggle_enabled(self, task_id: str) -> AgentTask:
        current = await self.get_task(task_id)
        updated = await self._store.update(
            task_id, **self._enabled_fields(current, not current.enabled)
        )
        logger.info(
            f"Agent task {updated.task_name!r} {'enabled' if updated.enabled else 'disabled'}"
        )
        return updated

    async def delete_task(self, task_id: str) -> None:
        if not await self._store.delete(task_id):
            raise TaskNotFoundError(task_id)

    def _enabled_fields(self, current: AgentTask, enabled: bool) -> dict[str, Any]:
        # Re-enabling starts a fresh count: windows missed while disabled
        # are not made up.
        if enabled and not current.enabled:
            return {"enabled": True, "enabled_at": self._now().replace(microsecond=0)}
        return {"enabled": enabled}
