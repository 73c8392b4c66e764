"""
TaskStore — durable collection of AgentTask records.

The whole collection is stored as one JSON list under STORAGE_KEY in a
StorageProvider (SQLite on disk, in-memory for tests). The time of the
last scheduler scan is kept next to it under LAST_CHECK_KEY.

Pure CRUD: no due-detection or validation lives here. Every
read-modify-write runs under an asyncio.Lock, because storage calls are
suspension points and two dispatch completions could otherwise overwrite
each other's last_run.

Records are decoded one by one. A record this version cannot read (left by
another client, or hand-edited) is skipped by list() but written back
untouched on every save. A document that is not a JSON list at all is
never overwritten: writes fail with StorageError until clear() is called.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import replace
from datetime import datetime
from typing import Any

from aura.core.errors import StorageError, TaskNotFoundError, TaskValidationError
from aura.store.base import StorageProvider
from aura.tasks.task import AgentTask, parse_timestamp

logger = logging.getLogger(__name__)

STORAGE_KEY = "aura_agent_tasks"
LAST_CHECK_KEY = "aura_agent_last_check"

# What a single malformed record can raise while being decoded
_RECORD_ERRORS = (ValueError, KeyError, TypeError, AttributeError, TaskValidationError)


class TaskStore:
    """
    Keyed collection of agent tasks.

    Usage:
        store = TaskStore(SQLiteStorage("~/.aura/agent_tasks.db"))

        task = await store.create(AgentTask(...))
        tasks = await store.list()
        await store.update(task.id, enabled=False)
        await store.record_run(task.id, datetime.now())
        await store.delete(task.id)
    """

    def __init__(self, storage: StorageProvider) -> None:
        self._storage = storage
        self._lock = asyncio.Lock()

    # ── CRUD ─────────────────────────────────────────────────────────────────

    async def list(self) -> list[AgentTask]:
        """
        All readable tasks in creation order.

        Never raises: unavailable or corrupted storage degrades to an empty
        list so the scheduler keeps running.
        """
        try:
            tasks, _ = _decode(await self._read_records())
            return tasks
        except (StorageError, ValueError) as e:
            logger.warning(f"Agent task storage unreadable, treating as empty: {e}")
            return []

    async def get(self, task_id: str) -> AgentTask | None:
        for task in await self.list():
            if task.id == task_id:
                return task
        return None

    async def create(self, task: AgentTask) -> AgentTask:
        """Insert a task. Raises StorageError if the id is already taken."""
        async with self._lock:
            tasks, kept = await self._load_for_write()
            if any(t.id == task.id for t in tasks):
                raise StorageError(f"Duplicate agent task id: {task.id}")
            tasks.append(task)
            await self._save(tasks, kept)
        logger.info(f"Agent task saved: {task.task_name!r} (id={task.id})")
        return task

    async def update(self, task_id: str, **fields: Any) -> AgentTask:
        """
        Replace the given fields of a task and return the updated record.

        The id can never change. Raises TaskNotFoundError for unknown ids.
        """
        fields.pop("id", None)
        async with self._lock:
            tasks, kept = await self._load_for_write()
            for i, task in enumerate(tasks):
                if task.id == task_id:
                    tasks[i] = replace(task, **fields)
                    await self._save(tasks, kept)
                    logger.debug(f"Agent task updated: {tasks[i].task_name!r} (id={task_id})")
                    return tasks[i]
        raise TaskNotFoundError(task_id)

    async def record_run(self, task_id: str, when: datetime) -> AgentTask | None:
        """
        Advance last_run to `when`.

        last_run only moves forward: an older timestamp is ignored. Returns
        None if the task was deleted while it was executing.
        """
        async with self._lock:
            tasks, kept = await self._load_for_write()
            for i, task in enumerate(tasks):
                if task.id != task_id:
                    continue
                if task.last_run is not None and when <= task.last_run:
                    logger.debug(f"Agent task {task_id}: last_run already at {task.last_run}")
                    return task
                tasks[i] = replace(task, last_run=when)
                await self._save(tasks, kept)
                return tasks[i]
        logger.debug(f"Agent task {task_id} vanished before its run was recorded")
        return None

    async def delete(self, task_id: str) -> bool:
        async with self._lock:
            tasks, kept = await self._load_for_write()
            remaining = [t for t in tasks if t.id != task_id]
            if len(remaining) == len(tasks):
                return False
            await self._save(remaining, kept)
        logger.info(f"Agent task deleted: {task_id}")
        return True

    async def clear(self) -> None:
        """Remove every task, unreadable records included, and the last-check marker."""
        async with self._lock:
            await self._storage.delete(STORAGE_KEY)
            await self._storage.delete(LAST_CHECK_KEY)
        logger.info("All agent tasks cleared")

    # ── Scan bookkeeping ──────────────────────────────────────────────────────

    async def last_check(self) -> datetime | None:
        """When the scheduler last scanned the store, if ever."""
        try:
            raw = await self._storage.get(LAST_CHECK_KEY)
            return parse_timestamp(raw.decode("utf-8")) if raw else None
        except (StorageError, ValueError) as e:
            logger.warning(f"Last check time unreadable: {e}")
            return None

    async def set_last_check(self, when: datetime) -> None:
        await self._storage.set(LAST_CHECK_KEY, when.isoformat().encode("utf-8"))

    # ── Helpers ───────────────────────────────────────────────────────────────

    async def _read_records(self) -> list[Any]:
        raw = await self._storage.get(STORAGE_KEY)
        if not raw:
            return []
        data = json.loads(raw.decode("utf-8"))
        if not isinstance(data, list):
            raise ValueError(f"expected a JSON list, got {type(data).__name__}")
        return data

    async def _load_for_write(self) -> tuple[list[AgentTask], list[Any]]:
        try:
            records = await self._read_records()
        except ValueError as e:
            raise StorageError(
                f"Agent task storage is unreadable and was left untouched; "
                f"clear it to start over: {e}"
            ) from e
        return _decode(records)

    async def _save(self, tasks: list[AgentTask], kept: list[Any]) -> None:
        records = [t.to_dict() for t in tasks] + kept
        payload = json.dumps(records, ensure_ascii=False)
        await self._storage.set(STORAGE_KEY, payload.encode("utf-8"))


def _decode(records: list[Any]) -> tuple[list[AgentTask], list[Any]]:
    """Split stored records into readable tasks and records to keep as they are."""
    tasks: list[AgentTask] = []
    kept: list[Any] = []
    for record in records:
        try:
            tasks.append(AgentTask.from_dict(record))
        except _RECORD_ERRORS as e:
            logger.warning(f"Skipping unreadable agent task record: {e!r}")
            kept.append(record)
    return tasks, kept
