"""
Aura — recurring agent tasks for the assistant client.

Public API:
    from aura import AgentTaskSession, TaskLifecycle, AgentTask, Schedule
"""

__version__ = "0.1.0"

# Core
from aura.core.config import AuraConfig
from aura.core.errors import (
    AuraError,
    BackendError,
    ConfigError,
    StorageError,
    TaskNotFoundError,
    TaskValidationError,
)

# Tasks
from aura.tasks.task import AgentTask, Schedule
from aura.tasks.store import TaskStore
from aura.tasks.lifecycle import TaskLifecycle

# Scheduler
from aura.scheduler.windows import is_due, next_window_start, window_start
from aura.scheduler.engine import SchedulerEngine

# Notifications
from aura.notifications.base import Notification

# Session
from aura.session import AgentTaskSession

__all__ = [
    # Core
    "AuraConfig",
    "AuraError",
    "BackendError",
    "ConfigError",
    "StorageError",
    "TaskNotFoundError",
    "TaskValidationError",
    # Tasks
    "AgentTask",
    "Schedule",
    "TaskStore",
    "TaskLifecycle",
    # Scheduler
    "is_due",
    "next_window_start",
    "window_start",
    "SchedulerEngine",
    # Notifications
    "Notification",
    # Session
    "AgentTaskSession",
]
