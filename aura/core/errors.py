"""
Aura exception hierarchy.

Every error in the package inherits from AuraError.
Each subsystem has its own error class for targeted catching.

Usage:
    try:
        await backend.send_chat(request)
    except BackendError as e:
        if e.retryable:
            # Leave the task for the next scan
        else:
            # Give up on this window
    except AuraError as e:
        # Handle any Aura error
"""


class AuraError(Exception):
    """Base exception for all Aura errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


# ━━━ Core Errors ━━━


class ConfigError(AuraError):
    """Configuration is invalid, missing, or malformed."""

    pass


class StorageError(AuraError):
    """Storage backend failure — database errors, corruption, etc."""

    pass


# ━━━ Task Errors ━━━


class TaskValidationError(AuraError):
    """A task definition was rejected (empty name, bad time, unknown schedule)."""

    def __init__(self, message: str, field: str = "", details: dict | None = None):
        self.field = field
        super().__init__(message, details)


class TaskNotFoundError(AuraError):
    """No task exists with the requested id."""

    def __init__(self, task_id: str, details: dict | None = None):
        self.task_id = task_id
        super().__init__(f"Agent task not found: {task_id}", details)


# ━━━ Backend Errors ━━━


class BackendError(AuraError):
    """
    Assistant backend failure.

    retryable=True marks transient problems (network, timeouts, 5xx, 429)
    that the next scan may retry. retryable=False marks an explicit
    rejection that will not get better by asking again.
    """

    def __init__(
        self,
        message: str,
        retryable: bool = False,
        status_code: int | None = None,
        details: dict | None = None,
    ):
        self.retryable = retryable
        self.status_code = status_code
        super().__init__(message, details)
