"""Shared test fixtures for Aura."""

from datetime import datetime

import pytest

from aura.backend.base import UserContext
from aura.backend.mock import MockBackend
from aura.conversations.tagger import StorageConversationTagger
from aura.core.config import AuraConfig
from aura.notifications.channels.display import DisplayChannel
from aura.notifications.pipeline import ResultPipeline
from aura.notifications.router import NotificationRouter
from aura.scheduler.dispatcher import TaskDispatcher
from aura.store.memory import InMemoryStorage
from aura.tasks.store import TaskStore
from aura.tasks.task import AgentTask, Schedule

# Default creation time of test tasks (a Wednesday)
CREATED = datetime(2025, 1, 1, 8, 0)


@pytest.fixture
def config():
    """Create a default config without loading from disk."""
    return AuraConfig()


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def store(storage):
    return TaskStore(storage)


@pytest.fixture
def backend():
    return MockBackend(default_text="Here is your summary.")


@pytest.fixture
def user():
    return UserContext(user_id="7", tenant_id="acme")


@pytest.fixture
def display():
    return DisplayChannel(display_seconds=20)


@pytest.fixture
def router(display):
    r = NotificationRouter()
    r.register(display)
    return r


@pytest.fixture
def tagger(storage):
    return StorageConversationTagger(storage)


@pytest.fixture
def pipeline(router, tagger):
    return ResultPipeline(router, tagger)


@pytest.fixture
def dispatcher(store, backend, pipeline, user):
    return TaskDispatcher(store, backend, pipeline, user, search_max_results=5)


@pytest.fixture
def make_task():
    """Factory for AgentTask with predictable defaults."""

    def _make(**kwargs) -> AgentTask:
        defaults = dict(
            task_name="Inbox summary",
            instructions="Summarize my inbox",
            schedule=Schedule.DAILY,
            time="09:00",
            created_at=CREATED,
        )
        defaults.update(kwargs)
        return AgentTask(**defaults)

    return _make
