"""Tests for aura/scheduler/dispatcher.py"""
from __future__ import annotations

import asyncio
from datetime import datetime

import pytest

from aura.backend.base import BackendResponse, ChatRequest, SearchRequest, UserContext
from aura.backend.mock import MockBackend
from aura.core.errors import BackendError
from aura.scheduler.dispatcher import DispatchOutcome, TaskDispatcher

SCANNED = datetime(2025, 1, 10, 9, 1)


class GatedBackend(MockBackend):
    """Holds back only the chats whose message contains `needle`."""

    def __init__(self, gate: asyncio.Event, needle: str) -> None:
        super().__init__()
        self._hold_gate = gate
        self._needle = needle

    async def send_chat(self, request: ChatRequest) -> BackendResponse:
        if self._needle in request.message:
            await self._hold_gate.wait()
        return await super().send_chat(request)


@pytest.mark.asyncio
class TestRun:
    async def test_chat_success(self, dispatcher, store, backend, display, make_task):
        task = await store.create(make_task())

        outcome = await dispatcher.run(task, SCANNED)

        assert outcome is DispatchOutcome.SUCCEEDED
        assert (await store.get(task.id)).last_run == SCANNED
        request = backend.chat_requests[0]
        assert request.message == "Summarize my inbox"
        assert request.user_id == "7"
        assert request.tenant_id == "acme"
        assert request.use_rag is False
        assert request.conversation_history == []
        assert display.current.message == "Here is your summary."
        assert display.current.task_name == "Inbox summary"

    async def test_search_success(self, dispatcher, store, backend, display, make_task):
        task = await store.create(make_task(task_name="AI news", instructions="latest AI news", is_search=True))

        outcome = await dispatcher.run(task, SCANNED)

        assert outcome is DispatchOutcome.SUCCEEDED
        assert backend.chat_requests == []
        request = backend.search_requests[0]
        assert request.query == "latest AI news"
        assert request.max_results == 5
        assert display.current.display_name == "AI news 🌐"

    async def test_transient_failure_leaves_last_run(self, dispatcher, store, backend, display, make_task):
        task = await store.create(make_task(last_run=datetime(2025, 1, 9, 9, 0)))
        backend.set_error(BackendError("connection refused", retryable=True))

        outcome = await dispatcher.run(task, SCANNED)

        assert outcome is DispatchOutcome.FAILED_TRANSIENT
        assert (await store.get(task.id)).last_run == datetime(2025, 1, 9, 9, 0)
        assert display.current is None

    async def test_definitive_failure_advances_last_run(self, dispatcher, store, backend, display, make_task):
        task = await store.create(make_task())
        backend.set_error(BackendError("bad request", retryable=False, status_code=400))

        outcome = await dispatcher.run(task, SCANNED)

        assert outcome is DispatchOutcome.FAILED_DEFINITIVE
        assert (await store.get(task.id)).last_run == SCANNED
        assert display.current is None

    async def test_unexpected_error_is_transient(self, dispatcher, store, backend, make_task):
        task = await store.create(make_task())
        backend.set_error(RuntimeError("boom"))

        outcome = await dispatcher.run(task, SCANNED)

        assert outcome is DispatchOutcome.FAILED_TRANSIENT
        assert (await store.get(task.id)).last_run is None

    async def test_success_without_text_shows_nothing(self, dispatcher, store, backend, display, make_task):
        task = await store.create(make_task())
        backend.set_response(None, conversation_id="c1")

        outcome = await dispatcher.run(task, SCANNED)

        assert outcome is DispatchOutcome.SUCCEEDED
        assert (await store.get(task.id)).last_run == SCANNED
        assert display.current is None

    async def test_task_deleted_mid_flight(self, dispatcher, store, backend, make_task):
        task = await store.create(make_task())
        gate = backend.hold()
        runner = dispatcher.spawn(task, SCANNED)
        await asyncio.sleep(0)
        await store.delete(task.id)
        gate.set()

        assert await runner is DispatchOutcome.SUCCEEDED
        assert await store.list() == []

    async def test_missing_user_id_is_definitive(self, store, backend, pipeline, make_task):
        dispatcher = TaskDispatcher(store, backend, pipeline, UserContext(user_id=""))
        task = await store.create(make_task())

        outcome = await dispatcher.run(task, SCANNED)

        assert outcome is DispatchOutcome.FAILED_DEFINITIVE
        assert backend.call_count == 0
        assert (await store.get(task.id)).last_run == SCANNED

    async def test_blank_instructions_is_definitive(self, dispatcher, store, backend, make_task):
        task = await store.create(make_task(instructions="   "))

        outcome = await dispatcher.run(task, SCANNED)

        assert outcome is DispatchOutcome.FAILED_DEFINITIVE
        assert backend.call_count == 0


class TestBuildRequest:
    def test_chat_request(self, dispatcher, make_task):
        request = dispatcher.build_request(make_task(instructions="  Summarize my inbox "))
        assert isinstance(request, ChatRequest)
        assert request.to_payload() == {
            "user_id": "7",
            "tenant_id": "acme",
            "message": "Summarize my inbox",
            "use_rag": False,
            "conversation_history": [],
        }

    def test_search_request(self, store, backend, pipeline, user, make_task):
        dispatcher = TaskDispatcher(store, backend, pipeline, user, search_max_results=3)
        request = dispatcher.build_request(make_task(is_search=True, instructions="rust news"))
        assert isinstance(request, SearchRequest)
        assert request.to_payload() == {
            "user_id": "7",
            "tenant_id": "acme",
            "query": "rust news",
            "max_results": 3,
        }

    def test_empty_instructions_rejected(self, dispatcher, make_task):
        with pytest.raises(BackendError) as exc_info:
            dispatcher.build_request(make_task(instructions=""))
        assert exc_info.value.retryable is False


@pytest.mark.asyncio
class TestSpawn:
    async def test_in_flight_task_not_spawned_twice(self, dispatcher, store, backend, make_task):
        task = await store.create(make_task())
        gate = backend.hold()

        first = dispatcher.spawn(task, SCANNED)
        second = dispatcher.spawn(task, SCANNED)

        assert first is not None
        assert second is None
        assert dispatcher.in_flight == frozenset({task.id})

        gate.set()
        await dispatcher.wait_idle()
        assert dispatcher.in_flight == frozenset()
        assert backend.call_count == 1

    async def test_slow_task_does_not_block_others(self, store, pipeline, user, display, make_task):
        slow = await store.create(make_task(task_name="Slow", instructions="slow report"))
        fast = await store.create(make_task(task_name="Fast", instructions="fast report"))
        gate = asyncio.Event()
        dispatcher = TaskDispatcher(store, GatedBackend(gate, "slow"), pipeline, user)

        dispatcher.spawn(slow, SCANNED)
        fast_runner = dispatcher.spawn(fast, SCANNED)
        assert await fast_runner is DispatchOutcome.SUCCEEDED
        assert display.current.task_name == "Fast"
        assert (await store.get(slow.id)).last_run is None

        gate.set()
        await dispatcher.wait_idle()
        assert (await store.get(slow.id)).last_run == SCANNED
