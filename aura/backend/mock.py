"""
Mock assistant backend — for testing.

Returns configurable responses without making any network calls.
Tracks all calls for test assertions.
"""

from __future__ import annotations

import asyncio

from aura.backend.base import AssistantBackend, BackendResponse, ChatRequest, SearchRequest


class MockBackend(AssistantBackend):
    """
    Backend that replays pre-configured outcomes.

    Usage in tests:
        backend = MockBackend()
        backend.set_response("Inbox summary", conversation_id="42")
        backend.set_error(BackendError("offline", retryable=True), match="flaky")

        response = await backend.send_chat(ChatRequest(...))

        # Check what was sent
        assert backend.chat_requests[0].message == "..."

    Outcomes can be keyed by a substring of the message/query with `match`;
    keyed outcomes win over the queue, and the queue wins over the default.
    """

    def __init__(self, default_text: str = "Done.") -> None:
        self._default = BackendResponse(text=default_text)
        self._queue: list[BackendResponse | Exception] = []
        self._matched: dict[str, BackendResponse | Exception] = {}
        self._gate: asyncio.Event | None = None

        # Call tracking
        self.chat_requests: list[ChatRequest] = []
        self.search_requests: list[SearchRequest] = []
        self.closed = False

    @property
    def call_count(self) -> int:
        return len(self.chat_requests) + len(self.search_requests)

    def set_response(
        self,
        text: str | None,
        conversation_id: str | None = None,
        match: str | None = None,
    ) -> None:
        self._push(BackendResponse(text=text, conversation_id=conversation_id), match)

    def set_error(self, error: Exception, match: str | None = None) -> None:
        self._push(error, match)

    def hold(self) -> asyncio.Event:
        """Block every call until the returned event is set."""
        self._gate = asyncio.Event()
        return self._gate

    async def send_chat(self, request: ChatRequest) -> BackendResponse:
        self.chat_requests.append(request)
        return await self._reply(request.message)

    async def send_search(self, request: SearchRequest) -> BackendResponse:
        self.search_requests.append(request)
        return await self._reply(request.query)

    async def close(self) -> None:
        self.closed = True

    def _push(self, outcome: BackendResponse | Exception, match: str | None) -> None:
        if match is None:
            self._queue.append(outcome)
        else:
            self._matched[match] = outcome

    async def _reply(self, text: str) -> BackendResponse:
        if self._gate is not None:
            await self._gate.wait()
        outcome: BackendResponse | Exception = self._default
        for needle, matched in self._matched.items():
            if needle in text:
                outcome = matched
                break
        else:
            if self._queue:
                outcome = self._queue.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome
