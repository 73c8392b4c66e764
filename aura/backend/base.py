"""
Assistant backend interface.

Scheduled tasks reach the assistant through exactly two operations:
send_chat() for ordinary prompts and send_search() for web-search tasks.
Both return a BackendResponse and raise BackendError on failure, with
BackendError.retryable telling the dispatcher whether the next scan may
try again.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class UserContext:
    """Who a scheduled request is sent on behalf of."""

    user_id: str
    tenant_id: str | None = None


@dataclass
class ChatRequest:
    """A fresh chat exchange: scheduled tasks never continue a thread."""

    user_id: str
    message: str
    tenant_id: str | None = None
    use_rag: bool = False
    conversation_history: list[dict[str, Any]] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "tenant_id": self.tenant_id,
            "message": self.message,
            "use_rag": self.use_rag,
            "conversation_history": list(self.conversation_history),
        }


@dataclass
class SearchRequest:
    """A web search whose summary comes back as the response text."""

    user_id: str
    query: str
    tenant_id: str | None = None
    max_results: int = 5

    def to_payload(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "tenant_id": self.tenant_id,
            "query": self.query,
            "max_results": self.max_results,
        }


@dataclass
class BackendResponse:
    """What came back from the assistant."""

    text: str | None = None
    conversation_id: str | None = None
    status: str = "ok"


class AssistantBackend(ABC):
    """
    Abstract assistant API.

    Implementations:
        OrchaBackend — HTTP client for the assistant API
        MockBackend  — for testing
    """

    @abstractmethod
    async def send_chat(self, request: ChatRequest) -> BackendResponse:
        ...

    @abstractmethod
    async def send_search(self, request: SearchRequest) -> BackendResponse:
        ...

    async def close(self) -> None:
        """Release network resources. Default: nothing to release."""
        return None
