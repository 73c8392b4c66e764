"""
Orcha backend — HTTP client for the assistant API.

Endpoints (relative to base_url, both configurable):
    POST /orcha/chat        {user_id, tenant_id, message, use_rag, conversation_history}
    POST /orcha/web-search  {user_id, tenant_id, query, max_results}

Both answer with JSON of the shape
    {"status": "ok" | "error", "message": "...", "conversation_id": ..., "error": "..."}

Every request carries a fresh x-trace-id header so backend logs can be
correlated with ours. Timeouts are owned here, not by the scheduler.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

import httpx

from aura.backend.base import AssistantBackend, BackendResponse, ChatRequest, SearchRequest
from aura.core.errors import BackendError

logger = logging.getLogger(__name__)

# Statuses worth retrying on a later scan
_RETRYABLE_STATUS = frozenset({408, 425, 429})


class OrchaBackend(AssistantBackend):
    """
    Assistant API client.

    Usage:
        backend = OrchaBackend(base_url="http://localhost:8000/api/v1")
        response = await backend.send_chat(ChatRequest(user_id="7", message="Hi"))
        print(response.text)
        await backend.close()
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000/api/v1",
        chat_path: str = "/orcha/chat",
        search_path: str = "/orcha/web-search",
        api_key: str = "",
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._chat_path = chat_path
        self._search_path = search_path
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {"Content-Type": "application/json"}
            if self._api_key:
                headers["Authorization"] = f"Bearer {self._api_key}"
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=headers,
                timeout=httpx.Timeout(self._timeout, connect=10.0),
                transport=self._transport,
            )
        return self._client

    async def send_chat(self, request: ChatRequest) -> BackendResponse:
        return await self._post(self._chat_path, request.to_payload())

    async def send_search(self, request: SearchRequest) -> BackendResponse:
        return await self._post(self._search_path, request.to_payload())

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ── Internals ─────────────────────────────────────────────────────────────

    async def _post(self, path: str, payload: dict[str, Any]) -> BackendResponse:
        client = await self._get_client()
        trace_id = str(uuid.uuid4())

        try:
            response = await client.post(path, json=payload, headers={"x-trace-id": trace_id})
        except httpx.TimeoutException as e:
            raise BackendError(
                f"Assistant API timed out on {path}: {e}",
                retryable=True,
                details={"trace_id": trace_id},
            ) from e
        except httpx.TransportError as e:
            raise BackendError(
                f"Cannot reach assistant API at {self._base_url}: {e}",
                retryable=True,
                details={"trace_id": trace_id},
            ) from e

        if response.status_code >= 400:
            raise BackendError(
                f"Assistant API error ({response.status_code}) on {path}: {response.text[:200]}",
                retryable=response.status_code >= 500 or response.status_code in _RETRYABLE_STATUS,
                status_code=response.status_code,
                details={"trace_id": trace_id},
            )

        try:
            data = response.json()
        except ValueError as e:
            raise BackendError(
                f"Assistant API returned invalid JSON on {path}",
                retryable=True,
                status_code=response.status_code,
                details={"trace_id": trace_id},
            ) from e

        return _parse_response(data, path, trace_id)


def _parse_response(data: Any, path: str, trace_id: str) -> BackendResponse:
    if not isinstance(data, dict):
        raise BackendError(
            f"Unexpected response body on {path}: {type(data).__name__}",
            retryable=True,
            details={"trace_id": trace_id},
        )

    status = str(data.get("status") or "ok")
    if status == "error":
        raise BackendError(
            f"Assistant API rejected the request: {data.get('error') or data.get('message') or 'unknown error'}",
            retryable=False,
            details={"trace_id": trace_id},
        )

    conversation_id = data.get("conversation_id")
    logger.debug(f"Assistant API {path} answered status={status} (trace {trace_id})")
    return BackendResponse(
        text=data.get("message") or None,
        conversation_id=str(conversation_id) if conversation_id is not None else None,
        status=status,
    )
