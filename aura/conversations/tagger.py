"""
Conversation tagging — remembers which conversations agent tasks created.

The conversation list uses these tags to mark conversations that came
from a scheduled web search (globe icon) or from any agent task. The tags
live in local key-value storage next to the tasks:

    aura_search_conversations       JSON list of conversation ids
    aura_agent_task_conversations   JSON object {conversation_id: task_id}
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod

from aura.core.errors import StorageError
from aura.store.base import StorageProvider

logger = logging.getLogger(__name__)

SEARCH_CONVERSATIONS_KEY = "aura_search_conversations"
TASK_CONVERSATIONS_KEY = "aura_agent_task_conversations"


class ConversationTagger(ABC):
    """Sink for conversation-origin tags."""

    @abstractmethod
    async def mark_conversation_as_search_origin(self, conversation_id: str) -> None:
        ...

    @abstractmethod
    async def mark_conversation_as_task_origin(self, conversation_id: str, task_id: str) -> None:
        ...


class StorageConversationTagger(ConversationTagger):
    """
    Tagger backed by a StorageProvider.

    Usage:
        tagger = StorageConversationTagger(storage)
        await tagger.mark_conversation_as_search_origin("42")
        await tagger.is_search_conversation("42")  # → True
    """

    def __init__(self, storage: StorageProvider) -> None:
        self._storage = storage
        # Serializes read-modify-write of the tag keys
        self._lock = asyncio.Lock()

    async def mark_conversation_as_search_origin(self, conversation_id: str) -> None:
        async with self._lock:
            ids = await self.search_conversations()
            if conversation_id in ids:
                return
            ids.append(conversation_id)
            await self._storage.set(SEARCH_CONVERSATIONS_KEY, json.dumps(ids).encode("utf-8"))
        logger.debug(f"Conversation {conversation_id} marked as search-derived")

    async def mark_conversation_as_task_origin(self, conversation_id: str, task_id: str) -> None:
        async with self._lock:
            origins = await self.task_conversations()
            origins[conversation_id] = task_id
            await self._storage.set(TASK_CONVERSATIONS_KEY, json.dumps(origins).encode("utf-8"))
        logger.debug(f"Conversation {conversation_id} linked to agent task {task_id}")

    async def search_conversations(self) -> list[str]:
        data = await self._read(SEARCH_CONVERSATIONS_KEY)
        if not isinstance(data, list):
            return []
        return [str(cid) for cid in data]

    async def task_conversations(self) -> dict[str, str]:
        data = await self._read(TASK_CONVERSATIONS_KEY)
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    async def is_search_conversation(self, conversation_id: str) -> bool:
        return conversation_id in await self.search_conversations()

    async def task_for_conversation(self, conversation_id: str) -> str | None:
        return (await self.task_conversations()).get(conversation_id)

    async def _read(self, key: str) -> object:
        try:
            raw = await self._storage.get(key)
            return json.loads(raw.decode("utf-8")) if raw else None
        except (StorageError, ValueError) as e:
            logger.warning(f"Conversation tags under {key!r} unreadable: {e}")
            return None
