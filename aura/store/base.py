"""
Storage Provider interface.

Simple durable key-value store. The task store keeps its whole collection
under one key; the conversation tagger keeps its id lists under others.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class StorageProvider(ABC):
    """
    Abstract base class for storage backends.

    Values are bytes (serialization is caller's responsibility).

    Implementations:
        SQLiteStorage — file-based, default
        InMemoryStorage — for testing
    """

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Get a value by key. Returns None if not found."""
        ...

    @abstractmethod
    async def set(self, key: str, value: bytes) -> None:
        """Set a value. Overwrites if exists."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a key. Returns True if existed."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the storage backend."""
        ...
