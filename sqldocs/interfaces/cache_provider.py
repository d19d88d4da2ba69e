"""Abstract base class for cache service providers.

Defines the key-value contract used to cache query embeddings so repeated
retrievals for the same question do not hit the embedding backend again.
Implementations may use an in-memory dict, Redis, or any other storage.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ICacheProvider(ABC):
    """Contract for key-value cache services.

    All operations are async to allow for network-backed stores (e.g. Redis)
    without blocking the event loop.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Retrieve the value stored under *key*.

        Returns
        -------
        Any or None
            The cached value if present and not expired; ``None`` otherwise.
        """

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store *value* under *key* with an optional time-to-live in seconds."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the entry stored under *key*; no-op if absent."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* is present in the cache and not expired."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every entry."""
