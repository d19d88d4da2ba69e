"""Cache provider implementations."""

from sqldocs.providers.cache.memory_cache import MemoryCacheProvider

__all__ = ["MemoryCacheProvider"]
