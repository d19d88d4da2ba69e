"""Abstract provider interfaces.

Each interface defines the contract for one external collaborator so the
retrieval layer can be wired against any implementation.
"""

from sqldocs.interfaces.cache_provider import ICacheProvider
from sqldocs.interfaces.embedding_provider import IEmbeddingProvider

__all__ = [
    "ICacheProvider",
    "IEmbeddingProvider",
]
