"""Abstract base class for text-embedding service providers.

Defines the contract for generating embedding vectors from text.
Implementations may wrap OpenAI ``text-embedding-3-small``, a local ONNX
model via fastembed, Nomic ``nomic-embed-text`` served by Ollama, or any
other embedding backend.  The retrieval layer never depends on how vectors
are produced, only on this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations (sqldocs/providers/embedding/):
#   OpenAIEmbeddingProvider    -- text-embedding-3-small (requires API key)
#   FastEmbedEmbeddingProvider -- local ONNX model, no API key
#   NomicEmbeddingProvider     -- nomic-embed-text via Ollama (local)
#   HashEmbeddingProvider      -- deterministic hashed vectors for offline demos
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by the retrieval service.

    Unavailability is an expected state, not an error: callers check
    :meth:`is_available` and switch to keyword-only retrieval when it
    returns ``False`` (or raises).
    """

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.  Implementations should
            handle batching internally if the underlying API has a per-call
            limit.

        Returns
        -------
        list[list[float]]
            Embedding vectors corresponding positionally to *texts*; the
            result has the same length as the input.

        Raises
        ------
        sqldocs.utils.errors.EmbeddingError
            If the embedding call fails.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string.

        Used for query embedding at retrieval time.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the embedding vectors.

        Example values: ``1536`` (OpenAI ``text-embedding-3-small``),
        ``768`` (Nomic ``nomic-embed-text``).
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this embedding provider.

        Also used as the key for persisted vector-store snapshots, so two
        providers producing incompatible vectors must return different names.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured and reachable.

        Implementations should verify credentials or reachability without
        generating an actual embedding.  May block on network I/O.
        """
