"""Deterministic hash-based embedding provider.

Produces unit-length pseudo-embeddings from character codes and positions.
The vectors carry no semantic meaning; two texts are "similar" only when
they share characters at similar positions.  Useful for offline demos and
for exercising the indexing pipeline without a model.  Never selected by
``embedding_provider = "auto"``.
"""

from __future__ import annotations

import math

from sqldocs.interfaces.embedding_provider import IEmbeddingProvider

_DEFAULT_DIMENSION = 384


class HashEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider that hashes text into a fixed-size vector."""

    def __init__(self, dimension: int = _DEFAULT_DIMENSION) -> None:
        if dimension <= 0:
            raise ValueError("dimension must be positive")
        self._dimension = dimension

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return [self._hash_to_vector(text) for text in texts]

    async def embed_single(self, text: str) -> list[float]:
        return self._hash_to_vector(text)

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return f"hash_{self._dimension}"

    def is_available(self) -> bool:
        return True

    def _hash_to_vector(self, text: str) -> list[float]:
        vector = [0.0] * self._dimension
        length = len(text) or 1
        for i, char in enumerate(text):
            code = ord(char)
            vector[(code + i) % self._dimension] += math.sin(code * i) / length

        magnitude = math.sqrt(sum(v * v for v in vector))
        if magnitude == 0:
            return vector
        return [v / magnitude for v in vector]
