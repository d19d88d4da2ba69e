"""Local ONNX-based embedding provider using fastembed.

Wraps the ``fastembed`` library to implement :class:`IEmbeddingProvider`
using ONNX Runtime -- no PyTorch and no API key required.  Runs on CPU.

Default model: ``BAAI/bge-small-en-v1.5`` (384 dimensions), small enough
to download on first use of the CLI.
"""

from __future__ import annotations

import importlib.util

import structlog

from sqldocs.interfaces.embedding_provider import IEmbeddingProvider
from sqldocs.utils.errors import EmbeddingError, ProviderUnavailableError

logger = structlog.get_logger(logger_name=__name__)

# Known model dimensions for fastembed-supported models.
_MODEL_DIMENSIONS: dict[str, int] = {
    "BAAI/bge-small-en-v1.5": 384,
    "BAAI/bge-base-en-v1.5": 768,
    "sentence-transformers/all-MiniLM-L6-v2": 384,
    "intfloat/multilingual-e5-large": 1024,
}

_DEFAULT_MODEL = "BAAI/bge-small-en-v1.5"
_BATCH_LIMIT = 64


class FastEmbedEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by fastembed (ONNX Runtime).

    The model is loaded lazily on first use; the first load downloads the
    weights and caches them locally.
    """

    def __init__(self, model_name: str | None = None) -> None:
        self._model_name = model_name or _DEFAULT_MODEL
        self._dimension = _MODEL_DIMENSIONS.get(self._model_name, 384)
        self._model = None

    def _load_model(self) -> None:
        if self._model is not None:
            return
        try:
            from fastembed import TextEmbedding
        except ImportError as exc:
            raise ProviderUnavailableError(
                message="fastembed is not installed; install the 'fastembed' extra",
                provider_name=self.get_provider_name(),
            ) from exc

        try:
            logger.info("loading_fastembed_model", model=self._model_name)
            self._model = TextEmbedding(model_name=self._model_name)
        except Exception as exc:
            raise EmbeddingError(
                message=f"Failed to load fastembed model '{self._model_name}': {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts."""
        if not texts:
            return []

        self._load_model()

        try:
            all_embeddings: list[list[float]] = []
            for start in range(0, len(texts), _BATCH_LIMIT):
                batch = texts[start : start + _BATCH_LIMIT]
                # fastembed yields numpy arrays
                vectors = list(self._model.embed(batch))
                all_embeddings.extend(v.tolist() for v in vectors)
            return all_embeddings
        except Exception as exc:
            raise EmbeddingError(
                message=f"Fastembed embedding error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def embed_single(self, text: str) -> list[float]:
        result = await self.embed([text])
        return result[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return f"fastembed_{self._model_name.split('/')[-1]}"

    def is_available(self) -> bool:
        """Return ``True`` if fastembed is installed."""
        return importlib.util.find_spec("fastembed") is not None
