"""Composition root for sqldocs.

Builds the concrete providers and services from :class:`Settings`.  The
CLI and any embedding application call :func:`build_retrieval_service`
rather than wiring collaborators by hand, so provider selection lives in
one place.

Embedding provider selection (``EMBEDDING_PROVIDER``):

- ``auto`` -- OpenAI (if an API key is set) -> fastembed (if installed) ->
  Nomic via Ollama (if reachable) -> none (keyword-only).
- ``openai`` / ``fastembed`` / ``nomic`` / ``hash`` -- that provider,
  availability is checked later by ``RetrievalService.initialize``.
- ``none`` -- keyword-only.
"""

from __future__ import annotations

import structlog
from pydantic import ValidationError

from sqldocs.config.settings import Settings
from sqldocs.interfaces.embedding_provider import IEmbeddingProvider
from sqldocs.models.chunking import ChunkingOptions
from sqldocs.providers.cache.memory_cache import MemoryCacheProvider
from sqldocs.services.chunker import DocumentChunker
from sqldocs.services.keyword_retrieval import KeywordRetrievalService
from sqldocs.services.retrieval_service import RetrievalService
from sqldocs.services.snapshot_cache import SnapshotCache
from sqldocs.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)


# ---------------------------------------------------------------------------
# Embedding provider selection
# ---------------------------------------------------------------------------


def build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider | None:
    """Return the configured embedding provider, or ``None`` for keyword-only.

    Provider modules are imported lazily so the SDKs of unused providers
    are never loaded.
    """
    choice = app_settings.embedding_provider
    if choice == "none":
        return None
    if choice == "hash":
        from sqldocs.providers.embedding.hash_embedding_provider import (
            HashEmbeddingProvider,
        )

        return HashEmbeddingProvider()
    if choice == "openai":
        return _openai_provider(app_settings)
    if choice == "fastembed":
        return _fastembed_provider(app_settings)
    if choice == "nomic":
        return _nomic_provider(app_settings)

    # --- auto: first available wins ---
    if app_settings.openai_api_key:
        provider = _openai_provider(app_settings)
        if provider.is_available():
            return provider

    fe_provider = _fastembed_provider(app_settings)
    if fe_provider.is_available():
        return fe_provider

    nomic_provider = _nomic_provider(app_settings)
    if nomic_provider.is_available():
        return nomic_provider

    logger.info("no_embedding_provider_available", fallback="keyword_only")
    return None


def _openai_provider(app_settings: Settings) -> IEmbeddingProvider:
    from sqldocs.providers.embedding.openai_embedding_provider import (
        OpenAIEmbeddingProvider,
    )

    return OpenAIEmbeddingProvider(settings=app_settings)


def _fastembed_provider(app_settings: Settings) -> IEmbeddingProvider:
    from sqldocs.providers.embedding.fastembed_embedding_provider import (
        FastEmbedEmbeddingProvider,
    )

    return FastEmbedEmbeddingProvider(model_name=app_settings.fastembed_model or None)


def _nomic_provider(app_settings: Settings) -> IEmbeddingProvider:
    from sqldocs.providers.embedding.nomic_embedding_provider import (
        NomicEmbeddingProvider,
    )

    return NomicEmbeddingProvider(settings=app_settings)


# ---------------------------------------------------------------------------
# Service assembly
# ---------------------------------------------------------------------------


def build_chunking_options(app_settings: Settings) -> ChunkingOptions:
    """Translate the chunking settings; invalid bounds are a configuration error."""
    try:
        return ChunkingOptions(
            max_chunk_size=app_settings.max_chunk_size,
            min_chunk_size=app_settings.min_chunk_size,
            overlap=app_settings.chunk_overlap,
            strategy=app_settings.chunking_strategy,
        )
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid chunking settings: {exc}") from exc


def build_snapshot_cache(app_settings: Settings) -> SnapshotCache:
    return SnapshotCache(
        cache_dir=app_settings.snapshot_cache_dir,
        ttl_seconds=app_settings.snapshot_cache_ttl,
    )


def build_retrieval_service(
    app_settings: Settings,
    embedding_provider: IEmbeddingProvider | None = None,
    load_corpus: bool = True,
) -> RetrievalService:
    """Assemble a :class:`RetrievalService` from *app_settings*.

    Parameters
    ----------
    app_settings:
        Application settings.
    embedding_provider:
        Overrides provider selection when given.
    load_corpus:
        Load the keyword corpus from ``docs_dir``.  Missing corpus files
        are skipped; malformed ones raise
        :class:`~sqldocs.utils.errors.CorpusLoadError`.
    """
    keyword_service = KeywordRetrievalService()
    if load_corpus:
        keyword_service.load_directory(app_settings.docs_dir)

    provider = embedding_provider
    if provider is None and app_settings.use_vector_search:
        provider = build_embedding_provider(app_settings)

    query_cache = None
    if app_settings.query_cache_size > 0:
        query_cache = MemoryCacheProvider(
            max_size=app_settings.query_cache_size,
            ttl=app_settings.query_cache_ttl,
        )

    service = RetrievalService(
        keyword_service=keyword_service,
        embedding_provider=provider,
        chunker=DocumentChunker(build_chunking_options(app_settings)),
        use_vector_search=app_settings.use_vector_search,
        semantic_weight=app_settings.semantic_weight,
        keyword_weight=app_settings.keyword_weight,
        chunk_large_docs=app_settings.chunk_large_docs,
        query_cache=query_cache,
        query_cache_ttl=app_settings.query_cache_ttl,
    )
    logger.info(
        "retrieval_service_built",
        provider=provider.get_provider_name() if provider else None,
        docs_dir=app_settings.docs_dir,
    )
    return service
