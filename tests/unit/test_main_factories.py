"""Unit tests for the composition root: provider selection and service assembly."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from sqldocs.config.settings import Settings
from sqldocs.main import (
    build_chunking_options,
    build_embedding_provider,
    build_retrieval_service,
    build_snapshot_cache,
)
from sqldocs.models.chunking import ChunkingStrategy
from sqldocs.models.rag import RetrievalMode
from sqldocs.providers.embedding.fastembed_embedding_provider import FastEmbedEmbeddingProvider
from sqldocs.providers.embedding.hash_embedding_provider import HashEmbeddingProvider
from sqldocs.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from sqldocs.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from sqldocs.utils.errors import ConfigurationError
from tests.conftest import StubEmbeddingProvider

_FASTEMBED_AVAILABLE = (
    "sqldocs.providers.embedding.fastembed_embedding_provider."
    "FastEmbedEmbeddingProvider.is_available"
)
_NOMIC_AVAILABLE = (
    "sqldocs.providers.embedding.nomic_embedding_provider.NomicEmbeddingProvider.is_available"
)


def _settings(**overrides) -> Settings:
    defaults = {"openai_api_key": "", "embedding_provider": "auto"}
    defaults.update(overrides)
    return Settings(**defaults)


class TestBuildEmbeddingProvider:
    def test_none_means_keyword_only(self) -> None:
        assert build_embedding_provider(_settings(embedding_provider="none")) is None

    def test_hash_by_name(self) -> None:
        provider = build_embedding_provider(_settings(embedding_provider="hash"))
        assert isinstance(provider, HashEmbeddingProvider)

    def test_explicit_choice_skips_availability_check(self) -> None:
        provider = build_embedding_provider(_settings(embedding_provider="openai"))

        assert isinstance(provider, OpenAIEmbeddingProvider)
        assert provider.is_available() is False

    def test_fastembed_model_setting(self) -> None:
        provider = build_embedding_provider(
            _settings(embedding_provider="fastembed", fastembed_model="BAAI/bge-base-en-v1.5")
        )

        assert isinstance(provider, FastEmbedEmbeddingProvider)
        assert provider.get_dimension() == 768

    def test_nomic_by_name(self) -> None:
        provider = build_embedding_provider(_settings(embedding_provider="nomic"))
        assert isinstance(provider, NomicEmbeddingProvider)

    def test_auto_prefers_openai_with_key(self) -> None:
        provider = build_embedding_provider(_settings(openai_api_key="sk-test"))
        assert isinstance(provider, OpenAIEmbeddingProvider)

    def test_auto_falls_to_fastembed(self) -> None:
        with patch(_FASTEMBED_AVAILABLE, return_value=True):
            provider = build_embedding_provider(_settings())

        assert isinstance(provider, FastEmbedEmbeddingProvider)

    def test_auto_falls_to_nomic(self) -> None:
        with (
            patch(_FASTEMBED_AVAILABLE, return_value=False),
            patch(_NOMIC_AVAILABLE, return_value=True),
        ):
            provider = build_embedding_provider(_settings())

        assert isinstance(provider, NomicEmbeddingProvider)

    def test_auto_with_nothing_available(self) -> None:
        with (
            patch(_FASTEMBED_AVAILABLE, return_value=False),
            patch(_NOMIC_AVAILABLE, return_value=False),
        ):
            assert build_embedding_provider(_settings()) is None

    def test_auto_never_picks_hash(self) -> None:
        with (
            patch(_FASTEMBED_AVAILABLE, return_value=False),
            patch(_NOMIC_AVAILABLE, return_value=False),
        ):
            provider = build_embedding_provider(_settings())

        assert not isinstance(provider, HashEmbeddingProvider)


class TestBuildChunkingOptions:
    def test_translates_settings(self) -> None:
        options = build_chunking_options(
            _settings(
                chunking_strategy="markdown",
                max_chunk_size=600,
                min_chunk_size=50,
                chunk_overlap=100,
            )
        )

        assert options.strategy is ChunkingStrategy.MARKDOWN
        assert options.max_chunk_size == 600
        assert options.min_chunk_size == 50
        assert options.overlap == 100

    def test_inconsistent_bounds_are_a_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError):
            build_chunking_options(_settings(max_chunk_size=100, min_chunk_size=500))


class TestBuildRetrievalService:
    @pytest.mark.asyncio
    async def test_loads_corpus_and_uses_given_provider(self, docs_dir: Path) -> None:
        provider = StubEmbeddingProvider()
        service = build_retrieval_service(_settings(docs_dir=str(docs_dir)), embedding_provider=provider)

        assert service.embedding_provider is provider
        assert await service.initialize() is RetrievalMode.SEMANTIC
        assert service.get_stats().keyword_corpus.total == 4

    @pytest.mark.asyncio
    async def test_vector_search_disabled_is_keyword_only(self, docs_dir: Path) -> None:
        service = build_retrieval_service(
            _settings(docs_dir=str(docs_dir), use_vector_search=False, embedding_provider="hash")
        )

        assert service.embedding_provider is None
        assert await service.initialize() is RetrievalMode.KEYWORD_ONLY

    def test_skip_corpus_loading(self, docs_dir: Path) -> None:
        service = build_retrieval_service(
            _settings(docs_dir=str(docs_dir), embedding_provider="none"), load_corpus=False
        )
        assert service.get_stats().keyword_corpus.total == 0

    @pytest.mark.asyncio
    async def test_query_embeddings_are_cached(self, docs_dir: Path) -> None:
        provider = StubEmbeddingProvider()
        service = build_retrieval_service(
            _settings(docs_dir=str(docs_dir), query_cache_size=16), embedding_provider=provider
        )
        await service.index_keyword_corpus()

        await service.retrieve_relevant_docs("add an index")
        await service.retrieve_relevant_docs("add an index")

        assert provider.embed_single_calls == ["add an index"]


class TestBuildSnapshotCache:
    def test_uses_settings(self, tmp_path: Path) -> None:
        cache = build_snapshot_cache(
            _settings(snapshot_cache_dir=str(tmp_path / "snap"), snapshot_cache_ttl=10)
        )
        assert cache.cache_dir == tmp_path / "snap"
