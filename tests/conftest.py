"""Shared pytest fixtures for the sqldocs test suite."""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path

import pytest
import structlog

from sqldocs.interfaces.embedding_provider import IEmbeddingProvider
from sqldocs.models.rag import DatabaseDialect, ReferenceDocument
from sqldocs.services.keyword_retrieval import KeywordRetrievalService
from sqldocs.utils.errors import EmbeddingError
from sqldocs.utils.text import tokenize

_EMBEDDING_DIM = 64


def _bag_of_words_vector(text: str, dim: int = _EMBEDDING_DIM) -> list[float]:
    """Deterministic bag-of-words vector: shared tokens mean similar vectors."""
    vector = [0.0] * dim
    for token in tokenize(text):
        bucket = int(hashlib.md5(token.encode("utf-8")).hexdigest(), 16) % dim
        vector[bucket] += 1.0
    return vector


class StubEmbeddingProvider(IEmbeddingProvider):
    """In-memory deterministic embedding provider for tests.

    Records every call so tests can assert on batching, and can be told to
    fail or report itself unavailable.
    """

    def __init__(
        self,
        dimension: int = _EMBEDDING_DIM,
        available: bool = True,
        fail_embed: bool = False,
        fail_query: bool = False,
        name: str = "stub-embedding",
    ) -> None:
        self.dimension = dimension
        self.available = available
        self.fail_embed = fail_embed
        self.fail_query = fail_query
        self.name = name
        self.embed_calls: list[list[str]] = []
        self.embed_single_calls: list[str] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.embed_calls.append(list(texts))
        if self.fail_embed:
            raise EmbeddingError("stub batch failure", provider_name=self.name)
        return [_bag_of_words_vector(t, self.dimension) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        self.embed_single_calls.append(text)
        if self.fail_query:
            raise EmbeddingError("stub query failure", provider_name=self.name)
        return _bag_of_words_vector(text, self.dimension)

    def get_dimension(self) -> int:
        return self.dimension

    def get_provider_name(self) -> str:
        return self.name

    def is_available(self) -> bool:
        return self.available


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

_MYSQL_DOCS = [
    {
        "id": "mysql-index",
        "title": "CREATE INDEX Statement",
        "keywords": ["index", "create index", "performance"],
        "content": "CREATE INDEX adds a secondary index to speed up lookups on a column.",
        "source": "https://dev.mysql.com/doc/refman/8.0/en/create-index.html",
        "version": "8.0",
    },
    {
        "id": "mysql-explain",
        "title": "EXPLAIN Output",
        "keywords": ["explain", "query plan", "optimization"],
        "content": "EXPLAIN shows the execution plan and whether a full scan happens.",
        "source": "https://dev.mysql.com/doc/refman/8.0/en/explain-output.html",
        "version": "8.0",
    },
]

_MARIADB_DOCS = [
    {
        "id": "mariadb-ignored-index",
        "title": "Ignored Indexes",
        "keywords": ["index", "ignored"],
        "content": "An index marked IGNORED is maintained but not used by the optimizer.",
        "source": "https://mariadb.com/kb/en/ignored-indexes/",
        "version": "10.6",
    },
]

_GENERAL_DOCS = [
    {
        "id": "general-covering",
        "title": "Covering Indexes",
        "keywords": ["covering index", "index", "performance"],
        "content": "A covering index answers a query without reading table rows.",
        "source": "sql-performance-notes",
    },
]


@pytest.fixture
def stub_embedding_provider() -> StubEmbeddingProvider:
    """Available stub provider returning bag-of-words vectors."""
    return StubEmbeddingProvider()


@pytest.fixture
def mysql_docs() -> list[ReferenceDocument]:
    return [ReferenceDocument(**raw) for raw in _MYSQL_DOCS]


@pytest.fixture
def reference_docs() -> list[ReferenceDocument]:
    """One mysql-, one mariadb- and one general-tagged document set."""
    return [ReferenceDocument(**raw) for raw in (*_MYSQL_DOCS, *_MARIADB_DOCS, *_GENERAL_DOCS)]


@pytest.fixture
def keyword_service() -> KeywordRetrievalService:
    """Keyword engine preloaded with the sample documents."""
    service = KeywordRetrievalService()
    service.add_documents(DatabaseDialect.MYSQL, [ReferenceDocument(**raw) for raw in _MYSQL_DOCS])
    service.add_documents(
        DatabaseDialect.MARIADB, [ReferenceDocument(**raw) for raw in _MARIADB_DOCS]
    )
    service.add_documents(
        DatabaseDialect.GENERAL, [ReferenceDocument(**raw) for raw in _GENERAL_DOCS]
    )
    return service


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    """A corpus directory with mysql, mariadb and general files."""
    directory = tmp_path / "docs"
    directory.mkdir()
    for dialect, docs in (
        ("mysql", _MYSQL_DOCS),
        ("mariadb", _MARIADB_DOCS),
        ("general", _GENERAL_DOCS),
    ):
        (directory / f"{dialect}-docs.json").write_text(
            json.dumps({"documents": docs}), encoding="utf-8"
        )
    return directory


@pytest.fixture
def quiet_logging():
    """Drop all log output below CRITICAL for tests that inspect stdout."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.CRITICAL),
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()
