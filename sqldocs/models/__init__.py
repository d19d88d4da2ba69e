"""sqldocs domain models, re-exports all public model classes.

Other parts of the codebase can import directly from ``sqldocs.models``
(e.g. ``from sqldocs.models import ReferenceDocument``) instead of from the
individual submodules:

    - chunking.py -- chunking strategy, bounds and the chunks produced
    - rag.py      -- reference documents, indexed documents, search results,
                     snapshots and statistics

If you add a new model class, remember to add it to ``__all__`` too.
"""

from __future__ import annotations

from sqldocs.models.chunking import ChunkingOptions, ChunkingStrategy, TextChunk
from sqldocs.models.rag import (
    DatabaseDialect,
    DocumentMetadata,
    HybridSearchResult,
    IndexedDocument,
    IndexingReport,
    KeywordCorpusStats,
    ReferenceDocument,
    RetrievalMode,
    RetrievalOptions,
    RetrievalStats,
    RetrievedDocument,
    SearchResult,
    SnapshotCacheStats,
    VectorStoreSnapshot,
    VectorStoreStats,
    detect_dialect,
)

__all__ = [
    "ChunkingOptions",
    "ChunkingStrategy",
    "DatabaseDialect",
    "DocumentMetadata",
    "HybridSearchResult",
    "IndexedDocument",
    "IndexingReport",
    "KeywordCorpusStats",
    "ReferenceDocument",
    "RetrievalMode",
    "RetrievalOptions",
    "RetrievalStats",
    "RetrievedDocument",
    "SearchResult",
    "SnapshotCacheStats",
    "TextChunk",
    "VectorStoreSnapshot",
    "VectorStoreStats",
    "detect_dialect",
]
