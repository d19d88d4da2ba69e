"""Retrieval data models for the sqldocs knowledge base.

Defines Pydantic v2 models for reference documentation, vectorized
documents held by the in-memory vector store, search results, snapshots
and statistics.  All models use frozen config so a stored document is never
partially mutated; re-indexing replaces a document wholesale by id.

Retrieval overview:

    1. LOADING: Curated documentation snippets (``ReferenceDocument``) are
       read from ``<dialect>-docs.json`` files by the keyword-only engine.
    2. CHUNKING: Snippets longer than the configured chunk size are split by
       :class:`~sqldocs.services.chunker.DocumentChunker`.
    3. EMBEDDING: Texts are vectorized in one batch by an
       :class:`~sqldocs.interfaces.embedding_provider.IEmbeddingProvider`.
    4. STORAGE: ``IndexedDocument`` objects go into the in-memory store.
    5. RETRIEVAL: Queries are answered with hybrid (semantic + keyword)
       search, or keyword-only search when embeddings are unavailable, and
       returned as ``RetrievedDocument`` objects.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class DatabaseDialect(str, Enum):  # noqa: UP042 — StrEnum requires Python 3.11+
    """Database dialect a document is most relevant to.

    ``GENERAL`` is the wildcard: such documents match every dialect.
    """

    MYSQL = "mysql"
    MARIADB = "mariadb"
    POSTGRESQL = "postgresql"
    GENERAL = "general"


def detect_dialect(source: str) -> DatabaseDialect:
    """Infer a document's dialect from its source identifier or URL.

    ``mariadb`` is checked before ``mysql`` because MariaDB sources often
    mention MySQL compatibility.
    """
    lowered = source.lower()
    if "mariadb" in lowered:
        return DatabaseDialect.MARIADB
    if "mysql" in lowered:
        return DatabaseDialect.MYSQL
    if "postgres" in lowered:
        return DatabaseDialect.POSTGRESQL
    return DatabaseDialect.GENERAL


# ---------------------------------------------------------------------------
# ReferenceDocument -- a curated documentation snippet.
# ---------------------------------------------------------------------------
class ReferenceDocument(BaseModel):
    """A documentation snippet as loaded from the bundled corpus files."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default="", description="Corpus-local identifier, if any.")
    title: str = Field(description="Human-readable title of the snippet.")
    content: str = Field(description="The snippet's textual content.")
    source: str = Field(default="", description="Source identifier or URL.")
    keywords: list[str] = Field(
        default_factory=list,
        description="Curated keyword list used by keyword-only scoring.",
    )
    version: str = Field(default="", description="Server version the snippet applies to.")
    dialect: DatabaseDialect | None = Field(
        default=None,
        description="Explicit dialect; inferred from ``source`` when omitted.",
    )

    def resolved_dialect(self) -> DatabaseDialect:
        """Return the explicit dialect, or the one inferred from ``source``."""
        return self.dialect or detect_dialect(self.source)


# ---------------------------------------------------------------------------
# DocumentMetadata / IndexedDocument -- the vector store's unit of storage.
# ---------------------------------------------------------------------------
class DocumentMetadata(BaseModel):
    """Typed metadata attached to every vectorized document.

    The field set is closed (unknown keys are rejected); free-form values
    go into ``extra``.

    ``original_document_id`` is a *weak reference*: a lookup key pointing at
    the unchunked parent.  The parent may never have been stored, or may
    have been removed; chunks do not keep it alive and removing the parent
    does not remove its chunks.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    title: str = Field(description="Title shown to the caller.")
    source: str = Field(default="", description="Source identifier or URL.")
    dialect: DatabaseDialect = Field(
        default=DatabaseDialect.GENERAL,
        description="Dialect affinity tag; GENERAL matches every dialect.",
    )
    version: str | None = None
    category: str | None = None
    url: str | None = None
    keywords: list[str] = Field(default_factory=list)
    # --- Chunk linkage: set only when the document is a fragment. ---
    is_chunk: bool = False
    chunk_index: int | None = Field(default=None, ge=0)
    total_chunks: int | None = Field(default=None, ge=1)
    original_document_id: str | None = Field(
        default=None,
        description="Non-owning lookup key of the unchunked parent document.",
    )
    extra: dict[str, str] = Field(
        default_factory=dict,
        description="Explicit extension map for metadata outside the named fields.",
    )


class IndexedDocument(BaseModel):
    """A document with its embedding, as held by the vector store."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Stable identity, unique within one store.")
    text: str = Field(description="Content used for semantic and keyword scoring.")
    embedding: list[float] = Field(description="Embedding vector, stored as given.")
    metadata: DocumentMetadata


# ---------------------------------------------------------------------------
# Search results
# ---------------------------------------------------------------------------
class SearchResult(BaseModel):
    """A document returned by pure semantic search."""

    model_config = ConfigDict(frozen=True)

    document: IndexedDocument
    # Cosine similarity; can be negative for opposed vectors.
    score: float


class HybridSearchResult(BaseModel):
    """A document returned by hybrid search with its score breakdown."""

    model_config = ConfigDict(frozen=True)

    document: IndexedDocument
    semantic_score: float
    keyword_score: float
    combined_score: float


# ---------------------------------------------------------------------------
# Snapshot / stats
# ---------------------------------------------------------------------------
class VectorStoreSnapshot(BaseModel):
    """Wire format of an exported vector store.

    Serialised as JSON; floats round-trip at full precision.
    """

    model_config = ConfigDict(frozen=True)

    dimension: int = Field(ge=0)
    documents: list[IndexedDocument] = Field(default_factory=list)


class VectorStoreStats(BaseModel):
    """Aggregate statistics for one vector store instance."""

    model_config = ConfigDict(frozen=True)

    total_documents: int = Field(default=0, ge=0)
    dimension: int = Field(default=0, ge=0)
    by_dialect: dict[str, int] = Field(
        default_factory=dict,
        description='Document count per dialect tag (e.g. {"mysql": 12, "general": 3}).',
    )


class KeywordCorpusStats(BaseModel):
    """Statistics for the keyword-only engine's loaded corpus."""

    model_config = ConfigDict(frozen=True)

    total: int = Field(default=0, ge=0)
    by_dialect: dict[str, int] = Field(default_factory=dict)
    avg_keywords_per_doc: float = Field(default=0.0, ge=0.0)


# ---------------------------------------------------------------------------
# Caller-facing retrieval models
# ---------------------------------------------------------------------------
class RetrievedDocument(BaseModel):
    """A document returned to the caller of ``retrieve_relevant_docs``.

    ``relevance_score`` is the score that ranked the document (the combined
    hybrid score, or the keyword-only score).  ``semantic_score`` and
    ``keyword_score`` are present only when semantic search produced the
    result, so consumers can log why a document was chosen.
    """

    model_config = ConfigDict(frozen=True)

    id: str = ""
    title: str
    content: str
    source: str = ""
    keywords: list[str] = Field(default_factory=list)
    version: str = ""
    dialect: DatabaseDialect = DatabaseDialect.GENERAL
    relevance_score: float = 0.0
    semantic_score: float | None = None
    keyword_score: float | None = None

    @classmethod
    def from_reference(cls, doc: ReferenceDocument, score: float) -> RetrievedDocument:
        return cls(
            id=doc.id,
            title=doc.title,
            content=doc.content,
            source=doc.source,
            keywords=list(doc.keywords),
            version=doc.version,
            dialect=doc.resolved_dialect(),
            relevance_score=score,
        )

    @classmethod
    def from_hybrid(cls, result: HybridSearchResult) -> RetrievedDocument:
        doc = result.document
        return cls(
            id=doc.id,
            title=doc.metadata.title,
            content=doc.text,
            source=doc.metadata.source,
            keywords=list(doc.metadata.keywords),
            version=doc.metadata.version or "",
            dialect=doc.metadata.dialect,
            relevance_score=result.combined_score,
            semantic_score=result.semantic_score,
            keyword_score=result.keyword_score,
        )


class RetrievalMode(str, Enum):  # noqa: UP042 — StrEnum requires Python 3.11+
    """The retrieval service's two states."""

    SEMANTIC = "semantic"
    KEYWORD_ONLY = "keyword_only"


class RetrievalOptions(BaseModel):
    """Per-call overrides for ``retrieve_relevant_docs``.

    ``None`` means "use the service default".  Weights are not renormalised;
    callers wanting a convex combination must pass weights summing to 1.
    """

    model_config = ConfigDict(frozen=True)

    use_vector_search: bool | None = None
    semantic_weight: float | None = None
    keyword_weight: float | None = None


class IndexingReport(BaseModel):
    """Summary of one ``index_documents`` call."""

    model_config = ConfigDict(frozen=True)

    requested: int = Field(default=0, ge=0)
    skipped_duplicates: int = Field(default=0, ge=0)
    documents_indexed: int = Field(default=0, ge=0)
    chunks_created: int = Field(default=0, ge=0)
    embedded_texts: int = Field(default=0, ge=0)
    skipped_reason: str | None = Field(
        default=None,
        description="Why nothing was indexed (semantic search unavailable, embedding failure).",
    )


class RetrievalStats(BaseModel):
    """Combined statistics reported by the retrieval service."""

    model_config = ConfigDict(frozen=True)

    mode: RetrievalMode
    vector_search_enabled: bool
    embedding_provider: str | None = None
    vector_store: VectorStoreStats
    keyword_corpus: KeywordCorpusStats


class SnapshotCacheStats(BaseModel):
    """Statistics for the on-disk snapshot cache."""

    model_config = ConfigDict(frozen=True)

    entries: int = Field(default=0, ge=0)
    total_bytes: int = Field(default=0, ge=0)
    cache_dir: str = ""
