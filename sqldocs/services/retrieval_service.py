"""Hybrid documentation retrieval with keyword-only fallback.

The :class:`RetrievalService` owns the indexing pipeline
(**dedupe -> chunk -> embed -> store**) and decides, per query, whether to
answer with hybrid semantic search or with the keyword-only engine.

It runs in one of two modes (:class:`~sqldocs.models.rag.RetrievalMode`):

- ``SEMANTIC`` -- an embedding provider is configured and reported itself
  available at :meth:`RetrievalService.initialize`.
- ``KEYWORD_ONLY`` -- no provider, vector search disabled, the provider
  was unavailable, or a runtime embedding/search call failed.

The only transition is ``SEMANTIC -> KEYWORD_ONLY``.  Once semantic search
has failed in a session the service stays keyword-only until
:meth:`initialize` is called again.

Errors on the embedding path never reach the caller of
:meth:`retrieve_relevant_docs`; they are captured with
:func:`~sqldocs.utils.result.attempt` and answered by the keyword engine.
Store invariant violations (dimension mismatch, corrupt snapshot) are not
absorbed.
"""

from __future__ import annotations

import asyncio
import hashlib
from typing import TYPE_CHECKING

import structlog

from sqldocs.models.chunking import ChunkingOptions
from sqldocs.models.rag import (
    DatabaseDialect,
    DocumentMetadata,
    IndexedDocument,
    IndexingReport,
    ReferenceDocument,
    RetrievalMode,
    RetrievalOptions,
    RetrievalStats,
    RetrievedDocument,
)
from sqldocs.services.chunker import DocumentChunker
from sqldocs.services.vector_store import (
    DEFAULT_KEYWORD_WEIGHT,
    DEFAULT_SEMANTIC_WEIGHT,
    InMemoryVectorStore,
)
from sqldocs.utils.errors import EmbeddingError, SnapshotImportError
from sqldocs.utils.result import Err, attempt

if TYPE_CHECKING:
    from sqldocs.interfaces.cache_provider import ICacheProvider
    from sqldocs.interfaces.embedding_provider import IEmbeddingProvider
    from sqldocs.services.keyword_retrieval import KeywordRetrievalService
    from sqldocs.services.snapshot_cache import SnapshotCache

logger = structlog.get_logger(logger_name=__name__)


def document_id(doc: ReferenceDocument) -> str:
    """Content-derived id: md5 hex digest of ``title + source``."""
    return hashlib.md5((doc.title + doc.source).encode("utf-8")).hexdigest()  # noqa: S324


class RetrievalService:
    """Orchestrates indexing and semantic-or-keyword retrieval.

    Parameters
    ----------
    keyword_service:
        The keyword-only engine used as the fallback (and as the corpus
        source for :meth:`index_keyword_corpus`).
    embedding_provider:
        Optional provider; ``None`` means the service is keyword-only.
    vector_store:
        Store owned by this service.  A fresh one is created when omitted.
    chunker:
        Splits documents longer than ``max_chunk_size``.
    use_vector_search:
        Master switch; ``False`` keeps the service keyword-only.
    semantic_weight / keyword_weight:
        Default hybrid weights, overridable per call.
    chunk_large_docs:
        Default for :meth:`index_documents`.
    query_cache:
        Optional cache for query embeddings.
    """

    def __init__(
        self,
        keyword_service: KeywordRetrievalService,
        embedding_provider: IEmbeddingProvider | None = None,
        vector_store: InMemoryVectorStore | None = None,
        chunker: DocumentChunker | None = None,
        *,
        use_vector_search: bool = True,
        semantic_weight: float = DEFAULT_SEMANTIC_WEIGHT,
        keyword_weight: float = DEFAULT_KEYWORD_WEIGHT,
        chunk_large_docs: bool = True,
        query_cache: ICacheProvider | None = None,
        query_cache_ttl: int | None = None,
    ) -> None:
        self._keyword_service = keyword_service
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store if vector_store is not None else InMemoryVectorStore()
        self._chunker = chunker or DocumentChunker()
        self._use_vector_search = use_vector_search
        self._semantic_weight = semantic_weight
        self._keyword_weight = keyword_weight
        self._chunk_large_docs = chunk_large_docs
        self._query_cache = query_cache
        self._query_cache_ttl = query_cache_ttl

        self._mode = RetrievalMode.KEYWORD_ONLY
        self._initialized = False
        # Parent ids already in the store; committed only after a successful insert.
        self._indexed_ids: set[str] = set()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def mode(self) -> RetrievalMode:
        return self._mode

    @property
    def vector_store(self) -> InMemoryVectorStore:
        return self._vector_store

    @property
    def embedding_provider(self) -> IEmbeddingProvider | None:
        return self._embedding_provider

    async def initialize(self) -> RetrievalMode:
        """Check the embedding provider and fix the service's mode.

        ``is_available`` may block on the network, so it runs in a worker
        thread.  An availability check that raises counts as unavailable.
        """
        provider = self._embedding_provider
        available = False
        if self._use_vector_search and provider is not None:
            try:
                available = await asyncio.to_thread(provider.is_available)
            except Exception as exc:
                logger.warning(
                    "embedding_provider_check_failed",
                    provider=provider.get_provider_name(),
                    error=str(exc),
                )

        self._mode = RetrievalMode.SEMANTIC if available else RetrievalMode.KEYWORD_ONLY
        self._initialized = True
        logger.info(
            "retrieval_service_initialized",
            mode=self._mode.value,
            provider=provider.get_provider_name() if provider else None,
            vector_search_configured=self._use_vector_search,
        )
        return self._mode

    async def _ensure_initialized(self) -> None:
        if not self._initialized:
            await self.initialize()

    def _demote(self, reason: str, error: Exception) -> None:
        if self._mode is RetrievalMode.SEMANTIC:
            logger.warning("semantic_search_disabled", reason=reason, error=str(error))
        self._mode = RetrievalMode.KEYWORD_ONLY

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------

    async def index_documents(
        self,
        docs: list[ReferenceDocument],
        chunk_large_docs: bool | None = None,
        max_chunk_size: int | None = None,
    ) -> IndexingReport:
        """Embed and store *docs*, skipping ones already indexed.

        Documents longer than ``max_chunk_size`` characters are split into
        linked chunk documents when ``chunk_large_docs`` is set.  All texts
        are embedded with a single batch call.

        Returns an :class:`IndexingReport`.  When semantic search is
        unavailable, or the batch embedding call fails, nothing is stored
        and ``skipped_reason`` says why; an embedding failure also switches
        the service to keyword-only mode.

        Raises
        ------
        DimensionMismatchError
            If the embeddings disagree with the store's dimension.
        """
        await self._ensure_initialized()
        requested = len(docs)
        if self._mode is not RetrievalMode.SEMANTIC or self._embedding_provider is None:
            logger.warning("indexing_skipped", reason="semantic search unavailable", requested=requested)
            return IndexingReport(requested=requested, skipped_reason="semantic search unavailable")

        chunk = self._chunk_large_docs if chunk_large_docs is None else chunk_large_docs
        chunk_options = self._chunk_options(max_chunk_size)

        pending: list[tuple[str, str, DocumentMetadata]] = []
        new_ids: set[str] = set()
        skipped = 0
        chunks_created = 0
        for doc in docs:
            doc_id = document_id(doc)
            if doc_id in self._indexed_ids or doc_id in new_ids:
                skipped += 1
                continue
            new_ids.add(doc_id)

            if chunk and len(doc.content) > chunk_options.max_chunk_size:
                pieces = self._chunker.chunk(doc.content, doc.title, chunk_options)
                for piece in pieces:
                    metadata = self._metadata_for(
                        doc,
                        title=f"{doc.title} ({piece.chunk_index + 1}/{piece.total_chunks})",
                        is_chunk=True,
                        chunk_index=piece.chunk_index,
                        total_chunks=piece.total_chunks,
                        original_document_id=doc_id,
                    )
                    pending.append((f"{doc_id}-chunk-{piece.chunk_index}", piece.text, metadata))
                chunks_created += len(pieces)
            else:
                pending.append((doc_id, doc.content, self._metadata_for(doc, title=doc.title)))

        if not pending:
            logger.info("indexing_nothing_new", requested=requested, skipped_duplicates=skipped)
            return IndexingReport(requested=requested, skipped_duplicates=skipped)

        texts = [text for _, text, _ in pending]
        logger.info("generating_embeddings", count=len(texts))
        outcome = await attempt(self._embed_batch(texts))
        if isinstance(outcome, Err):
            logger.error("indexing_embedding_failed", count=len(texts), error=str(outcome.error))
            self._demote("indexing embedding failure", outcome.error)
            return IndexingReport(
                requested=requested,
                skipped_duplicates=skipped,
                skipped_reason=f"embedding failed: {outcome.error}",
            )

        self._vector_store.add_batch(
            [
                IndexedDocument(id=item_id, text=text, embedding=vector, metadata=metadata)
                for (item_id, text, metadata), vector in zip(pending, outcome.value)
            ]
        )
        self._indexed_ids.update(new_ids)

        report = IndexingReport(
            requested=requested,
            skipped_duplicates=skipped,
            documents_indexed=len(new_ids),
            chunks_created=chunks_created,
            embedded_texts=len(texts),
        )
        logger.info("indexing_complete", **report.model_dump(exclude={"skipped_reason"}))
        return report

    async def index_keyword_corpus(self) -> IndexingReport:
        """Index every document loaded into the keyword engine."""
        return await self.index_documents(self._keyword_service.all_documents())

    async def _embed_batch(self, texts: list[str]) -> list[list[float]]:
        vectors = await self._embedding_provider.embed(texts)
        if len(vectors) != len(texts):
            raise EmbeddingError(
                message=f"Expected {len(texts)} embeddings, got {len(vectors)}",
                provider_name=self._embedding_provider.get_provider_name(),
            )
        return vectors

    def _chunk_options(self, max_chunk_size: int | None) -> ChunkingOptions:
        base = self._chunker.options
        if max_chunk_size is None or max_chunk_size == base.max_chunk_size:
            return base
        return base.model_copy(
            update={
                "max_chunk_size": max_chunk_size,
                "min_chunk_size": min(base.min_chunk_size, max_chunk_size),
                "overlap": min(base.overlap, max_chunk_size // 2),
            }
        )

    @staticmethod
    def _metadata_for(doc: ReferenceDocument, title: str, **chunk_fields) -> DocumentMetadata:  # noqa: ANN003
        return DocumentMetadata(
            title=title,
            source=doc.source,
            dialect=doc.resolved_dialect(),
            version=doc.version or None,
            url=doc.source if doc.source.startswith(("http://", "https://")) else None,
            keywords=list(doc.keywords),
            **chunk_fields,
        )

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    async def retrieve_relevant_docs(
        self,
        query: str,
        dialect: DatabaseDialect = DatabaseDialect.MYSQL,
        max_docs: int = 3,
        options: RetrievalOptions | None = None,
    ) -> list[RetrievedDocument]:
        """Return up to *max_docs* documents relevant to *query*.

        Uses hybrid search restricted to *dialect* and ``general`` documents
        when semantic search is active, otherwise the keyword engine.  Never
        raises for embedding or search failures: those are logged, switch
        the service to keyword-only mode and are answered by the keyword
        engine.
        """
        await self._ensure_initialized()
        opts = options or RetrievalOptions()
        use_vector = (
            self._mode is RetrievalMode.SEMANTIC
            if opts.use_vector_search is None
            else opts.use_vector_search
        )

        if not use_vector or self._embedding_provider is None:
            logger.debug("keyword_only_search", dialect=dialect.value)
            return self._keyword_docs(query, dialect, max_docs)

        if len(self._vector_store) == 0:
            logger.debug("vector_store_empty_using_keywords", dialect=dialect.value)
            return self._keyword_docs(query, dialect, max_docs)

        outcome = await attempt(self._semantic_search(query, dialect, max_docs, opts))
        if isinstance(outcome, Err):
            logger.error("vector_search_failed_falling_back", error=str(outcome.error))
            self._demote("query-time failure", outcome.error)
        return outcome.unwrap_or_else(lambda _exc: self._keyword_docs(query, dialect, max_docs))

    async def _semantic_search(
        self,
        query: str,
        dialect: DatabaseDialect,
        max_docs: int,
        opts: RetrievalOptions,
    ) -> list[RetrievedDocument]:
        semantic_weight = self._semantic_weight if opts.semantic_weight is None else opts.semantic_weight
        keyword_weight = self._keyword_weight if opts.keyword_weight is None else opts.keyword_weight

        query_embedding = await self._embed_query(query)
        results = self._vector_store.hybrid_search(
            query_embedding,
            query,
            limit=max_docs,
            semantic_weight=semantic_weight,
            keyword_weight=keyword_weight,
            filter=lambda doc: doc.metadata.dialect in (dialect, DatabaseDialect.GENERAL),
        )
        logger.debug(
            "hybrid_search_complete",
            results=len(results),
            semantic_weight=semantic_weight,
            keyword_weight=keyword_weight,
        )
        return [RetrievedDocument.from_hybrid(result) for result in results]

    async def _embed_query(self, query: str) -> list[float]:
        provider = self._embedding_provider
        if self._query_cache is None:
            return await provider.embed_single(query)

        digest = hashlib.sha256(query.encode("utf-8")).hexdigest()
        key = f"query_embedding:{provider.get_provider_name()}:{digest}"
        cached = await self._query_cache.get(key)
        if cached is not None:
            logger.debug("query_embedding_cache_hit")
            return cached

        vector = await provider.embed_single(query)
        await self._query_cache.set(key, vector, ttl=self._query_cache_ttl)
        return vector

    def _keyword_docs(self, query: str, dialect: DatabaseDialect, max_docs: int) -> list[RetrievedDocument]:
        return self._keyword_service.retrieve_relevant_docs(query, dialect, max_docs)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def export_vector_store(self) -> str:
        return self._vector_store.export_snapshot()

    def import_vector_store(self, blob: str | bytes) -> None:
        """Replace the store with a snapshot and rebuild the dedupe set.

        Raises
        ------
        SnapshotImportError
            If *blob* is not a valid snapshot; the store is left unchanged.
        """
        self._vector_store.import_snapshot(blob)
        self._indexed_ids = {
            doc.metadata.original_document_id if doc.metadata.is_chunk else doc.id
            for doc in self._vector_store.documents()
            if not doc.metadata.is_chunk or doc.metadata.original_document_id
        }
        logger.info(
            "vector_store_restored",
            documents=len(self._vector_store),
            parents=len(self._indexed_ids),
        )

    def clear_vector_store(self) -> None:
        self._vector_store.clear()
        self._indexed_ids.clear()
        logger.info("retrieval_vector_store_cleared")

    def warm_from_cache(self, cache: SnapshotCache) -> bool:
        """Import the cached snapshot for the current provider, if any.

        A corrupt cache entry is logged, deleted and treated as a miss.
        """
        if self._embedding_provider is None:
            return False
        provider_name = self._embedding_provider.get_provider_name()
        blob = cache.get(provider_name)
        if blob is None:
            return False
        try:
            self.import_vector_store(blob)
        except SnapshotImportError as exc:
            logger.warning("cached_snapshot_corrupt", provider=provider_name, error=str(exc))
            cache.delete(provider_name)
            return False
        return True

    def persist_to_cache(self, cache: SnapshotCache) -> bool:
        """Write the current store to *cache*; ``False`` when there is nothing to save."""
        if self._embedding_provider is None or len(self._vector_store) == 0:
            return False
        return cache.set(self._embedding_provider.get_provider_name(), self.export_vector_store())

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def get_stats(self) -> RetrievalStats:
        provider = self._embedding_provider
        return RetrievalStats(
            mode=self._mode,
            vector_search_enabled=self._mode is RetrievalMode.SEMANTIC,
            embedding_provider=provider.get_provider_name() if provider else None,
            vector_store=self._vector_store.get_stats(),
            keyword_corpus=self._keyword_service.get_stats(),
        )
