"""In-memory vector store with cosine-similarity and hybrid search.

The corpus is a bounded, curated documentation set (hundreds to a few
thousand chunks), so every query is a brute-force scan over all stored
vectors.  There is no secondary index.

Invariants:

- All documents share one embedding dimension, fixed by the first insert
  after construction or :meth:`InMemoryVectorStore.clear`.  A mismatched
  insert raises :class:`~sqldocs.utils.errors.DimensionMismatchError` and
  leaves the store unchanged.
- Inserting an existing id overwrites it (last write wins).
- Vectors are stored as given (no normalisation).

Every query is scored with one matrix-vector product over the stacked
embeddings.  Mutations and scans are serialised with a re-entrant lock so a search never
observes a store mid-mutation.
"""

from __future__ import annotations

import threading
from collections import Counter
from typing import Callable

import numpy as np
import structlog
from pydantic import ValidationError

from sqldocs.models.rag import (
    HybridSearchResult,
    IndexedDocument,
    SearchResult,
    VectorStoreSnapshot,
    VectorStoreStats,
)
from sqldocs.utils.errors import DimensionMismatchError, SnapshotImportError
from sqldocs.utils.similarity import cosine_similarities
from sqldocs.utils.text import keyword_match_score, tokenize

logger = structlog.get_logger(logger_name=__name__)

DocumentFilter = Callable[[IndexedDocument], bool]

DEFAULT_LIMIT = 10
DEFAULT_SEMANTIC_WEIGHT = 0.7
DEFAULT_KEYWORD_WEIGHT = 0.3


class InMemoryVectorStore:
    """Flat collection of :class:`IndexedDocument` objects keyed by id.

    Each instance owns its state; nothing is shared between stores.  Use
    :meth:`export_snapshot` / :meth:`import_snapshot` to persist or copy one.
    """

    def __init__(self) -> None:
        self._documents: dict[str, IndexedDocument] = {}
        self._dimension = 0
        self._lock = threading.RLock()

    @property
    def dimension(self) -> int:
        """Embedding dimension, or ``0`` while the store has none established."""
        return self._dimension

    def __len__(self) -> int:
        return len(self._documents)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add(self, document: IndexedDocument) -> None:
        """Insert *document*, overwriting any document with the same id.

        Raises
        ------
        DimensionMismatchError
            If the embedding length differs from the established dimension.
        """
        with self._lock:
            self._check_dimension([document])
            self._insert(document)
        logger.debug("vector_store_add", document_id=document.id)

    def add_batch(self, documents: list[IndexedDocument]) -> None:
        """Insert every document in *documents*, all or nothing.

        Every embedding is validated before the first insert, so a
        mismatch anywhere in the batch leaves the store unchanged.
        """
        if not documents:
            return
        with self._lock:
            self._check_dimension(documents)
            for document in documents:
                self._insert(document)
        logger.info("vector_store_batch_added", count=len(documents))

    def remove(self, doc_id: str) -> bool:
        """Remove the document with *doc_id*; ``False`` if it was absent."""
        with self._lock:
            removed = self._documents.pop(doc_id, None) is not None
        if removed:
            logger.debug("vector_store_remove", document_id=doc_id)
        return removed

    def clear(self) -> None:
        """Drop every document and reset the dimension."""
        with self._lock:
            self._documents.clear()
            self._dimension = 0
        logger.info("vector_store_cleared")

    def _check_dimension(self, documents: list[IndexedDocument]) -> None:
        expected = self._dimension or len(documents[0].embedding)
        for document in documents:
            if len(document.embedding) != expected:
                logger.error(
                    "embedding_dimension_mismatch",
                    expected=expected,
                    actual=len(document.embedding),
                    document_id=document.id,
                )
                raise DimensionMismatchError(
                    expected=expected,
                    actual=len(document.embedding),
                    document_id=document.id,
                )

    def _insert(self, document: IndexedDocument) -> None:
        if self._dimension == 0:
            self._dimension = len(document.embedding)
        self._documents[document.id] = document

    # ------------------------------------------------------------------
    # Lookup / search
    # ------------------------------------------------------------------

    def get(self, doc_id: str) -> IndexedDocument | None:
        with self._lock:
            return self._documents.get(doc_id)

    def documents(self) -> list[IndexedDocument]:
        """Return every stored document in insertion order."""
        with self._lock:
            return list(self._documents.values())

    def search(
        self,
        query_embedding: list[float],
        limit: int = DEFAULT_LIMIT,
        threshold: float | None = None,
        filter: DocumentFilter | None = None,  # noqa: A002
    ) -> list[SearchResult]:
        """Rank documents by cosine similarity to *query_embedding*.

        Parameters
        ----------
        query_embedding:
            Query vector; must match the store's dimension when the store
            is non-empty.
        limit:
            Maximum number of results.
        threshold:
            Minimum similarity (inclusive).  ``None`` applies no floor.
        filter:
            Optional predicate; documents for which it returns ``False``
            are skipped.

        Returns
        -------
        list[SearchResult]
            Sorted by descending similarity; ties keep insertion order.
        """
        candidates, scores = self._score(query_embedding, filter)
        results = [
            SearchResult(document=document, score=score)
            for document, score in zip(candidates, scores)
            if threshold is None or score >= threshold
        ]

        results.sort(key=lambda r: r.score, reverse=True)
        return results[:limit]

    def hybrid_search(
        self,
        query_embedding: list[float],
        query_text: str,
        limit: int = DEFAULT_LIMIT,
        semantic_weight: float = DEFAULT_SEMANTIC_WEIGHT,
        keyword_weight: float = DEFAULT_KEYWORD_WEIGHT,
        filter: DocumentFilter | None = None,  # noqa: A002
    ) -> list[HybridSearchResult]:
        """Rank documents by a weighted sum of semantic and keyword scores.

        ``combined = semantic * semantic_weight + keyword * keyword_weight``.
        The weights are used as given; they are not renormalised.  The
        keyword half scores the query against the document text, title and
        keyword list (see :func:`~sqldocs.utils.text.keyword_match_score`).
        """
        query_terms = tokenize(query_text)
        candidates, scores = self._score(query_embedding, filter)
        results: list[HybridSearchResult] = []
        for document, semantic_score in zip(candidates, scores):
            keyword_score = keyword_match_score(query_terms, _document_terms(document))
            results.append(
                HybridSearchResult(
                    document=document,
                    semantic_score=semantic_score,
                    keyword_score=keyword_score,
                    combined_score=(
                        semantic_score * semantic_weight + keyword_score * keyword_weight
                    ),
                )
            )

        results.sort(key=lambda r: r.combined_score, reverse=True)
        return results[:limit]

    def _score(
        self,
        query_embedding: list[float],
        filter: DocumentFilter | None,  # noqa: A002
    ) -> tuple[list[IndexedDocument], list[float]]:
        """Cosine of the query against every document passing *filter*.

        The candidate list and its embedding matrix are taken in one pass
        under the lock, so both describe the same store state.
        """
        with self._lock:
            candidates = [
                document
                for document in self._documents.values()
                if filter is None or filter(document)
            ]
            if not candidates:
                return [], []
            matrix = np.array([d.embedding for d in candidates], dtype=np.float64)

        return candidates, cosine_similarities(matrix, query_embedding).tolist()

    # ------------------------------------------------------------------
    # Stats / persistence
    # ------------------------------------------------------------------

    def get_stats(self) -> VectorStoreStats:
        with self._lock:
            by_dialect = Counter(d.metadata.dialect.value for d in self._documents.values())
            return VectorStoreStats(
                total_documents=len(self._documents),
                dimension=self._dimension,
                by_dialect=dict(by_dialect),
            )

    def export_snapshot(self) -> str:
        """Serialise the dimension and every document to a JSON string."""
        with self._lock:
            snapshot = VectorStoreSnapshot(
                dimension=self._dimension,
                documents=list(self._documents.values()),
            )
        return snapshot.model_dump_json()

    def import_snapshot(self, blob: str | bytes) -> None:
        """Replace the store's contents with the snapshot in *blob*.

        The snapshot is validated completely before anything is replaced;
        on failure the store keeps its previous contents.

        Raises
        ------
        SnapshotImportError
            If *blob* is not valid snapshot JSON or its documents disagree
            with its declared dimension.
        """
        try:
            snapshot = VectorStoreSnapshot.model_validate_json(blob)
        except ValidationError as exc:
            logger.error("vector_store_import_failed", error=str(exc))
            raise SnapshotImportError(f"Malformed vector store snapshot: {exc}") from exc

        for document in snapshot.documents:
            if len(document.embedding) != snapshot.dimension:
                logger.error(
                    "vector_store_import_failed",
                    document_id=document.id,
                    dimension=snapshot.dimension,
                    actual=len(document.embedding),
                )
                raise SnapshotImportError(
                    f"Snapshot document {document.id} has dimension "
                    f"{len(document.embedding)}, expected {snapshot.dimension}"
                )

        with self._lock:
            self._documents = {document.id: document for document in snapshot.documents}
            self._dimension = snapshot.dimension
        logger.info("vector_store_imported", count=len(snapshot.documents))


def _document_terms(document: IndexedDocument) -> list[str]:
    metadata = document.metadata
    return tokenize(f"{document.text} {metadata.title} {' '.join(metadata.keywords)}")
