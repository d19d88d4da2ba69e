"""Keyword-only documentation retrieval.

A complete relevance engine that needs no embeddings.  It is the fallback
used by :class:`~sqldocs.services.retrieval_service.RetrievalService`
whenever semantic search is disabled or fails, and can be used directly.

Scoring works on each document's curated keyword list (see
:func:`~sqldocs.utils.text.keyword_relevance`).  Dialect affinity is a
priority, not a filter: documents of the requested dialect are placed
ahead of everything else before a stable sort, so they win ties but other
dialects are never excluded.

The corpus is loaded from ``<dialect>-docs.json`` files, each shaped like::

    {"documents": [{"id": "...", "title": "...", "keywords": [...],
                    "content": "...", "source": "...", "version": "..."}]}
"""

from __future__ import annotations

import json
from pathlib import Path

import structlog
from pydantic import ValidationError

from sqldocs.models.rag import (
    DatabaseDialect,
    KeywordCorpusStats,
    ReferenceDocument,
    RetrievedDocument,
)
from sqldocs.utils.errors import CorpusLoadError
from sqldocs.utils.text import extract_keywords, keyword_relevance

logger = structlog.get_logger(logger_name=__name__)

CORPUS_FILE_SUFFIX = "-docs.json"


class KeywordRetrievalService:
    """Scores curated documentation snippets by keyword overlap."""

    def __init__(self) -> None:
        # Insertion order per dialect is the tie-break order.
        self._docs_by_dialect: dict[DatabaseDialect, list[ReferenceDocument]] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_directory(self, docs_dir: str | Path) -> int:
        """Load every ``<dialect>-docs.json`` file found in *docs_dir*.

        Missing files are skipped.  Returns the number of documents loaded.

        Raises
        ------
        CorpusLoadError
            If a corpus file exists but is not valid JSON or does not match
            the expected shape.
        """
        directory = Path(docs_dir)
        loaded = 0
        for dialect in DatabaseDialect:
            path = directory / f"{dialect.value}{CORPUS_FILE_SUFFIX}"
            if not path.is_file():
                continue
            try:
                payload = json.loads(path.read_text(encoding="utf-8"))
                raw_docs = payload.get("documents", []) if isinstance(payload, dict) else None
                if not isinstance(raw_docs, list):
                    raise ValueError("expected an object with a 'documents' list")
                docs = [ReferenceDocument.model_validate(raw) for raw in raw_docs]
            except (OSError, ValueError, ValidationError) as exc:
                logger.error("corpus_load_failed", path=str(path), error=str(exc))
                raise CorpusLoadError(f"Failed to load {path}: {exc}") from exc

            # Documents in a dialect's file belong to that dialect unless
            # they say otherwise.
            docs = [d if d.dialect else d.model_copy(update={"dialect": dialect}) for d in docs]
            self.add_documents(dialect, docs)
            loaded += len(docs)
            logger.info("corpus_file_loaded", dialect=dialect.value, count=len(docs))

        logger.info("keyword_corpus_ready", total=len(self.all_documents()))
        return loaded

    def add_documents(self, dialect: DatabaseDialect, docs: list[ReferenceDocument]) -> None:
        """Append *docs* to the pool for *dialect*."""
        self._docs_by_dialect.setdefault(dialect, []).extend(docs)

    def clear(self) -> None:
        self._docs_by_dialect.clear()

    def all_documents(self) -> list[ReferenceDocument]:
        """Every loaded document, grouped by dialect in load order."""
        return [doc for docs in self._docs_by_dialect.values() for doc in docs]

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    def retrieve_relevant_docs(
        self,
        query: str,
        dialect: DatabaseDialect = DatabaseDialect.MYSQL,
        max_docs: int = 3,
    ) -> list[RetrievedDocument]:
        """Return up to *max_docs* documents ranked by keyword relevance.

        Documents scoring zero are dropped.  An empty list is returned when
        the query has no usable keywords or nothing matches.
        """
        keywords = extract_keywords(query)
        if not keywords:
            return []

        scored = [
            (doc, keyword_relevance(doc.keywords, keywords))
            for doc in self._candidate_pool(dialect)
        ]
        relevant = [(doc, score) for doc, score in scored if score > 0]
        relevant.sort(key=lambda item: item[1], reverse=True)

        logger.debug(
            "keyword_retrieval",
            dialect=dialect.value,
            keywords=keywords,
            matched=len(relevant),
            top_score=relevant[0][1] if relevant else 0.0,
        )
        return [RetrievedDocument.from_reference(doc, score) for doc, score in relevant[:max_docs]]

    def search_by_keyword(self, keyword: str) -> list[ReferenceDocument]:
        """Return documents with a keyword containing (or contained in) *keyword*."""
        needle = keyword.lower()
        return [
            doc
            for doc in self.all_documents()
            if any(needle in kw.lower() or kw.lower() in needle for kw in doc.keywords if kw)
        ]

    def _candidate_pool(self, dialect: DatabaseDialect) -> list[ReferenceDocument]:
        preferred = self._docs_by_dialect.get(dialect, [])
        others = [
            doc
            for pool_dialect, docs in self._docs_by_dialect.items()
            if pool_dialect is not dialect
            for doc in docs
        ]
        return [*preferred, *others]

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def get_stats(self) -> KeywordCorpusStats:
        docs = self.all_documents()
        total_keywords = sum(len(doc.keywords) for doc in docs)
        return KeywordCorpusStats(
            total=len(docs),
            by_dialect={d.value: len(pool) for d, pool in self._docs_by_dialect.items()},
            avg_keywords_per_doc=round(total_keywords / len(docs), 1) if docs else 0.0,
        )
