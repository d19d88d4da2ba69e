"""Unit tests for KeywordRetrievalService: corpus loading, scoring and dialect priority."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from sqldocs.models.rag import DatabaseDialect
from sqldocs.services.keyword_retrieval import KeywordRetrievalService
from sqldocs.utils.errors import CorpusLoadError


class TestLoadDirectory:
    def test_loads_every_dialect_file(self, docs_dir: Path) -> None:
        service = KeywordRetrievalService()

        loaded = service.load_directory(docs_dir)

        assert loaded == 4
        stats = service.get_stats()
        assert stats.total == 4
        assert stats.by_dialect == {"mysql": 2, "mariadb": 1, "general": 1}
        assert stats.avg_keywords_per_doc > 0

    def test_documents_inherit_their_file_dialect(self, docs_dir: Path) -> None:
        service = KeywordRetrievalService()
        service.load_directory(docs_dir)

        dialects = {doc.id: doc.dialect for doc in service.all_documents()}

        assert dialects["mysql-index"] is DatabaseDialect.MYSQL
        assert dialects["mariadb-ignored-index"] is DatabaseDialect.MARIADB
        assert dialects["general-covering"] is DatabaseDialect.GENERAL

    def test_missing_directory_loads_nothing(self, tmp_path: Path) -> None:
        service = KeywordRetrievalService()
        assert service.load_directory(tmp_path / "nope") == 0
        assert service.get_stats().total == 0

    def test_invalid_json_raises(self, tmp_path: Path) -> None:
        (tmp_path / "mysql-docs.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(CorpusLoadError):
            KeywordRetrievalService().load_directory(tmp_path)

    @pytest.mark.parametrize(
        "payload",
        [
            {"documents": {"title": "not a list"}},
            {"documents": [{"content": "missing title"}]},
            ["not", "an", "object"],
        ],
    )
    def test_wrong_shape_raises(self, tmp_path: Path, payload: object) -> None:
        (tmp_path / "mariadb-docs.json").write_text(json.dumps(payload), encoding="utf-8")

        with pytest.raises(CorpusLoadError):
            KeywordRetrievalService().load_directory(tmp_path)

    def test_clear(self, keyword_service: KeywordRetrievalService) -> None:
        keyword_service.clear()
        assert keyword_service.all_documents() == []


class TestRetrieveRelevantDocs:
    def test_ranks_by_keyword_relevance(self, keyword_service: KeywordRetrievalService) -> None:
        docs = keyword_service.retrieve_relevant_docs("how to add an index", DatabaseDialect.MYSQL)

        assert [d.id for d in docs] == ["mysql-index", "general-covering", "mariadb-ignored-index"]
        assert all(d.relevance_score > 0 for d in docs)
        assert all(d.semantic_score is None and d.keyword_score is None for d in docs)

    def test_requested_dialect_wins_ties(self, keyword_service: KeywordRetrievalService) -> None:
        mysql_first = keyword_service.retrieve_relevant_docs("add an index", DatabaseDialect.MYSQL, 2)
        general_first = keyword_service.retrieve_relevant_docs(
            "add an index", DatabaseDialect.GENERAL, 2
        )

        assert [d.id for d in mysql_first] == ["mysql-index", "general-covering"]
        assert [d.id for d in general_first] == ["general-covering", "mysql-index"]

    def test_other_dialects_are_not_excluded(self, keyword_service: KeywordRetrievalService) -> None:
        docs = keyword_service.retrieve_relevant_docs("ignored index", DatabaseDialect.MYSQL, 5)
        assert "mariadb-ignored-index" in [d.id for d in docs]

    def test_zero_scores_are_dropped(self, keyword_service: KeywordRetrievalService) -> None:
        docs = keyword_service.retrieve_relevant_docs("explain plan", DatabaseDialect.MYSQL, 5)
        assert [d.id for d in docs] == ["mysql-explain"]

    def test_max_docs_truncates(self, keyword_service: KeywordRetrievalService) -> None:
        docs = keyword_service.retrieve_relevant_docs("index performance", DatabaseDialect.MYSQL, 1)
        assert len(docs) == 1

    @pytest.mark.parametrize("query", ["", "select from table", "unrelated topic"])
    def test_no_match_returns_empty(
        self, keyword_service: KeywordRetrievalService, query: str
    ) -> None:
        assert keyword_service.retrieve_relevant_docs(query, DatabaseDialect.MYSQL) == []

    def test_dialect_resolved_from_source(self, keyword_service: KeywordRetrievalService) -> None:
        docs = keyword_service.retrieve_relevant_docs("ignored", DatabaseDialect.MYSQL)
        assert docs[0].dialect is DatabaseDialect.MARIADB


class TestSearchByKeyword:
    def test_matches_containment_either_way(
        self, keyword_service: KeywordRetrievalService
    ) -> None:
        ids = {doc.id for doc in keyword_service.search_by_keyword("INDEX")}
        assert ids == {"mysql-index", "mariadb-ignored-index", "general-covering"}

    def test_no_match(self, keyword_service: KeywordRetrievalService) -> None:
        assert keyword_service.search_by_keyword("replication") == []
