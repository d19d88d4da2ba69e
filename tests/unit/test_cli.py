"""Unit tests for the sqldocs command-line interface."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from sqldocs.cli.docs import main


@pytest.fixture(autouse=True)
def _isolated(monkeypatch: pytest.MonkeyPatch, quiet_logging: None) -> None:
    for name in (
        "APP_ENV",
        "EMBEDDING_PROVIDER",
        "DOCS_DIR",
        "SNAPSHOT_CACHE_DIR",
        "USE_VECTOR_SEARCH",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def config_path(tmp_path: Path, docs_dir: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        "embedding:\n"
        "  embedding_provider: hash\n"
        "corpus:\n"
        f"  docs_dir: {docs_dir}\n"
        "cache:\n"
        f"  snapshot_cache_dir: {tmp_path / 'cache'}\n",
        encoding="utf-8",
    )
    return path


def _run(argv: list[str]) -> int:
    with patch("sqldocs.cli.docs.configure_logging"):
        with pytest.raises(SystemExit) as exc_info:
            main(argv)
    return exc_info.value.code


class TestUsage:
    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run([]) == 1
        assert "usage" in capsys.readouterr().out.lower()

    def test_invalid_config_reports_error(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        bad = tmp_path / "bad.yaml"
        bad.write_text("corpus: [unclosed", encoding="utf-8")

        assert _run(["--config", str(bad), "stats"]) == 1
        assert capsys.readouterr().err.startswith("Error:")

    @pytest.mark.parametrize(
        ("app_env", "json_output"), [("production", True), ("development", False)]
    )
    def test_app_env_selects_log_renderer(
        self, config_path: Path, app_env: str, json_output: bool
    ) -> None:
        with config_path.open("a", encoding="utf-8") as f:
            f.write(f"logging:\n  app_env: {app_env}\n")

        with patch("sqldocs.cli.docs.configure_logging") as configure:
            with pytest.raises(SystemExit):
                main(["--config", str(config_path), "clear-cache"])

        configure.assert_called_once()
        assert configure.call_args.kwargs["json_output"] is json_output


class TestSearch:
    def test_keyword_only_json(
        self, config_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = _run(
            ["--config", str(config_path), "search", "how to add an index", "--keyword-only", "--json"]
        )

        assert code == 0
        docs = json.loads(capsys.readouterr().out)
        assert docs[0]["id"] == "mysql-index"
        assert docs[0]["semantic_score"] is None

    def test_semantic_search_reports_mode(
        self, config_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = _run(["--config", str(config_path), "search", "covering index", "--max-docs", "2"])

        assert code == 0
        out = capsys.readouterr().out
        assert "Mode: semantic" in out
        assert "semantic=" in out

    def test_search_embeds_documents_added_after_index(
        self, config_path: Path, docs_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert _run(["--config", str(config_path), "index"]) == 0
        mysql_file = docs_dir / "mysql-docs.json"
        payload = json.loads(mysql_file.read_text(encoding="utf-8"))
        payload["documents"].append(
            {
                "id": "mysql-partition-pruning",
                "title": "Partition Pruning",
                "keywords": ["partition", "pruning"],
                "content": "Partition pruning skips partitions that cannot hold matching rows.",
                "source": "https://dev.mysql.com/doc/refman/8.0/en/partitioning-pruning.html",
            }
        )
        mysql_file.write_text(json.dumps(payload), encoding="utf-8")
        capsys.readouterr()

        code = _run(
            ["--config", str(config_path), "search", "partition pruning", "--json", "--max-docs", "5"]
        )

        assert code == 0
        ids = [doc["id"] for doc in json.loads(capsys.readouterr().out)]
        assert "mysql-partition-pruning" in ids

        assert _run(["--config", str(config_path), "stats", "--json"]) == 0
        stats = json.loads(capsys.readouterr().out)
        assert stats["retrieval"]["vector_store"]["total_documents"] == 5

    def test_no_results(self, config_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        code = _run(["--config", str(config_path), "search", "replication lag", "--keyword-only"])

        assert code == 0
        assert "No relevant documentation found." in capsys.readouterr().out


class TestIndexStatsAndCache:
    def test_index_writes_snapshot_then_stats_reads_it(
        self, config_path: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert _run(["--config", str(config_path), "index"]) == 0
        out = capsys.readouterr().out
        assert "Indexing complete" in out
        assert "Documents indexed:  4" in out
        assert list((tmp_path / "cache").glob("*.snapshot.json"))

        assert _run(["--config", str(config_path), "stats", "--json"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["retrieval"]["embedding_provider"] == "hash_384"
        assert payload["retrieval"]["vector_store"]["total_documents"] == 4
        assert payload["snapshot_cache"]["entries"] == 1

    def test_index_no_cache(
        self, config_path: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert _run(["--config", str(config_path), "index", "--no-cache"]) == 0
        assert not (tmp_path / "cache").exists()

    def test_clear_cache_with_yes(
        self, config_path: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        _run(["--config", str(config_path), "index"])
        capsys.readouterr()

        assert _run(["--config", str(config_path), "clear-cache", "--yes"]) == 0
        assert "Deleted 1 cached snapshot(s)." in capsys.readouterr().out
        assert not list((tmp_path / "cache").glob("*.snapshot.json"))

    def test_clear_cache_aborts_without_confirmation(
        self, config_path: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        _run(["--config", str(config_path), "index"])
        capsys.readouterr()

        with patch("builtins.input", return_value="n"):
            assert _run(["--config", str(config_path), "clear-cache"]) == 0

        assert "Aborted." in capsys.readouterr().out
        assert list((tmp_path / "cache").glob("*.snapshot.json"))

    def test_clear_empty_cache(self, config_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["--config", str(config_path), "clear-cache"]) == 0
        assert "Nothing to clear" in capsys.readouterr().out
