"""Unit tests for structlog configuration."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from sqldocs.utils.logging import configure_logging


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()


class TestConfigureLogging:
    def test_json_output_goes_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(log_level="INFO", json_output=True)

        structlog.get_logger(logger_name="tests").info("index_built", documents=3)

        captured = capsys.readouterr()
        assert captured.out == ""
        record = json.loads(captured.err.strip().splitlines()[-1])
        assert record["event"] == "index_built"
        assert record["documents"] == 3
        assert record["level"] == "info"

    def test_level_filters_lower_events(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(log_level="WARNING", json_output=True)

        logger = structlog.get_logger(logger_name="tests")
        logger.info("hidden")
        logger.warning("shown")

        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "shown" in err

    def test_stdlib_logging_is_routed_through_structlog(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(log_level="INFO", json_output=True)

        logging.getLogger("httpx").warning("connection reset")

        err = capsys.readouterr().err
        assert "connection reset" in err
        assert err.strip().startswith("{")

    def test_production_env_selects_json(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setenv("APP_ENV", "production")
        configure_logging()

        structlog.get_logger().info("started")

        assert json.loads(capsys.readouterr().err.strip())["event"] == "started"

    def test_sdk_request_logs_are_raised_to_warning(self) -> None:
        configure_logging(log_level="DEBUG", json_output=True)

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("openai").level == logging.WARNING

        configure_logging(log_level="ERROR", json_output=True)

        assert logging.getLogger("httpx").level == logging.ERROR
