"""Unit tests for logging configuration."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator

import pytest
import structlog

from neo4j_context.observability import (
    configure_from_settings,
    configure_logging,
    resolve_level,
)
from neo4j_context.settings import Settings


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    ours = logging.getLogger("neo4j_context").level
    driver = logging.getLogger("neo4j").level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("neo4j_context").setLevel(ours)
    logging.getLogger("neo4j").setLevel(driver)
    structlog.reset_defaults()


class TestConfigureLogging:
    def test_levels(self) -> None:
        configure_logging(level="debug")
        assert logging.getLogger("neo4j_context").level == logging.DEBUG
        assert logging.getLogger("neo4j").level == logging.WARNING

    def test_single_stderr_handler(self) -> None:
        configure_logging()
        configure_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_json_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(level="INFO", log_json=True)
        structlog.get_logger("neo4j_context.test").info("db_result", rows=2)

        err = capsys.readouterr().err.strip().splitlines()[-1]
        payload = json.loads(err)
        assert payload["event"] == "db_result"
        assert payload["rows"] == 2
        assert payload["level"] == "info"

    def test_below_level_suppressed(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(level="WARNING", log_json=True)
        structlog.get_logger("neo4j_context.test").info("quiet")
        assert "quiet" not in capsys.readouterr().err

    def test_from_settings(self) -> None:
        configure_from_settings(Settings(log_level="INFO"))
        assert logging.getLogger("neo4j_context").level == logging.INFO

    def test_driver_level(self) -> None:
        configure_logging(driver_level="ERROR")
        assert logging.getLogger("neo4j").level == logging.ERROR

    def test_numeric_level(self) -> None:
        configure_logging(level=logging.INFO)
        assert logging.getLogger("neo4j_context").level == logging.INFO


class TestResolveLevel:
    def test_names_are_case_insensitive(self) -> None:
        assert resolve_level(" debug ") == logging.DEBUG

    def test_unknown_name_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level 'FOO'"):
            resolve_level("FOO")

    def test_unknown_name_rejected_before_reconfiguring(self) -> None:
        handlers = list(logging.getLogger().handlers)
        with pytest.raises(ValueError):
            configure_logging(level="verbose")
        assert logging.getLogger().handlers == handlers
