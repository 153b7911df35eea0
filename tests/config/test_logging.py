"""Tests for structlog configuration."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator

import pytest
import structlog

from storectl.config.logging import configure_logging, script_line_context


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Restore root logger state after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    store = logging.getLogger("storectl")
    store_level = store.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    store.setLevel(store_level)


class TestConfigureLogging:
    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True, log_json=False)
        assert logging.getLogger("storectl").level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_non_verbose_sets_warning(self) -> None:
        configure_logging(verbose=False, log_json=False)
        assert logging.getLogger("storectl").level == logging.WARNING

    def test_json_mode_output(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        structlog.get_logger("storectl.test").warning("json test", answer=42)
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "json test"
        assert parsed["answer"] == 42
        assert parsed["level"] == "warning"

    def test_stdlib_records_rendered(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger("storectl.infrastructure.registry").debug("lock retry %s", "S1")
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "lock retry S1"

    def test_single_handler(self) -> None:
        configure_logging()
        configure_logging()
        assert len(logging.getLogger().handlers) == 1


class TestScriptLineContext:
    def test_binds_position(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        with script_line_context("store.script", 7):
            structlog.get_logger("storectl.test").info("inside")
        structlog.get_logger("storectl.test").info("outside")
        inside, outside = (json.loads(line) for line in capfd.readouterr().err.splitlines())
        assert inside["script"] == "store.script"
        assert inside["line"] == 7
        assert "line" not in outside
