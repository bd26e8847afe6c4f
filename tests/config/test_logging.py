"""Tests for structlog configuration."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator

import pytest
import structlog

from obsvault.config.logging import configure_logging


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Restore root logger state after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    obs = logging.getLogger("obsvault")
    obs_level = obs.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    obs.setLevel(obs_level)


class TestConfigureLogging:
    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True, log_json=False)
        assert logging.getLogger("obsvault").level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_non_verbose_sets_warning(self) -> None:
        configure_logging(verbose=False, log_json=False)
        assert logging.getLogger("obsvault").level == logging.WARNING

    def test_json_mode_output(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        log = structlog.get_logger("obsvault.test")
        log.warning("json test", answer=42)
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "json test"
        assert parsed["answer"] == 42
        assert parsed["level"] == "warning"
        assert parsed["logger"] == "obsvault.test"
        assert "timestamp" in parsed

    def test_stdlib_loggers_get_structured_fields(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger("obsvault.infrastructure.scanner").debug("Scanned %d items", 3)
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "Scanned 3 items"
        assert parsed["level"] == "debug"
        assert parsed["logger"] == "obsvault.infrastructure.scanner"

    def test_quiet_by_default(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=False, log_json=True)
        logging.getLogger("obsvault.services.store").debug("hidden")
        logging.getLogger("mcp.server").info("request noise")
        assert capfd.readouterr().err == ""

    def test_nothing_on_stdout(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=False)
        logging.getLogger("obsvault.test").warning("to stderr")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "to stderr" in captured.err

    def test_idempotent_calls(self) -> None:
        """Multiple configure_logging calls don't stack handlers."""
        configure_logging(verbose=True, log_json=False)
        configure_logging(verbose=True, log_json=True)
        assert len(logging.getLogger().handlers) == 1
