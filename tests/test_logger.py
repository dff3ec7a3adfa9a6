"""Tests for the logging setup module."""

import logging

import pytest

from docvision.utils.logger import get_logger, setup_logging


@pytest.fixture
def clean_root():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    root.handlers.clear()
    yield root
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


class TestSetupLogging:
    """Tests for the setup_logging function."""

    def test_setup_creates_handler(self, clean_root: logging.Logger) -> None:
        setup_logging("DEBUG")
        assert len(clean_root.handlers) == 1
        assert clean_root.level == logging.DEBUG

    def test_setup_idempotent(self, clean_root: logging.Logger) -> None:
        setup_logging("INFO")
        count = len(clean_root.handlers)
        setup_logging("INFO")
        assert len(clean_root.handlers) == count

    def test_setup_invalid_level_defaults_to_info(
        self, clean_root: logging.Logger
    ) -> None:
        setup_logging("NONEXISTENT")
        assert clean_root.level == logging.INFO

    def test_http_client_logs_capped_at_warning(
        self, clean_root: logging.Logger
    ) -> None:
        setup_logging("DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING


class TestGetLogger:
    """Tests for the get_logger function."""

    def test_returns_named_logger(self) -> None:
        logger = get_logger("test.module")
        assert logger.name == "test.module"
        assert isinstance(logger, logging.Logger)

    def test_same_name_returns_same_logger(self) -> None:
        assert get_logger("test.same") is get_logger("test.same")
