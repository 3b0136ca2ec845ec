"""Unit tests for logging configuration module.

Covers console and file handlers, output formats and the per-module levels that
keep SQLAlchemy and httpx quiet while services log at DEBUG.
"""

import logging
import os
import tempfile
from unittest.mock import patch

import pytest

from boardmgmt.core.logging_config import (
    DETAILED_FORMAT,
    JSON_FORMAT,
    MODULE_LOG_LEVELS,
    SIMPLE_FORMAT,
    get_logger,
    setup_logging,
)


def _handler(kind):
    return next((h for h in logging.getLogger().handlers if type(h) is kind), None)


class TestSetupLoggingLogLevels:
    @pytest.mark.parametrize(
        "log_level,expected_level",
        [
            ("DEBUG", logging.DEBUG),
            ("WARNING", logging.WARNING),
            ("critical", logging.CRITICAL),
            ("info", logging.INFO),
        ],
    )
    def test_console_handler_uses_requested_level(self, log_level, expected_level):
        setup_logging(log_level=log_level, enable_file=False)
        assert _handler(logging.StreamHandler).level == expected_level

    def test_root_logger_captures_everything(self):
        setup_logging(log_level="ERROR", enable_file=False)
        assert logging.getLogger().level == logging.DEBUG


class TestSetupLoggingFormats:
    @pytest.mark.parametrize(
        "log_format,expected_format",
        [("simple", SIMPLE_FORMAT), ("detailed", DETAILED_FORMAT), ("json", JSON_FORMAT), ("unknown", DETAILED_FORMAT)],
    )
    def test_formatter_matches_format_name(self, log_format, expected_format):
        setup_logging(log_format=log_format, enable_file=False)
        assert _handler(logging.StreamHandler).formatter._fmt == expected_format


class TestSetupLoggingFileHandling:
    def test_file_handler_logs_debug_into_log_dir(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with patch("boardmgmt.core.logging_config.LOG_FILE_DIR", tmpdir), patch(
                "boardmgmt.core.logging_config.ENABLE_FILE_LOGGING", True
            ):
                setup_logging(log_level="ERROR", enable_file=True)
                file_handler = _handler(logging.FileHandler)

                assert file_handler is not None
                assert file_handler.level == logging.DEBUG
                assert file_handler.baseFilename.endswith("boardmgmt.log")
                file_handler.close()
            setup_logging(enable_file=False)

    def test_missing_log_dir_is_created(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            log_dir = os.path.join(tmpdir, "nested", "logs")
            with patch("boardmgmt.core.logging_config.LOG_FILE_DIR", log_dir), patch(
                "boardmgmt.core.logging_config.ENABLE_FILE_LOGGING", True
            ):
                setup_logging(enable_file=True)
                assert os.path.isdir(log_dir)
                _handler(logging.FileHandler).close()
            setup_logging(enable_file=False)

    def test_no_file_handler_unless_configured(self):
        with patch("boardmgmt.core.logging_config.ENABLE_FILE_LOGGING", False):
            setup_logging(enable_file=True)
        assert _handler(logging.FileHandler) is None

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging(enable_file=False)
        setup_logging(enable_file=False)
        assert len(logging.getLogger().handlers) == 1


class TestModuleLevels:
    @pytest.mark.parametrize(
        "module_name,expected_level",
        [
            ("boardmgmt.server.services", logging.DEBUG),
            ("boardmgmt.server.services.calendars", logging.INFO),
            ("boardmgmt.server.services.oauth", logging.INFO),
            ("boardmgmt.core.database", logging.INFO),
            ("sqlalchemy.engine", logging.WARNING),
            ("httpx", logging.WARNING),
        ],
    )
    def test_module_specific_log_levels(self, module_name, expected_level):
        setup_logging(enable_file=False)
        assert logging.getLogger(module_name).level == expected_level

    def test_every_configured_module_is_applied(self):
        setup_logging(enable_file=False)
        for module_name, level in MODULE_LOG_LEVELS.items():
            assert logging.getLogger(module_name).level == getattr(logging, level)


class TestGetLogger:
    def test_returns_named_logger(self):
        logger = get_logger("boardmgmt.server.services.votes")
        assert logger is logging.getLogger("boardmgmt.server.services.votes")

    def test_service_logger_inherits_debug_level(self):
        setup_logging(enable_file=False)
        assert get_logger("boardmgmt.server.services.votes").getEffectiveLevel() == logging.DEBUG

    def test_logger_records_exception_info(self, caplog):
        logger = get_logger("boardmgmt.test")
        with caplog.at_level(logging.ERROR, logger="boardmgmt.test"):
            try:
                raise ValueError("bad input")
            except ValueError:
                logger.error("Failed", exc_info=True)
        assert caplog.records[0].exc_info[0] is ValueError
