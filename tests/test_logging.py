"""Tests for logging setup."""

import logging
import os
import sys

import pytest

from nerd_backup.utils.logging import setup_logging


def _installed_handlers():
    return [handler for handler in logging.getLogger().handlers if getattr(handler, "_nerd_backup", False)]


class TestSetupLogging:
    """Test logging configuration."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root_logger = logging.getLogger()
        level = root_logger.level
        yield
        for handler in _installed_handlers():
            root_logger.removeHandler(handler)
            handler.close()
        root_logger.setLevel(level)

    def test_console_handler_on_stderr(self):
        """Test that logs do not mix with command output on stdout."""
        setup_logging()

        handlers = _installed_handlers()
        assert len(handlers) == 1
        assert handlers[0].stream is sys.stderr
        assert handlers[0].level == logging.INFO
        assert logging.getLogger("docker").level == logging.WARNING

    def test_repeated_setup_does_not_duplicate_handlers(self):
        """Test that calling setup twice keeps a single console handler."""
        setup_logging()
        setup_logging(verbose=True)

        handlers = _installed_handlers()
        assert len(handlers) == 1
        assert handlers[0].level == logging.DEBUG

    def test_log_file_created_with_directory(self, temp_directory):
        """Test that the log file directory is created and debug records reach the file."""
        log_file = os.path.join(temp_directory, "logs", "nerd-backup.log")

        setup_logging(log_file=log_file)
        logging.getLogger("nerd_backup.test").debug("restic backup output")
        for handler in _installed_handlers():
            handler.flush()

        with open(log_file, encoding="utf-8") as f:
            assert "restic backup output" in f.read()
