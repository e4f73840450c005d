"""Logging configuration for nerd-backup."""

import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# docker-py logs every HTTP request to the daemon at DEBUG.
NOISY_LOGGERS = ("docker", "urllib3")


def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """
    Setup logging for the service.

    Logs go to stderr so that command output on stdout (``status``) stays
    clean. Calling this again replaces the handlers from the previous call.

    Args:
        verbose: Enable verbose/debug logging
        log_file: Optional log file path; its directory is created if needed
    """
    level = logging.DEBUG if verbose else logging.INFO
    formatter = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if getattr(handler, "_nerd_backup", False):
            root_logger.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    _install(root_logger, console_handler, formatter)

    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        _install(root_logger, file_handler, formatter)

    root_logger.setLevel(logging.DEBUG if log_file else level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)


def _install(root_logger: logging.Logger, handler: logging.Handler, formatter: logging.Formatter) -> None:
    handler.setFormatter(formatter)
    handler._nerd_backup = True  # type: ignore[attr-defined]
    root_logger.addHandler(handler)
