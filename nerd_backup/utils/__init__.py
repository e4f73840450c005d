"""Utilities for nerd-backup."""

from .errors import ErrorHandler, NerdBackupError
from .logging import setup_logging

__all__ = ["ErrorHandler", "NerdBackupError", "setup_logging"]
