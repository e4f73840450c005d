"""Error handling utilities for nerd-backup."""

import sys
import traceback
from enum import Enum
from typing import List, Optional

import click
from requests.exceptions import RequestException


class NerdBackupError(Exception):
    """Base exception for nerd-backup errors."""

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        suggestions: Optional[list] = None,
    ):
        self.message = message
        self.details = details
        self.suggestions = suggestions or []
        super().__init__(message)


class ConfigurationError(NerdBackupError):
    """Raised when configuration is invalid or missing."""

    pass


class BackupIOError(NerdBackupError):
    """Raised when a file or process cannot be read, written or spawned."""

    pass


class CheckFailure(Enum):
    """Outcomes of a failed ``restic check``."""

    NOT_FOUND = "not_found"
    LOCKED = "locked"
    BAD_PASSWORD = "bad_password"
    OTHER = "other"

    @classmethod
    def from_exit_code(cls, code: int) -> "CheckFailure":
        """Map a restic exit code to a check failure."""
        return _CHECK_EXIT_CODES.get(code, cls.OTHER)


_CHECK_EXIT_CODES = {
    10: CheckFailure.NOT_FOUND,
    11: CheckFailure.LOCKED,
    12: CheckFailure.BAD_PASSWORD,
}

_CHECK_MESSAGES = {
    CheckFailure.NOT_FOUND: "Repository not found",
    CheckFailure.LOCKED: "Repository is locked. Unlock with `restic unlock`.",
    CheckFailure.BAD_PASSWORD: "Bad password.",
}


class RepositoryCheckError(NerdBackupError):
    """Raised when ``restic check`` exits with a non-zero status."""

    def __init__(self, kind: CheckFailure, code: int, details: Optional[str] = None):
        self.kind = kind
        self.code = code
        message = _CHECK_MESSAGES.get(kind, f"Repository error: unknown error code {code}")
        suggestions = []
        if kind == CheckFailure.BAD_PASSWORD:
            suggestions = create_error_suggestions("bad_password")
        super().__init__(message, details=details, suggestions=suggestions)


class RepositoryInitError(NerdBackupError):
    """Raised when the repository cannot be initialized."""

    def __init__(self, details: Optional[str] = None):
        super().__init__("Restic initialization failed.", details=details)


class RepositoryUnlockError(NerdBackupError):
    """Raised when a locked repository cannot be unlocked."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Failed to unlock repository: {detail}", details=detail or None)


class VolumeBackupError(NerdBackupError):
    """Raised when backing up a single volume fails."""

    def __init__(
        self,
        volume: str,
        detail: str,
        restart_errors: Optional[List["ContainerRuntimeError"]] = None,
    ):
        self.volume = volume
        self.detail = detail
        self.restart_errors = restart_errors or []

        details = detail or None
        if self.restart_errors:
            restart_details = "; ".join(error.message for error in self.restart_errors)
            details = f"{detail}\nRestart failures: {restart_details}" if detail else restart_details
        super().__init__(f"Failed to backup volume: {volume}. Error: {detail}", details=details)


class ContainerRuntimeError(NerdBackupError):
    """Raised when Docker operations fail."""

    pass


class ErrorHandler:
    """Handles and formats errors for user-friendly display."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def handle_error(self, error: Exception, context: Optional[str] = None) -> None:
        """
        Handle and display error with appropriate formatting.

        Args:
            error: Exception to handle
            context: Optional context about when/where error occurred
        """
        if isinstance(error, NerdBackupError):
            self._render(error.message, context, error.details, error.suggestions)
        else:
            self._handle_generic_error(error, context)

    def _handle_generic_error(self, error: Exception, context: Optional[str]) -> None:
        """Describe exceptions that escaped the nerd-backup error types."""
        suggestions: List[str] = []
        if isinstance(error, RequestException):
            message = f"Lost connection to Docker daemon: {error}"
            suggestions = create_error_suggestions("docker_not_running")
        elif isinstance(error, PermissionError):
            message = f"Permission denied: {error.filename or error}"
            suggestions = create_error_suggestions("permission_denied")
        else:
            message = f"Unexpected error: {type(error).__name__}: {error}"
            if not self.verbose:
                suggestions = ["Re-run with --verbose to see the full traceback"]

        self._render(message, context, None, suggestions)

    def _render(
        self,
        message: str,
        context: Optional[str],
        details: Optional[str],
        suggestions: List[str],
    ) -> None:
        click.echo(f"✗ {message}", err=True)

        if context:
            click.echo(f"Context: {context}", err=True)

        if details:
            click.echo(f"Details: {details}", err=True)

        if suggestions:
            click.echo("\nSuggestions:", err=True)
            for suggestion in suggestions:
                click.echo(f"  • {suggestion}", err=True)

        if self.verbose:
            click.echo("\nFull traceback:", err=True)
            traceback.print_exc()

    def exit_with_error(self, error: Exception, context: Optional[str] = None, exit_code: int = 1) -> None:
        """Handle error and exit with specified code."""
        self.handle_error(error, context)
        sys.exit(exit_code)


def create_error_suggestions(error_type: str, **kwargs) -> list:
    """
    Create contextual error suggestions based on error type.

    Args:
        error_type: Type of error
        **kwargs: Additional context information

    Returns:
        list: List of suggestion strings
    """
    suggestions = {
        "docker_not_running": [
            "Start the Docker daemon",
            "Check that /var/run/docker.sock is mounted into the container",
            "Verify Docker permissions for current user",
        ],
        "restic_not_found": [
            "Install restic and make sure it is on PATH",
            "Set NERD_BACKUP_RESTIC_BINARY to the restic executable",
        ],
        "bad_password": [
            "Check NERD_BACKUP_RESTIC_PASSWORD",
            "Verify that the repository URL points at the intended repository",
        ],
        "permission_denied": [
            "Make sure the state directory is writable by the service user",
            "Check access to /var/run/docker.sock (docker group or root)",
        ],
        "configuration_invalid": [
            "Check that every required NERD_BACKUP_* variable is set",
            "Check YAML syntax in the configuration file",
            "Use an ISO-8601 duration for the backup interval, e.g. P1D or PT6H",
        ],
    }

    return suggestions.get(error_type, [])


def format_validation_errors(errors: list) -> str:
    """
    Format validation errors for display.

    Args:
        errors: List of validation error messages

    Returns:
        str: Formatted error message
    """
    if not errors:
        return "No validation errors"

    if len(errors) == 1:
        return f"Validation error: {errors[0]}"

    formatted = "Validation errors:\n"
    for i, error in enumerate(errors, 1):
        formatted += f"  {i}. {error}\n"

    return formatted.strip()
