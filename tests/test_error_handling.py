"""Tests for error handling system."""

from unittest.mock import patch

import click
import pytest
from click.testing import CliRunner
from requests.exceptions import ReadTimeout

from nerd_backup.utils.errors import (
    CheckFailure,
    ConfigurationError,
    ContainerRuntimeError,
    ErrorHandler,
    NerdBackupError,
    RepositoryCheckError,
    RepositoryUnlockError,
    VolumeBackupError,
    create_error_suggestions,
    format_validation_errors,
)


class TestNerdBackupError:
    """Test custom error classes."""

    def test_error_basic(self):
        """Test basic NerdBackupError functionality."""
        error = NerdBackupError("Test error message")

        assert str(error) == "Test error message"
        assert error.message == "Test error message"
        assert error.details is None
        assert error.suggestions == []

    def test_specific_error_types(self):
        """Test specific error type inheritance."""
        assert isinstance(ConfigurationError("Config error"), NerdBackupError)
        assert isinstance(ContainerRuntimeError("Docker error"), NerdBackupError)
        assert isinstance(RepositoryUnlockError("stale lock"), NerdBackupError)

    @pytest.mark.parametrize(
        "code, kind",
        [
            (10, CheckFailure.NOT_FOUND),
            (11, CheckFailure.LOCKED),
            (12, CheckFailure.BAD_PASSWORD),
        ],
    )
    def test_check_exit_codes(self, code, kind):
        """Test that the known restic exit codes map to named failures."""
        assert CheckFailure.from_exit_code(code) == kind

    @pytest.mark.parametrize("code", [1, 3, 13, 130])
    def test_unknown_check_exit_code(self, code):
        """Test that other exit codes map to a generic failure carrying the code."""
        error = RepositoryCheckError(CheckFailure.from_exit_code(code), code)

        assert error.kind == CheckFailure.OTHER
        assert error.code == code
        assert str(code) in error.message

    def test_bad_password_has_suggestions(self):
        """Test that a bad password error suggests checking the password."""
        error = RepositoryCheckError(CheckFailure.BAD_PASSWORD, 12)

        assert error.message == "Bad password."
        assert any("PASSWORD" in suggestion for suggestion in error.suggestions)

    def test_volume_backup_error_carries_restart_failures(self):
        """Test that restart failures are reported alongside the backup failure."""
        restart = ContainerRuntimeError("Failed to start container 'db'")
        error = VolumeBackupError("pgdata", "repository unreachable", restart_errors=[restart])

        assert error.volume == "pgdata"
        assert error.restart_errors == [restart]
        assert "pgdata" in error.message
        assert "Failed to start container 'db'" in error.details


class TestErrorHandler:
    """Test error handler functionality."""

    def setup_method(self):
        """Setup test environment."""
        self.handler = ErrorHandler(verbose=False)
        self.verbose_handler = ErrorHandler(verbose=True)

    def test_handle_backup_error(self):
        """Test handling nerd-backup specific errors."""
        error = NerdBackupError(
            "Test error message",
            details="Error details",
            suggestions=["Suggestion 1", "Suggestion 2"],
        )

        with patch("click.echo") as mock_echo:
            self.handler.handle_error(error, "Test context")

            assert mock_echo.call_count >= 4
            error_calls = [call for call in mock_echo.call_args_list if "✗" in str(call)]
            assert len(error_calls) > 0

    def test_handle_docker_transport_error(self):
        """Test that a lost Docker connection points at the daemon."""
        error = ReadTimeout("UnixHTTPConnectionPool(host='localhost', port=None): Read timed out.")

        with patch("click.echo") as mock_echo:
            self.handler.handle_error(error, "Backing up volumes")

        output = " ".join(str(call) for call in mock_echo.call_args_list)
        assert "Lost connection to Docker daemon" in output
        assert "Start the Docker daemon" in output

    def test_handle_permission_error(self):
        """Test that permission problems name the path."""
        error = PermissionError(13, "Permission denied", "/var/lib/nerd-backup")

        with patch("click.echo") as mock_echo:
            self.handler.handle_error(error)

        assert "Permission denied: /var/lib/nerd-backup" in str(mock_echo.call_args_list[0])

    def test_handle_unexpected_error(self):
        """Test that other exceptions are reported with their type."""
        with patch("click.echo") as mock_echo:
            self.handler.handle_error(KeyError("Mountpoint"))

        output = " ".join(str(call) for call in mock_echo.call_args_list)
        assert "Unexpected error: KeyError" in output
        assert "--verbose" in output

    def test_handle_error_with_verbose(self):
        """Test error handling with verbose output."""
        error = NerdBackupError("Test error")

        with patch("click.echo"):
            with patch("traceback.print_exc") as mock_traceback:
                self.verbose_handler.handle_error(error)

                mock_traceback.assert_called_once()

    def test_exit_with_error(self):
        """Test exit_with_error functionality."""
        error = NerdBackupError("Fatal error")

        with patch("click.echo"):
            with patch("sys.exit") as mock_exit:
                self.handler.exit_with_error(error, exit_code=2)

                mock_exit.assert_called_once_with(2)


class TestErrorUtilities:
    """Test error utility functions."""

    def test_create_error_suggestions_docker(self):
        """Test Docker error suggestions."""
        suggestions = create_error_suggestions("docker_not_running")

        assert any("Docker" in suggestion for suggestion in suggestions)

    def test_create_error_suggestions_unknown(self):
        """Test suggestions for unknown error type."""
        assert create_error_suggestions("unknown_error_type") == []

    def test_format_validation_errors_multiple(self):
        """Test formatting multiple validation errors."""
        result = format_validation_errors(["'tag_prefix' is a required property", "bad interval"])

        assert "Validation errors:" in result
        assert "1." in result
        assert "2." in result

    def test_format_validation_errors_empty(self):
        """Test formatting empty validation errors."""
        assert format_validation_errors([]) == "No validation errors"


class TestClickIntegration:
    """Test error handling integration with Click commands."""

    def test_cli_error_handling(self):
        """Test error handling in Click command context."""

        @click.command()
        def test_command():
            ErrorHandler().exit_with_error(ConfigurationError("Test config error"))

        result = CliRunner().invoke(test_command)

        assert result.exit_code == 1
