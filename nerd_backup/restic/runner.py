"""Execution of prepared restic commands."""

import logging
import os
import subprocess
from dataclasses import dataclass

from ..utils.errors import BackupIOError, create_error_suggestions
from .client import PreparedCommand

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Exit status and captured output of a finished command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


class SubprocessRunner:
    """Runs prepared commands with ``subprocess``.

    Non-zero exit codes are returned, not raised. There is no timeout: a hung
    restic process blocks the caller until it exits.
    """

    def run(self, command: PreparedCommand) -> CommandResult:
        """
        Run a command to completion.

        Args:
            command: Command built by ``ResticClient``

        Returns:
            CommandResult: Exit code and captured output

        Raises:
            BackupIOError: If the process cannot be spawned
        """
        env = os.environ.copy()
        env.update(command.env)

        logger.debug("Running %s", " ".join(command.argv))
        try:
            completed = subprocess.run(
                list(command.argv),
                env=env,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            raise BackupIOError(
                f"Executable not found: {command.argv[0]}",
                details=str(e),
                suggestions=create_error_suggestions("restic_not_found"),
            ) from e
        except OSError as e:
            raise BackupIOError(f"I/O error: failed to run {command.argv[0]}", details=str(e)) from e

        return CommandResult(
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
