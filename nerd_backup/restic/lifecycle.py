"""Repository lifecycle: make sure the repository is usable before backing up."""

import logging
from enum import Enum

from ..utils.errors import (
    CheckFailure,
    RepositoryCheckError,
    RepositoryInitError,
    RepositoryUnlockError,
)
from .client import ResticClient
from .runner import CommandResult, SubprocessRunner

logger = logging.getLogger(__name__)


class RepositoryState(Enum):
    """States the repository moves through while being made ready."""

    UNINITIALIZED = "uninitialized"
    LOCKED = "locked"
    READY = "ready"
    UNRECOVERABLE = "unrecoverable"


class RepositoryLifecycleManager:
    """Drives check, init and unlock for a restic repository."""

    def __init__(self, client: ResticClient, runner: SubprocessRunner):
        """
        Initialize lifecycle manager.

        Args:
            client: Builds commands for the repository
            runner: Executes those commands
        """
        self.client = client
        self.runner = runner

    def check(self) -> None:
        """
        Run ``restic check``.

        Raises:
            RepositoryCheckError: If the check exits with a non-zero status
            BackupIOError: If restic cannot be spawned
        """
        logger.info("Checking repository status at %s", self.client.repository)
        result = self.runner.run(self.client.check())
        if not result.success:
            raise RepositoryCheckError(
                CheckFailure.from_exit_code(result.returncode),
                result.returncode,
                details=_stderr(result),
            )

    def ensure_ready(self) -> RepositoryState:
        """
        Bring the repository into the READY state.

        A missing repository is initialized and a locked one is unlocked. A
        successful unlock is taken as ready without checking again.

        Returns:
            RepositoryState: Always ``READY``; every other outcome raises

        Raises:
            RepositoryCheckError: Bad password or unknown check failure
            RepositoryInitError: If ``restic init`` fails
            RepositoryUnlockError: If ``restic unlock`` fails
        """
        try:
            self.check()
        except RepositoryCheckError as e:
            if e.kind == CheckFailure.NOT_FOUND:
                return self._initialize()
            if e.kind == CheckFailure.LOCKED:
                return self._unlock()
            logger.error("Repository at %s is unusable: %s", self.client.repository, e.message)
            raise

        logger.info("Repository already initialized at %s", self.client.repository)
        return RepositoryState.READY

    def _initialize(self) -> RepositoryState:
        logger.info("Initializing new repository at %s", self.client.repository)
        result = self.runner.run(self.client.init())
        if not result.success:
            logger.error("Failed to initialize repository: %s", _stderr(result))
            raise RepositoryInitError(details=_stderr(result) or None)
        return RepositoryState.READY

    def _unlock(self) -> RepositoryState:
        logger.info("Unlocking repository at %s", self.client.repository)
        result = self.runner.run(self.client.unlock())
        if not result.success:
            raise RepositoryUnlockError(_stderr(result))
        return RepositoryState.READY


def _stderr(result: CommandResult) -> str:
    return result.stderr.strip()
