"""Persistence of the last successful backup time."""

import logging
import os
import tempfile
from typing import Optional

from ..utils.errors import BackupIOError

logger = logging.getLogger(__name__)

LAST_RUN_FILENAME = "last-run"


class LastRunStore:
    """Reads and writes the Unix timestamp of the last successful cycle.

    The file holds a single decimal number of seconds. Writes go through a
    temporary file and a rename so a crash never leaves a half-written value.
    """

    def __init__(self, path: str):
        self.path = path

    @classmethod
    def in_directory(cls, state_dir: str) -> "LastRunStore":
        return cls(os.path.join(state_dir, LAST_RUN_FILENAME))

    def ensure_directory(self) -> None:
        """Create the state directory if it does not exist yet."""
        directory = os.path.dirname(self.path) or "."
        if os.path.isdir(directory):
            logger.debug("Directory already exists: %s", directory)
            return
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            raise BackupIOError(f"I/O error: cannot create state directory {directory}", details=str(e)) from e
        logger.info("Created directory: %s", directory)

    def read(self) -> Optional[int]:
        """
        Read the last successful run.

        Returns:
            Optional[int]: Unix timestamp, or None when the file is missing or
            does not contain a whole number
        """
        try:
            with open(self.path, encoding="utf-8") as f:
                content = f.read().strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Failed to read last run timestamp from %s: %s", self.path, e)
            return None

        try:
            timestamp = int(content)
        except ValueError:
            logger.warning("Failed to parse last run timestamp %r in %s", content, self.path)
            return None

        if timestamp < 0:
            logger.warning("Ignoring negative last run timestamp in %s", self.path)
            return None
        return timestamp

    def write(self, timestamp: int) -> None:
        """
        Overwrite the last successful run.

        Args:
            timestamp: Unix timestamp in seconds

        Raises:
            BackupIOError: If the file cannot be written
        """
        self.ensure_directory()
        directory = os.path.dirname(self.path) or "."
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=f".{LAST_RUN_FILENAME}.", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(str(int(timestamp)))
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise BackupIOError(f"I/O error: cannot write {self.path}", details=str(e)) from e
