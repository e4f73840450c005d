"""Stop, back up and restart: the per-volume backup transaction."""

import logging
from typing import List, Optional, Sequence

from ..containers.runtime import AttachedContainer, ContainerRuntime, Volume
from ..restic.client import ResticClient
from ..restic.runner import SubprocessRunner
from ..utils.errors import ContainerRuntimeError, NerdBackupError, VolumeBackupError

logger = logging.getLogger(__name__)


class VolumeBackupCoordinator:
    """Backs up volumes one at a time while their containers are stopped."""

    def __init__(self, client: ResticClient, runner: SubprocessRunner, runtime: ContainerRuntime):
        """
        Initialize coordinator.

        Args:
            client: Builds restic commands
            runner: Executes restic commands
            runtime: Container runtime used to find, stop and start containers
        """
        self.client = client
        self.runner = runner
        self.runtime = runtime

    def backup_all(self, volumes: Sequence[str]) -> None:
        """
        Back up every volume in order.

        Processing stops at the first volume that fails; later volumes are not
        touched in this cycle.

        Args:
            volumes: Volume names

        Raises:
            VolumeBackupError: If restic fails for a volume
            ContainerRuntimeError: If Docker fails for a volume
            BackupIOError: If restic cannot be spawned
        """
        for name in volumes:
            self.backup_volume(name)

    def backup_volume(self, name: str) -> None:
        """
        Back up a single volume.

        Every container stopped here gets a start attempt before any error is
        raised. When a restart fails as well, the restart failures travel on a
        ``VolumeBackupError`` together with the original failure.

        Args:
            name: Volume name
        """
        volume = self.runtime.inspect_volume(name)
        logger.info("Backing up %s", volume.name)

        containers = self.runtime.containers_using(volume.name)
        stopped: List[AttachedContainer] = []

        try:
            self._stop_containers(containers, stopped)
            failure = self._run_backup(volume)
        except Exception as e:
            restart_errors = self._start_containers(stopped)
            if restart_errors:
                detail = e.message if isinstance(e, NerdBackupError) else f"{type(e).__name__}: {e}"
                raise VolumeBackupError(volume.name, detail, restart_errors=restart_errors) from e
            raise

        restart_errors = self._start_containers(stopped)
        if failure is not None:
            raise VolumeBackupError(volume.name, failure, restart_errors=restart_errors)
        if restart_errors:
            raise ContainerRuntimeError(
                f"Backup of {volume.name} succeeded but {len(restart_errors)} container(s) failed to start",
                details="; ".join(error.message for error in restart_errors),
            )

    def _run_backup(self, volume: Volume) -> Optional[str]:
        """Run restic for one volume; return the failure detail, or None on success."""
        result = self.runner.run(self.client.backup(volume.name, volume.mountpoint))
        if result.stdout:
            logger.debug("restic backup output for %s:\n%s", volume.name, result.stdout.rstrip())
        if not result.success:
            detail = result.stderr.strip()
            logger.error("Failed to backup %s: %s", volume.name, detail)
            return detail
        logger.info("Backup completed for %s", volume.name)
        return None

    def _stop_containers(self, containers: List[AttachedContainer], stopped: List[AttachedContainer]) -> None:
        """Stop containers in order, appending each one to ``stopped`` once it is down."""
        for container in containers:
            logger.info("Stopping container %s.", container.display_name)
            self.runtime.stop(container)
            stopped.append(container)
            logger.info("Stopped container %s.", container.display_name)

    def _start_containers(self, containers: List[AttachedContainer]) -> List[ContainerRuntimeError]:
        """Start containers in order, attempting every one and collecting failures."""
        errors: List[ContainerRuntimeError] = []
        for container in containers:
            logger.info("Starting container %s.", container.display_name)
            try:
                self.runtime.start(container)
            except ContainerRuntimeError as e:
                error = e
            except Exception as e:
                error = ContainerRuntimeError(f"Failed to start container '{container.display_name}': {e}")
            else:
                logger.info("Started container %s.", container.display_name)
                continue
            logger.error("Failed to start container %s: %s", container.display_name, error.message)
            errors.append(error)
        return errors
