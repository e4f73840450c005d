"""Docker access for volume backups."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Tuple

import docker
from docker.errors import DockerException, NotFound
from requests.exceptions import RequestException

from ..utils.errors import ContainerRuntimeError, create_error_suggestions

logger = logging.getLogger(__name__)

# docker-py lets transport failures such as ReadTimeout through unwrapped.
DOCKER_ERRORS = (DockerException, RequestException)


@dataclass(frozen=True)
class Volume:
    """A named volume and where its data lives on the host."""

    name: str
    mountpoint: str


@dataclass(frozen=True)
class AttachedContainer:
    """A container that mounts a volume being backed up."""

    id: str
    names: Tuple[str, ...] = ()

    @property
    def display_name(self) -> str:
        return ", ".join(self.names) if self.names else self.id[:12]


class ContainerRuntime(ABC):
    """The container operations a backup cycle needs."""

    @abstractmethod
    def inspect_volume(self, name: str) -> Volume:
        """Resolve a volume name to its metadata."""

    @abstractmethod
    def containers_using(self, volume_name: str) -> List[AttachedContainer]:
        """List all containers, running or not, that mount the volume."""

    @abstractmethod
    def stop(self, container: AttachedContainer) -> None:
        """Stop a container."""

    @abstractmethod
    def start(self, container: AttachedContainer) -> None:
        """Start a container."""


class DockerRuntime(ContainerRuntime):
    """ContainerRuntime backed by the local Docker daemon."""

    def __init__(self, client: Any = None):
        """
        Initialize Docker runtime.

        Args:
            client: Optional pre-built ``docker.DockerClient``; by default one is
                created from the environment on first use
        """
        self._client = client

    @property
    def client(self) -> Any:
        """Get Docker client, creating it if necessary."""
        if self._client is None:
            try:
                self._client = docker.from_env()
                self._client.ping()
            except DOCKER_ERRORS as e:
                raise ContainerRuntimeError(
                    f"Cannot connect to Docker daemon: {e}",
                    suggestions=create_error_suggestions("docker_not_running"),
                ) from e

        return self._client

    def inspect_volume(self, name: str) -> Volume:
        """
        Resolve a volume name to its metadata.

        Args:
            name: Volume name

        Returns:
            Volume: Name and host mountpoint

        Raises:
            ContainerRuntimeError: If the volume does not exist or Docker fails
        """
        try:
            volume = self.client.volumes.get(name)
        except NotFound as e:
            raise ContainerRuntimeError(f"Volume '{name}' not found", details=str(e)) from e
        except DOCKER_ERRORS as e:
            raise ContainerRuntimeError(f"Failed to inspect volume '{name}': {e}") from e

        return Volume(name=volume.name, mountpoint=volume.attrs["Mountpoint"])

    def containers_using(self, volume_name: str) -> List[AttachedContainer]:
        """
        List containers that mount a volume.

        Args:
            volume_name: Volume name

        Returns:
            List[AttachedContainer]: Matching containers including stopped ones
        """
        try:
            containers = self.client.containers.list(all=True, filters={"volume": volume_name})
        except DOCKER_ERRORS as e:
            raise ContainerRuntimeError(f"Failed to list containers for volume '{volume_name}': {e}") from e

        return [AttachedContainer(id=container.id, names=(container.name,)) for container in containers]

    def stop(self, container: AttachedContainer) -> None:
        try:
            self.client.api.stop(container.id)
        except DOCKER_ERRORS as e:
            raise ContainerRuntimeError(f"Failed to stop container '{container.display_name}': {e}") from e

    def start(self, container: AttachedContainer) -> None:
        try:
            self.client.api.start(container.id)
        except DOCKER_ERRORS as e:
            raise ContainerRuntimeError(f"Failed to start container '{container.display_name}': {e}") from e
