"""Pytest configuration and shared fixtures."""

import os
import shutil
import tempfile
from typing import Callable, Dict, List, Optional, Union
from unittest.mock import MagicMock

import pytest

from nerd_backup.containers.runtime import AttachedContainer, ContainerRuntime, Volume
from nerd_backup.restic.client import PreparedCommand, RepositoryConfig, ResticClient, S3Credentials
from nerd_backup.restic.runner import CommandResult
from nerd_backup.utils.errors import ContainerRuntimeError

ResultSpec = Union[CommandResult, Exception, Callable[[PreparedCommand], CommandResult], List]


class FakeRunner:
    """Records commands and answers them from a per-subcommand table."""

    def __init__(self, events: Optional[list] = None):
        self.results: Dict[str, ResultSpec] = {}
        self.commands: List[PreparedCommand] = []
        self.events = events if events is not None else []

    @property
    def subcommands(self) -> List[str]:
        return [command.subcommand for command in self.commands]

    def run(self, command: PreparedCommand) -> CommandResult:
        self.commands.append(command)
        self.events.append(("restic", command.subcommand, command.argv[-1]))

        result = self.results.get(command.subcommand, CommandResult(0))
        if isinstance(result, list):
            result = result.pop(0)
        if isinstance(result, Exception):
            raise result
        if callable(result):
            result = result(command)
        return result


class FakeRuntime(ContainerRuntime):
    """In-memory container runtime."""

    def __init__(self, events: Optional[list] = None):
        self.attached: Dict[str, List[AttachedContainer]] = {}
        self.fail_stop = set()
        self.fail_start = set()
        self.events = events if events is not None else []

    def add_volume(self, name: str, *container_ids: str) -> List[AttachedContainer]:
        containers = [AttachedContainer(id=cid, names=(f"{cid}-name",)) for cid in container_ids]
        self.attached[name] = containers
        return containers

    def inspect_volume(self, name: str) -> Volume:
        self.events.append(("inspect", name))
        if name not in self.attached:
            raise ContainerRuntimeError(f"Volume '{name}' not found")
        return Volume(name=name, mountpoint=f"/var/lib/docker/volumes/{name}/_data")

    def containers_using(self, volume_name: str) -> List[AttachedContainer]:
        return list(self.attached.get(volume_name, []))

    def stop(self, container: AttachedContainer) -> None:
        self.events.append(("stop", container.id))
        if container.id in self.fail_stop:
            raise ContainerRuntimeError(f"Failed to stop container '{container.id}'")

    def start(self, container: AttachedContainer) -> None:
        self.events.append(("start", container.id))
        if container.id in self.fail_start:
            raise ContainerRuntimeError(f"Failed to start container '{container.id}'")


@pytest.fixture
def temp_directory():
    """Create a temporary directory for testing."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolate_filesystem(temp_directory, monkeypatch):
    """Isolate filesystem operations to temporary directory."""
    monkeypatch.chdir(temp_directory)
    return temp_directory


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Remove NERD_BACKUP_* variables inherited from the host."""
    for key in list(os.environ):
        if key.startswith("NERD_BACKUP_"):
            monkeypatch.delenv(key)


@pytest.fixture
def repository_config():
    """Repository configuration pointing at a fake S3 bucket."""
    return RepositoryConfig(
        repository="s3:s3.amazonaws.com/nerd-bucket/backups",
        password="correct horse",
        backend=S3Credentials(access_key_id="AKIATEST", secret_access_key="s3cr3t"),
        tag_prefix="nerd-",
    )


@pytest.fixture
def restic_client(repository_config):
    return ResticClient(repository_config)


@pytest.fixture
def events():
    """Shared, ordered log of runtime and restic calls."""
    return []


@pytest.fixture
def fake_runner(events):
    return FakeRunner(events)


@pytest.fixture
def fake_runtime(events):
    return FakeRuntime(events)


@pytest.fixture
def mock_docker_client():
    """Mock Docker client for testing."""
    client = MagicMock()
    client.ping.return_value = True
    client.containers.list.return_value = []
    return client


@pytest.fixture
def env_config(temp_directory):
    """A complete set of NERD_BACKUP_* variables."""
    return {
        "NERD_BACKUP_RESTIC_REPOSITORY": "s3:s3.amazonaws.com/nerd-bucket/backups",
        "NERD_BACKUP_RESTIC_PASSWORD": "correct horse",
        "NERD_BACKUP_AWS_ACCESS_KEY_ID": "AKIATEST",
        "NERD_BACKUP_AWS_SECRET_ACCESS_KEY": "s3cr3t",
        "NERD_BACKUP_VOLUMES_TO_BACKUP": "postgres_data, nextcloud_data",
        "NERD_BACKUP_TAG_PREFIX": "nerd-",
        "NERD_BACKUP_BACKUP_INTERVAL": "P1D",
        "NERD_BACKUP_STATE_DIR": os.path.join(temp_directory, "state"),
    }
