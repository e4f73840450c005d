"""restic repository access for nerd-backup."""

from .client import BackendCredentials, PreparedCommand, RepositoryConfig, ResticClient, S3Credentials
from .lifecycle import RepositoryLifecycleManager, RepositoryState
from .runner import CommandResult, SubprocessRunner

__all__ = [
    "BackendCredentials",
    "CommandResult",
    "PreparedCommand",
    "RepositoryConfig",
    "RepositoryLifecycleManager",
    "RepositoryState",
    "ResticClient",
    "S3Credentials",
    "SubprocessRunner",
]
