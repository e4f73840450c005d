"""Construction of restic invocations."""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Union


@dataclass(frozen=True)
class S3Credentials:
    """Credentials for an S3 compatible object storage backend."""

    access_key_id: str
    secret_access_key: str = field(repr=False)

    def env(self) -> Dict[str, str]:
        return {
            "AWS_ACCESS_KEY_ID": self.access_key_id,
            "AWS_SECRET_ACCESS_KEY": self.secret_access_key,
        }


# Every supported storage backend. Add new variants here and give them an env() method.
BackendCredentials = Union[S3Credentials]


@dataclass(frozen=True)
class RepositoryConfig:
    """Where the repository lives and how to reach it."""

    repository: str
    password: str = field(repr=False)
    backend: BackendCredentials
    tag_prefix: str = ""
    binary: str = "restic"


@dataclass(frozen=True)
class PreparedCommand:
    """A restic command ready to run: argv plus environment bindings."""

    argv: Tuple[str, ...]
    env: Dict[str, str] = field(repr=False)

    @property
    def subcommand(self) -> str:
        return self.argv[1] if len(self.argv) > 1 else ""


class ResticClient:
    """Builds restic commands bound to one repository.

    Nothing here runs a process; see ``SubprocessRunner`` for that.
    """

    def __init__(self, config: RepositoryConfig):
        self.config = config

    @property
    def repository(self) -> str:
        return self.config.repository

    def environment(self) -> Dict[str, str]:
        """Environment bindings shared by every invocation."""
        env = {
            "RESTIC_REPOSITORY": self.config.repository,
            "RESTIC_PASSWORD": self.config.password,
        }
        env.update(self.config.backend.env())
        return env

    def command(self, subcommand: str, *args: str) -> PreparedCommand:
        argv: List[str] = [self.config.binary, subcommand]
        argv.extend(args)
        return PreparedCommand(argv=tuple(argv), env=self.environment())

    def check(self) -> PreparedCommand:
        return self.command("check")

    def init(self) -> PreparedCommand:
        return self.command("init")

    def unlock(self) -> PreparedCommand:
        return self.command("unlock")

    def tag_for(self, volume_name: str) -> str:
        return f"{self.config.tag_prefix}{volume_name}"

    def backup(self, volume_name: str, path: str) -> PreparedCommand:
        """Build ``backup --tag <prefix><volume> <path>``."""
        return self.command("backup", "--tag", self.tag_for(volume_name), path)
