"""Configuration loading for nerd-backup."""

import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from ..restic.client import RepositoryConfig, S3Credentials
from ..utils.errors import ConfigurationError, create_error_suggestions, format_validation_errors
from .interval import parse_interval
from .schemas import CONFIG_SCHEMA
from .validator import ConfigValidator

ENV_PREFIX = "NERD_BACKUP_"
DEFAULT_STATE_DIR = "/var/lib/nerd-backup"
DEFAULT_RESTIC_BINARY = "restic"


@dataclass(frozen=True)
class BackupConfig:
    """Validated service configuration."""

    repository: RepositoryConfig
    volumes: Tuple[str, ...]
    interval: timedelta
    state_dir: str = DEFAULT_STATE_DIR


class ConfigManager:
    """Loads configuration from an optional YAML file and ``NERD_BACKUP_*`` variables.

    Environment variables take precedence over values from the file.
    """

    def __init__(self, config_file: Optional[str] = None, environ: Optional[Mapping[str, str]] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Optional YAML file with lower-case keys
            environ: Environment to read (defaults to ``os.environ``)
        """
        self.config_file = config_file
        self.environ = os.environ if environ is None else environ
        self.validator = ConfigValidator()

    def load_file(self) -> Dict[str, Any]:
        """
        Load the YAML configuration file, if one was given.

        Returns:
            Dict[str, Any]: File contents (empty without a file)

        Raises:
            ConfigurationError: If the file is missing or not valid YAML
        """
        if not self.config_file:
            return {}

        try:
            with open(self.config_file, encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except FileNotFoundError as e:
            raise ConfigurationError(f"Configuration file not found: {self.config_file}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in {self.config_file}",
                details=str(e),
                suggestions=create_error_suggestions("configuration_invalid"),
            ) from e

        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ConfigurationError(f"Configuration file {self.config_file} must contain a mapping")

        if isinstance(config.get("volumes_to_backup"), str):
            config["volumes_to_backup"] = _split_list(config["volumes_to_backup"])
        return config

    def load_environment(self) -> Dict[str, Any]:
        """Collect ``NERD_BACKUP_<KEY>`` variables for every known key."""
        config: Dict[str, Any] = {}
        for key in CONFIG_SCHEMA["properties"]:
            value = self.environ.get(f"{ENV_PREFIX}{key.upper()}")
            if value is None:
                continue
            config[key] = _split_list(value) if key == "volumes_to_backup" else value
        return config

    def load_raw(self) -> Dict[str, Any]:
        """Merge file and environment configuration without validating."""
        config = self.load_file()
        config.update(self.load_environment())
        return config

    def load(self) -> BackupConfig:
        """
        Load and validate configuration.

        Returns:
            BackupConfig: Ready-to-use configuration

        Raises:
            ConfigurationError: If configuration is missing or invalid
        """
        raw = self.load_raw()
        errors = self.validator.validate(raw)
        if errors:
            raise ConfigurationError(
                "Invalid configuration",
                details=format_validation_errors(errors),
                suggestions=create_error_suggestions("configuration_invalid"),
            )

        repository = RepositoryConfig(
            repository=raw["restic_repository"],
            password=raw["restic_password"],
            backend=S3Credentials(
                access_key_id=raw["aws_access_key_id"],
                secret_access_key=raw["aws_secret_access_key"],
            ),
            tag_prefix=raw["tag_prefix"],
            binary=raw.get("restic_binary", DEFAULT_RESTIC_BINARY),
        )
        return BackupConfig(
            repository=repository,
            volumes=tuple(raw["volumes_to_backup"]),
            interval=parse_interval(raw["backup_interval"]),
            state_dir=raw.get("state_dir", DEFAULT_STATE_DIR),
        )


def _split_list(value: str) -> list:
    return [item.strip() for item in value.split(",") if item.strip()]
