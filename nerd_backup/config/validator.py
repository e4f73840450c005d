"""Configuration validation for nerd-backup."""

from typing import Any, Dict, List

import jsonschema

from ..utils.errors import ConfigurationError
from .interval import parse_interval
from .schemas import CONFIG_SCHEMA


class ConfigValidator:
    """Validates merged nerd-backup configuration."""

    def __init__(self, schema: Dict[str, Any] = CONFIG_SCHEMA):
        self.schema = schema

    def validate(self, config: Dict[str, Any]) -> List[str]:
        """
        Validate configuration.

        Args:
            config: Configuration dictionary to validate

        Returns:
            List[str]: List of validation errors (empty if valid)
        """
        errors = []

        try:
            validator = jsonschema.Draft7Validator(self.schema)
            for error in sorted(validator.iter_errors(config), key=lambda e: list(e.path)):
                location = ".".join(str(part) for part in error.path)
                errors.append(f"{location}: {error.message}" if location else error.message)
        except jsonschema.SchemaError as e:
            errors.append(f"Schema error: {e.message}")

        if isinstance(config.get("backup_interval"), str) and not errors:
            errors.extend(self._validate_interval(config["backup_interval"]))

        volumes = config.get("volumes_to_backup")
        if isinstance(volumes, list):
            errors.extend(self._validate_volumes(volumes))

        return errors

    def _validate_interval(self, text: str) -> List[str]:
        try:
            parse_interval(text)
        except ConfigurationError as e:
            return [f"backup_interval: {e.message}"]
        return []

    def _validate_volumes(self, volumes: List[Any]) -> List[str]:
        errors = []
        seen = set()
        for name in volumes:
            if not isinstance(name, str):
                continue
            if name in seen:
                errors.append(f"volumes_to_backup: duplicate volume '{name}'")
            seen.add(name)
        return errors
