"""Configuration management for nerd-backup."""

from .interval import format_interval, parse_interval
from .manager import ENV_PREFIX, BackupConfig, ConfigManager
from .schemas import CONFIG_SCHEMA

__all__ = ["BackupConfig", "CONFIG_SCHEMA", "ConfigManager", "ENV_PREFIX", "format_interval", "parse_interval"]
