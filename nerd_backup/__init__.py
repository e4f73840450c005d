"""Scheduled restic backups of Docker volumes with container stop/start."""

__version__ = "0.1.0"
__author__ = "Nerd Backup Team"
