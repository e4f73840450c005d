"""Volume backup orchestration for nerd-backup."""

from .coordinator import VolumeBackupCoordinator
from .scheduler import Scheduler, SchedulerState, ShutdownSignal
from .state import LastRunStore

__all__ = ["LastRunStore", "Scheduler", "SchedulerState", "ShutdownSignal", "VolumeBackupCoordinator"]
