"""Backup scheduling loop with persisted last-run time and graceful shutdown."""

import logging
import signal
import threading
import time
from datetime import timedelta
from enum import Enum
from typing import Callable, Iterable, Optional, Sequence

from ..config.interval import format_interval
from ..utils.errors import BackupIOError, NerdBackupError
from .coordinator import VolumeBackupCoordinator
from .state import LastRunStore

logger = logging.getLogger(__name__)


class SchedulerState(Enum):
    """Where the scheduler is in its loop."""

    WAITING_FOR_INTERVAL = "waiting_for_interval"
    RUNNING_CYCLE = "running_cycle"
    SHUTTING_DOWN = "shutting_down"


class ShutdownSignal:
    """Shutdown request flag, settable from a signal handler.

    The handler only records the request; the scheduler looks at it between
    cycles, so a cycle that is already running always finishes.
    """

    def __init__(self):
        self._event = threading.Event()
        self.reason: Optional[str] = None

    def install(self, signals: Iterable[signal.Signals] = (signal.SIGINT, signal.SIGTERM)) -> None:
        """Route the given signals to this flag."""
        for sig in signals:
            signal.signal(sig, self._handle)

    def _handle(self, signum, frame) -> None:
        self.request(signal.Signals(signum).name)

    def request(self, reason: str = "shutdown requested") -> None:
        if self.reason is None:
            self.reason = reason
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; return True as soon as shutdown is requested."""
        return self._event.wait(timeout)


class Scheduler:
    """Runs a backup cycle every interval until asked to stop."""

    def __init__(
        self,
        coordinator: VolumeBackupCoordinator,
        volumes: Sequence[str],
        interval: timedelta,
        store: LastRunStore,
        shutdown: Optional[ShutdownSignal] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize scheduler.

        Args:
            coordinator: Performs the backup cycle
            volumes: Volume names backed up on each cycle
            interval: Time between cycles
            store: Holds the last successful run
            shutdown: Shutdown flag; a fresh one is created when omitted
            clock: Returns the current Unix time in seconds
        """
        self.coordinator = coordinator
        self.volumes = list(volumes)
        self.interval = interval
        self.store = store
        self.shutdown = shutdown or ShutdownSignal()
        self.clock = clock
        self.state = SchedulerState.WAITING_FOR_INTERVAL

    @property
    def interval_seconds(self) -> float:
        return self.interval.total_seconds()

    def next_due(self) -> Optional[float]:
        """Unix time the next cycle is due, or None if no successful run is recorded."""
        last_run = self.store.read()
        if last_run is None:
            return None
        return last_run + self.interval_seconds

    def initial_delay(self) -> float:
        """
        Seconds to wait before the first cycle.

        Zero when there is no usable last-run record or the last success is a
        full interval or more in the past.
        """
        last_run = self.store.read()
        if last_run is None:
            logger.info("No previous backup found, running backup immediately")
            return 0.0

        # A timestamp in the future counts as "just ran".
        elapsed = max(0.0, self.clock() - last_run)
        if elapsed >= self.interval_seconds:
            logger.info(
                "Backup is overdue by %s, running immediately",
                format_interval(elapsed - self.interval_seconds),
            )
            return 0.0

        remaining = self.interval_seconds - elapsed
        logger.info("Waiting %s until next scheduled backup", format_interval(remaining))
        return remaining

    def run_cycle(self) -> bool:
        """
        Run one backup cycle.

        The last-run record is updated only when every volume succeeded.

        Returns:
            bool: True if the cycle succeeded
        """
        self.state = SchedulerState.RUNNING_CYCLE
        logger.info("Starting backup.")
        try:
            self.coordinator.backup_all(self.volumes)
        except NerdBackupError as e:
            logger.error("Backup failed: %s", e.message)
            if e.details:
                logger.error("Details: %s", e.details)
            return False
        except Exception:
            # Any other exception is one failed cycle, not the end of the service.
            logger.exception("Backup failed with an unexpected error")
            return False
        finally:
            self.state = SchedulerState.WAITING_FOR_INTERVAL

        logger.info("Backup completed successfully")
        try:
            self.store.write(int(self.clock()))
        except BackupIOError as e:
            logger.error("Failed to update last run timestamp: %s", e.details or e.message)
        return True

    def run(self) -> None:
        """Wait for the first due time, then run cycles at a fixed rate until shutdown."""
        logger.info("Backup interval set to: %s", format_interval(self.interval_seconds))

        delay = self.initial_delay()
        if delay > 0 and self.shutdown.wait(delay):
            self._stop()
            return

        next_tick = self.clock()
        while not self.shutdown.is_set():
            self.run_cycle()
            next_tick = self._next_tick(next_tick)
            if self.shutdown.wait(max(0.0, next_tick - self.clock())):
                break

        self._stop()

    def _next_tick(self, previous: float) -> float:
        """Next tick after ``previous``; ticks missed during a long cycle are skipped."""
        tick = previous + self.interval_seconds
        now = self.clock()
        skipped = 0
        while tick <= now:
            tick += self.interval_seconds
            skipped += 1
        if skipped:
            logger.warning("Backup cycle overran the interval, skipped %d tick(s)", skipped)
        return tick

    def _stop(self) -> None:
        self.state = SchedulerState.SHUTTING_DOWN
        if self.shutdown.reason:
            logger.info("Received %s, shutting down gracefully", self.shutdown.reason)
        logger.info("Backup service stopped")
