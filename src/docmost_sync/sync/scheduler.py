"""Periodic execution of sync runs with skip-if-busy semantics."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

SHUTDOWN_TIMEOUT = 30.0

RunFunction = Callable[[threading.Event], object]


@dataclass(frozen=True, slots=True)
class SchedulerStats:
    last_run_time: Optional[float]
    last_error: Optional[str]
    run_count: int
    running: bool
    uptime: float


class Scheduler:
    """Run ``run`` once, then every ``interval`` seconds until shut down.

    ``interval`` of ``None`` or ``0`` means one-shot: :meth:`start` returns
    after the first run. The run function receives the cancel event and is
    expected to stop at its next checkpoint once the event is set. An
    exception raised by a run is recorded and logged; it never stops later
    runs.
    """

    def __init__(self, run: RunFunction, interval: Optional[float] = None) -> None:
        self._run = run
        self.interval = interval if interval and interval > 0 else None
        self.cancel = threading.Event()
        self._lock = threading.Lock()
        self._idle = threading.Event()
        self._idle.set()
        self._running = False
        self._started_at = time.monotonic()
        self._last_run_time: Optional[float] = None
        self._last_error: Optional[str] = None
        self._run_count = 0

    @property
    def one_shot(self) -> bool:
        return self.interval is None

    def start(self) -> None:
        logger.info("Starting initial sync...")
        self.run_safely()

        if self.one_shot:
            logger.info("One-shot mode: exiting after initial sync")
            return

        logger.info("Scheduler started. Next sync in %ss", self.interval)
        while not self.cancel.wait(self.interval):
            logger.info("Starting scheduled sync...")
            self.run_safely()
            if not self.cancel.is_set():
                logger.info("Next sync in %ss", self.interval)
        logger.info("Scheduler stopped")

    def run_safely(self) -> bool:
        """Run once unless a run is already in flight; return whether it ran."""

        with self._lock:
            if self._running:
                logger.info("Sync already in progress, skipping...")
                return False
            self._running = True
            self._idle.clear()

        started = time.monotonic()
        error: Optional[str] = None
        try:
            self._run(self.cancel)
        except Exception as exc:  # noqa: BLE001 - a failed run must not stop the schedule
            error = str(exc) or exc.__class__.__name__
            logger.error("Sync failed: %s (duration: %.1fs)", error, time.monotonic() - started)
        else:
            logger.info("Sync completed successfully (duration: %.1fs)", time.monotonic() - started)
        finally:
            with self._lock:
                self._last_run_time = time.time()
                self._last_error = error
                self._run_count += 1
                self._running = False
                self._idle.set()
        return True

    def shutdown(self, timeout: float = SHUTDOWN_TIMEOUT) -> bool:
        """Request cancellation and wait up to ``timeout`` for the current run.

        Returns ``True`` when no run is in flight any more.
        """

        logger.info("Initiating graceful shutdown...")
        self.cancel.set()
        finished = self._idle.wait(timeout)
        if finished:
            logger.info("Graceful shutdown completed")
        else:
            logger.warning("Shutdown timeout after %.0fs, exiting anyway", timeout)
        return finished

    def stats(self) -> SchedulerStats:
        with self._lock:
            return SchedulerStats(
                last_run_time=self._last_run_time,
                last_error=self._last_error,
                run_count=self._run_count,
                running=self._running,
                uptime=time.monotonic() - self._started_at,
            )
