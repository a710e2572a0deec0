"""
Interval task runner.

In-process periodic trigger for the scheduler task, for development and
testing. Production hosts run the task from their own job scheduler
(cron, a task queue, a scheduled machine).

Key behaviors:
- A fresh task is created for every tick
- Synchronous run_once() for predictable testing
- Background mode on a daemon thread with a configurable interval
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Protocol

from temporal_cache.components.scheduler import BatchRunResult

logger = logging.getLogger(__name__)


class BatchTask(Protocol):
    def execute(self) -> BatchRunResult: ...


class IntervalTaskRunner:
    """
    Runs a task factory at a fixed interval.

    Stops only on stop(); a failing tick is logged and the loop continues.
    """

    def __init__(
        self,
        task_factory: Callable[[], BatchTask],
        interval_seconds: float = 60.0,
    ) -> None:
        """
        Initialize runner.

        Args:
            task_factory: Builds a new task for each run
            interval_seconds: Interval between runs
        """
        self._task_factory = task_factory
        self._interval = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._running = False

    def run_once(self) -> BatchRunResult:
        """Build a task and run it synchronously."""
        return self._task_factory().execute()

    def start(self) -> None:
        """Start the background runner."""
        if self._running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, daemon=True)
        self._thread.start()
        self._running = True
        logger.info("Temporal cache runner started (interval: %.1fs)", self._interval)

    def stop(self) -> None:
        """Stop the runner gracefully."""
        if not self._running:
            return

        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5.0)
        self._running = False
        logger.info("Temporal cache runner stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    def wait(self, timeout: float | None = None) -> bool:
        """Block until stop() is called (or timeout); True if stopped."""
        return self._stop_event.wait(timeout=timeout)

    def _run_loop(self) -> None:
        """Background loop."""
        while not self._stop_event.wait(timeout=self._interval):
            try:
                result = self.run_once()
                if result.transitions_found > 0:
                    logger.info(
                        "Scheduler run: %d transitions, %d processed, %d errors",
                        result.transitions_found,
                        result.processed,
                        result.errors,
                    )
            except Exception:
                logger.exception("Error in temporal cache runner loop")
