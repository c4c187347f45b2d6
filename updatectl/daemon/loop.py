"""
updatectl Daemon Loop - fixed-interval reconciliation of every project.

The Scheduler owns the only mutable state of the daemon: the stop event and
the time the next pass is due. Passes are spaced start-to-start; a pass that
overruns the interval delays the next one instead of overlapping it.
"""

import logging
import signal
import threading
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..models import ProjectDefinition
from .process import ProcessRunner
from .reconciler import ProjectReconciler, run_pass
from .types import DaemonState, OutcomeKind, ReconciliationOutcome


logger = logging.getLogger(__name__)


class Scheduler:
    """
    Runs a reconciliation pass over all projects once per interval.

    Stopping the scheduler also cancels any git/build/pm2 process still
    running, because the reconciler shares the scheduler's stop event.
    """

    def __init__(
        self,
        interval_minutes: float,
        reconciler: Optional[ProjectReconciler] = None,
        max_workers: int = 1,
        timeout: Optional[float] = None,
        runner: Optional[ProcessRunner] = None,
        clock: Callable[[], float] = time.monotonic,
        wait: Optional[Callable[[float], Any]] = None,
    ):
        """
        Initialize the scheduler.

        Args:
            interval_minutes: Minutes between the starts of consecutive passes
            reconciler: Reconciler to use; built from the other arguments if omitted
            max_workers: Projects reconciled concurrently within a pass
            timeout: Deadline in seconds for each external process
            runner: ProcessRunner for the default reconciler
            clock: Monotonic clock, injectable for tests
            wait: Called with the delay before the next pass; defaults to
                waiting on the stop event
        """
        if interval_minutes < 0:
            raise ValueError("interval_minutes must not be negative")

        self.interval_seconds = interval_minutes * 60
        self.max_workers = max(1, max_workers)
        self.clock = clock
        self.state = DaemonState.STOPPED
        self._stop_event = threading.Event()
        self._wait = wait or (lambda delay: self._stop_event.wait(timeout=delay))

        self.reconciler = reconciler or ProjectReconciler.create(
            runner=runner,
            timeout=timeout,
            cancel_event=self._stop_event,
            # Parallel workers capture output so projects do not interleave
            stream_output=self.max_workers == 1,
        )

        self.metrics: Dict[str, Any] = {
            "passes_completed": 0,
            "projects_updated": 0,
            "project_failures": 0,
            "last_pass_started": None,
        }

    def run_pass(self, projects: Sequence[ProjectDefinition]) -> List[ReconciliationOutcome]:
        """Run a single pass and update metrics."""
        self.metrics["last_pass_started"] = datetime.now()
        outcomes = run_pass(projects, self.reconciler, max_workers=self.max_workers)

        self.metrics["passes_completed"] += 1
        self.metrics["projects_updated"] += sum(1 for o in outcomes if o.kind == OutcomeKind.UPDATED)
        self.metrics["project_failures"] += sum(1 for o in outcomes if not o.ok)

        failed = [o for o in outcomes if not o.ok]
        logger.info(
            f"Pass complete: {len(outcomes)} projects, {len(failed)} failed"
            + (f" ({', '.join(o.project_name for o in failed)})" if failed else "")
        )
        return outcomes

    def run_forever(
        self, projects: Sequence[ProjectDefinition], max_passes: Optional[int] = None
    ) -> int:
        """
        Run passes until stopped.

        Args:
            projects: Projects in configuration order (read only)
            max_passes: Stop after this many passes (None = never)

        Returns:
            Number of passes run
        """
        self.state = DaemonState.RUNNING
        self._stop_event.clear()
        passes = 0
        logger.info(
            f"Running updatectl every {self.interval_seconds / 60:g} minutes "
            f"for {len(projects)} projects"
        )

        try:
            while not self._stop_event.is_set():
                pass_started = self.clock()
                self.run_pass(projects)
                passes += 1

                if max_passes is not None and passes >= max_passes:
                    break

                next_wake = pass_started + self.interval_seconds
                delay = max(0.0, next_wake - self.clock())
                if delay == 0.0 and self.interval_seconds > 0:
                    logger.warning("Pass took longer than the interval, starting the next one now")
                else:
                    logger.debug(f"Sleeping {delay:.0f}s until next pass")
                self._wait(delay)
        finally:
            self.state = DaemonState.STOPPED
            logger.info(f"Scheduler stopped after {passes} passes")
        return passes

    def stop(self) -> None:
        """Stop after the current project; kills running external processes."""
        if self.state == DaemonState.RUNNING:
            logger.info("Stopping updatectl daemon...")
            self.state = DaemonState.STOPPING
        self._stop_event.set()

    def install_signal_handlers(self) -> None:
        """Stop the loop on SIGINT/SIGTERM. Must be called from the main thread."""
        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

    def _signal_handler(self, signum, frame) -> None:
        logger.info(f"Received signal {signum}")
        self.stop()


def run_forever(
    projects: Sequence[ProjectDefinition],
    interval_minutes: float,
    max_workers: int = 1,
    timeout: Optional[float] = None,
) -> int:
    """Daemon entry point: reconcile ``projects`` every ``interval_minutes`` until signalled.

    Returns:
        Number of passes run
    """
    scheduler = Scheduler(interval_minutes, max_workers=max_workers, timeout=timeout)
    scheduler.install_signal_handlers()
    return scheduler.run_forever(projects)
