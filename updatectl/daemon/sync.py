"""
Source synchronization: pull the upstream revision into a working copy.
"""

import logging
import threading
from pathlib import Path
from typing import Optional

from .process import ProcessRunner, SubprocessRunner
from .types import SyncResult, SyncStatus


logger = logging.getLogger(__name__)

# "Already up-to-date." is what git printed before 2.15
UP_TO_DATE_MARKERS = ("Already up to date.", "Already up-to-date.")


def looks_unchanged(output: str) -> bool:
    """True only when ``output`` explicitly says the pull was a no-op.

    Empty or unrecognized output counts as changed: an unneeded rebuild is
    preferred over a missed deploy.
    """
    if not output:
        return False
    return any(marker in output for marker in UP_TO_DATE_MARKERS)


class SourceSynchronizer:
    """Runs ``git pull`` in a working copy and classifies the result."""

    def __init__(
        self,
        runner: Optional[ProcessRunner] = None,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.runner = runner or SubprocessRunner()
        self.timeout = timeout
        self.cancel_event = cancel_event

    def sync(self, path: str) -> SyncResult:
        if not Path(path).exists():
            return SyncResult(SyncStatus.PATH_MISSING)

        result = self.runner.run(
            ["git", "-C", str(path), "pull"],
            capture=True,
            timeout=self.timeout,
            cancel_event=self.cancel_event,
        )

        if result.cancelled:
            return SyncResult(SyncStatus.CANCELLED, result.output)
        if result.timed_out:
            return SyncResult(SyncStatus.TIMED_OUT, result.output)
        if result.returncode != 0:
            return SyncResult(SyncStatus.FAILED, result.output.strip())

        if looks_unchanged(result.output):
            return SyncResult(SyncStatus.UNCHANGED, result.output)
        return SyncResult(SyncStatus.CHANGED, result.output)
