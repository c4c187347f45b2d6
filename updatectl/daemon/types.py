"""
Daemon types and enums for the updatectl reconciliation engine.

This module contains the result types shared by the synchronizer, build
executor, dispatcher and reconciler, kept apart to avoid circular imports.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class DaemonState(str, Enum):
    """Scheduler operational states."""
    STOPPED = "stopped"
    RUNNING = "running"
    STOPPING = "stopping"


class ReconcileState(str, Enum):
    """States a project passes through during one reconciliation."""
    IDLE = "idle"
    CHECKING_PATH = "checking_path"
    SYNCING = "syncing"
    NO_CHANGE = "no_change"
    BUILDING = "building"
    DISPATCHING = "dispatching"
    DONE = "done"


class SyncStatus(str, Enum):
    """Result of pulling a working copy."""
    UNCHANGED = "unchanged"
    CHANGED = "changed"
    FAILED = "failed"
    PATH_MISSING = "path_missing"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


class BuildStatus(str, Enum):
    """Result of running a build command."""
    SUCCESS = "success"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


class DispatchStatus(str, Enum):
    """Result of the type-specific post-build action."""
    RESTARTED = "restarted"   # pm2 restart succeeded
    SKIPPED = "skipped"       # docker/static: nothing to do
    FAILED = "failed"


class DispatchFailure(str, Enum):
    """Why a dispatch failed."""
    UNKNOWN_TYPE = "unknown_type"
    RESTART_FAILED = "restart_failed"


class OutcomeKind(str, Enum):
    """Final outcome of one project in one pass."""
    NO_CHANGE = "no_change"
    UPDATED = "updated"
    SYNC_FAILED = "sync_failed"
    BUILD_FAILED = "build_failed"
    DISPATCH_FAILED = "dispatch_failed"
    PATH_MISSING = "path_missing"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"

    @property
    def is_failure(self) -> bool:
        return self not in (OutcomeKind.NO_CHANGE, OutcomeKind.UPDATED)


@dataclass(frozen=True)
class ProcessResult:
    """What came back from one external process."""

    returncode: Optional[int]
    output: str = ""
    timed_out: bool = False
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out and not self.cancelled


@dataclass(frozen=True)
class SyncResult:
    status: SyncStatus
    output: str = ""


@dataclass(frozen=True)
class BuildResult:
    status: BuildStatus
    exit_status: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status == BuildStatus.SUCCESS


@dataclass(frozen=True)
class DispatchResult:
    status: DispatchStatus
    failure: Optional[DispatchFailure] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.status != DispatchStatus.FAILED


@dataclass(frozen=True)
class ReconciliationOutcome:
    """Outcome of reconciling one project in one pass.

    Created fresh for every project on every pass and discarded once it has
    been reported.
    """

    project_name: str
    kind: OutcomeKind
    detail: str = ""
    sync: Optional[SyncResult] = None
    build: Optional[BuildResult] = None
    dispatch: Optional[DispatchResult] = None

    @property
    def ok(self) -> bool:
        return not self.kind.is_failure

    def status_line(self) -> str:
        """Human-readable one-line summary."""
        line = f"{self.project_name}: {self.kind.value.replace('_', ' ')}"
        if self.detail:
            line += f" ({self.detail})"
        return line

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "project": self.project_name,
            "outcome": self.kind.value,
            "detail": self.detail,
            "sync": self.sync.status.value if self.sync else None,
            "build": self.build.status.value if self.build else None,
            "dispatch": self.dispatch.status.value if self.dispatch else None,
        }
