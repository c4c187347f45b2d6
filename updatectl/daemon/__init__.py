"""
updatectl daemon module: the reconciliation engine.

This module provides:
- Source synchronization (git pull with change detection)
- Build execution through the host shell
- Type-specific deployment dispatch (pm2 restart, docker/static no-op)
- Per-project reconciliation with failure isolation
- The fixed-interval scheduler loop
"""

from .types import (
    BuildResult,
    BuildStatus,
    DaemonState,
    DispatchFailure,
    DispatchResult,
    DispatchStatus,
    OutcomeKind,
    ProcessResult,
    ReconcileState,
    ReconciliationOutcome,
    SyncResult,
    SyncStatus,
)
from .process import ProcessRunner, SubprocessRunner, shell_command
from .sync import SourceSynchronizer, looks_unchanged
from .build import BuildExecutor
from .dispatch import DeploymentDispatcher
from .reconciler import ProjectReconciler, run_one_pass, run_pass
from .loop import Scheduler, run_forever

__all__ = [
    'BuildExecutor',
    'BuildResult',
    'BuildStatus',
    'DaemonState',
    'DeploymentDispatcher',
    'DispatchFailure',
    'DispatchResult',
    'DispatchStatus',
    'OutcomeKind',
    'ProcessResult',
    'ProcessRunner',
    'ProjectReconciler',
    'ReconcileState',
    'ReconciliationOutcome',
    'Scheduler',
    'SourceSynchronizer',
    'SubprocessRunner',
    'SyncResult',
    'SyncStatus',
    'looks_unchanged',
    'run_forever',
    'run_one_pass',
    'run_pass',
    'shell_command',
]
