"""
Project reconciliation: one sync → build → dispatch traversal per project.

The reconciler is a small state machine::

    IDLE → CHECKING_PATH → SYNCING → NO_CHANGE | BUILDING → DISPATCHING → DONE

with an edge from every state straight to DONE carrying a failure outcome.
Nothing raised inside a traversal escapes it, so one broken project never
affects the others in the same pass.
"""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from joblib import Parallel, delayed

from ..models import ProjectDefinition
from .build import BuildExecutor
from .dispatch import DeploymentDispatcher
from .process import ProcessRunner, SubprocessRunner
from .sync import SourceSynchronizer
from .types import (
    BuildResult,
    BuildStatus,
    OutcomeKind,
    ReconcileState,
    ReconciliationOutcome,
    SyncStatus,
)


logger = logging.getLogger(__name__)

# Where an unexpected exception lands, by the state it was raised in
_CRASH_OUTCOMES = {
    ReconcileState.CHECKING_PATH: OutcomeKind.PATH_MISSING,
    ReconcileState.SYNCING: OutcomeKind.SYNC_FAILED,
    ReconcileState.BUILDING: OutcomeKind.BUILD_FAILED,
    ReconcileState.DISPATCHING: OutcomeKind.DISPATCH_FAILED,
}


@dataclass
class _Traversal:
    """Where one reconcile() call currently is."""
    state: ReconcileState = ReconcileState.IDLE


class ProjectReconciler:
    """
    Reconciles a single project against its upstream.

    Holds no per-project state between calls; the same instance can serve
    every project of every pass, including from several worker threads.
    """

    def __init__(
        self,
        synchronizer: SourceSynchronizer,
        builder: BuildExecutor,
        dispatcher: DeploymentDispatcher,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.synchronizer = synchronizer
        self.builder = builder
        self.dispatcher = dispatcher
        self.cancel_event = cancel_event

    @classmethod
    def create(
        cls,
        runner: Optional[ProcessRunner] = None,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
        stream_output: bool = True,
    ) -> "ProjectReconciler":
        """Build a reconciler whose components share one runner, deadline and cancel event."""
        runner = runner or SubprocessRunner()
        timeout = timeout or None
        return cls(
            synchronizer=SourceSynchronizer(runner, timeout=timeout, cancel_event=cancel_event),
            builder=BuildExecutor(
                runner, timeout=timeout, cancel_event=cancel_event, stream_output=stream_output
            ),
            dispatcher=DeploymentDispatcher(
                runner, timeout=timeout, cancel_event=cancel_event, stream_output=stream_output
            ),
            cancel_event=cancel_event,
        )

    def reconcile(self, project: ProjectDefinition) -> ReconciliationOutcome:
        """Run one full traversal for ``project`` and return its outcome."""
        logger.info(f"Checking {project.name}")
        traversal = _Traversal()
        try:
            outcome = self._reconcile(project, traversal)
        except Exception as e:
            logger.exception(f"Reconciliation of {project.name} crashed in state {traversal.state.value}")
            kind = _CRASH_OUTCOMES.get(traversal.state, OutcomeKind.SYNC_FAILED)
            outcome = ReconciliationOutcome(project.name, kind, detail=f"unexpected error: {e}")
        traversal.state = ReconcileState.DONE
        self._report(outcome)
        return outcome

    def _reconcile(self, project: ProjectDefinition, traversal: "_Traversal") -> ReconciliationOutcome:
        name = project.name

        if self.cancel_event is not None and self.cancel_event.is_set():
            return ReconciliationOutcome(name, OutcomeKind.CANCELLED, detail="daemon stopping")

        traversal.state = ReconcileState.CHECKING_PATH
        if not Path(project.path).exists():
            return ReconciliationOutcome(
                name, OutcomeKind.PATH_MISSING, detail=f"path not found: {project.path}"
            )

        traversal.state = ReconcileState.SYNCING
        logger.info(f"Pulling latest changes for {name}")
        sync = self.synchronizer.sync(project.path)
        if sync.output:
            logger.info(f"git pull output for {name}:\n{sync.output.rstrip()}")

        if sync.status == SyncStatus.PATH_MISSING:
            return ReconciliationOutcome(
                name, OutcomeKind.PATH_MISSING, detail=f"path not found: {project.path}", sync=sync
            )
        if sync.status == SyncStatus.FAILED:
            return ReconciliationOutcome(
                name, OutcomeKind.SYNC_FAILED, detail=_last_line(sync.output) or "git pull failed", sync=sync
            )
        if sync.status == SyncStatus.TIMED_OUT:
            return ReconciliationOutcome(name, OutcomeKind.TIMED_OUT, detail="git pull timed out", sync=sync)
        if sync.status == SyncStatus.CANCELLED:
            return ReconciliationOutcome(name, OutcomeKind.CANCELLED, detail="git pull cancelled", sync=sync)
        if sync.status == SyncStatus.UNCHANGED:
            traversal.state = ReconcileState.NO_CHANGE
            logger.info(f"No new commits for {name}")
            return ReconciliationOutcome(name, OutcomeKind.NO_CHANGE, sync=sync)

        build: Optional[BuildResult] = None
        if project.has_build_command:
            traversal.state = ReconcileState.BUILDING
            logger.info(f"Running build command for {name}")
            build = self.builder.run(project.build_command, project.path)
            if build.status == BuildStatus.CANCELLED:
                return ReconciliationOutcome(
                    name, OutcomeKind.CANCELLED, detail="build cancelled", sync=sync, build=build
                )
            if not build.ok:
                # Reported, but the dispatch below still runs
                logger.error(f"Build failed for {name}: {build.status.value} (exit status {build.exit_status})")

        traversal.state = ReconcileState.DISPATCHING
        dispatch = self.dispatcher.dispatch(project.type, name)

        if build is not None and build.status == BuildStatus.TIMED_OUT:
            return ReconciliationOutcome(
                name, OutcomeKind.TIMED_OUT, detail="build timed out", sync=sync, build=build, dispatch=dispatch
            )
        if build is not None and build.status == BuildStatus.FAILED:
            return ReconciliationOutcome(
                name,
                OutcomeKind.BUILD_FAILED,
                detail=f"build exited with status {build.exit_status}",
                sync=sync,
                build=build,
                dispatch=dispatch,
            )
        if not dispatch.ok:
            return ReconciliationOutcome(
                name, OutcomeKind.DISPATCH_FAILED, detail=dispatch.detail, sync=sync, build=build, dispatch=dispatch
            )
        return ReconciliationOutcome(name, OutcomeKind.UPDATED, sync=sync, build=build, dispatch=dispatch)

    def _report(self, outcome: ReconciliationOutcome) -> None:
        if outcome.ok:
            logger.info(outcome.status_line())
        elif outcome.kind == OutcomeKind.CANCELLED:
            logger.warning(outcome.status_line())
        else:
            logger.error(outcome.status_line())


def _last_line(output: str) -> str:
    lines = [line for line in output.strip().splitlines() if line.strip()]
    return lines[-1].strip() if lines else ""


def run_pass(
    projects: Sequence[ProjectDefinition],
    reconciler: ProjectReconciler,
    max_workers: int = 1,
) -> List[ReconciliationOutcome]:
    """
    Reconcile every project once.

    Args:
        projects: Projects in configuration order
        reconciler: Reconciler shared by all projects
        max_workers: Projects processed concurrently (1 = sequential)

    Returns:
        One outcome per project, in the order of ``projects``
    """
    if max_workers > 1 and len(projects) > 1:
        return list(
            Parallel(n_jobs=min(max_workers, len(projects)), backend="threading")(
                delayed(reconciler.reconcile)(project) for project in projects
            )
        )

    return [reconciler.reconcile(project) for project in projects]


def run_one_pass(
    project: ProjectDefinition, reconciler: Optional[ProjectReconciler] = None
) -> ReconciliationOutcome:
    """Reconcile a single project on demand."""
    reconciler = reconciler or ProjectReconciler.create()
    return reconciler.reconcile(project)
