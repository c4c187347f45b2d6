"""
Deployment dispatch: the type-specific action that makes a change live.
"""

import logging
import threading
from typing import Optional, Union

from ..models import DeployType
from .process import ProcessRunner, SubprocessRunner
from .types import DispatchFailure, DispatchResult, DispatchStatus


logger = logging.getLogger(__name__)


class DeploymentDispatcher:
    """
    Performs the post-build action for a project's deployment type.

    - docker: nothing, the build command already redeployed the stack
    - pm2: ``pm2 restart <name>``; a failed restart is reported, never raised
    - static: nothing
    - anything else: reported as an unknown type, nothing is run
    """

    def __init__(
        self,
        runner: Optional[ProcessRunner] = None,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
        stream_output: bool = True,
    ):
        self.runner = runner or SubprocessRunner()
        self.timeout = timeout
        self.cancel_event = cancel_event
        self.stream_output = stream_output

    def dispatch(self, deploy_type: Union[DeployType, str], project_name: str) -> DispatchResult:
        raw_type = deploy_type.value if isinstance(deploy_type, DeployType) else str(deploy_type)
        kind = deploy_type if isinstance(deploy_type, DeployType) else DeployType.parse(deploy_type)

        if kind == DeployType.PM2:
            return self._restart_pm2(project_name)
        if kind in (DeployType.DOCKER, DeployType.STATIC):
            return DispatchResult(DispatchStatus.SKIPPED)

        logger.warning(f"Unknown type for {project_name}: {raw_type}")
        return DispatchResult(
            DispatchStatus.FAILED,
            failure=DispatchFailure.UNKNOWN_TYPE,
            detail=f"unknown type '{raw_type}'",
        )

    def _restart_pm2(self, project_name: str) -> DispatchResult:
        logger.info(f"Restarting PM2 process: {project_name}")
        result = self.runner.run(
            ["pm2", "restart", project_name],
            capture=not self.stream_output,
            timeout=self.timeout,
            cancel_event=self.cancel_event,
        )
        if result.ok:
            return DispatchResult(DispatchStatus.RESTARTED)

        if result.timed_out:
            detail = "pm2 restart timed out"
        elif result.cancelled:
            detail = "pm2 restart cancelled"
        elif result.returncode is None:
            detail = result.output.strip() or "pm2 could not be started"
        else:
            detail = f"pm2 restart exited with status {result.returncode}"
        logger.error(f"PM2 restart failed for {project_name}: {detail}")
        return DispatchResult(
            DispatchStatus.FAILED, failure=DispatchFailure.RESTART_FAILED, detail=detail
        )
