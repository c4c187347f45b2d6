"""
Build execution: run a project's build/deploy command in its working copy.
"""

import logging
import threading
from typing import Optional

from .process import ProcessRunner, SubprocessRunner, shell_command
from .types import BuildResult, BuildStatus


logger = logging.getLogger(__name__)


class BuildExecutor:
    """
    Runs trusted, operator-supplied build commands through the host shell.

    With ``stream_output`` the command writes straight to the daemon's
    stdout/stderr. Without it the output is captured and logged as a single
    block once the command finishes, which keeps parallel builds readable.
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

    def run(self, command: str, working_dir: str) -> BuildResult:
        result = self.runner.run(
            shell_command(command),
            cwd=working_dir,
            capture=not self.stream_output,
            timeout=self.timeout,
            cancel_event=self.cancel_event,
        )

        if not self.stream_output and result.output:
            logger.info(f"Output of '{command}' in {working_dir}:\n{result.output.rstrip()}")

        if result.cancelled:
            return BuildResult(BuildStatus.CANCELLED, result.returncode)
        if result.timed_out:
            return BuildResult(BuildStatus.TIMED_OUT, result.returncode)
        if result.returncode != 0:
            return BuildResult(BuildStatus.FAILED, result.returncode)
        return BuildResult(BuildStatus.SUCCESS, 0)
