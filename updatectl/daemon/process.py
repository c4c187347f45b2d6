"""
External process execution for the reconciliation engine.

Every git, build and pm2 invocation goes through a ProcessRunner so that it
runs with a deadline, can be cancelled from another thread, and can be
replaced by a fake in tests.
"""

import logging
import os
import platform
import signal
import subprocess
import threading
import time
from typing import List, Optional

from .types import ProcessResult


logger = logging.getLogger(__name__)


def shell_command(command: str) -> List[str]:
    """Wrap a command string for the host's command interpreter."""
    if platform.system() == "Windows":
        return ["cmd", "/C", command]
    return ["bash", "-c", command]


class ProcessRunner:
    """Interface for running external processes."""

    def run(
        self,
        args: List[str],
        cwd: Optional[str] = None,
        capture: bool = True,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ProcessResult:
        """
        Run ``args`` to completion.

        Args:
            args: Program and arguments
            cwd: Working directory
            capture: Collect combined stdout/stderr into the result instead of
                inheriting the daemon's streams
            timeout: Seconds before the process is killed (None = no limit)
            cancel_event: Kills the process as soon as it is set

        Returns:
            ProcessResult; never raises for process failures
        """
        raise NotImplementedError


class SubprocessRunner(ProcessRunner):
    """ProcessRunner backed by subprocess.Popen."""

    def __init__(self, poll_interval: float = 0.5):
        self.poll_interval = poll_interval
        self._posix = os.name == "posix"

    def run(
        self,
        args: List[str],
        cwd: Optional[str] = None,
        capture: bool = True,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ProcessResult:
        logger.debug(f"Running {' '.join(args)} (cwd={cwd}, timeout={timeout})")

        try:
            process = subprocess.Popen(
                args,
                cwd=cwd,
                stdout=subprocess.PIPE if capture else None,
                stderr=subprocess.STDOUT if capture else None,
                text=True,
                errors="replace",
                # Own process group so a kill reaches the shell's children too
                start_new_session=self._posix,
            )
        except OSError as e:
            return ProcessResult(returncode=None, output=f"Failed to run {args[0]}: {e}")

        deadline = time.monotonic() + timeout if timeout else None

        while True:
            try:
                output, _ = process.communicate(timeout=self.poll_interval)
                return ProcessResult(returncode=process.returncode, output=output or "")
            except subprocess.TimeoutExpired:
                if cancel_event is not None and cancel_event.is_set():
                    logger.warning(f"Cancelling {args[0]} (pid {process.pid})")
                    output = self._kill(process)
                    return ProcessResult(returncode=process.returncode, output=output, cancelled=True)
                if deadline is not None and time.monotonic() >= deadline:
                    logger.warning(f"{args[0]} exceeded {timeout}s, killing pid {process.pid}")
                    output = self._kill(process)
                    return ProcessResult(returncode=process.returncode, output=output, timed_out=True)

    def _kill(self, process: subprocess.Popen) -> str:
        """Kill the process (and its group on POSIX) and drain its output."""
        try:
            if self._posix:
                os.killpg(process.pid, signal.SIGKILL)
            else:
                process.kill()
        except (ProcessLookupError, PermissionError) as e:
            logger.debug(f"Kill of pid {process.pid} failed: {e}")
        output, _ = process.communicate()
        return output or ""
