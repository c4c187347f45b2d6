"""
Pytest configuration and fixtures for updatectl tests.
"""

import tempfile
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from updatectl.daemon.process import ProcessRunner
from updatectl.daemon.types import ProcessResult
from updatectl.models import ProjectDefinition

UP_TO_DATE = "Already up to date.\n"
NEW_COMMITS = (
    "Updating 1a2b3c4..5d6e7f8\n"
    "Fast-forward\n"
    " app.py | 2 +-\n"
    " 1 file changed, 1 insertion(+), 1 deletion(-)\n"
)


class FakeRunner(ProcessRunner):
    """ProcessRunner that records calls and returns scripted results.

    Results are looked up per working copy for ``git pull`` and per working
    directory for build commands; anything unscripted succeeds.
    """

    def __init__(self):
        self.calls: List[dict] = []
        self.pull_results: Dict[str, ProcessResult] = {}
        self.build_results: Dict[str, ProcessResult] = {}
        self.pm2_result = ProcessResult(returncode=0)
        self.default_pull = ProcessResult(returncode=0, output=UP_TO_DATE)

    def run(self, args, cwd=None, capture=True, timeout=None, cancel_event=None):
        self.calls.append(
            {"args": list(args), "cwd": cwd, "capture": capture, "timeout": timeout}
        )
        if args[0] == "git":
            return self.pull_results.get(args[2], self.default_pull)
        if args[0] == "pm2":
            return self.pm2_result
        return self.build_results.get(cwd, ProcessResult(returncode=0))

    def _calls_for(self, program: str) -> List[dict]:
        return [c for c in self.calls if c["args"][0] == program]

    @property
    def git_calls(self) -> List[dict]:
        return self._calls_for("git")

    @property
    def pm2_calls(self) -> List[dict]:
        return self._calls_for("pm2")

    @property
    def build_calls(self) -> List[dict]:
        return [c for c in self.calls if c["args"][0] in ("bash", "cmd")]


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def make_project(temp_dir):
    """Factory for projects whose working copy exists under temp_dir."""

    def _make(
        name: str,
        type: str = "static",
        build_command: str = "",
        exists: bool = True,
        path: Optional[Path] = None,
    ) -> ProjectDefinition:
        project_path = path or temp_dir / name
        if exists:
            project_path.mkdir(parents=True, exist_ok=True)
        return ProjectDefinition(
            name=name,
            path=str(project_path),
            repo=f"https://github.com/user/{name}.git",
            type=type,
            build_command=build_command,
        )

    return _make
