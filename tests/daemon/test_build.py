"""Tests for the build executor."""

from updatectl.daemon import process
from updatectl.daemon.build import BuildExecutor
from updatectl.daemon.process import shell_command
from updatectl.daemon.types import BuildStatus, ProcessResult


def test_shell_command_posix(monkeypatch):
    monkeypatch.setattr(process.platform, "system", lambda: "Linux")
    assert shell_command("make deploy") == ["bash", "-c", "make deploy"]


def test_shell_command_windows(monkeypatch):
    monkeypatch.setattr(process.platform, "system", lambda: "Windows")
    assert shell_command("make deploy") == ["cmd", "/C", "make deploy"]


def test_runs_in_working_dir(fake_runner, temp_dir):
    result = BuildExecutor(fake_runner).run("npm run build", str(temp_dir))

    assert result.status == BuildStatus.SUCCESS
    assert result.ok
    call = fake_runner.build_calls[0]
    assert call["args"][-1] == "npm run build"
    assert call["cwd"] == str(temp_dir)
    # Streams to the daemon's stdout/stderr by default
    assert call["capture"] is False


def test_captures_when_not_streaming(fake_runner, temp_dir, caplog):
    fake_runner.build_results[str(temp_dir)] = ProcessResult(returncode=0, output="built 3 assets\n")

    with caplog.at_level("INFO", logger="updatectl.daemon.build"):
        BuildExecutor(fake_runner, stream_output=False).run("make", str(temp_dir))

    assert fake_runner.build_calls[0]["capture"] is True
    assert "built 3 assets" in caplog.text


def test_failure_carries_exit_status(fake_runner, temp_dir):
    fake_runner.build_results[str(temp_dir)] = ProcessResult(returncode=2)

    result = BuildExecutor(fake_runner).run("make", str(temp_dir))

    assert result.status == BuildStatus.FAILED
    assert result.exit_status == 2
    assert not result.ok


def test_missing_interpreter_is_failure(fake_runner, temp_dir):
    fake_runner.build_results[str(temp_dir)] = ProcessResult(returncode=None, output="Failed to run bash")
    assert BuildExecutor(fake_runner).run("make", str(temp_dir)).status == BuildStatus.FAILED


def test_timed_out(fake_runner, temp_dir):
    fake_runner.build_results[str(temp_dir)] = ProcessResult(returncode=-9, timed_out=True)

    result = BuildExecutor(fake_runner, timeout=5).run("make", str(temp_dir))

    assert result.status == BuildStatus.TIMED_OUT
    assert fake_runner.build_calls[0]["timeout"] == 5
