"""Tests for the scheduler loop."""

import signal

import pytest

from tests.conftest import NEW_COMMITS
from updatectl.daemon.loop import Scheduler
from updatectl.daemon.reconciler import ProjectReconciler
from updatectl.daemon.types import DaemonState, OutcomeKind, ProcessResult


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


def _scheduler(fake_runner, clock, waits, interval_minutes=10, **kwargs):
    return Scheduler(
        interval_minutes,
        reconciler=ProjectReconciler.create(runner=fake_runner),
        clock=clock,
        wait=waits.append,
        **kwargs,
    )


def test_negative_interval_rejected(fake_runner):
    with pytest.raises(ValueError):
        Scheduler(-1, runner=fake_runner)


def test_runs_requested_number_of_passes(fake_runner, clock, make_project):
    waits = []
    projects = [make_project("api"), make_project("web")]
    scheduler = _scheduler(fake_runner, clock, waits)

    passes = scheduler.run_forever(projects, max_passes=3)

    assert passes == 3
    assert len(fake_runner.git_calls) == 6
    # No wait after the final pass
    assert len(waits) == 2
    assert scheduler.metrics["passes_completed"] == 3
    assert scheduler.state == DaemonState.STOPPED


def test_interval_spaces_pass_starts(fake_runner, clock, make_project):
    waits = []
    project = make_project("api", build_command="make")
    scheduler = _scheduler(fake_runner, clock, waits, interval_minutes=10)

    original_run = fake_runner.run

    def slow_run(args, **kwargs):
        clock.now += 120  # every external process takes two minutes
        return original_run(args, **kwargs)

    fake_runner.run = slow_run
    scheduler.run_forever([project], max_passes=2)

    # Pull only (up to date): pass took 2 of the 10 minutes
    assert waits == [pytest.approx(480)]


def test_overrunning_pass_starts_next_immediately(fake_runner, clock, make_project):
    waits = []
    project = make_project("api", build_command="make")
    fake_runner.default_pull = ProcessResult(returncode=0, output=NEW_COMMITS)
    scheduler = _scheduler(fake_runner, clock, waits, interval_minutes=1)

    original_run = fake_runner.run

    def slow_run(args, **kwargs):
        clock.now += 45
        return original_run(args, **kwargs)

    fake_runner.run = slow_run
    scheduler.run_forever([project], max_passes=2)

    assert waits == [0.0]
    assert scheduler.metrics["projects_updated"] == 2


def test_stop_ends_loop(fake_runner, clock, make_project):
    scheduler = None

    def stop_on_wait(delay):
        scheduler.stop()

    scheduler = Scheduler(
        5,
        reconciler=ProjectReconciler.create(runner=fake_runner),
        clock=clock,
        wait=stop_on_wait,
    )

    passes = scheduler.run_forever([make_project("api")])

    assert passes == 1
    assert scheduler.state == DaemonState.STOPPED


def test_stop_cancels_remaining_projects(fake_runner, make_project):
    projects = [make_project("first"), make_project("second")]
    scheduler = Scheduler(5, runner=fake_runner)

    original_run = fake_runner.run

    def stop_during_first(args, **kwargs):
        scheduler.stop()
        return original_run(args, **kwargs)

    fake_runner.run = stop_during_first
    scheduler.state = DaemonState.RUNNING
    outcomes = scheduler.run_pass(projects)

    assert outcomes[0].kind == OutcomeKind.NO_CHANGE
    assert outcomes[1].kind == OutcomeKind.CANCELLED
    assert len(fake_runner.git_calls) == 1
    assert scheduler.metrics["project_failures"] == 1


def test_failures_do_not_stop_the_daemon(fake_runner, clock, make_project):
    waits = []
    projects = [make_project("gone", exists=False), make_project("api")]
    scheduler = _scheduler(fake_runner, clock, waits)

    assert scheduler.run_forever(projects, max_passes=2) == 2
    assert scheduler.metrics["project_failures"] == 2


def test_signal_handler_stops_running_scheduler(fake_runner):
    scheduler = Scheduler(5, runner=fake_runner)
    scheduler.state = DaemonState.RUNNING

    scheduler._signal_handler(signal.SIGTERM, None)

    assert scheduler.state == DaemonState.STOPPING
    assert scheduler._stop_event.is_set()


def test_install_signal_handlers(fake_runner, monkeypatch):
    installed = {}
    monkeypatch.setattr(signal, "signal", lambda signum, handler: installed.update({signum: handler}))
    scheduler = Scheduler(5, runner=fake_runner)

    scheduler.install_signal_handlers()

    assert installed == {
        signal.SIGTERM: scheduler._signal_handler,
        signal.SIGINT: scheduler._signal_handler,
    }
