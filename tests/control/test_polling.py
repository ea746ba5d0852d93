import threading

import pytest

from gamenite.control.models import WorkflowStatus
from gamenite.control.polling import (
    CreationTracker,
    PollState,
    PollTask,
    PollTimeout,
    wait_for_server,
    wait_for_workflow,
)


def test_poll_task_runs_until_done():
    calls = []

    def tick():
        calls.append(1)
        return len(calls) == 3

    task = PollTask(tick, interval=0)
    assert task.run() is PollState.DONE
    assert len(calls) == 3


def test_poll_task_cancel_stops_ticks():
    calls = []
    task = PollTask(lambda: False, interval=0)

    def tick():
        calls.append(1)
        if len(calls) == 2:
            task.cancel()
        return False

    task.tick = tick
    assert task.run() is PollState.CANCELLED
    assert len(calls) == 2


def test_cancelled_before_run_never_ticks():
    calls = []
    task = PollTask(lambda: calls.append(1) or False, interval=0)
    task.cancel()
    assert task.run() is PollState.CANCELLED
    assert calls == []


def test_poll_task_error_stops_and_raises():
    def tick():
        raise RuntimeError("boom")

    task = PollTask(tick, interval=0)
    with pytest.raises(RuntimeError):
        task.run()
    assert task.state is PollState.FAILED
    assert isinstance(task.error, RuntimeError)


def test_poll_task_timeout_raises():
    calls = []
    task = PollTask(lambda: calls.append(1) or False, interval=0, timeout=0)
    with pytest.raises(PollTimeout):
        task.run()
    assert task.state is PollState.TIMED_OUT
    assert isinstance(task.error, PollTimeout)
    assert calls == []


def test_poll_task_timeout_cuts_sleep_short():
    task = PollTask(lambda: False, interval=60, timeout=0.05)
    with pytest.raises(PollTimeout):
        task.run()


def test_background_task_stop_interrupts_sleep():
    ticked = threading.Event()

    def tick():
        ticked.set()
        return False

    task = PollTask(tick, interval=60).start()
    assert ticked.wait(5)
    task.stop(timeout=5)
    assert task.state is PollState.CANCELLED


def test_background_task_records_error():
    def tick():
        raise ValueError("bad")

    task = PollTask(tick, interval=0).start()
    task._thread.join(timeout=5)
    assert task.state is PollState.FAILED
    assert isinstance(task.error, ValueError)


# ── Creation tracking ──


def test_tracker_new_creation_supersedes_old():
    tracker = CreationTracker()
    old = tracker.begin("alpha")
    new = tracker.begin("beta")
    assert not tracker.is_current(old)
    assert tracker.is_current(new)
    assert tracker.finish(old) is False
    assert tracker.current == new
    assert tracker.finish(new) is True
    assert tracker.current is None


def test_tracker_abandon():
    tracker = CreationTracker()
    ticket = tracker.begin("alpha")
    tracker.abandon()
    assert not tracker.is_current(ticket)


def test_wait_for_server_matches_case_insensitively(make_server_instance):
    tracker = CreationTracker()
    ticket = tracker.begin("Friday-MC")
    responses = [[], [make_server_instance(name="friday-mc")]]

    found = wait_for_server(tracker, ticket, lambda: responses.pop(0), interval=0)
    assert found.name == "friday-mc"
    assert tracker.current is None


def test_wait_for_server_drops_superseded_ticket(make_server_instance):
    tracker = CreationTracker()
    ticket = tracker.begin("alpha")

    def list_servers():
        # A newer creation starts while we are still polling for alpha.
        tracker.begin("beta")
        return []

    assert wait_for_server(tracker, ticket, list_servers, interval=0) is None
    assert tracker.current.name == "beta"


def test_wait_for_workflow_returns_terminal_status():
    statuses = [WorkflowStatus("Running"), WorkflowStatus("Complete")]
    seen = []
    result = wait_for_workflow(lambda: statuses.pop(0), interval=0, on_update=seen.append)
    assert result.status == "Complete"
    assert [s.status for s in seen] == ["Running", "Complete"]


def test_wait_for_workflow_failure_is_terminal():
    result = wait_for_workflow(lambda: WorkflowStatus("Running", "image pull failed"), interval=0)
    assert result.failed


def test_wait_for_workflow_cancelled():
    def hook(task):
        task.cancel()

    assert wait_for_workflow(lambda: WorkflowStatus("Running"), interval=0, task_hook=hook) is None


def test_wait_for_server_reads_dict_names():
    tracker = CreationTracker()
    ticket = tracker.begin("friday")
    found = wait_for_server(
        tracker, ticket, lambda: [{"id": "svc-1", "name": "Friday"}],
        interval=0, name_of=lambda s: s["name"],
    )
    assert found["id"] == "svc-1"


def test_wait_for_server_times_out():
    tracker = CreationTracker()
    ticket = tracker.begin("friday")
    with pytest.raises(PollTimeout):
        wait_for_server(tracker, ticket, lambda: [], interval=0, timeout=0)
    assert tracker.is_current(ticket)


def test_wait_for_workflow_times_out():
    with pytest.raises(PollTimeout):
        wait_for_workflow(lambda: WorkflowStatus("Running"), interval=0, timeout=0)
