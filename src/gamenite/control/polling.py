import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from gamenite.control.models import ServerInstance, WorkflowStatus


class PollState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    CANCELLED = "cancelled"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class PollTimeout(TimeoutError):
    """Raised when a poll with a timeout gives up before finishing."""


class PollTask:
    """Repeatedly call ``tick`` until it returns True, raises, or is cancelled.

    ``tick`` is called immediately, then every ``interval`` seconds. A
    cancelled task never calls ``tick`` again, including mid-sleep. With a
    ``timeout``, ``run`` raises PollTimeout once that many seconds pass.
    """

    def __init__(
        self, tick: Callable[[], bool], interval: float = 5.0, timeout: float | None = None,
    ):
        self.tick = tick
        self.interval = interval
        self.timeout = timeout
        self.state = PollState.PENDING
        self.error: BaseException | None = None
        self._cancel = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        self._cancel.set()

    def run(self) -> PollState:
        self.state = PollState.RUNNING
        deadline = None if self.timeout is None else time.monotonic() + self.timeout
        while not self._cancel.is_set():
            if deadline is not None and time.monotonic() >= deadline:
                self.state = PollState.TIMED_OUT
                self.error = PollTimeout(f"Gave up after {self.timeout:g}s")
                raise self.error
            try:
                finished = self.tick()
            except Exception as e:
                self.error = e
                self.state = PollState.FAILED
                raise
            if finished:
                self.state = PollState.DONE
                return self.state
            wait = self.interval
            if deadline is not None:
                wait = min(wait, max(0.0, deadline - time.monotonic()))
            if self._cancel.wait(wait):
                break
        self.state = PollState.CANCELLED
        return self.state

    def start(self) -> "PollTask":
        """Run in a daemon thread; errors are kept on ``self.error``."""
        def _target():
            try:
                self.run()
            except Exception:
                pass  # recorded on self.error / self.state

        self._thread = threading.Thread(target=_target, daemon=True)
        self._thread.start()
        return self

    def stop(self, timeout: float | None = None) -> None:
        self.cancel()
        if self._thread:
            self._thread.join(timeout)


@dataclass(frozen=True)
class CreationTicket:
    token: int
    name: str


class CreationTracker:
    """Tracks the single creation a client is currently waiting on.

    Starting a new creation supersedes the previous one, so a late poll
    result for the old name can be recognised and dropped.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._counter = 0
        self._current: CreationTicket | None = None

    @property
    def current(self) -> CreationTicket | None:
        return self._current

    def begin(self, name: str) -> CreationTicket:
        with self._lock:
            self._counter += 1
            self._current = CreationTicket(self._counter, name)
            return self._current

    def is_current(self, ticket: CreationTicket) -> bool:
        return self._current is not None and self._current.token == ticket.token

    def finish(self, ticket: CreationTicket) -> bool:
        """Clear ``ticket`` if it is still current; False means it was stale."""
        with self._lock:
            if not self.is_current(ticket):
                return False
            self._current = None
            return True

    def abandon(self) -> None:
        with self._lock:
            self._current = None


def wait_for_workflow(
    fetch: Callable[[], WorkflowStatus],
    interval: float = 3.0,
    on_update: Callable[[WorkflowStatus], None] | None = None,
    task_hook: Callable[[PollTask], None] | None = None,
    timeout: float | None = None,
) -> WorkflowStatus | None:
    """Poll a workflow until it reaches a terminal status.

    Returns the terminal status, or None if the poll was cancelled. Raises
    PollTimeout if ``timeout`` runs out first.
    """
    latest: list[WorkflowStatus] = []

    def _tick() -> bool:
        status = fetch()
        latest.append(status)
        if on_update:
            on_update(status)
        return status.is_terminal

    task = PollTask(_tick, interval=interval, timeout=timeout)
    if task_hook:
        task_hook(task)
    state = task.run()
    if state is PollState.DONE:
        return latest[-1]
    return None


def _server_name(server: ServerInstance) -> str:
    return server.name


def wait_for_server(
    tracker: CreationTracker,
    ticket: CreationTicket,
    list_servers: Callable[[], list[Any]],
    interval: float = 3.0,
    timeout: float | None = None,
    name_of: Callable[[Any], str] = _server_name,
) -> Any | None:
    """Poll until a server named ``ticket.name`` appears.

    ``name_of`` reads the name off each listed item, so plain dict records
    work as well as ServerInstance. Returns None if the ticket was superseded
    before the server showed up; raises PollTimeout if ``timeout`` runs out.
    """
    found: list[Any] = []
    task = PollTask(lambda: False, interval=interval, timeout=timeout)

    def _tick() -> bool:
        if not tracker.is_current(ticket):
            task.cancel()
            return False
        wanted = ticket.name.lower()
        for server in list_servers():
            if name_of(server).lower() == wanted:
                found.append(server)
                return True
        return False

    task.tick = _tick
    task.run()
    if found and tracker.finish(ticket):
        return found[0]
    return None
