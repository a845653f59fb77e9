"""
Background Uniqueness Check
===========================
Runs the uniqueness search for one puzzle on a daemon thread, so a batch job
or an editor can keep working while a large grid is being verified.

The worker builds its own UniquenessSolver wired to the worker's stop event
and progress queue. ``wait(timeout)`` cancels the search once the timeout has
passed and returns what the solver reported while unwinding (a Timeout
result in practice).
"""

import queue
import threading
from dataclasses import dataclass
from typing import List, Optional

from pipegrid.solvers.uniqueness_solver import TIMEOUT, UNIQUE, SearchProgress, UniquenessSolver

ERROR = "Error"


@dataclass
class CheckResult:
    """Outcome of one background uniqueness check."""
    label: str
    status: str               # Unique / Ambiguous / NoSolution / Timeout / Error
    solutions_found: int = 0
    nodes_visited: int = 0
    time_taken: float = 0.0
    solution: Optional[List[int]] = None
    error: Optional[str] = None

    @property
    def is_unique(self) -> bool:
        return self.status == UNIQUE

    @property
    def cut_short(self) -> bool:
        return self.status == TIMEOUT

    @classmethod
    def from_solve(cls, label, outcome):
        return cls(
            label=label,
            status=outcome["status"],
            solutions_found=outcome["solutions_found"],
            nodes_visited=outcome["nodes_visited"],
            time_taken=outcome["time_taken"],
            solution=outcome["solution"],
        )


class UniquenessWorker:
    """
    Owns a UniquenessSolver for ``puzzle`` and runs it off the calling thread.

    Extra keyword arguments (``timeout``, ``max_states``, ``settings``) go to
    the solver.
    """

    CANCEL_GRACE_SECONDS = 1.0

    def __init__(self, puzzle, label=None, progress_maxsize=500, **solver_kwargs):
        self.label = label or f"{puzzle.difficulty} {puzzle.width}x{puzzle.height} #{puzzle.level}"
        self.progress_queue = queue.Queue(maxsize=progress_maxsize)
        self.solver = UniquenessSolver.from_puzzle(
            puzzle, stop_event=threading.Event(), progress_queue=self.progress_queue, **solver_kwargs
        )
        self.finished = threading.Event()
        self.result: Optional[CheckResult] = None
        self.error: Optional[Exception] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def done(self) -> bool:
        return self.finished.is_set()

    def start(self) -> "UniquenessWorker":
        if self._thread is not None:
            raise RuntimeError(f"uniqueness check {self.label!r} already started")
        self._thread = threading.Thread(target=self._run, name=f"uniqueness {self.label}", daemon=True)
        self._thread.start()
        return self

    def cancel(self):
        self.solver.stop_event.set()

    def wait(self, timeout: Optional[float] = None) -> Optional[CheckResult]:
        """Block until the check finishes; past ``timeout`` it is cancelled first."""
        if not self.finished.wait(timeout):
            self.cancel()
            self.finished.wait(self.CANCEL_GRACE_SECONDS)
        return self.result

    def progress(self) -> List[SearchProgress]:
        """Every snapshot queued since the last call, oldest first."""
        snapshots = []
        while True:
            try:
                snapshots.append(self.progress_queue.get_nowait())
            except queue.Empty:
                return snapshots

    def _run(self):
        try:
            self.result = CheckResult.from_solve(self.label, self.solver.solve())
        except Exception as e:
            self.error = e
            self.result = CheckResult(self.label, ERROR, error=str(e))
        finally:
            self.finished.set()


def start_background_check(puzzle, label=None, **solver_kwargs) -> UniquenessWorker:
    """Start checking ``puzzle`` for a unique solution; returns the running worker."""
    return UniquenessWorker(puzzle, label=label, **solver_kwargs).start()
