"""
Test Uniqueness Worker
======================
Validates background execution, typed results, cancellation on timeout,
error capture and progress snapshots for the background uniqueness check.
"""

import sys
import os
import time

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pipegrid.generators.puzzle_generator import derive_tile
from pipegrid.puzzle import Puzzle, PuzzleTile
from pipegrid.solver_worker import ERROR, CheckResult, UniquenessWorker, start_background_check
from pipegrid.solvers.uniqueness_solver import TIMEOUT, UNIQUE, SearchProgress
from pipegrid.tiles import TileType


def make_comb_puzzle():
    """3x3: spine down column 0 with three arms to the right."""
    connections = [(1, 2), (1, 3), (3,), (0, 1, 2), (1, 3), (3,), (0, 1), (1, 3), (3,)]
    tiles = []
    for index, conns in enumerate(connections):
        row, col = divmod(index, 3)
        tile_type, solution = derive_tile(conns)
        tiles.append(PuzzleTile(row, col, tile_type, conns, solution, 0,
                              is_terminal=len(conns) == 1, is_source=(row, col) == (1, 1)))
    return Puzzle("glazed", 3, 3, 1, (1, 1), tiles)


def make_domino_puzzle(size=8):
    """All terminals. No tree exists, and the search takes far longer than any test waits."""
    tiles = [PuzzleTile(row, col, TileType.TERMINAL, (1,), 90, 0, is_terminal=True)
             for row in range(size) for col in range(size)]
    return Puzzle("frosted", size, size, 2, (size // 2, size // 2), tiles)


def test_background_check():
    """start_background_check must hand back a CheckResult through wait()."""
    print("[TEST] Background uniqueness check...")
    worker = start_background_check(make_comb_puzzle(), label="comb")
    result = worker.wait(timeout=5.0)

    assert worker.done, "Worker should be done"
    assert isinstance(result, CheckResult)
    assert result.status == UNIQUE, f"Expected Unique, got {result.status}"
    assert result.is_unique and not result.cut_short
    assert result.label == "comb"
    assert result.solutions_found == 1
    assert result.solution == [derive_tile(t.connections)[1] for t in make_comb_puzzle().tiles]
    assert worker.error is None
    print(f"  PASS: status={result.status}, nodes={result.nodes_visited}")


def test_default_label():
    print("[TEST] Default label...")
    worker = UniquenessWorker(make_comb_puzzle())
    assert worker.label == "glazed 3x3 #1", worker.label
    print(f"  PASS: label={worker.label!r}")


def test_cancel_on_wait_timeout():
    """wait() past its timeout must cancel the search and return its Timeout result."""
    print("[TEST] Cancel on wait timeout...")
    worker = start_background_check(make_domino_puzzle())

    start = time.time()
    result = worker.wait(timeout=0.2)
    elapsed = time.time() - start

    assert elapsed < 2.0, f"Worker did not stop cleanly: {elapsed:.2f}s"
    assert worker.solver.stop_event.is_set()
    assert result.status == TIMEOUT, f"Expected Timeout, got {result.status}"
    assert result.cut_short and not result.is_unique
    assert result.nodes_visited > 0
    print(f"  PASS: stopped in {elapsed:.2f}s after {result.nodes_visited} nodes")


def test_result_before_done():
    """result stays None while the search is still running."""
    print("[TEST] Result before done...")
    worker = start_background_check(make_domino_puzzle(), label="running")

    assert not worker.done
    assert worker.result is None

    worker.cancel()
    result = worker.wait(timeout=2.0)
    assert worker.done
    assert result.status == TIMEOUT
    print(f"  PASS: cancelled, result={result}")


def test_error_capture():
    """An exception inside the search becomes an Error result."""
    print("[TEST] Error capture...")

    def broken():
        raise RuntimeError("boom")

    worker = UniquenessWorker(make_comb_puzzle(), label="broken")
    worker.solver.solve = broken
    result = worker.start().wait(timeout=2.0)

    assert result.status == ERROR
    assert result.error == "boom"
    assert result.label == "broken"
    assert not result.is_unique
    assert isinstance(worker.error, RuntimeError)
    print(f"  PASS: result={result}")


def test_progress_snapshots():
    """progress() drains every snapshot the solver queued, without blocking."""
    print("[TEST] Progress snapshots...")
    worker = start_background_check(make_domino_puzzle(), max_states=5000)
    result = worker.wait(timeout=10.0)

    assert result.status == TIMEOUT
    assert result.nodes_visited == 5000
    snapshots = worker.progress()
    assert all(isinstance(s, SearchProgress) for s in snapshots)
    assert [s.nodes_visited for s in snapshots] == list(range(500, 5000, 500))
    assert all(s.nodes_since_last == 500 for s in snapshots)
    assert worker.progress() == []
    print(f"  PASS: drained {len(snapshots)} snapshots")


def test_start_twice():
    print("[TEST] Start twice...")
    worker = start_background_check(make_comb_puzzle())
    try:
        worker.start()
    except RuntimeError:
        pass
    else:
        raise AssertionError("second start() should raise")
    worker.wait(timeout=5.0)
    print("  PASS: second start rejected")


if __name__ == "__main__":
    print("=" * 60)
    print("Uniqueness Worker Verification Tests")
    print("=" * 60)

    tests = [
        test_background_check,
        test_default_label,
        test_cancel_on_wait_timeout,
        test_result_before_done,
        test_error_capture,
        test_progress_snapshots,
        test_start_twice,
    ]

    passed = 0
    failed = 0
    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            print(f"  FAIL: {e}")
            failed += 1

    print("=" * 60)
    print(f"Results: {passed} passed, {failed} failed, {len(tests)} total")
    print("=" * 60)
