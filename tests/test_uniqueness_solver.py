
import unittest
import threading
import queue
import sys
import os
from types import SimpleNamespace
from unittest import mock

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pipegrid.generators.puzzle_generator import PuzzleGenerator, derive_tile
from pipegrid.generators.spanning_tree import is_spanning_tree
from pipegrid.solvers.solver_limits import (
    DEFAULT_SAFE_LIMIT, DEFAULT_TIMEOUT, SAFE_LIMIT_ENV, TIMEOUT_ENV,
    resolve_safe_limit, resolve_timeout,
)
from pipegrid.solvers.uniqueness_solver import (
    AMBIGUOUS, NO_SOLUTION, TIMEOUT, UNIQUE, SearchProgress, UniquenessSolver, validate_uniqueness,
)
from pipegrid.tiles import TileType

T, S, E, X, C = TileType.TERMINAL, TileType.STRAIGHT, TileType.ELBOW, TileType.TEE, TileType.CROSS

# Spine down column 0, three horizontal arms.
COMB_CONNECTIONS = [
    (1, 2), (1, 3), (3,),
    (0, 1, 2), (1, 3), (3,),
    (0, 1), (1, 3), (3,),
]
COMB_TYPES = [derive_tile(c)[0] for c in COMB_CONNECTIONS]
COMB_SOLUTION = [derive_tile(c)[1] for c in COMB_CONNECTIONS]

# Cross in the middle, elbows on the edges, terminals in the corners. Each
# corner can hang off either neighboring edge cell, giving two pinwheels.
PINWHEEL_TYPES = [
    T, E, T,
    E, C, E,
    T, E, T,
]

# Four corner elbows can only close into a ring.
RING_TYPES = [E, E, E, E]

# 5x5 comb: spine down column 0, five arms. Each row forces the next one.
COMB5_CONNECTIONS = (
    [(1, 2), (1, 3), (1, 3), (1, 3), (3,)]
    + [(0, 1, 2), (1, 3), (1, 3), (1, 3), (3,)] * 3
    + [(0, 1), (1, 3), (1, 3), (1, 3), (3,)]
)

# 5x5 with a cross at (2,2) whose four arms are tees. Each inner corner leaf
# can hang off either neighboring arm, and the border is four paths, one per
# arm. Both layouts use the same tile at every cell.
HUB_CONNECTIONS = [
    (2,), (1,), (1, 2, 3), (1, 3), (3,),
    (0, 2), (1,), (0, 2, 3), (2,), (2,),
    (0, 1, 2), (1, 2, 3), (0, 1, 2, 3), (0, 1, 3), (0, 2, 3),
    (0,), (0,), (0, 1, 2), (3,), (0, 2),
    (1,), (1, 3), (0, 1, 3), (3,), (0,),
]
HUB_MIRROR_CONNECTIONS = list(HUB_CONNECTIONS)
HUB_MIRROR_CONNECTIONS[6] = (2,)             # (1,1) hangs off (2,1)
HUB_MIRROR_CONNECTIONS[7] = (0, 1, 2)
HUB_MIRROR_CONNECTIONS[8] = (3,)             # (1,3) hangs off (1,2)
HUB_MIRROR_CONNECTIONS[11] = (0, 1, 3)
HUB_MIRROR_CONNECTIONS[13] = (1, 2, 3)
HUB_MIRROR_CONNECTIONS[16] = (1,)            # (3,1) hangs off (3,2)
HUB_MIRROR_CONNECTIONS[17] = (0, 2, 3)
HUB_MIRROR_CONNECTIONS[18] = (0,)            # (3,3) hangs off (2,3)


def types_of(connections):
    return [derive_tile(c)[0] for c in connections]


class TestUniquenessStatus(unittest.TestCase):
    """Counting reconnections of hand-built grids."""

    def test_comb_is_unique(self):
        solver = UniquenessSolver(3, 3, COMB_TYPES, (1, 1))
        result = solver.solve()
        self.assertEqual(result["status"], UNIQUE)
        self.assertTrue(result["success"])
        self.assertEqual(result["solutions_found"], 1)
        self.assertEqual(result["solution"], COMB_SOLUTION)
        self.assertFalse(result["timed_out"])

    def test_comb_types(self):
        self.assertEqual(COMB_TYPES, [E, S, T, X, S, T, E, S, T])

    def test_pinwheel_is_ambiguous(self):
        result = UniquenessSolver(3, 3, PINWHEEL_TYPES, (1, 1)).solve()
        self.assertEqual(result["status"], AMBIGUOUS)
        self.assertFalse(result["success"])
        # Search stops at the second solution
        self.assertEqual(result["solutions_found"], 2)

    def test_ring_has_no_solution(self):
        result = UniquenessSolver(2, 2, RING_TYPES, (0, 0)).solve()
        self.assertEqual(result["status"], NO_SOLUTION)
        self.assertEqual(result["solutions_found"], 0)
        self.assertIsNone(result["solution"])

    def test_two_terminals(self):
        # Only one way to join two cells
        self.assertTrue(validate_uniqueness(2, 1, [T, T], (0, 1)))

    def test_row_of_straights(self):
        types = [T, S, S, S, T]
        result = UniquenessSolver(5, 1, types, (0, 2)).solve()
        self.assertEqual(result["status"], UNIQUE)
        self.assertEqual(result["solution"], [90, 90, 90, 90, 270])

    def test_five_by_five_comb_is_unique(self):
        result = UniquenessSolver(5, 5, types_of(COMB5_CONNECTIONS), (2, 2)).solve()
        self.assertEqual(result["status"], UNIQUE)
        self.assertEqual(result["solution"], [derive_tile(c)[1] for c in COMB5_CONNECTIONS])

    def test_five_by_five_hub_layouts(self):
        for layout in (HUB_CONNECTIONS, HUB_MIRROR_CONNECTIONS):
            self.assertTrue(is_spanning_tree([set(c) for c in layout], 5, 5))
        self.assertEqual(types_of(HUB_CONNECTIONS), types_of(HUB_MIRROR_CONNECTIONS))
        self.assertEqual(types_of(HUB_CONNECTIONS)[12], C)

    def test_five_by_five_cross_hub_is_ambiguous(self):
        result = UniquenessSolver(5, 5, types_of(HUB_CONNECTIONS), (2, 2)).solve()
        self.assertEqual(result["status"], AMBIGUOUS)
        self.assertEqual(result["solutions_found"], 2)
        self.assertFalse(validate_uniqueness(5, 5, types_of(HUB_CONNECTIONS), (2, 2)))

    def test_tile_count_mismatch(self):
        with self.assertRaises(ValueError):
            UniquenessSolver(3, 3, COMB_TYPES[:-1], (1, 1))

    def test_generated_puzzle_is_unique(self):
        generator = PuzzleGenerator(4, 4, seed=21)
        puzzle = generator.generate()
        self.assertIsNotNone(puzzle)
        solver = UniquenessSolver.from_puzzle(puzzle)
        result = solver.solve()
        self.assertEqual(result["status"], UNIQUE)
        self.assertEqual(result["solution"], [t.solution_rotation for t in puzzle.tiles])

    def test_solve_is_repeatable(self):
        solver = UniquenessSolver(3, 3, PINWHEEL_TYPES, (1, 1))
        first = solver.solve()
        second = solver.solve()
        self.assertEqual(first["status"], second["status"])
        self.assertEqual(first["nodes_visited"], second["nodes_visited"])


class TestSearchControl(unittest.TestCase):
    """State limit, stop event and progress snapshots."""

    def test_state_limit(self):
        result = UniquenessSolver(3, 3, COMB_TYPES, (1, 1), max_states=5).solve()
        self.assertEqual(result["status"], TIMEOUT)
        self.assertTrue(result["timed_out"])
        self.assertEqual(result["nodes_visited"], 5)

    def test_stop_event(self):
        stop = threading.Event()
        stop.set()
        result = UniquenessSolver(3, 3, COMB_TYPES, (1, 1), stop_event=stop).solve()
        self.assertEqual(result["status"], TIMEOUT)
        self.assertEqual(result["nodes_visited"], 1)

    def test_progress_stream(self):
        progress = queue.Queue()
        solver = UniquenessSolver(3, 3, COMB_TYPES, (1, 1), progress_queue=progress)
        solver.PROGRESS_INTERVAL = 1
        result = solver.solve()

        items = []
        while not progress.empty():
            items.append(progress.get_nowait())
        self.assertEqual(len(items), result["nodes_visited"])
        self.assertTrue(all(isinstance(p, SearchProgress) for p in items))
        self.assertEqual([p.nodes_visited for p in items],
                         list(range(1, result["nodes_visited"] + 1)))
        self.assertTrue(all(p.nodes_since_last == 1 for p in items))
        self.assertEqual(items[-1].solutions_found, 1)

    def test_full_progress_queue_is_not_fatal(self):
        progress = queue.Queue(maxsize=1)
        solver = UniquenessSolver(3, 3, COMB_TYPES, (1, 1), progress_queue=progress)
        solver.PROGRESS_INTERVAL = 1
        self.assertEqual(solver.solve()["status"], UNIQUE)
        self.assertEqual(progress.qsize(), 1)

    def test_branching_window_stays_bounded(self):
        # All terminals: only domino pairings fit locally, none is a tree
        solver = UniquenessSolver(6, 6, [T] * 36, (2, 2), max_states=20_000)
        self.assertEqual(solver.solve()["status"], TIMEOUT)
        self.assertEqual(len(solver._recent_options), 0)

        solver.progress_queue = queue.Queue()
        self.assertEqual(solver.solve()["status"], TIMEOUT)
        self.assertEqual(len(solver._recent_options), solver.OPTIONS_WINDOW)
        self.assertEqual(solver._recent_options.maxlen, solver.OPTIONS_WINDOW)


class TestLimitResolution(unittest.TestCase):
    """explicit > settings > environment > default."""

    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            self.assertEqual(resolve_safe_limit(), DEFAULT_SAFE_LIMIT)
            self.assertEqual(resolve_timeout(), DEFAULT_TIMEOUT)

    def test_explicit_wins(self):
        settings = SimpleNamespace(uniqueness_max_states=10, uniqueness_timeout=2.0)
        with mock.patch.dict(os.environ, {SAFE_LIMIT_ENV: "99", TIMEOUT_ENV: "9"}):
            self.assertEqual(resolve_safe_limit(5, settings), 5)
            self.assertEqual(resolve_timeout(1.5, settings), 1.5)

    def test_settings_before_env(self):
        settings = SimpleNamespace(uniqueness_max_states=10, uniqueness_timeout=2.0)
        with mock.patch.dict(os.environ, {SAFE_LIMIT_ENV: "99", TIMEOUT_ENV: "9"}):
            self.assertEqual(resolve_safe_limit(None, settings), 10)
            self.assertEqual(resolve_timeout(None, settings), 2.0)

    def test_env(self):
        with mock.patch.dict(os.environ, {SAFE_LIMIT_ENV: "1234", TIMEOUT_ENV: "0.5"}):
            self.assertEqual(resolve_safe_limit(), 1234)
            self.assertEqual(resolve_timeout(), 0.5)

    def test_invalid_values_fall_back(self):
        with mock.patch.dict(os.environ, {SAFE_LIMIT_ENV: "lots", TIMEOUT_ENV: "-3"}):
            self.assertEqual(resolve_safe_limit(), DEFAULT_SAFE_LIMIT)
            self.assertEqual(resolve_timeout(), DEFAULT_TIMEOUT)
        self.assertEqual(resolve_safe_limit(0), DEFAULT_SAFE_LIMIT)


if __name__ == '__main__':
    unittest.main()
