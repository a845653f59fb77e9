"""
Uniqueness Solver
=================
Exhaustive backtracking over tile rotations that proves a puzzle has exactly
one rotation assignment forming a spanning tree.

A complete assignment is a solution when:
- no active connection points off the grid,
- every pair of neighbors agrees on their shared edge (both open or both closed),
- the connected edges form a spanning tree (n - 1 edges, all cells reachable
  from the source).

Pruning happens per assignment (off-grid and neighbor agreement); the tree
property is only decidable once every cell has a rotation. The search stops
as soon as a second solution shows up.

Search limits:
- Hard timeout and max-state limit
- Clean stop via threading.Event
- Optional SearchProgress snapshots pushed to a queue
"""

import queue
import threading
import time
from collections import deque
from dataclasses import dataclass

from pipegrid.directions import ALL_DIRECTIONS, OPPOSITE, neighbor_index
from pipegrid.solvers.solver_limits import resolve_safe_limit, resolve_timeout
from pipegrid.tiles import BASE_CONNECTIONS, TileType, connection_mask, distinct_rotations, rotate_connections

UNIQUE = "Unique"
AMBIGUOUS = "Ambiguous"
NO_SOLUTION = "NoSolution"
TIMEOUT = "Timeout"


@dataclass(frozen=True)
class SearchProgress:
    """Where a running uniqueness search stands."""
    elapsed: float            # seconds since solve() started
    nodes_visited: int
    nodes_since_last: int
    ms_per_node: float        # over the nodes since the previous snapshot
    mean_options: float       # rotation choices at recently placed cells
    solutions_found: int


class UniquenessSolver:
    """
    Counts rotation assignments that reconnect the grid into a tree, up to 2.

    Supports:
    - stop_event: threading.Event to request clean stop from outside
    - timeout: wall-clock seconds before auto-stop
    - max_states: maximum candidate placements tried before auto-stop
    - progress_queue: optional queue.Queue receiving SearchProgress snapshots
    """

    PROGRESS_INTERVAL = 500        # nodes between SearchProgress snapshots
    CLOCK_CHECK_INTERVAL = 200     # nodes between timeout checks
    OPTIONS_WINDOW = 20            # placements averaged into mean_options

    def __init__(self, width, height, tile_types, source, stop_event=None,
                 timeout=None, max_states=None, progress_queue=None, settings=None):
        self.width = width
        self.height = height
        self.tile_types = [TileType(t) for t in tile_types]
        self.cell_count = width * height
        if len(self.tile_types) != self.cell_count:
            raise ValueError(
                f"Expected {self.cell_count} tiles for {width}x{height}, got {len(self.tile_types)}"
            )
        self.source_index = source[0] * width + source[1]

        # --- Control flags ---
        self.stop_event = stop_event or threading.Event()
        self.timeout = resolve_timeout(timeout, settings)
        self.max_states = resolve_safe_limit(max_states, settings)
        self.progress_queue = progress_queue

        # --- Status tracking ---
        self.nodes_visited = 0
        self.solutions_found = 0
        self.first_solution = None
        self._timed_out = False
        self._stopped = False
        self._start_time = 0.0
        self._reported_at = (0.0, 0)
        self._recent_options = deque(maxlen=self.OPTIONS_WINDOW)

        # --- Precomputed per-cell tables ---
        self.neighbors = [
            [neighbor_index(i, d, width, height) for d in ALL_DIRECTIONS]
            for i in range(self.cell_count)
        ]
        self.inbound_masks = [
            connection_mask(d for d in ALL_DIRECTIONS if self.neighbors[i][d] is not None)
            for i in range(self.cell_count)
        ]
        # (rotation, connection mask) per distinct rotation
        self.candidates = [
            [(rot, connection_mask(rotate_connections(BASE_CONNECTIONS[t], rot)))
             for rot in distinct_rotations(t)]
            for t in self.tile_types
        ]

    @classmethod
    def from_puzzle(cls, puzzle, **kwargs):
        return cls(puzzle.width, puzzle.height,
                   [entry.tile_type for entry in puzzle.tiles],
                   puzzle.source, **kwargs)

    def is_unique(self) -> bool:
        return self.solve()["status"] == UNIQUE

    def solve(self):
        self.nodes_visited = 0
        self.solutions_found = 0
        self.first_solution = None
        self._timed_out = False
        self._stopped = False
        self._recent_options.clear()

        self._start_time = time.perf_counter()
        self._reported_at = (self._start_time, 0)

        self._search()
        end_time = time.perf_counter()

        if self.solutions_found > 1:
            status = AMBIGUOUS
        elif self._timed_out or self._stopped:
            status = TIMEOUT
        elif self.solutions_found == 1:
            status = UNIQUE
        else:
            status = NO_SOLUTION

        return {
            "success": status == UNIQUE,
            "status": status,
            "solutions_found": self.solutions_found,
            "solution": self.first_solution,
            "nodes_visited": self.nodes_visited,
            "time_taken": end_time - self._start_time,
            "timed_out": self._timed_out or self._stopped,
        }

    def _out_of_budget(self):
        if self.stop_event.is_set():
            self._stopped = True
        elif self.nodes_visited >= self.max_states:
            self._timed_out = True
        elif (self.nodes_visited % self.CLOCK_CHECK_INTERVAL == 0
              and time.perf_counter() - self._start_time >= self.timeout):
            self._timed_out = True
        else:
            return False
        return True

    def _report_progress(self):
        now = time.perf_counter()
        last_time, last_nodes = self._reported_at
        fresh = self.nodes_visited - last_nodes
        window = self._recent_options

        snapshot = SearchProgress(
            elapsed=now - self._start_time,
            nodes_visited=self.nodes_visited,
            nodes_since_last=fresh,
            ms_per_node=(now - last_time) * 1000.0 / fresh if fresh else 0.0,
            mean_options=sum(window) / len(window) if window else 0.0,
            solutions_found=self.solutions_found,
        )
        try:
            self.progress_queue.put_nowait(snapshot)
        except queue.Full:
            pass  # a consumer that falls behind just misses snapshots
        self._reported_at = (now, self.nodes_visited)

    def _search(self):
        """
        Depth-first over cells in row-major order. ``rotations``/``masks``
        are the assignment arena: slot ``depth`` is written when a candidate
        fits and cleared when its candidates run out.
        """
        n = self.cell_count
        rotations = [None] * n
        masks = [0] * n
        cursor = [0] * n
        depth = 0
        reporting = self.progress_queue is not None

        while depth >= 0:
            if depth == n:
                if self._is_spanning_tree(masks):
                    self.solutions_found += 1
                    if self.first_solution is None:
                        self.first_solution = list(rotations)
                    if self.solutions_found > 1:
                        return
                depth -= 1
                continue

            options = self.candidates[depth]
            if cursor[depth] >= len(options):
                cursor[depth] = 0
                rotations[depth] = None
                masks[depth] = 0
                depth -= 1
                continue

            rotation, mask = options[cursor[depth]]
            cursor[depth] += 1
            self.nodes_visited += 1

            if self._out_of_budget():
                return
            if reporting and self.nodes_visited % self.PROGRESS_INTERVAL == 0:
                self._report_progress()

            if self._fits(depth, mask, rotations, masks):
                rotations[depth] = rotation
                masks[depth] = mask
                if reporting:
                    self._recent_options.append(len(options))
                depth += 1

    def _fits(self, index, mask, rotations, masks):
        if mask & ~self.inbound_masks[index]:
            return False  # points at a wall

        for direction in ALL_DIRECTIONS:
            neighbor = self.neighbors[index][direction]
            if neighbor is None or rotations[neighbor] is None:
                continue
            points_out = bool(mask >> direction & 1)
            points_back = bool(masks[neighbor] >> OPPOSITE[direction] & 1)
            if points_out != points_back:
                return False
        return True

    def _is_spanning_tree(self, masks):
        half_edges = 0
        for index, mask in enumerate(masks):
            for direction in ALL_DIRECTIONS:
                if not mask >> direction & 1:
                    continue
                neighbor = self.neighbors[index][direction]
                if neighbor is None:
                    return False
                if not masks[neighbor] >> OPPOSITE[direction] & 1:
                    return False
                half_edges += 1

        # Each edge is seen from both ends
        if half_edges // 2 != self.cell_count - 1:
            return False

        seen = {self.source_index}
        frontier = deque([self.source_index])
        while frontier:
            index = frontier.popleft()
            for direction in ALL_DIRECTIONS:
                if masks[index] >> direction & 1:
                    neighbor = self.neighbors[index][direction]
                    if neighbor not in seen:
                        seen.add(neighbor)
                        frontier.append(neighbor)
        return len(seen) == self.cell_count


def validate_uniqueness(width, height, tile_types, source, **kwargs) -> bool:
    """True iff exactly one rotation assignment reconnects the tree."""
    return UniquenessSolver(width, height, tile_types, source, **kwargs).is_unique()
