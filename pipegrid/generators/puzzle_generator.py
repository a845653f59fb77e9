import random
from typing import Iterable, List, Optional, Tuple

from pipegrid.constants import DONUT_STYLES, MAX_ATTEMPTS, UNIQUENESS_CELL_LIMIT
from pipegrid.errors import GenerationExhaustedError
from pipegrid.generators.scrambler import ScrambleResult, scramble_rotations
from pipegrid.generators.spanning_tree import Adjacency, generate_spanning_tree
from pipegrid.puzzle import Puzzle, PuzzleTile
from pipegrid.solvers.uniqueness_solver import UniquenessSolver
from pipegrid.tiles import TileType, classify_tile, find_rotation


def derive_tile(connections: Iterable[int]) -> Tuple[TileType, int]:
    """Tile type plus the rotation that turns its canonical set into ``connections``."""
    conns = sorted(connections)
    tile_type = classify_tile(conns)
    return tile_type, find_rotation(tile_type, conns)


def select_source(adjacency: Adjacency, width: int, height: int) -> Tuple[int, int]:
    """
    Non-leaf cell closest (Manhattan) to the grid center; the first one in
    row-major order wins ties. Falls back to the center cell itself when every
    cell is a leaf.
    """
    center_r, center_c = height // 2, width // 2

    best = None
    best_dist = None
    for index, dirs in enumerate(adjacency):
        if len(dirs) <= 1:
            continue
        r, c = divmod(index, width)
        dist = abs(r - center_r) + abs(c - center_c)
        if best_dist is None or dist < best_dist:
            best, best_dist = (r, c), dist

    return best if best is not None else (center_r, center_c)


class PuzzleGenerator:
    """
    Spanning tree -> tile types & solution rotations -> source -> scramble,
    then an accept/reject uniqueness check for grids up to ``verify_limit``
    cells. Each attempt starts from scratch; only the counter carries over.

    Grids above the limit are accepted unverified. That keeps generation time
    bounded but leaves a small chance of a second valid reconnection.
    """

    def __init__(self, width, height, difficulty="glazed", level=1, rng=None, seed=None,
                 max_attempts=MAX_ATTEMPTS, verify_limit=UNIQUENESS_CELL_LIMIT,
                 solver_timeout=None, solver_max_states=None, verbose=False):
        if width < 1 or height < 1 or width * height < 2:
            raise ValueError(f"A puzzle needs at least 2 cells, got {width}x{height}")
        self.width = width
        self.height = height
        self.difficulty = difficulty
        self.level = level
        self.rng = rng if rng is not None else random.Random(seed)
        self.max_attempts = max_attempts
        self.verify_limit = verify_limit
        self.solver_timeout = solver_timeout
        self.solver_max_states = solver_max_states
        self.verbose = verbose

        self.attempts_used = 0
        self.solver_nodes = 0
        self.solver_time = 0.0
        self.last_scramble: Optional[ScrambleResult] = None

    @property
    def needs_verification(self) -> bool:
        return self.width * self.height <= self.verify_limit

    def generate(self) -> Optional[Puzzle]:
        self.attempts_used = 0
        self.solver_nodes = 0
        self.solver_time = 0.0

        for attempt in range(1, self.max_attempts + 1):
            self.attempts_used = attempt
            puzzle, scramble = self.build_candidate()
            self.last_scramble = scramble

            if scramble.under_quota:
                self._debug(attempt, f"under quota ({scramble.wrong_count}/{scramble.quota} wrong)")
                continue

            if self.needs_verification:
                result = UniquenessSolver.from_puzzle(
                    puzzle, timeout=self.solver_timeout, max_states=self.solver_max_states
                ).solve()
                self.solver_nodes += result["nodes_visited"]
                self.solver_time += result["time_taken"]
                if not result["success"]:
                    self._debug(attempt, f"{result['status']} after {result['nodes_visited']} nodes")
                    continue

            return puzzle

        return None

    def build_candidate(self) -> Tuple[Puzzle, ScrambleResult]:
        """One unverified attempt: tree, tiles, source and scramble."""
        adjacency = generate_spanning_tree(self.width, self.height, self.rng)
        source = select_source(adjacency, self.width, self.height)

        entries: List[PuzzleTile] = []
        for index, dirs in enumerate(adjacency):
            row, col = divmod(index, self.width)
            tile_type, solution = derive_tile(dirs)
            is_source = (row, col) == source
            is_terminal = tile_type == TileType.TERMINAL and not is_source
            entries.append(PuzzleTile(
                row=row,
                col=col,
                tile_type=tile_type,
                connections=tuple(sorted(dirs)),
                solution_rotation=solution,
                initial_rotation=0,
                is_terminal=is_terminal,
                is_source=is_source,
                donut_style=self.rng.choice(DONUT_STYLES) if is_terminal else None,
            ))

        scramble = scramble_rotations(
            [(s.tile_type, s.solution_rotation) for s in entries], self.width, self.rng
        )
        for entry, rotation in zip(entries, scramble.initial_rotations):
            entry.initial_rotation = rotation

        puzzle = Puzzle(
            difficulty=self.difficulty,
            width=self.width,
            height=self.height,
            level=self.level,
            source=source,
            tiles=entries,
        )
        return puzzle, scramble

    def _debug(self, attempt, reason):
        if self.verbose:
            print(f"[GEN] {self.difficulty} {self.width}x{self.height} #{self.level} "
                  f"attempt {attempt}/{self.max_attempts}: rejected, {reason}")


def generate_puzzle(difficulty, width, height, level, rng=None, **kwargs) -> Puzzle:
    """Like PuzzleGenerator.generate(), but running out of attempts raises."""
    generator = PuzzleGenerator(width, height, difficulty=difficulty, level=level, rng=rng, **kwargs)
    puzzle = generator.generate()
    if puzzle is None:
        raise GenerationExhaustedError(
            difficulty=difficulty, width=width, height=height, level=level,
            attempts=generator.attempts_used,
        )
    return puzzle
