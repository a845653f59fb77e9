"""
Scrambler
=========
Picks an initial rotation for every tile so that at least a quota of tiles
start away from their solution rotation.

This is a heuristic, not a difficulty optimizer: it bounds how scrambled a
puzzle is from below but says nothing about how many moves a solve takes.
"""

import math
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from pipegrid.constants import SCRAMBLE_RATIO
from pipegrid.tiles import TileType, distinct_rotations


@dataclass
class ScrambleResult:
    initial_rotations: List[int]
    wrong_count: int
    quota: int

    @property
    def under_quota(self) -> bool:
        return self.wrong_count < self.quota


def wrongness_quota(cell_count: int, width: int, ratio: float = SCRAMBLE_RATIO) -> int:
    """max(floor(ratio * cells), width), never more than the cell count."""
    return min(max(math.floor(cell_count * ratio), width), cell_count)


def _wrong_options(tile_type, solution_rotation):
    return [r for r in distinct_rotations(tile_type) if r != solution_rotation]


def scramble_rotations(tiles: Sequence[Tuple[TileType, int]], width: int,
                       rng: Optional[random.Random] = None,
                       ratio: float = SCRAMBLE_RATIO) -> ScrambleResult:
    """
    ``tiles`` is a row-major sequence of (tile_type, solution_rotation).

    First pass: while under quota every tile is forced wrong, afterwards any
    rotation goes (still counted when it happens to be wrong). If that comes
    up short, a second pass in shuffled order flips tiles still sitting at
    their solution. Crosses always stay at 0.
    """
    rng = rng or random.Random()
    quota = wrongness_quota(len(tiles), width, ratio)
    initial = [0] * len(tiles)
    wrong = 0

    for i, (tile_type, solution) in enumerate(tiles):
        if TileType(tile_type) == TileType.CROSS:
            continue

        wrong_options = _wrong_options(tile_type, solution)
        if wrong < quota and wrong_options:
            initial[i] = rng.choice(wrong_options)
            wrong += 1
        else:
            initial[i] = rng.choice(distinct_rotations(tile_type))
            if initial[i] != solution:
                wrong += 1

    if wrong < quota:
        order = list(range(len(tiles)))
        rng.shuffle(order)
        for i in order:
            if wrong >= quota:
                break
            tile_type, solution = tiles[i]
            if TileType(tile_type) == TileType.CROSS or initial[i] != solution:
                continue
            wrong_options = _wrong_options(tile_type, solution)
            if wrong_options:
                initial[i] = rng.choice(wrong_options)
                wrong += 1

    return ScrambleResult(initial_rotations=initial, wrong_count=wrong, quota=quota)
