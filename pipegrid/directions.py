"""
Grid & Direction Primitives
===========================
Directions are ints 0..3 (top, right, bottom, left) so that rotating a
connection by one quarter turn clockwise is ``(d + 1) % 4``.

Cells are addressed by (row, col) at the API surface and by a flat index
``row * width + col`` internally. String keys ("r,c") only appear at
serialization boundaries.
"""

from enum import IntEnum
from typing import Optional, Tuple


class Direction(IntEnum):
    TOP = 0
    RIGHT = 1
    BOTTOM = 2
    LEFT = 3


ALL_DIRECTIONS = (Direction.TOP, Direction.RIGHT, Direction.BOTTOM, Direction.LEFT)

OPPOSITE = {
    Direction.TOP: Direction.BOTTOM,
    Direction.RIGHT: Direction.LEFT,
    Direction.BOTTOM: Direction.TOP,
    Direction.LEFT: Direction.RIGHT,
}

# (d_row, d_col) per direction
DIR_OFFSET = {
    Direction.TOP: (-1, 0),
    Direction.RIGHT: (0, 1),
    Direction.BOTTOM: (1, 0),
    Direction.LEFT: (0, -1),
}


def opposite(direction: int) -> Direction:
    return OPPOSITE[Direction(direction)]


def in_bounds(row: int, col: int, width: int, height: int) -> bool:
    return 0 <= row < height and 0 <= col < width


def step(row: int, col: int, direction: int) -> Tuple[int, int]:
    dr, dc = DIR_OFFSET[Direction(direction)]
    return row + dr, col + dc


def neighbor_index(index: int, direction: int, width: int, height: int) -> Optional[int]:
    """Flat index of the neighbor in ``direction``, or None off-grid."""
    row, col = divmod(index, width)
    nr, nc = step(row, col, direction)
    if not in_bounds(nr, nc, width, height):
        return None
    return nr * width + nc


def direction_between(r1: int, c1: int, r2: int, c2: int) -> Optional[Direction]:
    """Direction leading from (r1, c1) to an adjacent (r2, c2), else None."""
    delta = (r2 - r1, c2 - c1)
    for direction, offset in DIR_OFFSET.items():
        if offset == delta:
            return direction
    return None


def cell_index(row: int, col: int, width: int) -> int:
    return row * width + col


def cell_coords(index: int, width: int) -> Tuple[int, int]:
    return divmod(index, width)


def coord_key(row: int, col: int) -> str:
    return f"{row},{col}"


def parse_coord_key(key: str) -> Tuple[int, int]:
    row, col = key.split(",")
    return int(row), int(col)
