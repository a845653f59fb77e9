"""
Tile Connection Algebra
=======================
Tile types are derived purely from the shape of a connection set:

    degree 1                 -> terminal
    degree 2, opposite dirs  -> straight
    degree 2, adjacent dirs  -> elbow
    degree 3                 -> tee
    degree 4                 -> cross

Each type has a canonical connection set at rotation 0. Rotating a tile by
``k * 90`` degrees clockwise shifts every direction by ``k`` (mod 4).

The same algebra is evaluated by the generator, the uniqueness solver and the
live game state.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple

ROTATIONS = (0, 90, 180, 270)


class TileType(str, Enum):
    TERMINAL = "terminal"
    STRAIGHT = "straight"
    ELBOW = "elbow"
    TEE = "tee"
    CROSS = "cross"


BASE_CONNECTIONS = {
    TileType.TERMINAL: (0,),
    TileType.STRAIGHT: (0, 2),
    TileType.ELBOW: (0, 1),
    TileType.TEE: (0, 1, 2),
    TileType.CROSS: (0, 1, 2, 3),
}


def normalize_rotation(rotation: int) -> int:
    """Wrap any multiple of 90 into [0, 360)."""
    return rotation % 360


def rotate_connections(connections: Iterable[int], rotation: int) -> Tuple[int, ...]:
    """Rotate a connection set clockwise by ``rotation`` degrees (sorted result)."""
    steps = normalize_rotation(rotation) // 90
    return tuple(sorted((d + steps) % 4 for d in connections))


def connection_mask(connections: Iterable[int]) -> int:
    """Bit ``d`` set for every open direction ``d``."""
    mask = 0
    for d in connections:
        mask |= 1 << d
    return mask


def classify_tile(connections: Iterable[int]) -> TileType:
    conns = sorted(set(connections))
    degree = len(conns)
    if degree == 1:
        return TileType.TERMINAL
    if degree == 2:
        return TileType.STRAIGHT if conns[1] - conns[0] == 2 else TileType.ELBOW
    if degree == 3:
        return TileType.TEE
    if degree == 4:
        return TileType.CROSS
    raise ValueError(f"Cannot classify a tile with {degree} connections")


def base_connections(tile_type) -> Tuple[int, ...]:
    return BASE_CONNECTIONS[TileType(tile_type)]


def find_rotation(tile_type, connections: Iterable[int]) -> int:
    """
    Rotation (degrees) that maps the type's canonical set onto ``connections``.

    The first match in 0, 90, 180, 270 order wins, so straights resolve to
    0/90 and crosses to 0. A miss means the connection set is not a rotation
    of the given type at all.
    """
    base = base_connections(tile_type)
    target = tuple(sorted(connections))
    for rotation in ROTATIONS:
        if rotate_connections(base, rotation) == target:
            return rotation
    raise ValueError(f"{target} is not a rotation of a {TileType(tile_type).value} tile")


def distinct_rotations(tile_type) -> List[int]:
    """Rotations that yield pairwise different connection sets."""
    tile_type = TileType(tile_type)
    if tile_type == TileType.CROSS:
        return [0]
    if tile_type == TileType.STRAIGHT:
        return [0, 90]
    return list(ROTATIONS)


@dataclass
class Tile:
    """A placed tile. Only ``rotation`` changes during play."""
    row: int
    col: int
    tile_type: TileType
    rotation: int = 0
    is_terminal: bool = False
    is_source: bool = False
    donut_style: Optional[str] = None

    @property
    def base_connections(self) -> Tuple[int, ...]:
        return BASE_CONNECTIONS[self.tile_type]

    def active_connections(self) -> Tuple[int, ...]:
        return rotate_connections(self.base_connections, self.rotation)

    def points(self, direction: int) -> bool:
        return direction in self.active_connections()

    def rotate(self, clockwise: bool = True):
        self.rotation = normalize_rotation(self.rotation + (90 if clockwise else -90))
