"""
Puzzle Artifact
===============
The record a generator produces and the game state consumes.

JSON shape (one file per level):

    {
      "difficulty": "glazed", "width": 5, "height": 5, "level": 1,
      "source": {"row": 2, "col": 2},
      "tiles": [{"row": 0, "col": 0, "type": "elbow", "connections": [1, 2],
                 "solution_rotation": 90, "initial_rotation": 270,
                 "is_terminal": false, "is_source": false, "donut_style": null}, ...],
      "terminals": [{"row": 0, "col": 4, "donut_style": "maple"}, ...]
    }

``connections`` is the tile's solved connection set, i.e. the canonical set
of its type rotated by ``solution_rotation``. Loading validates everything
before a single object is built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pipegrid.errors import PuzzleFormatError
from pipegrid.tiles import TileType, base_connections, find_rotation, rotate_connections


@dataclass
class PuzzleTile:
    row: int
    col: int
    tile_type: TileType
    connections: Tuple[int, ...]
    solution_rotation: int
    initial_rotation: int
    is_terminal: bool = False
    is_source: bool = False
    donut_style: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "row": self.row,
            "col": self.col,
            "type": self.tile_type.value,
            "connections": sorted(self.connections),
            "solution_rotation": self.solution_rotation,
            "initial_rotation": self.initial_rotation,
            "is_terminal": self.is_terminal,
            "is_source": self.is_source,
            "donut_style": self.donut_style,
        }


@dataclass
class Puzzle:
    difficulty: str
    width: int
    height: int
    level: int
    source: Tuple[int, int]
    tiles: List[PuzzleTile] = field(default_factory=list)

    @property
    def cell_count(self) -> int:
        return self.width * self.height

    @property
    def terminals(self) -> List[PuzzleTile]:
        return [t for t in self.tiles if t.is_terminal]

    def tile_at(self, row: int, col: int) -> PuzzleTile:
        return self.tiles[row * self.width + col]

    def wrong_count(self) -> int:
        """Tiles whose initial rotation differs from their solution rotation."""
        return sum(1 for t in self.tiles if t.initial_rotation != t.solution_rotation)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "difficulty": self.difficulty,
            "width": self.width,
            "height": self.height,
            "level": self.level,
            "source": {"row": self.source[0], "col": self.source[1]},
            "tiles": [t.to_dict() for t in self.tiles],
            "terminals": [
                {"row": t.row, "col": t.col, "donut_style": t.donut_style}
                for t in self.terminals
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Puzzle":
        validate_puzzle_dict(data)
        width, height = data["width"], data["height"]
        source = (data["source"]["row"], data["source"]["col"])

        tiles: List[Optional[PuzzleTile]] = [None] * (width * height)
        for raw in data["tiles"]:
            tile_type = TileType(raw["type"])
            connections = tuple(sorted(raw["connections"]))
            position = (raw["row"], raw["col"])
            tiles[raw["row"] * width + raw["col"]] = PuzzleTile(
                row=raw["row"],
                col=raw["col"],
                tile_type=tile_type,
                connections=connections,
                solution_rotation=raw.get("solution_rotation", find_rotation(tile_type, connections)),
                initial_rotation=raw.get("initial_rotation", 0),
                is_terminal=bool(raw.get("is_terminal", False)),
                is_source=position == source,
                donut_style=raw.get("donut_style"),
            )

        return cls(
            difficulty=data.get("difficulty", ""),
            width=width,
            height=height,
            level=data.get("level", 0),
            source=source,
            tiles=tiles,
        )


def _require_int(data, key, where, minimum=None):
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise PuzzleFormatError(f"Missing or non-integer {key}{where}", field=key)
    if minimum is not None and value < minimum:
        raise PuzzleFormatError(f"{key} must be >= {minimum}{where}, got {value}", field=key)
    return value


def _check_rotation(raw, key, position):
    if key not in raw:
        return
    value = raw[key]
    if isinstance(value, bool) or not isinstance(value, int) or value % 90 or not 0 <= value < 360:
        raise PuzzleFormatError(
            f"Tile {key} must be one of 0/90/180/270 at {position[0]},{position[1]}, got {value!r}",
            field=key, position=position,
        )


def validate_puzzle_dict(data: Any) -> None:
    """Raise PuzzleFormatError on the first problem found; return None if sound."""
    if not isinstance(data, dict):
        raise PuzzleFormatError("Puzzle must be a JSON object")

    width = _require_int(data, "width", "", minimum=1)
    height = _require_int(data, "height", "", minimum=1)

    source = data.get("source")
    if not isinstance(source, dict):
        raise PuzzleFormatError("Missing source", field="source")
    src_row = _require_int(source, "row", " in source")
    src_col = _require_int(source, "col", " in source")
    if not (0 <= src_row < height and 0 <= src_col < width):
        raise PuzzleFormatError(f"Source out of bounds: {src_row},{src_col}",
                                field="source", position=(src_row, src_col))

    tiles = data.get("tiles")
    if not isinstance(tiles, list) or not tiles:
        raise PuzzleFormatError("Missing tiles", field="tiles")

    expected = width * height
    if len(tiles) != expected:
        raise PuzzleFormatError(f"Expected {expected} tiles, got {len(tiles)}", field="tiles")

    seen = set()
    for raw in tiles:
        if not isinstance(raw, dict):
            raise PuzzleFormatError("Tile entries must be objects", field="tiles")
        row = _require_int(raw, "row", " in tile")
        col = _require_int(raw, "col", " in tile")
        position = (row, col)
        if not 0 <= row < height:
            raise PuzzleFormatError(f"Tile row out of bounds: {row}", field="row", position=position)
        if not 0 <= col < width:
            raise PuzzleFormatError(f"Tile col out of bounds: {col}", field="col", position=position)
        if position in seen:
            raise PuzzleFormatError(f"Duplicate tile at {row},{col}", field="tiles", position=position)
        seen.add(position)

        if not raw.get("type"):
            raise PuzzleFormatError(f"Tile missing type at {row},{col}", field="type", position=position)
        try:
            tile_type = TileType(raw["type"])
        except ValueError:
            raise PuzzleFormatError(f"Unknown tile type {raw['type']!r} at {row},{col}",
                                    field="type", position=position) from None

        connections = raw.get("connections")
        if not isinstance(connections, list) or not all(
                isinstance(d, int) and not isinstance(d, bool) and 0 <= d < 4 for d in connections):
            raise PuzzleFormatError(f"Tile missing connections at {row},{col}",
                                    field="connections", position=position)

        _check_rotation(raw, "solution_rotation", position)
        _check_rotation(raw, "initial_rotation", position)

        try:
            derived = find_rotation(tile_type, connections)
        except ValueError:
            raise PuzzleFormatError(
                f"Connections {sorted(connections)} do not fit a {tile_type.value} tile at {row},{col}",
                field="connections", position=position) from None

        solution = raw.get("solution_rotation", derived)
        if rotate_connections(base_connections(tile_type), solution) != tuple(sorted(connections)):
            raise PuzzleFormatError(
                f"solution_rotation {solution} does not reproduce connections at {row},{col}",
                field="solution_rotation", position=position)

        # Terminals are exactly the leaves other than the source
        should_be_terminal = tile_type == TileType.TERMINAL and position != (src_row, src_col)
        if bool(raw.get("is_terminal", False)) != should_be_terminal:
            raise PuzzleFormatError(
                f"is_terminal must be {str(should_be_terminal).lower()} for the "
                f"{tile_type.value} tile at {row},{col}",
                field="is_terminal", position=position)
