"""
Puzzle Catalog
==============
On-disk layout produced by ``generate_catalog.py``:

    <root>/catalog-index.json
    <root>/puzzles/<difficulty_key>/<S>x<S>/<NN>.json

The index maps display names to sizes to the level numbers that exist:

    {"version": "1.0", "levels": {"Glazed": {"5": [1, 2, ...], "7": [...]}}}
"""

import json
from pathlib import Path
from typing import Any, Dict, List

from pipegrid.constants import CATALOG_VERSION, difficulty_key
from pipegrid.errors import PuzzleFormatError
from pipegrid.puzzle import Puzzle

INDEX_FILENAME = "catalog-index.json"


def puzzle_path(root, difficulty, size, level) -> Path:
    return Path(root) / "puzzles" / difficulty_key(difficulty) / f"{size}x{size}" / f"{level:02d}.json"


def write_puzzle(root, puzzle: Puzzle) -> Path:
    path = puzzle_path(root, puzzle.difficulty, puzzle.width, puzzle.level)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(puzzle.to_dict(), indent=2), encoding="utf-8")
    return path


def load_puzzle(root, difficulty, size, level) -> Puzzle:
    """Read and validate one level; raises PuzzleFormatError before building anything."""
    path = puzzle_path(root, difficulty, size, level)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise PuzzleFormatError(f"Invalid JSON in {path}: {e}") from e
    return Puzzle.from_dict(data)


def new_index() -> Dict[str, Any]:
    return {"version": CATALOG_VERSION, "levels": {}}


def write_index(root, index: Dict[str, Any]) -> Path:
    path = Path(root) / INDEX_FILENAME
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(index, indent=2), encoding="utf-8")
    return path


def load_index(root) -> Dict[str, Any]:
    path = Path(root) / INDEX_FILENAME
    return json.loads(path.read_text(encoding="utf-8"))


def get_available_levels(index, difficulty, size) -> List[int]:
    return list(index.get("levels", {}).get(difficulty, {}).get(str(size), []))


def catalog_summary(index) -> int:
    """Total number of levels listed in the index."""
    return sum(len(levels)
               for sizes in index.get("levels", {}).values()
               for levels in sizes.values())
