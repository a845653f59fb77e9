"""
Game State
==========
Live model of one puzzle being solved.

States: Active -> Solved. Solved only goes back to Active through reset().
Every mutation recomputes the flow set, so it always matches the current
rotations.

Undo/redo keep full snapshots (rotations, locks, move count, solved flag).
A new rotation after an undo drops the redo stack.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Tuple

from pipegrid.directions import coord_key, in_bounds, parse_coord_key
from pipegrid.puzzle import Puzzle
from pipegrid.tiles import Tile, normalize_rotation
from pipegrid.validators import NO_HISTORY, NO_TILE, SOLVED, check_win_condition, compute_flow, is_valid_rotation


@dataclass(frozen=True)
class Snapshot:
    rotations: Tuple[int, ...]
    locked: FrozenSet[int]
    moves: int
    solved: bool


@dataclass
class MoveResult:
    ok: bool
    reason: Optional[str] = None
    solved: bool = False


class GameState:
    def __init__(self, puzzle: Puzzle):
        self.puzzle = puzzle
        self.width = puzzle.width
        self.height = puzzle.height
        self.source = tuple(puzzle.source)

        self.tiles: List[Tile] = [
            Tile(
                row=entry.row,
                col=entry.col,
                tile_type=entry.tile_type,
                rotation=entry.initial_rotation,
                is_terminal=entry.is_terminal,
                is_source=entry.is_source,
                donut_style=entry.donut_style,
            )
            for entry in puzzle.tiles
        ]
        self.terminals = [i for i, t in enumerate(self.tiles) if t.is_terminal]

        self.locked = set()
        self.flow = set()
        self.moves = 0
        self.solved = False
        self.history: List[Snapshot] = []
        self.redo_history: List[Snapshot] = []
        self._solved_listeners: List[Callable[["GameState"], None]] = []

        self.refresh_flow()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameState":
        return cls(Puzzle.from_dict(data))

    # ── Queries (renderer-facing) ──────────────────────────────

    def index_of(self, row, col) -> Optional[int]:
        if not in_bounds(row, col, self.width, self.height):
            return None
        return row * self.width + col

    def tile_at(self, row, col) -> Optional[Tile]:
        index = self.index_of(row, col)
        return None if index is None else self.tiles[index]

    def active_connections(self, row, col) -> Tuple[int, ...]:
        tile = self.tile_at(row, col)
        return () if tile is None else tile.active_connections()

    def is_flowing(self, row, col) -> bool:
        return self.index_of(row, col) in self.flow

    def is_locked(self, row, col) -> bool:
        return self.index_of(row, col) in self.locked

    def check_win(self):
        return check_win_condition(self.tiles, self.width, self.height, self.flow, self.terminals)

    # ── Player actions ─────────────────────────────────────────

    def rotate(self, row, col, direction=1) -> MoveResult:
        """Turn a tile a quarter: direction > 0 clockwise, otherwise counter-clockwise."""
        ok, reason = is_valid_rotation(self, row, col)
        if not ok:
            return MoveResult(False, reason, self.solved)

        self.history.append(self.snapshot())
        self.redo_history.clear()

        self.tiles[self.index_of(row, col)].rotate(clockwise=direction > 0)
        self.moves += 1
        self.refresh_flow()

        won, _ = self.check_win()
        if won:
            self.solved = True
            for listener in list(self._solved_listeners):
                listener(self)

        return MoveResult(True, None, self.solved)

    def toggle_lock(self, row, col) -> MoveResult:
        index = self.index_of(row, col)
        if index is None:
            return MoveResult(False, NO_TILE, self.solved)
        if self.solved:
            return MoveResult(False, SOLVED, True)

        if index in self.locked:
            self.locked.discard(index)
        else:
            self.locked.add(index)
        return MoveResult(True)

    def undo(self) -> MoveResult:
        return self._step_history(self.history, self.redo_history)

    def redo(self) -> MoveResult:
        return self._step_history(self.redo_history, self.history)

    def reset(self) -> MoveResult:
        """Back to the scrambled start: initial rotations, no locks, zero moves."""
        self.history.append(self.snapshot())
        self.redo_history.clear()

        for tile, entry in zip(self.tiles, self.puzzle.tiles):
            tile.rotation = entry.initial_rotation
        self.locked.clear()
        self.moves = 0
        self.solved = False
        self.refresh_flow()
        return MoveResult(True)

    def add_solved_listener(self, callback: Callable[["GameState"], None]):
        """``callback(state)`` runs once when a rotation solves the puzzle."""
        self._solved_listeners.append(callback)

    # ── Snapshots & persistence shapes ─────────────────────────

    def snapshot(self) -> Snapshot:
        return Snapshot(
            rotations=tuple(t.rotation for t in self.tiles),
            locked=frozenset(self.locked),
            moves=self.moves,
            solved=self.solved,
        )

    def export_progress(self) -> Dict[str, Any]:
        """{rotations: {"r,c": deg}, locked: ["r,c"], moves: n}"""
        return {
            "rotations": {coord_key(t.row, t.col): t.rotation for t in self.tiles},
            "locked": sorted(coord_key(*divmod(i, self.width)) for i in self.locked),
            "moves": self.moves,
        }

    def restore_progress(self, progress: Optional[Dict[str, Any]]) -> bool:
        """Apply a saved progress record. Unknown cells are ignored."""
        if not progress:
            return False

        for key, rotation in progress.get("rotations", {}).items():
            tile = self.tile_at(*parse_coord_key(key))
            if tile is None:
                continue
            if rotation % 90:
                raise ValueError(f"Saved rotation {rotation} at {key} is not a quarter turn")
            tile.rotation = normalize_rotation(rotation)

        self.locked = set()
        for key in progress.get("locked", []):
            index = self.index_of(*parse_coord_key(key))
            if index is not None:
                self.locked.add(index)

        self.moves = progress.get("moves", 0)
        self.history.clear()
        self.redo_history.clear()
        self.refresh_flow()
        self.solved, _ = self.check_win()
        return True

    # ── Internal ───────────────────────────────────────────────

    def refresh_flow(self):
        self.flow = compute_flow(self.tiles, self.width, self.height, self.source)

    def _apply_snapshot(self, snapshot: Snapshot):
        for tile, rotation in zip(self.tiles, snapshot.rotations):
            tile.rotation = rotation
        self.locked = set(snapshot.locked)
        self.moves = snapshot.moves
        self.solved = snapshot.solved
        self.refresh_flow()

    def _step_history(self, source_stack, target_stack) -> MoveResult:
        if self.solved:
            return MoveResult(False, SOLVED, True)
        if not source_stack:
            return MoveResult(False, NO_HISTORY, self.solved)

        target_stack.append(self.snapshot())
        self._apply_snapshot(source_stack.pop())
        return MoveResult(True, None, self.solved)
