"""
Errors raised at the load and generation boundaries.

Play-time problems (locked tile, solved board, ...) are not errors; they come
back as ``MoveResult`` values from ``GameState``.
"""

from __future__ import annotations

from typing import Optional, Tuple


class PuzzleFormatError(ValueError):
    """A persisted puzzle is missing data or is internally inconsistent."""

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        position: Optional[Tuple[int, int]] = None,
    ) -> None:
        super().__init__(message)
        self.field = field
        self.position = position


class GenerationExhaustedError(RuntimeError):
    """No acceptable puzzle was produced within the attempt limit."""

    def __init__(
        self,
        *,
        difficulty: str,
        width: int,
        height: int,
        level: int,
        attempts: int,
    ) -> None:
        super().__init__(
            f"Could not generate {difficulty} {width}x{height} level {level} "
            f"after {attempts} attempts"
        )
        self.difficulty = difficulty
        self.width = width
        self.height = height
        self.level = level
        self.attempts = attempts
