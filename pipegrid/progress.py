"""
Progress bookkeeping shapes for a persistence layer: best times, completed
levels, and the keys levels are filed under. Nothing here touches storage.
"""

from typing import Dict, List, Optional

from pipegrid.constants import LEVEL_KEY_PREFIX, MAX_STORED_TIMES, difficulty_key


def format_ms(ms) -> str:
    """Milliseconds as mm:ss.cc"""
    ms = int(ms)
    total_seconds = ms // 1000
    minutes, seconds = divmod(total_seconds, 60)
    centis = (ms % 1000) // 10
    return f"{minutes:02d}:{seconds:02d}.{centis:02d}"


def build_level_key(difficulty, width, height, level) -> str:
    """Leaderboard key, e.g. glazerush.double_chocolate.25x25.07"""
    return f"{LEVEL_KEY_PREFIX}.{difficulty_key(difficulty)}.{width}x{height}.{level:02d}"


def build_storage_id(difficulty, width, height, level) -> str:
    return f"{difficulty}.{width}x{height}.{level}"


def record_time(times: List[int], ms: int, limit: int = MAX_STORED_TIMES) -> List[int]:
    """New sorted list with ``ms`` added, keeping the ``limit`` fastest."""
    return sorted([*times, ms])[:limit]


def best_time(times: List[int]) -> Optional[int]:
    return min(times) if times else None


def mark_completed(completed: Dict[str, bool], storage_id: str) -> Dict[str, bool]:
    return {**completed, storage_id: True}


def is_completed(completed: Dict[str, bool], storage_id: str) -> bool:
    return bool(completed.get(storage_id))


def completed_count(completed: Dict[str, bool], difficulty, size) -> int:
    prefix = f"{difficulty}.{size}x{size}."
    return sum(1 for key, done in completed.items() if done and key.startswith(prefix))
