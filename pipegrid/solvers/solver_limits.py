"""
Solver safety limits.
"""

from __future__ import annotations

import os
from typing import Any

DEFAULT_SAFE_LIMIT = 2_000_000
DEFAULT_TIMEOUT = 30.0

SAFE_LIMIT_ENV = "PIPEGRID_SAFE_LIMIT"
TIMEOUT_ENV = "PIPEGRID_SOLVER_TIMEOUT"


def _resolve(explicit: Any, settings: Any, attr_name: str, env_name: str, cast, default):
    raw = explicit
    if raw is None:
        raw = getattr(settings, attr_name, None)
    if raw is None:
        raw = os.getenv(env_name)
    if raw is None:
        return default

    try:
        value = cast(raw)
        if value > 0:
            return value
    except (TypeError, ValueError):
        pass
    return default


def resolve_safe_limit(explicit: Any = None, settings: Any = None,
                       attr_name: str = "uniqueness_max_states") -> int:
    """
    Resolve the max number of search states a solver may expand.

    Priority:
    1) explicit value
    2) settings.<attr_name>
    3) env PIPEGRID_SAFE_LIMIT
    4) DEFAULT_SAFE_LIMIT
    """
    return _resolve(explicit, settings, attr_name, SAFE_LIMIT_ENV, int, DEFAULT_SAFE_LIMIT)


def resolve_timeout(explicit: Any = None, settings: Any = None,
                    attr_name: str = "uniqueness_timeout") -> float:
    """Same priority chain as resolve_safe_limit, in wall-clock seconds."""
    return _resolve(explicit, settings, attr_name, TIMEOUT_ENV, float, DEFAULT_TIMEOUT)
