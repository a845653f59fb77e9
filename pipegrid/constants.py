"""
Game Constants
==============
Difficulty table, generation tuning and bookkeeping limits.
"""

# Generation catalog: difficulty key -> square sizes and level count per size
DIFFICULTIES = {
    "glazed":           {"sizes": [5, 7],   "levels": 50},
    "frosted":          {"sizes": [7, 10],  "levels": 50},
    "sprinkled":        {"sizes": [15, 20], "levels": 50},
    "double_chocolate": {"sizes": [25],     "levels": 50},
}

DONUT_STYLES = [
    "glazed",
    "chocolate",
    "pink_sprinkle",
    "maple",
    "boston_cream",
    "powdered",
]

SCRAMBLE_RATIO = 0.6          # fraction of tiles that must start wrong
UNIQUENESS_CELL_LIMIT = 100   # larger grids skip uniqueness verification
MAX_ATTEMPTS = 50             # generation retries per catalog slot

CATALOG_VERSION = "1.0"
LEVEL_KEY_PREFIX = "glazerush"
MAX_STORED_TIMES = 50


def display_name(difficulty):
    """'double_chocolate' -> 'Double Chocolate'."""
    return " ".join(w[:1].upper() + w[1:] for w in difficulty.split("_"))


def difficulty_key(difficulty):
    """'Double Chocolate' -> 'double_chocolate'."""
    return difficulty.lower().replace(" ", "_")
