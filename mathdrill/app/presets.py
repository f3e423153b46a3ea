from __future__ import annotations

"""Curated parameter presets per question type.

Presets give sensible run sizes and time limits without many overrides.
"""

ADD_SUBTRACT_PRESETS = {
    "beginner": {"range": 20, "question_count": 10, "time_limit": 15},
    "default": {"range": 20, "question_count": 20, "time_limit": 10},
    "advanced": {"range": 100, "question_count": 30, "time_limit": 6},
}

MIXED_PRESETS = {
    "beginner": {"range": 20, "question_count": 10, "time_limit": 15, "borrow_ratio": 0.5},
    "default": {"range": 20, "question_count": 20, "time_limit": 10, "borrow_ratio": 0.7},
    "advanced": {"range": 100, "question_count": 30, "time_limit": 6, "borrow_ratio": 0.7},
}

CHAIN_PRESETS = {
    "beginner": {"range": 20, "question_count": 8, "time_limit": 20},
    "default": {"range": 50, "question_count": 12, "time_limit": 15},
    "advanced": {"range": 100, "question_count": 20, "time_limit": 10},
}

# Times-table drills ignore range
TABLE_PRESETS = {
    "beginner": {"question_count": 10, "time_limit": 10},
    "default": {"question_count": 20, "time_limit": 6},
    "advanced": {"question_count": 40, "time_limit": 4},
}

TABLE_CHAIN_PRESETS = {
    "beginner": {"question_count": 8, "time_limit": 20},
    "default": {"question_count": 12, "time_limit": 12},
    "advanced": {"question_count": 20, "time_limit": 8},
}

FILL_PRESETS = {
    "beginner": {"range": 20, "question_count": 10, "time_limit": 20},
    "default": {"range": 20, "question_count": 15, "time_limit": 12},
    "advanced": {"range": 50, "question_count": 25, "time_limit": 8},
}
