from .store import (
    BEST_TIME_KEY,
    HISTORY_KEY,
    NEXT_ROUND_KEY,
    WRONG_BANK_KEY,
    HistoryStore,
    InMemoryHistoryStore,
    JsonHistoryStore,
    load_records,
    make_store,
)

__all__ = [
    "BEST_TIME_KEY",
    "HISTORY_KEY",
    "NEXT_ROUND_KEY",
    "WRONG_BANK_KEY",
    "HistoryStore",
    "InMemoryHistoryStore",
    "JsonHistoryStore",
    "load_records",
    "make_store",
]
