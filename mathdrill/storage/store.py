from __future__ import annotations

"""Key-value history store.

The drill engine's only durable state is a handful of JSON values under
fixed keys. ``JsonHistoryStore`` keeps one ``<key>.json`` file per key;
``InMemoryHistoryStore`` is the drop-in fake for tests and throwaway runs.
Missing or corrupt data always loads as empty.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)

HISTORY_KEY = "history"
BEST_TIME_KEY = "best-time"
WRONG_BANK_KEY = "wrong-question-bank"
NEXT_ROUND_KEY = "next-round"


class HistoryStore(Protocol):
    def load(self, key: str) -> Any: ...

    def save(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


def load_records(store: HistoryStore, key: str) -> List[Any]:
    """Load a list value; anything else (missing, corrupt, wrong shape) is empty."""
    value = store.load(key)
    if value is None:
        return []
    if not isinstance(value, list):
        logger.warning("Expected a list under %r, got %s; treating as empty", key, type(value).__name__)
        return []
    return value


class InMemoryHistoryStore:
    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = copy.deepcopy(initial or {})

    def load(self, key: str) -> Any:
        return copy.deepcopy(self._data.get(key))

    def save(self, key: str, value: Any) -> None:
        # Round-trip through JSON so stored values match what a file would hold
        self._data[key] = json.loads(json.dumps(value))

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self._data)


class JsonHistoryStore:
    """One JSON document per key under ``data_dir``."""

    def __init__(self, data_dir: Path | str) -> None:
        self.data_dir = Path(data_dir)

    def _path(self, key: str) -> Path:
        safe = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in key)
        return self.data_dir / f"{safe}.json"

    def load(self, key: str) -> Any:
        p = self._path(key)
        if not p.exists():
            return None
        try:
            with p.open("r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Could not read %s (%s); treating as empty", p, exc)
            return None

    def save(self, key: str, value: Any) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        p = self._path(key)
        tmp = p.with_suffix(".json.tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(value, f, ensure_ascii=False, separators=(",", ":"))
        tmp.replace(p)

    def delete(self, key: str) -> None:
        p = self._path(key)
        if p.exists():
            p.unlink()


def make_store(cfg: Dict[str, Any]) -> HistoryStore:
    """Build the store described by the validated ``storage`` config section."""
    storage = cfg.get("storage", {})
    if storage.get("backend") == "memory":
        return InMemoryHistoryStore()
    return JsonHistoryStore(storage.get("data_dir", "./data"))
