from __future__ import annotations

"""Minimal tracing helpers (Explain Mode).

When enabled, session milestones are logged as one terse JSON line each on
the ``mathdrill.explain`` logger.
"""

import json
import logging
from typing import Any, Dict

logger = logging.getLogger("mathdrill.explain")

_ENABLED = False


def enable(flag: bool = True) -> None:
    global _ENABLED
    _ENABLED = bool(flag)


def enabled() -> bool:
    return _ENABLED


def trace(event: str, payload: Dict[str, Any] | None = None) -> None:
    if not _ENABLED:
        return
    try:
        data = json.dumps(payload or {}, separators=(",", ":"), default=str)
    except (TypeError, ValueError):
        data = "{}"
    logger.info("[EXPLAIN] %s :: %s", event, data)
