from __future__ import annotations

"""Configuration loading and validation for MathDrill.

This module loads YAML configuration, applies defaults, and repairs values
that would make a drill unrunnable (logging a warning for each repair).
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from ..drills.generator import QUESTION_TYPES

logger = logging.getLogger(__name__)

ALLOWED_QUESTION_TYPES = set(QUESTION_TYPES)
ALLOWED_TIMER_MODES = {"global", "per_question"}
ALLOWED_BACKENDS = {"json", "memory"}

DEFAULT_SLOW_THRESHOLD_S = 4.0


class ConfigError(Exception):
    """Raised when a configuration file cannot be read."""


class DrillConfig(BaseModel):
    """Parameters of one drill run."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    range: int = Field(20, ge=1)
    question_count: int = Field(10, ge=1, alias="questionCount")
    time_limit: int = Field(10, ge=1, alias="timeLimit")
    borrow_ratio: float = Field(0.7, ge=0.0, le=1.0, alias="borrowRatio")
    timer_mode: Literal["global", "per_question"] = Field("global", alias="timerMode")

    @property
    def total_time_limit(self) -> int:
        """Whole-run countdown in seconds for the global timer mode."""
        return self.time_limit * self.question_count


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file is not valid YAML: {path}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {path}")
    return data


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML or the packaged defaults.

    Args:
        path: Optional path to a YAML config. If None, use package defaults.

    Returns:
        A dictionary with configuration values.
    """
    if path:
        return _load_yaml(Path(path))
    return _load_yaml(Path(__file__).with_name("defaults.yml"))


def _int_at_least(section: Dict[str, Any], key: str, minimum: int, default: int) -> None:
    value = section.get(key, default)
    try:
        value = int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid %s %r, using %s", key, value, default)
        value = default
    if value < minimum:
        logger.warning("%s=%s is below %s, using %s", key, value, minimum, minimum)
        value = minimum
    section[key] = value


def validate_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Apply defaults and repair configuration values.

    Args:
        cfg: The raw configuration dictionary.

    Returns:
        A new validated and merged configuration dictionary.
    """
    cfg = copy.deepcopy(cfg or {})
    for section in ("drill", "review", "storage", "session", "logging"):
        if not isinstance(cfg.get(section), dict):
            cfg[section] = {}

    drill = cfg["drill"]
    review = cfg["review"]
    storage = cfg["storage"]
    session = cfg["session"]

    drill.setdefault("question_type", "borrow")
    drill.setdefault("preset", "default")
    review.setdefault("slow_threshold_s", DEFAULT_SLOW_THRESHOLD_S)
    storage.setdefault("backend", "json")
    storage.setdefault("data_dir", "./data")
    session.setdefault("test_mode", False)
    cfg["logging"].setdefault("level", "INFO")
    cfg["logging"]["explain"] = bool(cfg["logging"].get("explain", False))

    qtype = drill.get("question_type")
    if qtype not in ALLOWED_QUESTION_TYPES:
        logger.warning("Unsupported question_type %r, using 'borrow'", qtype)
        drill["question_type"] = "borrow"

    _int_at_least(drill, "range", 1, 20)
    _int_at_least(drill, "question_count", 1, 10)
    _int_at_least(drill, "time_limit", 1, 10)

    try:
        ratio = float(drill.get("borrow_ratio", 0.7))
    except (TypeError, ValueError):
        logger.warning("Invalid borrow_ratio %r, using 0.7", drill.get("borrow_ratio"))
        ratio = 0.7
    if not 0.0 <= ratio <= 1.0:
        logger.warning("borrow_ratio %s outside [0, 1], clamping", ratio)
        ratio = min(1.0, max(0.0, ratio))
    drill["borrow_ratio"] = ratio

    mode = drill.get("timer_mode", "global")
    if mode not in ALLOWED_TIMER_MODES:
        logger.warning("Unsupported timer_mode %r, using 'global'", mode)
        mode = "global"
    drill["timer_mode"] = mode

    try:
        threshold = float(review["slow_threshold_s"])
    except (TypeError, ValueError):
        threshold = DEFAULT_SLOW_THRESHOLD_S
    if threshold <= 0:
        logger.warning("slow_threshold_s must be positive, using %s", DEFAULT_SLOW_THRESHOLD_S)
        threshold = DEFAULT_SLOW_THRESHOLD_S
    review["slow_threshold_s"] = threshold

    if storage.get("backend") not in ALLOWED_BACKENDS:
        logger.warning("Unsupported storage backend %r, using 'json'", storage.get("backend"))
        storage["backend"] = "json"

    session["test_mode"] = bool(session.get("test_mode", False))
    return cfg


def drill_config_from(cfg: Dict[str, Any], overrides: Optional[Dict[str, Any]] = None) -> DrillConfig:
    """Build a DrillConfig from the validated ``drill`` section plus overrides."""
    drill = dict(cfg.get("drill", {}))
    drill.update(overrides or {})
    fields = {k: drill[k] for k in DrillConfig.model_fields if k in drill}
    return DrillConfig(**fields)
