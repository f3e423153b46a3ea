from __future__ import annotations

"""Pydantic models for attempts, session summaries and persisted history records.

Records are stored as JSON with camelCase keys (``createdAt``, ``avgTime``,
``wrongDetails`` ...); Python code uses the snake_case field names.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from ..config.config import DrillConfig
from ..policy.classifier import ErrorType


def _ensure_utc(v: datetime) -> datetime:
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def empty_breakdown() -> Dict[ErrorType, int]:
    return {e: 0 for e in ErrorType}


class RecordModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Attempt(RecordModel):
    """One graded answer (or timeout) for one question. Never mutated."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    question_id: str
    answer: Optional[int] = None
    correct: bool
    time_ms: int = Field(ge=0)
    error_type: Optional[ErrorType] = None
    timestamp: datetime = Field(default_factory=utc_now)

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return _ensure_utc(v)


class SessionSummary(RecordModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    config: DrillConfig
    question_type: str = "custom"
    test_mode: bool = False
    total_questions: int = Field(ge=0)
    correct_answers: int = Field(ge=0)
    average_time_ms: float = Field(ge=0)
    longest_combo: int = Field(ge=0)
    error_breakdown: Dict[ErrorType, int] = Field(default_factory=empty_breakdown)
    completed_at: datetime = Field(default_factory=utc_now)

    @field_validator("completed_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return _ensure_utc(v)


class QuestionLog(RecordModel):
    """Per-question detail kept in history for review screens."""

    a: int
    b: int
    operation: str
    correct_answer: int
    user_answer: Optional[int] = None
    is_correct: bool
    duration_sec: float = Field(ge=0)
    display_text: str = ""
    is_fill_blank: bool = False
    blank_position: str = "result"
    error_type: Optional[ErrorType] = None


class HistoryRecord(RecordModel):
    id: str
    created_at: datetime
    question_count: int = Field(ge=0)
    correct: int = Field(ge=0)
    wrong: int = Field(ge=0)
    accuracy: int = Field(ge=0, le=100)
    avg_time: float = Field(ge=0)
    times: List[float] = Field(default_factory=list)
    type: str = "custom"
    time_limit: int = Field(default=10, ge=1)
    test_mode: bool = False
    longest_combo: int = Field(default=0, ge=0)
    error_breakdown: Dict[str, int] = Field(default_factory=dict)
    wrong_details: List[QuestionLog] = Field(default_factory=list)
    slow_correct_details: List[QuestionLog] = Field(default_factory=list)
    question_logs: List[QuestionLog] = Field(default_factory=list)

    @field_validator("created_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return _ensure_utc(v)

    @field_validator("correct")
    @classmethod
    def _correct_le_count(cls, v: int, info: ValidationInfo) -> int:
        count = info.data.get("question_count")
        if count is not None and v > count:
            raise ValueError("correct must be <= questionCount")
        return v


class WrongQuestion(RecordModel):
    """Entry of the wrong-question bank."""

    id: str
    a: int
    b: int
    operation: str
    correct_answer: int
    user_answer: Optional[int] = None
    time_taken: float = Field(default=0.0, ge=0)
    display_text: str = ""
    is_fill_blank: bool = False
    blank_position: str = "result"
    created_at: datetime = Field(default_factory=utc_now)
    question_type: str = "custom"
    is_test_mode: bool = False

    @field_validator("created_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return _ensure_utc(v)


class RecordBreak(RecordModel):
    """Comparison of a new session average against the prior best."""

    current: float
    best_before: Optional[float] = None
    broke_record: bool = False
    improve_seconds: float = 0.0
    improve_percent: float = 0.0
