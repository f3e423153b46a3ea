from __future__ import annotations

"""History aggregation: personal bests, record breaks and review buckets.

Works on the list stored under the ``history`` key. Records are validated
one by one; malformed entries are skipped, so a damaged history degrades
to fewer records rather than an error.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd
from pydantic import ValidationError

from ..config.config import DEFAULT_SLOW_THRESHOLD_S
from ..results.schema import HistoryRecord, QuestionLog, RecordBreak, utc_now
from ..storage.store import HISTORY_KEY, HistoryStore, load_records

logger = logging.getLogger(__name__)

DTYPES = {
    "id": "string",
    "created_at": pd.DatetimeTZDtype(tz="UTC"),
    "type": "string",
    "avg_time": "float64",
    "accuracy": "Int64",
    "correct": "Int64",
    "wrong": "Int64",
    "question_count": "Int64",
    "longest_combo": "Int64",
    "test_mode": "boolean",
}


def parse_records(raw: Iterable[Any]) -> List[HistoryRecord]:
    records: List[HistoryRecord] = []
    for item in raw:
        try:
            records.append(HistoryRecord.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping malformed history record: %s", exc.errors()[:1])
    return records


def _empty_frame() -> pd.DataFrame:
    return pd.DataFrame({k: pd.Series(dtype=v) for k, v in DTYPES.items()})


def history_frame(records: Sequence[HistoryRecord]) -> pd.DataFrame:
    """One row per session with the columns in ``DTYPES``."""
    if not records:
        return _empty_frame()
    df = pd.DataFrame([{k: getattr(r, k) for k in DTYPES} for r in records])
    df["created_at"] = pd.to_datetime(df["created_at"], utc=True)
    for col, dt in DTYPES.items():
        if col != "created_at":
            df[col] = df[col].astype(dt)
    return df[list(DTYPES.keys())]


def compare_to_best(current: float, best_before: Optional[float]) -> RecordBreak:
    """A record is broken only by a strictly lower average than an existing best."""
    if best_before is None or not current < best_before:
        return RecordBreak(current=current, best_before=best_before)
    improve = best_before - current
    percent = improve / best_before * 100 if best_before > 0 else 0.0
    return RecordBreak(
        current=current,
        best_before=best_before,
        broke_record=True,
        improve_seconds=improve,
        improve_percent=percent,
    )


@dataclass(frozen=True)
class ReviewItem:
    """A wrong or slow-but-correct answer pulled from history."""

    kind: str  # "wrong" | "slow"
    log: QuestionLog
    record_id: str
    created_at: datetime

    @property
    def duration_sec(self) -> float:
        return self.log.duration_sec

    def as_triple(self) -> Dict[str, Any]:
        return {"a": self.log.a, "b": self.log.b, "operation": self.log.operation}


class HistoryAggregator:
    def __init__(self, store: HistoryStore, slow_threshold_s: float = DEFAULT_SLOW_THRESHOLD_S) -> None:
        self.store = store
        self.slow_threshold_s = slow_threshold_s

    def records(self, include_test_mode: bool = True) -> List[HistoryRecord]:
        records = parse_records(load_records(self.store, HISTORY_KEY))
        if include_test_mode:
            return records
        return [r for r in records if not r.test_mode]

    def frame(self, include_test_mode: bool = False) -> pd.DataFrame:
        return history_frame(self.records(include_test_mode))

    def ranked(self, question_type: Optional[str] = None, include_test_mode: bool = False) -> List[HistoryRecord]:
        """Records ordered fastest first; equal averages list the most recent first."""
        # Sessions with no attempts have no meaningful average
        records = [r for r in self.records(include_test_mode) if r.question_count > 0]
        if question_type is not None:
            records = [r for r in records if r.type == question_type]
        df = history_frame(records)
        if df.empty:
            return []
        ordered = df.sort_values(["avg_time", "created_at"], ascending=[True, False], kind="stable")
        by_id = {r.id: r for r in records}
        return [by_id[i] for i in ordered["id"].tolist()]

    def personal_bests(self, include_test_mode: bool = False) -> List[HistoryRecord]:
        """Best record per question type, fastest type first."""
        ranked = self.ranked(include_test_mode=include_test_mode)
        seen: set[str] = set()
        bests: List[HistoryRecord] = []
        for r in ranked:
            if r.type not in seen:
                seen.add(r.type)
                bests.append(r)
        return bests

    def personal_best(self, question_type: str) -> Optional[HistoryRecord]:
        ranked = self.ranked(question_type)
        return ranked[0] if ranked else None

    def best_time(
        self,
        question_type: Optional[str] = None,
        *,
        exclude_id: Optional[str] = None,
        include_test_mode: bool = False,
    ) -> Optional[float]:
        df = self.frame(include_test_mode)
        df = df[df["question_count"] > 0]
        if question_type is not None:
            df = df[df["type"] == question_type]
        if exclude_id is not None:
            df = df[df["id"] != exclude_id]
        if df.empty:
            return None
        return float(df["avg_time"].min())

    def check_record_break(
        self,
        current_avg: float,
        question_type: Optional[str] = None,
        exclude_id: Optional[str] = None,
    ) -> RecordBreak:
        best = self.best_time(question_type, exclude_id=exclude_id)
        return compare_to_best(current_avg, best)

    def wrong_and_slow(
        self,
        days: Optional[int] = None,
        operation: Optional[str] = None,
        now: Optional[datetime] = None,
        include_test_mode: bool = False,
    ) -> List[ReviewItem]:
        """Wrong and slow-but-correct answers, slowest first.

        Args:
            days: Only sessions from the last ``days`` days; None for all.
            operation: Operator filter (``"+"``, ``"-"`` ...); None or "all" for every operator.
        """
        records = self.records(include_test_mode)
        if days is not None:
            cutoff = pd.Timestamp((now or utc_now()) - timedelta(days=days))
            df = history_frame(records)
            keep = set(df.loc[df["created_at"] >= cutoff, "id"].tolist())
            records = [r for r in records if r.id in keep]

        def _wanted(log: QuestionLog) -> bool:
            return operation in (None, "all") or log.operation == operation

        items: List[ReviewItem] = []
        for r in records:
            for log in r.wrong_details:
                if _wanted(log):
                    items.append(ReviewItem("wrong", log, r.id, r.created_at))
            for log in r.slow_correct_details:
                if _wanted(log) and log.duration_sec >= self.slow_threshold_s:
                    items.append(ReviewItem("slow", log, r.id, r.created_at))
        items.sort(key=lambda it: it.duration_sec, reverse=True)
        return items

    @staticmethod
    def replay_triples(items: Iterable[ReviewItem]) -> List[Dict[str, Any]]:
        return [it.as_triple() for it in items]
