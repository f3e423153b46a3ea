from __future__ import annotations

"""Result Manager.

Turns a finished session into a persisted history record and maintains
the derived keys that live beside it: the ``best-time`` cache, the
wrong-question bank and the one-shot next-round set. All state goes
through an injected ``HistoryStore``.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence
from uuid import uuid4

from ..config.config import DEFAULT_SLOW_THRESHOLD_S
from ..drills.question import OPERATIONS, Question
from ..stats.history import HistoryAggregator, parse_records
from ..storage.store import (
    BEST_TIME_KEY,
    HISTORY_KEY,
    NEXT_ROUND_KEY,
    WRONG_BANK_KEY,
    HistoryStore,
    load_records,
)
from .schema import Attempt, HistoryRecord, QuestionLog, RecordBreak, SessionSummary, WrongQuestion, utc_now

logger = logging.getLogger(__name__)

BANK_SORTS = ("newest", "oldest", "time", "operation")


def accuracy_percent(correct: int, total: int) -> int:
    """Integer percentage rounded half up; 0 for an empty session."""
    if total <= 0:
        return 0
    return (200 * correct + total) // (2 * total)


class ResultManager:
    def __init__(self, store: HistoryStore, slow_threshold_s: float = DEFAULT_SLOW_THRESHOLD_S) -> None:
        self.store = store
        self.slow_threshold_s = slow_threshold_s

    # ---- history ----
    def build_record(
        self,
        summary: SessionSummary,
        questions: Sequence[Question],
        attempts: Sequence[Attempt],
        created_at: Optional[datetime] = None,
    ) -> HistoryRecord:
        by_id = {q.id: q for q in questions}
        logs: List[QuestionLog] = []
        for att in attempts:
            q = by_id.get(att.question_id)
            if q is None:
                logger.warning("Attempt for unknown question %s skipped", att.question_id)
                continue
            logs.append(
                QuestionLog(
                    a=q.a,
                    b=q.b,
                    operation=q.operation,
                    correct_answer=q.correct_answer,
                    user_answer=att.answer,
                    is_correct=att.correct,
                    duration_sec=att.time_ms / 1000.0,
                    display_text=q.display_text,
                    is_fill_blank=q.is_fill_blank,
                    blank_position=q.blank_position,
                    error_type=att.error_type,
                )
            )

        correct = sum(1 for log in logs if log.is_correct)
        wrong = [log for log in logs if not log.is_correct]
        slow = [log for log in logs if log.is_correct and log.duration_sec >= self.slow_threshold_s]
        wrong.sort(key=lambda log: log.duration_sec, reverse=True)
        slow.sort(key=lambda log: log.duration_sec, reverse=True)

        return HistoryRecord(
            id=summary.id,
            created_at=created_at or summary.completed_at,
            question_count=len(logs),
            correct=correct,
            wrong=len(logs) - correct,
            accuracy=accuracy_percent(correct, len(logs)),
            avg_time=summary.average_time_ms / 1000.0,
            times=[log.duration_sec for log in logs],
            type=summary.question_type,
            time_limit=summary.config.time_limit,
            test_mode=summary.test_mode,
            longest_combo=summary.longest_combo,
            error_breakdown={e.value: n for e, n in summary.error_breakdown.items()},
            wrong_details=wrong,
            slow_correct_details=slow,
            question_logs=logs,
        )

    def records(self) -> List[HistoryRecord]:
        return parse_records(load_records(self.store, HISTORY_KEY))

    def commit(self, record: HistoryRecord) -> RecordBreak:
        """Prepend ``record`` to history and return how it compares to the prior best."""
        aggregator = HistoryAggregator(self.store, self.slow_threshold_s)
        if record.question_count > 0:
            result = aggregator.check_record_break(record.avg_time, record.type, exclude_id=record.id)
        else:
            result = RecordBreak(current=record.avg_time, best_before=aggregator.best_time(record.type))

        raw = load_records(self.store, HISTORY_KEY)
        raw.insert(0, record.to_record())
        self.store.save(HISTORY_KEY, raw)
        self.refresh_best_time()

        wrong = [log for log in record.question_logs if not log.is_correct]
        if wrong:
            self.add_wrong_questions(wrong, record.type, record.test_mode, record.created_at)

        logger.info(
            "Committed session %s (%s): %d/%d correct, avg %.2fs",
            record.id,
            record.type,
            record.correct,
            record.question_count,
            record.avg_time,
        )
        return result

    def refresh_best_time(self) -> Optional[float]:
        best = HistoryAggregator(self.store, self.slow_threshold_s).best_time()
        if best is None:
            self.store.delete(BEST_TIME_KEY)
        else:
            self.store.save(BEST_TIME_KEY, best)
        return best

    def cached_best_time(self) -> Optional[float]:
        value = self.store.load(BEST_TIME_KEY)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        return None

    def delete_record(self, record_id: str) -> bool:
        raw = load_records(self.store, HISTORY_KEY)
        kept = [r for r in raw if not (isinstance(r, Mapping) and r.get("id") == record_id)]
        if len(kept) == len(raw):
            return False
        self.store.save(HISTORY_KEY, kept)
        self.refresh_best_time()
        return True

    def clear_history(self) -> None:
        self.store.delete(HISTORY_KEY)
        self.store.delete(BEST_TIME_KEY)

    # ---- wrong-question bank ----
    def add_wrong_questions(
        self,
        logs: Iterable[QuestionLog],
        question_type: str,
        test_mode: bool,
        created_at: Optional[datetime] = None,
    ) -> int:
        created_at = created_at or utc_now()
        entries = [
            WrongQuestion(
                id=f"wq_{uuid4().hex}",
                a=log.a,
                b=log.b,
                operation=log.operation,
                correct_answer=log.correct_answer,
                user_answer=log.user_answer,
                time_taken=log.duration_sec,
                display_text=log.display_text,
                is_fill_blank=log.is_fill_blank,
                blank_position=log.blank_position,
                created_at=created_at,
                question_type=question_type,
                is_test_mode=test_mode,
            ).to_record()
            for log in logs
        ]
        if entries:
            raw = load_records(self.store, WRONG_BANK_KEY)
            self.store.save(WRONG_BANK_KEY, raw + entries)
        return len(entries)

    def _bank(self) -> List[WrongQuestion]:
        bank: List[WrongQuestion] = []
        for item in load_records(self.store, WRONG_BANK_KEY):
            try:
                bank.append(WrongQuestion.model_validate(item))
            except ValueError as exc:
                logger.warning("Skipping malformed wrong-bank entry: %s", exc)
        return bank

    def wrong_questions(
        self,
        *,
        include_test_mode: bool = False,
        question_type: Optional[str] = None,
        operation: Optional[str] = None,
        sort: str = "newest",
    ) -> List[WrongQuestion]:
        """Query the wrong-question bank.

        Args:
            include_test_mode: Keep entries made in test mode.
            question_type: Only entries from sessions of this type.
            operation: Only entries with this operator; None or "all" for every operator.
            sort: One of ``BANK_SORTS``. "time" is slowest first.
        """
        if sort not in BANK_SORTS:
            raise ValueError(f"Unknown sort: {sort}")
        items = self._bank()
        if not include_test_mode:
            items = [w for w in items if not w.is_test_mode]
        if question_type is not None:
            items = [w for w in items if w.question_type == question_type]
        if operation not in (None, "all"):
            items = [w for w in items if w.operation == operation]

        if sort == "newest":
            items.sort(key=lambda w: w.created_at, reverse=True)
        elif sort == "oldest":
            items.sort(key=lambda w: w.created_at)
        elif sort == "time":
            items.sort(key=lambda w: w.time_taken, reverse=True)
        else:
            order = {op: i for i, op in enumerate(OPERATIONS)}
            items.sort(key=lambda w: w.created_at, reverse=True)
            items.sort(key=lambda w: order.get(w.operation, len(order)))
        return items

    def delete_wrong_questions(self, ids: Iterable[str]) -> int:
        doomed = set(ids)
        raw = load_records(self.store, WRONG_BANK_KEY)
        kept = [w for w in raw if not (isinstance(w, Mapping) and w.get("id") in doomed)]
        removed = len(raw) - len(kept)
        if removed:
            self.store.save(WRONG_BANK_KEY, kept)
        return removed

    # ---- next round ----
    def stage_next_round(self, triples: Iterable[Mapping[str, Any]]) -> int:
        items = [{"a": t["a"], "b": t["b"], "operation": t["operation"]} for t in triples]
        self.store.save(NEXT_ROUND_KEY, items)
        return len(items)

    def stage_next_round_from_bank(self, limit: Optional[int] = None, **filters: Any) -> int:
        """Stage bank entries (test-mode entries excluded unless asked) as the next round."""
        items = self.wrong_questions(**filters)
        if limit is not None:
            items = items[:limit]
        return self.stage_next_round({"a": w.a, "b": w.b, "operation": w.operation} for w in items)

    def take_next_round(self) -> List[Dict[str, Any]]:
        """Return the staged set and remove it, so it feeds exactly one session."""
        items = load_records(self.store, NEXT_ROUND_KEY)
        self.store.delete(NEXT_ROUND_KEY)
        return items
