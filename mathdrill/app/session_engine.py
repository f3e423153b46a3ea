from __future__ import annotations

"""Session engine: one timed run over an ordered question list.

The engine is a small state machine (idle → running → completed or
abandoned). Every submission, right or wrong, advances to the next
question. Timing goes through an injected ``Clock`` and ``PausableTimer``
values so pauses can be replayed exactly in tests.
"""

import logging
import re
from enum import Enum
from typing import List, Optional, Sequence
from uuid import uuid4

from ..config.config import DEFAULT_SLOW_THRESHOLD_S, DrillConfig
from ..drills.question import Question
from ..policy.classifier import ErrorClassifier, ErrorType
from ..results.result_manager import ResultManager
from ..results.schema import Attempt, HistoryRecord, RecordBreak, SessionSummary, empty_breakdown
from ..storage.store import HistoryStore
from ..util.clock import Clock, MonotonicClock, PausableTimer
from .explain import trace as xtrace

logger = logging.getLogger(__name__)

_ANSWER_RE = re.compile(r"^-?\d+$")


class SessionState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class SessionStateError(RuntimeError):
    """Raised when an operation does not fit the current session state."""


def parse_answer(text: Optional[str]) -> Optional[int]:
    """Parse keypad input; None for empty or non-numeric text."""
    if text is None:
        return None
    text = text.strip()
    if not _ANSWER_RE.match(text):
        return None
    return int(text)


def longest_combo(attempts: Sequence[Attempt]) -> int:
    best = run = 0
    for att in attempts:
        run = run + 1 if att.correct else 0
        best = max(best, run)
    return best


class SessionEngine:
    def __init__(
        self,
        classifier: Optional[ErrorClassifier] = None,
        clock: Optional[Clock] = None,
        store: Optional[HistoryStore] = None,
        slow_threshold_s: float = DEFAULT_SLOW_THRESHOLD_S,
    ) -> None:
        self.classifier = classifier or ErrorClassifier()
        self.clock = clock or MonotonicClock()
        self.results = ResultManager(store, slow_threshold_s) if store is not None else None
        self._reset()

    def _reset(self) -> None:
        self.state = SessionState.IDLE
        self.config: Optional[DrillConfig] = None
        self.questions: List[Question] = []
        self.current_index = 0
        self.attempts: List[Attempt] = []
        self.question_type = "custom"
        self.test_mode = False
        self.session_id: Optional[str] = None
        self._question_timer: Optional[PausableTimer] = None
        self._run_timer: Optional[PausableTimer] = None
        self._global_expired = False
        self._summary: Optional[SessionSummary] = None
        self.record: Optional[HistoryRecord] = None
        self.record_break: Optional[RecordBreak] = None

    # ---- lifecycle ----
    def start_session(
        self,
        config: DrillConfig,
        questions: Sequence[Question],
        question_type: str = "custom",
        test_mode: bool = False,
    ) -> None:
        if self.state is SessionState.RUNNING:
            raise SessionStateError("A session is already running")
        self._reset()
        now = self.clock.time()
        self.config = config
        self.questions = list(questions)
        self.question_type = question_type
        self.test_mode = test_mode
        self.session_id = f"session_{uuid4().hex}"
        self._question_timer = PausableTimer.started(now)
        self._run_timer = PausableTimer.started(now)
        self.state = SessionState.RUNNING
        xtrace(
            "session_started",
            {
                "id": self.session_id,
                "type": question_type,
                "questions": len(self.questions),
                "timer": config.timer_mode,
                "test_mode": test_mode,
            },
        )

    def abandon(self) -> None:
        """Drop the run without committing anything to history."""
        if self.state is not SessionState.RUNNING:
            raise SessionStateError(f"Cannot abandon a session in state {self.state.value}")
        self.state = SessionState.ABANDONED
        logger.info("Session %s abandoned after %d attempts", self.session_id, len(self.attempts))

    def _require_running(self) -> None:
        if self.state is not SessionState.RUNNING:
            raise SessionStateError(f"No running session (state is {self.state.value})")

    # ---- progress ----
    @property
    def current_question(self) -> Optional[Question]:
        if self.state is not SessionState.RUNNING or self.is_complete:
            return None
        return self.questions[self.current_index]

    @property
    def is_complete(self) -> bool:
        return self._global_expired or self.current_index >= len(self.questions)

    # ---- timing ----
    @property
    def is_paused(self) -> bool:
        return self._run_timer is not None and self._run_timer.is_paused

    def pause(self) -> None:
        self._require_running()
        now = self.clock.time()
        self._question_timer = self._question_timer.paused(now)
        self._run_timer = self._run_timer.paused(now)

    def resume(self) -> None:
        self._require_running()
        now = self.clock.time()
        self._question_timer = self._question_timer.resumed(now)
        self._run_timer = self._run_timer.resumed(now)

    def keystroke(self) -> None:
        """Any keypad input resumes a paused session."""
        if self.state is SessionState.RUNNING and self.is_paused:
            self.resume()

    def question_elapsed_ms(self) -> int:
        self._require_running()
        return self._question_timer.elapsed_ms(self.clock.time())

    def remaining_seconds(self) -> float:
        """Seconds left on the active countdown (per question or whole run)."""
        self._require_running()
        now = self.clock.time()
        if self.config.timer_mode == "per_question":
            return max(0.0, self.config.time_limit - self._question_timer.elapsed(now))
        return max(0.0, self.config.total_time_limit - self._run_timer.elapsed(now))

    # ---- answers ----
    def submit_answer(self, answer: Optional[int], elapsed_ms: Optional[int] = None) -> Attempt:
        self._require_running()
        question = self.current_question
        if question is None:
            raise SessionStateError("No question left to answer")
        self.keystroke()
        # A countdown that ran out before this submission wins over the answer
        late = self._expire_if_due()
        if late is not None:
            return late
        if elapsed_ms is None:
            elapsed_ms = self.question_elapsed_ms()
        return self._record(question, answer, elapsed_ms)

    def submit_text(self, text: Optional[str]) -> Optional[Attempt]:
        """Submit raw keypad text; invalid input records nothing and returns None."""
        answer = parse_answer(text)
        if answer is None:
            logger.debug("Rejected answer input %r", text)
            return None
        return self.submit_answer(answer)

    def _record(self, question: Question, answer: Optional[int], time_ms: int, timed_out: bool = False) -> Attempt:
        correct = not timed_out and answer is not None and answer == question.correct_answer
        error: Optional[ErrorType] = None
        if timed_out:
            error = ErrorType.TIMEOUT
        elif not correct:
            error = self.classifier.classify(question, answer, time_ms, self.config.time_limit) or ErrorType.CARELESS
        attempt = Attempt(
            question_id=question.id,
            answer=answer,
            correct=correct,
            time_ms=max(0, int(time_ms)),
            error_type=error,
        )
        self.attempts.append(attempt)
        self.current_index += 1
        self._question_timer = PausableTimer.started(self.clock.time())
        xtrace(
            "graded",
            {
                "index": self.current_index - 1,
                "q": question.display_text,
                "answer": answer,
                "correct": correct,
                "ms": attempt.time_ms,
                "error": error.value if error else None,
            },
        )
        return attempt

    def tick(self) -> Optional[Attempt]:
        """Advance countdowns; returns the synthesized timeout attempt, if any."""
        if self.state is not SessionState.RUNNING or self.is_complete or self.is_paused:
            return None
        return self._expire_if_due()

    def _expire_if_due(self) -> Optional[Attempt]:
        now = self.clock.time()
        question = self.questions[self.current_index]
        if self.config.timer_mode == "per_question":
            if self._question_timer.elapsed(now) < self.config.time_limit:
                return None
            attempt = self._record(question, None, self.config.time_limit * 1000, timed_out=True)
        else:
            if self._run_timer.elapsed(now) < self.config.total_time_limit:
                return None
            attempt = self._record(question, None, self._question_timer.elapsed_ms(now), timed_out=True)
            self._global_expired = True
        xtrace("timeout", {"index": self.current_index - 1, "mode": self.config.timer_mode})
        return attempt

    # ---- completion ----
    def finish_session(self) -> SessionSummary:
        """Build the summary once; later calls return the same value."""
        if self._summary is not None:
            return self._summary
        self._require_running()
        if not self.is_complete:
            raise SessionStateError(
                f"{len(self.questions) - self.current_index} questions remain and the timer has not expired"
            )

        breakdown = empty_breakdown()
        for att in self.attempts:
            if not att.correct and att.error_type is not None:
                breakdown[att.error_type] += 1
        total_ms = sum(att.time_ms for att in self.attempts)
        average = total_ms / len(self.attempts) if self.attempts else 0.0

        summary = SessionSummary(
            id=self.session_id,
            config=self.config,
            question_type=self.question_type,
            test_mode=self.test_mode,
            total_questions=len(self.questions),
            correct_answers=sum(1 for att in self.attempts if att.correct),
            average_time_ms=average,
            longest_combo=longest_combo(self.attempts),
            error_breakdown=breakdown,
        )
        self._summary = summary
        self.state = SessionState.COMPLETED

        if self.results is not None:
            self.record = self.results.build_record(summary, self.questions, self.attempts)
            self.record_break = self.results.commit(self.record)

        xtrace(
            "session_finished",
            {
                "id": summary.id,
                "correct": summary.correct_answers,
                "total": summary.total_questions,
                "avg_ms": round(summary.average_time_ms),
                "combo": summary.longest_combo,
                "broke_record": self.record_break.broke_record if self.record_break else None,
            },
        )
        return summary
