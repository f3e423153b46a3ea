from __future__ import annotations

"""Session Manager: resolves run parameters, builds the question set and
drives the session engine.

Front-end agnostic: ``run`` takes a callback that returns the keypad text
for each question.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from ..config.config import ALLOWED_QUESTION_TYPES, DrillConfig, drill_config_from, load_config, validate_config
from ..drills.generator import DEFAULT_QUESTION_TYPE, QuestionGenerator, question_counts
from ..drills.question import Question
from ..policy.classifier import ErrorClassifier
from ..results.result_manager import ResultManager
from ..results.schema import SessionSummary, utc_now
from ..storage.store import HistoryStore, make_store
from ..util.clock import Clock
from ..util.logging_config import configure_logging
from ..util.randomness import make_rng, seed_if_needed
from . import explain
from .drill_registry import get_type, resolve_params
from .explain import trace as xtrace
from .session_engine import SessionEngine, SessionState, SessionStateError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionContext:
    started_at: datetime
    question_type: str
    preset: str
    params: Dict[str, Any]
    config: DrillConfig
    source: str  # "generated" | "replay"
    test_mode: bool


class SessionManager:
    def __init__(
        self,
        cfg: Dict[str, Any],
        store: Optional[HistoryStore] = None,
        generator: Optional[QuestionGenerator] = None,
        clock: Optional[Clock] = None,
        classifier: Optional[ErrorClassifier] = None,
    ) -> None:
        self.cfg = validate_config(cfg)
        self.store = store if store is not None else make_store(self.cfg)
        self.generator = generator or QuestionGenerator(make_rng(seed_if_needed()))
        slow = self.cfg["review"]["slow_threshold_s"]
        self.results = ResultManager(self.store, slow)
        self.engine = SessionEngine(classifier, clock, self.store, slow)
        self.ctx: Optional[SessionContext] = None

    @classmethod
    def from_config_file(cls, path: Optional[str] = None, **kwargs: Any) -> "SessionManager":
        """Load YAML config (packaged defaults when ``path`` is None), set up logging and build a manager."""
        cfg = validate_config(load_config(path))
        configure_logging(cfg["logging"]["level"])
        explain.enable(cfg["logging"]["explain"])
        return cls(cfg, **kwargs)

    def start_session(
        self,
        question_type: Optional[str] = None,
        preset: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
        test_mode: Optional[bool] = None,
    ) -> SessionContext:
        # Refuse before the staged round is consumed
        if self.engine.state is SessionState.RUNNING:
            raise SessionStateError("A session is already running")
        drill = self.cfg["drill"]
        qtype = question_type or drill["question_type"]
        if qtype not in ALLOWED_QUESTION_TYPES:
            logger.warning("Unknown question type %r, using %r", qtype, DEFAULT_QUESTION_TYPE)
            qtype = DEFAULT_QUESTION_TYPE
        preset = preset or drill["preset"]
        if preset not in get_type(qtype).presets:
            logger.warning("Unknown preset %r for %s, using 'default'", preset, qtype)
            preset = "default"
        if test_mode is None:
            test_mode = self.cfg["session"]["test_mode"]

        # Resolve params: defaults.yml (drill) → preset → overrides
        params = resolve_params(qtype, preset, drill, overrides)
        config = drill_config_from({"drill": params})

        questions: List[Question] = []
        source = "generated"
        staged = self.results.take_next_round()
        if staged:
            questions = QuestionGenerator.from_triples(staged)
            if questions:
                source = "replay"
                config = config.model_copy(update={"question_count": len(questions)})
            else:
                logger.warning("Staged next round had no usable questions; generating instead")
        if not questions:
            questions = self.generator.generate_mixed_questions(config, qtype)

        self.engine.start_session(config, questions, qtype, test_mode)
        self.ctx = SessionContext(
            started_at=utc_now(),
            question_type=qtype,
            preset=preset,
            params=params,
            config=config,
            source=source,
            test_mode=bool(test_mode),
        )
        xtrace("session_prepared", {"type": qtype, "preset": preset, "source": source, "ops": question_counts(questions)})
        return self.ctx

    def preview_params(self) -> Dict[str, Any]:
        assert self.ctx is not None
        return dict(self.ctx.params)

    def run(self, answer_for: Callable[[Question], Optional[str]]) -> SessionSummary:
        """Ask every question through ``answer_for`` and finish the session.

        ``answer_for`` returns keypad text; None means the user let the
        question time out. Invalid text is rejected and the question is
        asked again.
        """
        assert self.ctx is not None
        engine = self.engine
        while True:
            engine.tick()
            question = engine.current_question
            if question is None:
                break
            text = answer_for(question)
            if text is None:
                engine.submit_answer(None)
            else:
                engine.submit_text(text)
        return engine.finish_session()
