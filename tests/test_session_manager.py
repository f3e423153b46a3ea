import random
import tempfile
import unittest
from pathlib import Path

from mathdrill.app import explain
from mathdrill.app.drill_registry import get_type, list_types, resolve_params
from mathdrill.app.session_engine import SessionStateError
from mathdrill.app.session_manager import SessionManager
from mathdrill.config.config import ALLOWED_QUESTION_TYPES
from mathdrill.drills.generator import QuestionGenerator
from mathdrill.policy.classifier import ErrorType
from mathdrill.results.result_manager import ResultManager
from mathdrill.stats.stats import format_summary
from mathdrill.storage.store import HISTORY_KEY, NEXT_ROUND_KEY, InMemoryHistoryStore
from mathdrill.util.clock import FakeClock


class RegistryTests(unittest.TestCase):
    def test_registry_covers_every_type(self) -> None:
        self.assertEqual({m.id for m in list_types()}, ALLOWED_QUESTION_TYPES)
        for m in list_types():
            self.assertEqual(set(m.presets), {"beginner", "default", "advanced"})

    def test_resolution_order(self) -> None:
        params = resolve_params("borrow", "beginner", {"range": 50, "borrow_ratio": 0.3}, {"time_limit": 3})
        self.assertEqual(params["range"], 20)
        self.assertEqual(params["borrow_ratio"], 0.3)
        self.assertEqual(params["time_limit"], 3)
        with self.assertRaises(KeyError):
            get_type("algebra")


class SessionManagerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryHistoryStore()
        self.clock = FakeClock()
        self.sm = SessionManager(
            {"storage": {"backend": "memory"}},
            store=self.store,
            generator=QuestionGenerator(random.Random(3)),
            clock=self.clock,
        )

    def answer_correctly(self, question):
        self.clock.advance(1.0)
        return str(question.correct_answer)

    def test_full_run_commits_history(self) -> None:
        ctx = self.sm.start_session("multiply", "beginner")
        self.assertEqual(ctx.config.question_count, 10)
        self.assertEqual(ctx.source, "generated")
        summary = self.sm.run(self.answer_correctly)
        self.assertEqual(summary.correct_answers, 10)
        self.assertEqual(summary.longest_combo, 10)
        self.assertEqual(len(self.store.load(HISTORY_KEY)), 1)
        text = format_summary(summary, self.sm.engine.record_break)
        self.assertIn("Total: 10/10 correct", text)

    def test_invalid_text_is_asked_again_and_none_times_out(self) -> None:
        self.sm.start_session("divide", overrides={"question_count": 2})
        replies = iter(["", "abc", None, None])
        summary = self.sm.run(lambda q: next(replies))
        self.assertEqual(summary.total_questions, 2)
        self.assertEqual(summary.correct_answers, 0)
        self.assertEqual(summary.error_breakdown[ErrorType.TIMEOUT], 2)

    def test_staged_round_used_exactly_once(self) -> None:
        ResultManager(self.store).stage_next_round([{"a": 12, "b": 5, "operation": "-"}, {"a": 6, "b": 3, "operation": "×"}])
        ctx = self.sm.start_session("borrow")
        self.assertEqual(ctx.source, "replay")
        self.assertEqual([q.a for q in self.sm.engine.questions], [12, 6])
        self.sm.run(self.answer_correctly)
        ctx = self.sm.start_session("borrow")
        self.assertEqual(ctx.source, "generated")

    def test_answers_after_the_run_budget_time_out(self) -> None:
        self.sm.start_session("divide", overrides={"question_count": 2, "time_limit": 3})

        def slow_correct(question):
            self.clock.advance(30.0)
            return str(question.correct_answer)

        summary = self.sm.run(slow_correct)
        self.assertEqual(summary.correct_answers, 0)
        self.assertEqual(len(self.sm.engine.attempts), 1)
        self.assertEqual(summary.error_breakdown[ErrorType.TIMEOUT], 1)

    def test_second_start_keeps_staged_round(self) -> None:
        self.sm.start_session("borrow")
        staged = [{"a": 12, "b": 5, "operation": "-"}]
        ResultManager(self.store).stage_next_round(staged)
        with self.assertRaises(SessionStateError):
            self.sm.start_session("borrow")
        self.assertEqual(self.store.load(NEXT_ROUND_KEY), staged)

    def test_unknown_type_falls_back(self) -> None:
        with self.assertLogs("mathdrill.app.session_manager", level="WARNING"):
            ctx = self.sm.start_session("algebra", "expert")
        self.assertEqual((ctx.question_type, ctx.preset), ("borrow", "default"))


class FromConfigFileTests(unittest.TestCase):
    def setUp(self) -> None:
        self.addCleanup(explain.enable, False)

    def test_builds_manager_from_yaml(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "drill.yml"
            path.write_text(
                "drill:\n  question_type: carry\n  question_count: 3\nstorage:\n  backend: memory\n"
                "logging:\n  level: WARNING\n  explain: true\n",
                encoding="utf-8",
            )
            store = InMemoryHistoryStore()
            sm = SessionManager.from_config_file(str(path), store=store, clock=FakeClock())
        self.assertIs(sm.store, store)
        self.assertEqual(sm.cfg["drill"]["question_type"], "carry")
        self.assertEqual(sm.cfg["drill"]["question_count"], 3)
        self.assertTrue(explain.enabled())
        with self.assertLogs("mathdrill.explain", level="INFO") as logs:
            ctx = sm.start_session()
        self.assertEqual(ctx.question_type, "carry")
        self.assertTrue(any("session_prepared" in line for line in logs.output))


if __name__ == "__main__":
    unittest.main()
