import random
import unittest

from mathdrill.config.config import DrillConfig
from mathdrill.drills.generator import QUESTION_TYPES, QuestionGenerator
from mathdrill.drills.question import OPERATIONS, Question
from mathdrill.policy.classifier import (
    ERROR_DESCRIPTIONS,
    ERROR_SUGGESTIONS,
    ErrorClassifier,
    ErrorType,
    get_error_description,
    get_error_suggestion,
)


def q(a, b, op, correct, **kw):
    return Question(id="t", a=a, b=b, operation=op, correct_answer=correct, display_text=f"{a} {op} {b} =", **kw)


class ClassifierTests(unittest.TestCase):
    def setUp(self) -> None:
        self.c = ErrorClassifier()
        self.sub = q(32, 18, "-", 14, has_borrow=True)
        self.add = q(27, 18, "+", 45, has_borrow=True)

    def test_correct_answer_is_none(self) -> None:
        self.assertIsNone(self.c.classify(self.sub, 14, 2000, 10))

    def test_timeout_takes_precedence(self) -> None:
        self.assertEqual(self.c.classify(self.sub, 14, 10001, 10), ErrorType.TIMEOUT)
        self.assertEqual(self.c.classify(self.sub, None, 100, 10), ErrorType.TIMEOUT)
        # exactly at the limit is not a timeout
        self.assertIsNone(self.c.classify(self.sub, 14, 10000, 10))

    def test_operation_slip(self) -> None:
        self.assertEqual(self.c.classify(self.sub, 50, 1000, 10), ErrorType.OPERATION)
        self.assertEqual(self.c.classify(self.add, 9, 1000, 10), ErrorType.OPERATION)
        mul = q(6, 3, "×", 18)
        self.assertEqual(self.c.classify(mul, 2, 1000, 10), ErrorType.OPERATION)
        div = q(18, 3, "÷", 6)
        self.assertEqual(self.c.classify(div, 54, 1000, 10), ErrorType.OPERATION)

    def test_inexact_inverse_is_not_an_operation_slip(self) -> None:
        mul = q(7, 2, "×", 14)
        self.assertEqual(self.c.classify(mul, 3, 1000, 10), ErrorType.CARELESS)

    def test_borrow_smaller_from_larger(self) -> None:
        # 32 - 18: ones 2 < 8, naive |2-8| = 6, answer 26 has ones 6
        self.assertEqual(self.c.classify(self.sub, 26, 1000, 10), ErrorType.BORROW)

    def test_borrow_tens_not_reduced(self) -> None:
        self.assertEqual(self.c.classify(self.sub, 24, 1000, 10), ErrorType.BORROW)
        other = q(41, 16, "-", 25, has_borrow=True)
        self.assertEqual(self.c.classify(other, 35, 1000, 10), ErrorType.BORROW)

    def test_carry(self) -> None:
        # carry dropped
        self.assertEqual(self.c.classify(self.add, 35, 1000, 10), ErrorType.CARRY)
        # wrong ones digit
        self.assertEqual(self.c.classify(self.add, 44, 1000, 10), ErrorType.CARRY)

    def test_no_carry_needed_is_careless(self) -> None:
        plain = q(21, 13, "+", 34)
        self.assertEqual(self.c.classify(plain, 35, 1000, 10), ErrorType.CARELESS)

    def test_catch_all_careless(self) -> None:
        self.assertEqual(self.c.classify(self.sub, 13, 1000, 10), ErrorType.CARELESS)
        self.assertEqual(self.c.classify(q(6, 3, "×", 18), 19, 1000, 10), ErrorType.CARELESS)

    def test_fill_blank_operation_slip_and_careless(self) -> None:
        # ? + 7 = 15, answer 8; 15 + 7 = 22 combines the revealed numbers
        fill = Question(
            id="f",
            a=8,
            b=7,
            operation="+",
            correct_answer=8,
            display_text="? + 7 = 15",
            is_fill_blank=True,
            blank_position="a",
            result=15,
        )
        self.assertIsNone(self.c.classify(fill, 8, 1000, 10))
        self.assertEqual(self.c.classify(fill, 22, 1000, 10), ErrorType.OPERATION)
        # regroup heuristics do not apply to fill-blank questions
        self.assertEqual(self.c.classify(fill, 18, 1000, 10), ErrorType.CARELESS)

    def test_classify_is_total(self) -> None:
        rng = random.Random(7)
        gen = QuestionGenerator(random.Random(11))
        cfg = DrillConfig(question_count=12, range=100)
        questions = [question for qtype in QUESTION_TYPES for question in gen.generate_mixed_questions(cfg, qtype)]
        for op in OPERATIONS:
            questions.append(q(0, 0, op, 0))
            questions.append(q(10, 1, op, 0, has_borrow=True))
            questions.append(gen.generate_fill_blank(op, 50))
        for question in questions:
            answers = [None, 0, -1, -question.correct_answer - 7, question.correct_answer, rng.randint(-200, 200)]
            for answer in answers:
                result = self.c.classify(question, answer, rng.randint(0, 20000), rng.randint(1, 10))
                self.assertTrue(result is None or isinstance(result, ErrorType), msg=question.display_text)

    def test_lookup_tables_are_total(self) -> None:
        for et in ErrorType:
            self.assertTrue(ERROR_DESCRIPTIONS[et])
            self.assertTrue(ERROR_SUGGESTIONS[et])
            self.assertEqual(get_error_description(et.value), self.c.get_error_description(et))
            self.assertEqual(get_error_suggestion(et), self.c.get_error_suggestion(et.value))


if __name__ == "__main__":
    unittest.main()
