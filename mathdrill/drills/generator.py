from __future__ import annotations

"""Constrained random question generation.

Every generator draws candidates at random and accepts the first one that
satisfies its structural guarantee (borrow, carry, exact division, bounded
total). The number of draws is capped by ``MAX_ATTEMPTS``; when the cap is
hit a deterministic construction is used instead, so generation always
terminates with a valid question, even for degenerate ranges.
"""

import logging
import random
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .question import OPERATIONS, Question, apply_exact, needs_regroup, new_question_id

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 200

# Times-table domain for multiplication and division
TABLE_MIN = 2
TABLE_MAX = 9

# Fill-blank additions keep the total within two digits
FILL_ADD_MAX_TOTAL = 99

ADD_SUBTRACT_CHAINS = ("add_add", "sub_sub", "add_sub", "sub_add")
FOUR_OPERATION_CHAINS = ("div_add", "mul_sub")

QUESTION_TYPES: Tuple[str, ...] = (
    "borrow",
    "carry",
    "mixed",
    "chain",
    "multiply",
    "divide",
    "multiply_divide",
    "multiply_divide_chain",
    "all_four",
    "four_chain",
    "fill_add_subtract",
    "fill_multiply_divide",
)
DEFAULT_QUESTION_TYPE = "borrow"


def split_evenly(total: int, parts: int) -> List[int]:
    """Split ``total`` into ``parts`` counts; the remainder goes to the earliest parts."""
    base, rem = divmod(max(0, total), parts)
    return [base + (1 if i < rem else 0) for i in range(parts)]


def _clamp_range(range_: Any) -> int:
    try:
        r = int(range_)
    except (TypeError, ValueError):
        r = 1
    return max(1, r)


def _plain(prefix: str, a: int, b: int, operation: str, correct: int, *, display: Optional[str] = None) -> Question:
    return Question(
        id=new_question_id(prefix),
        a=a,
        b=b,
        operation=operation,
        correct_answer=correct,
        display_text=display or f"{a} {operation} {b} =",
        has_borrow=needs_regroup(operation, a, b),
    )


class QuestionGenerator:
    """Produces single questions or shuffled batches for a question type."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    # --- addition / subtraction ---

    def generate_borrow_subtraction(self, range_: int) -> Question:
        """Subtraction whose ones digit needs a borrow, with ``a >= b``."""
        r = _clamp_range(range_)
        for _ in range(MAX_ATTEMPTS):
            a = self.rng.randint(1, r)
            b = self.rng.randint(1, r)
            if a >= b and (a % 10) < (b % 10):
                return _plain("sub", a, b, "-", a - b)
        # Ones digit 0 over ones digit 9 always borrows
        tens = max(1, r // 10)
        a = tens * 10
        b = a - 1
        logger.debug("borrow fallback for range=%s -> %s - %s", r, a, b)
        return _plain("sub", a, b, "-", a - b)

    def generate_carry_addition(self, range_: int) -> Question:
        """Addition whose ones digits sum to ten or more."""
        r = _clamp_range(range_)
        for _ in range(MAX_ATTEMPTS):
            a = self.rng.randint(1, r)
            b = self.rng.randint(1, r)
            if (a % 10) + (b % 10) >= 10:
                return _plain("add", a, b, "+", a + b)
        a = min(9, max(5, r))
        b = 10 - a
        logger.debug("carry fallback for range=%s -> %s + %s", r, a, b)
        return _plain("add", a, b, "+", a + b)

    def generate_add_subtract_chain(self, range_: int, kind: str = "add_sub") -> Question:
        """Two-step chain; the first-stage result becomes ``a``."""
        r = _clamp_range(range_)
        cap = min(20, r)
        if kind in ("sub_sub", "sub_add"):
            x = self.rng.randint(20, 19 + min(40, 2 * r))
            y = self.rng.randint(1, min(cap, x - 1))
            first, op1 = x - y, "-"
        elif kind in ("add_add", "add_sub"):
            x = self.rng.randint(1, cap)
            y = self.rng.randint(1, cap)
            first, op1 = x + y, "+"
        else:
            raise ValueError(f"Unknown chain kind: {kind}")
        op2 = "-" if kind.endswith("_sub") else "+"
        if op2 == "-":
            c = self.rng.randint(1, min(cap, first))
        else:
            c = self.rng.randint(1, cap)
        correct = apply_exact(op2, first, c)
        return _plain("chain", first, c, op2, correct, display=f"{x} {op1} {y} {op2} {c} =")

    # --- multiplication / division ---

    def _table_pair(self) -> Tuple[int, int]:
        return self.rng.randint(TABLE_MIN, TABLE_MAX), self.rng.randint(TABLE_MIN, TABLE_MAX)

    def generate_multiplication(self) -> Question:
        a, b = self._table_pair()
        return _plain("mul", a, b, "×", a * b)

    def generate_division(self) -> Question:
        """Division built from a product, so the quotient is always exact."""
        quotient, divisor = self._table_pair()
        dividend = quotient * divisor
        return _plain("div", dividend, divisor, "÷", quotient)

    def generate_multiply_divide_chain(self) -> Question:
        """``x × y ÷ c`` where ``c`` is a table-range factor of the product."""
        x, y = self._table_pair()
        product = x * y
        factors = [d for d in range(TABLE_MIN, min(TABLE_MAX, product) + 1) if product % d == 0]
        c = self.rng.choice(factors)
        return _plain("chain", product, c, "÷", product // c, display=f"{x} × {y} ÷ {c} =")

    def generate_four_chain(self, kind: str = "mul_sub") -> Question:
        x, y = self._table_pair()
        product = x * y
        if kind == "div_add":
            c = self.rng.randint(1, 20)
            return _plain("chain", y, c, "+", y + c, display=f"{product} ÷ {x} + {c} =")
        if kind == "mul_sub":
            c = self.rng.randint(1, min(20, product))
            return _plain("chain", product, c, "-", product - c, display=f"{x} × {y} - {c} =")
        raise ValueError(f"Unknown chain kind: {kind}")

    # --- fill in the blank ---

    def _full_equation(self, operation: str, r: int) -> Tuple[int, int, int]:
        if operation == "+":
            cap = min(50, r)
            for _ in range(MAX_ATTEMPTS):
                a = self.rng.randint(1, cap)
                b = self.rng.randint(1, cap)
                if a + b <= FILL_ADD_MAX_TOTAL:
                    return a, b, a + b
            return 1, 1, 2
        if operation == "-":
            a = self.rng.randint(20, 19 + min(50, r))
            b = self.rng.randint(1, min(30, a - 1))
            return a, b, a - b
        if operation == "×":
            a, b = self._table_pair()
            return a, b, a * b
        if operation == "÷":
            quotient, divisor = self._table_pair()
            return quotient * divisor, divisor, quotient
        raise ValueError(f"Unknown operation: {operation}")

    def generate_fill_blank(self, operation: str, range_: int = 20) -> Question:
        """Complete equation with one operand hidden behind ``?``."""
        a, b, total = self._full_equation(operation, _clamp_range(range_))
        blank = self.rng.choice(("a", "b"))
        if blank == "a":
            hidden, display = a, f"? {operation} {b} = {total}"
        else:
            hidden, display = b, f"{a} {operation} ? = {total}"
        return Question(
            id=new_question_id("fill"),
            a=a,
            b=b,
            operation=operation,
            correct_answer=hidden,
            display_text=display,
            has_borrow=needs_regroup(operation, a, b),
            is_fill_blank=True,
            blank_position=blank,
            result=total,
        )

    def generate_fill_add_subtract(self, range_: int) -> Question:
        return self.generate_fill_blank(self.rng.choice(("+", "-")), range_)

    def generate_fill_multiply_divide(self) -> Question:
        return self.generate_fill_blank(self.rng.choice(("×", "÷")))

    # --- batches ---

    def _plan(self, config: Any, question_type: str) -> List[Tuple[Callable[[], Question], int]]:
        r = config.range
        n = int(config.question_count)
        if question_type == "borrow":
            return [(lambda: self.generate_borrow_subtraction(r), n)]
        if question_type == "carry":
            return [(lambda: self.generate_carry_addition(r), n)]
        if question_type == "mixed":
            ratio = min(1.0, max(0.0, float(config.borrow_ratio)))
            borrow_count = int(n * ratio)
            return [
                (lambda: self.generate_borrow_subtraction(r), borrow_count),
                (lambda: self.generate_carry_addition(r), n - borrow_count),
            ]
        if question_type == "chain":
            counts = split_evenly(n, len(ADD_SUBTRACT_CHAINS))
            return [
                ((lambda k=kind: self.generate_add_subtract_chain(r, k)), count)
                for kind, count in zip(ADD_SUBTRACT_CHAINS, counts)
            ]
        if question_type == "multiply":
            return [(self.generate_multiplication, n)]
        if question_type == "divide":
            return [(self.generate_division, n)]
        if question_type == "multiply_divide":
            mul, div = split_evenly(n, 2)
            return [(self.generate_multiplication, mul), (self.generate_division, div)]
        if question_type == "multiply_divide_chain":
            return [(self.generate_multiply_divide_chain, n)]
        if question_type == "all_four":
            add, sub, mul, div = split_evenly(n, 4)
            return [
                (lambda: self.generate_carry_addition(r), add),
                (lambda: self.generate_borrow_subtraction(r), sub),
                (self.generate_multiplication, mul),
                (self.generate_division, div),
            ]
        if question_type == "four_chain":
            counts = split_evenly(n, len(FOUR_OPERATION_CHAINS))
            return [
                ((lambda k=kind: self.generate_four_chain(k)), count)
                for kind, count in zip(FOUR_OPERATION_CHAINS, counts)
            ]
        if question_type == "fill_add_subtract":
            return [(lambda: self.generate_fill_add_subtract(r), n)]
        if question_type == "fill_multiply_divide":
            return [(self.generate_fill_multiply_divide, n)]
        logger.warning("Unknown question type %r, using %r", question_type, DEFAULT_QUESTION_TYPE)
        return self._plan(config, DEFAULT_QUESTION_TYPE)

    def generate_mixed_questions(self, config: Any, question_type: str) -> List[Question]:
        """Build ``config.question_count`` questions for a type, shuffled."""
        questions: List[Question] = []
        for make, count in self._plan(config, question_type):
            questions.extend(make() for _ in range(count))
        self.rng.shuffle(questions)
        return questions

    @staticmethod
    def from_triples(items: Iterable[Mapping[str, Any]]) -> List[Question]:
        """Rebuild plain questions from stored ``{a, b, operation}`` triples.

        Triples that cannot form an exact integer question are skipped.
        """
        questions: List[Question] = []
        for item in items:
            try:
                a = int(item["a"])
                b = int(item["b"])
                op = str(item["operation"])
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed question triple: %r", item)
                continue
            if op not in OPERATIONS:
                logger.warning("Skipping triple with unknown operation %r", op)
                continue
            correct = apply_exact(op, a, b)
            if correct is None:
                logger.warning("Skipping inexact division %s ÷ %s", a, b)
                continue
            questions.append(_plain("replay", a, b, op, correct))
        return questions


def question_counts(questions: Sequence[Question]) -> Dict[str, int]:
    """Count questions per operation."""
    counts: Dict[str, int] = {op: 0 for op in OPERATIONS}
    for q in questions:
        counts[q.operation] = counts.get(q.operation, 0) + 1
    return counts
