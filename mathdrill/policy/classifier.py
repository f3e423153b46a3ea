from __future__ import annotations

"""Rule-based diagnosis of wrong answers.

``ErrorClassifier.classify`` checks a fixed precedence (timeout, correct,
operation slip, borrow, carry) and files anything unmatched as careless,
so it is total over every input.
"""

from enum import Enum
from typing import Dict, Optional, Set

from ..drills.question import INVERSE, Question, apply_exact


class ErrorType(str, Enum):
    BORROW = "borrow"
    CARRY = "carry"
    CARELESS = "careless"
    TIMEOUT = "timeout"
    OPERATION = "operation"


ERROR_DESCRIPTIONS: Dict[ErrorType, str] = {
    ErrorType.BORROW: "Borrowing slip: when the ones digit is too small, borrow 1 ten from the tens place.",
    ErrorType.CARRY: "Carrying slip: when the ones digits add up to 10 or more, carry 1 to the tens place.",
    ErrorType.CARELESS: "Calculation slip: check each step carefully.",
    ErrorType.TIMEOUT: "Time ran out before an answer was given.",
    ErrorType.OPERATION: "Wrong operation: the answer matches a different operator.",
}

ERROR_SUGGESTIONS: Dict[ErrorType, str] = {
    ErrorType.BORROW: "Practise borrowing: take 1 from the tens, add 10 to the ones, then subtract.",
    ErrorType.CARRY: "Practise carrying: keep the ones of the sum and carry 1 to the tens.",
    ErrorType.CARELESS: "Slow down and work one step at a time.",
    ErrorType.TIMEOUT: "Build speed with short daily drills; accuracy first, then speed.",
    ErrorType.OPERATION: "Read the sign before you start: plus or minus, times or divide.",
}


def get_error_description(error_type: ErrorType | str) -> str:
    return ERROR_DESCRIPTIONS[ErrorType(error_type)]


def get_error_suggestion(error_type: ErrorType | str) -> str:
    return ERROR_SUGGESTIONS[ErrorType(error_type)]


def _ones(value: int) -> int:
    return abs(value) % 10


class ErrorClassifier:
    """Decides why an answer is wrong; None means the answer is correct."""

    def classify(
        self,
        question: Question,
        answer: Optional[int],
        time_ms: float,
        time_limit: float,
    ) -> Optional[ErrorType]:
        if time_ms > time_limit * 1000 or answer is None:
            return ErrorType.TIMEOUT
        if answer == question.correct_answer:
            return None
        if answer in self._operation_slips(question):
            return ErrorType.OPERATION
        if question.is_fill_blank:
            return ErrorType.CARELESS
        if question.operation == "-" and question.has_borrow and self.is_borrow_error(question, answer):
            return ErrorType.BORROW
        if question.operation == "+" and self.is_carry_error(question, answer):
            return ErrorType.CARRY
        return ErrorType.CARELESS

    def _operation_slips(self, question: Question) -> Set[int]:
        if not question.is_fill_blank:
            slip = apply_exact(INVERSE[question.operation], question.a, question.b)
            return set() if slip is None else {slip}
        # Any combination of the two revealed numbers with the shown operator or its inverse
        x, y = question.revealed_operands()
        slips: Set[int] = set()
        for op in (question.operation, INVERSE[question.operation]):
            for left, right in ((x, y), (y, x)):
                value = apply_exact(op, left, right)
                if value is not None:
                    slips.add(value)
        slips.discard(question.correct_answer)
        return slips

    def is_borrow_error(self, question: Question, answer: int) -> bool:
        a_ones, b_ones = question.a % 10, question.b % 10
        if a_ones >= b_ones:
            return False
        expected = (10 + a_ones - b_ones) % 10
        naive = abs(a_ones - b_ones)
        if _ones(answer) == naive and naive != expected:
            return True
        # Ones borrowed but tens left unreduced
        return answer == question.correct_answer + 10

    def is_carry_error(self, question: Question, answer: int) -> bool:
        ones_sum = question.a % 10 + question.b % 10
        if ones_sum < 10:
            return False
        if _ones(answer) != ones_sum % 10:
            return True
        # Ones right, carried ten dropped
        return answer == question.correct_answer - 10

    def get_error_description(self, error_type: ErrorType | str) -> str:
        return get_error_description(error_type)

    def get_error_suggestion(self, error_type: ErrorType | str) -> str:
        return get_error_suggestion(error_type)
