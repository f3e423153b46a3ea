from __future__ import annotations

"""Question model and arithmetic helpers shared by generators and classifier."""

from dataclasses import dataclass
from typing import Dict, Literal, Optional, Tuple
from uuid import uuid4

Operation = Literal["+", "-", "×", "÷"]
BlankPosition = Literal["a", "b", "result"]

OPERATIONS: Tuple[str, ...] = ("+", "-", "×", "÷")

# Inverse operator pairs
INVERSE: Dict[str, str] = {"+": "-", "-": "+", "×": "÷", "÷": "×"}


def apply_exact(operation: str, a: int, b: int) -> Optional[int]:
    """Evaluate ``a op b`` over integers; None when division is not exact."""
    if operation == "+":
        return a + b
    if operation == "-":
        return a - b
    if operation == "×":
        return a * b
    if operation == "÷":
        if b == 0 or a % b != 0:
            return None
        return a // b
    raise ValueError(f"Unknown operation: {operation}")


def needs_regroup(operation: str, a: int, b: int) -> bool:
    """True iff the ones digit forces a carry (``+``) or a borrow (``-``)."""
    if operation == "+":
        return (a % 10) + (b % 10) >= 10
    if operation == "-":
        return (a % 10) < (b % 10)
    return False


def new_question_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex}"


@dataclass(frozen=True)
class Question:
    """A single drill item.

    Plain questions ask for ``a op b``. Compound questions store the
    first-stage result as ``a``. Fill-blank questions keep the full
    equation ``a op b = result`` and hide ``blank_position``.
    """

    id: str
    a: int
    b: int
    operation: Operation
    correct_answer: int
    display_text: str
    has_borrow: bool = False
    is_fill_blank: bool = False
    blank_position: BlankPosition = "result"
    result: Optional[int] = None

    def revealed_operands(self) -> Tuple[int, int]:
        """The two numbers visible to the learner, in display order."""
        if not self.is_fill_blank:
            return self.a, self.b
        total = self.result if self.result is not None else 0
        if self.blank_position == "a":
            return self.b, total
        return self.a, total
