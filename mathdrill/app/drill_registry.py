from __future__ import annotations

"""Question-type registry and metadata.

Expose the closed set of question types with labels, descriptions and
presets, and resolve run parameters for a type.
"""

from dataclasses import dataclass
from typing import Any, Dict, List

from . import presets as P


@dataclass(frozen=True)
class QuestionTypeMeta:
    id: str
    name: str
    description: str
    presets: Dict[str, Dict[str, Any]]
    uses_range: bool = True


_TYPES: List[QuestionTypeMeta] = [
    QuestionTypeMeta("borrow", "Subtraction with borrowing", "Two-digit subtraction that always needs a borrow.", P.ADD_SUBTRACT_PRESETS),
    QuestionTypeMeta("carry", "Addition with carrying", "Addition whose ones digits always sum to 10 or more.", P.ADD_SUBTRACT_PRESETS),
    QuestionTypeMeta("mixed", "Borrow and carry mix", "Borrow subtraction and carry addition, blended by borrow ratio.", P.MIXED_PRESETS),
    QuestionTypeMeta("chain", "Add/subtract chains", "Two-step chains: a+b+c, a-b-c, a+b-c, a-b+c.", P.CHAIN_PRESETS),
    QuestionTypeMeta("multiply", "Multiplication", "Times tables from 2 to 9.", P.TABLE_PRESETS, uses_range=False),
    QuestionTypeMeta("divide", "Division", "Exact division within the times tables.", P.TABLE_PRESETS, uses_range=False),
    QuestionTypeMeta("multiply_divide", "Multiply and divide", "Times-table multiplication and division, evenly split.", P.TABLE_PRESETS, uses_range=False),
    QuestionTypeMeta("multiply_divide_chain", "Multiply-divide chains", "a × b ÷ c with an exact final division.", P.TABLE_CHAIN_PRESETS, uses_range=False),
    QuestionTypeMeta("all_four", "All four operations", "Even split of +, -, × and ÷.", P.ADD_SUBTRACT_PRESETS),
    QuestionTypeMeta("four_chain", "Mixed-operation chains", "a ÷ b + c and a × b − c.", P.TABLE_CHAIN_PRESETS, uses_range=False),
    QuestionTypeMeta("fill_add_subtract", "Fill the blank (+/−)", "Find the hidden operand of an addition or subtraction.", P.FILL_PRESETS),
    QuestionTypeMeta("fill_multiply_divide", "Fill the blank (×/÷)", "Find the hidden operand of a times-table equation.", P.TABLE_PRESETS, uses_range=False),
]


def list_types() -> List[QuestionTypeMeta]:
    return list(_TYPES)


def get_type(type_id: str) -> QuestionTypeMeta:
    for m in _TYPES:
        if m.id == type_id:
            return m
    raise KeyError(f"Unknown question type: {type_id}")


def resolve_params(type_id: str, preset: str, base: Dict[str, Any], overrides: Dict[str, Any] | None = None) -> Dict[str, Any]:
    """Merge run parameters: base (config drill section) → preset → overrides."""
    meta = get_type(type_id)
    if preset not in meta.presets:
        raise KeyError(f"Unknown preset {preset!r} for {type_id}")
    return {**base, **meta.presets[preset], **(overrides or {})}
