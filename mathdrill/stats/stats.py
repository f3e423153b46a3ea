from __future__ import annotations

"""Session summary formatting."""

from typing import Optional

from ..policy.classifier import ErrorType, get_error_description
from ..results.schema import RecordBreak, SessionSummary


def format_summary(summary: SessionSummary, record_break: Optional[RecordBreak] = None) -> str:
    """Return a human-readable summary of a finished session."""
    total = summary.total_questions
    correct = summary.correct_answers
    lines = [
        f"Type: {summary.question_type}{' (test mode)' if summary.test_mode else ''}",
        f"Total: {correct}/{total} correct",
        f"Average time: {summary.average_time_ms / 1000:.2f}s",
        f"Longest combo: {summary.longest_combo}",
    ]
    for et in ErrorType:
        count = summary.error_breakdown.get(et, 0)
        if count:
            lines.append(f"{et.value}: {count} - {get_error_description(et)}")
    if record_break is not None:
        if record_break.broke_record:
            lines.append(
                f"New record! {record_break.improve_seconds:.2f}s faster "
                f"({record_break.improve_percent:.1f}%) than {record_break.best_before:.2f}s"
            )
        elif record_break.best_before is not None:
            lines.append(f"Best so far: {record_break.best_before:.2f}s")
    return "\n".join(lines)
