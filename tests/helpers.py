from datetime import datetime, timedelta, timezone

from mathdrill.results.schema import HistoryRecord, QuestionLog

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def log(a, b, op, correct, user, seconds, is_correct=None):
    return QuestionLog(
        a=a,
        b=b,
        operation=op,
        correct_answer=correct,
        user_answer=user,
        is_correct=(user == correct) if is_correct is None else is_correct,
        duration_sec=seconds,
        display_text=f"{a} {op} {b} =",
    )


def record(rid, avg, qtype="borrow", days_ago=0, test_mode=False, wrong=(), slow=(), count=10, correct=8):
    return HistoryRecord(
        id=rid,
        created_at=BASE_TIME - timedelta(days=days_ago),
        question_count=count,
        correct=correct,
        wrong=count - correct,
        accuracy=round(100 * correct / count) if count else 0,
        avg_time=avg,
        type=qtype,
        test_mode=test_mode,
        wrong_details=list(wrong),
        slow_correct_details=list(slow),
    )
