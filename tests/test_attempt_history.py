from student_quiz.core.models import QuizAttempt
from student_quiz.core.services.attempt_history import AttemptHistory, feedback_for_score


def _attempt(index, score):
    return QuizAttempt(
        id=str(index),
        date=f"2024-05-{index + 1:02d}T10:00:00+00:00",
        score=score,
        total_questions=4,
        time_spent_seconds=60,
    )


def test_summary_and_recent(store):
    history = AttemptHistory(store)
    assert history.get_summary().total_attempts == 0

    for index, score in enumerate([40, 75, 90, 50]):
        history.record_attempt(_attempt(index, score))

    summary = history.get_summary()
    assert summary.best_score == 90
    assert summary.average_score == 64  # 63.75
    assert summary.total_attempts == 4
    assert [a.id for a in history.get_recent(limit=2)] == ["3", "2"]


def test_feedback_thresholds():
    assert feedback_for_score(80) == "Excellent!"
    assert feedback_for_score(60) == "Good job!"
    assert feedback_for_score(59) == "Keep practicing!"
