"""Turns the answers collected during a session into a scored attempt."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
import math
from uuid import uuid4

from student_quiz.core.models import QuizAnswer, QuizAttempt


class AttemptAggregationError(ValueError):
    """Raised when an attempt cannot be scored."""


def answer_points(answer: QuizAnswer) -> float:
    """Credit earned by one answer, between 0 and 1."""
    if answer.partial_score is not None:
        return answer.partial_score
    return 1.0 if answer.is_correct else 0.0


def calculate_percentage(answers: Sequence[QuizAnswer], total_questions: int) -> int:
    """Percentage over all questions; unanswered questions count as zero."""
    if total_questions < 1:
        raise AttemptAggregationError("An attempt must cover at least one question.")
    raw_score = sum(answer_points(answer) for answer in answers)
    # Round half up, matching how scores were always displayed.
    return int(math.floor(100 * raw_score / total_questions + 0.5))


def finalize_attempt(
    answers: Sequence[QuizAnswer],
    total_questions: int,
    elapsed_seconds: int,
    *,
    participant_name: str | None = None,
    shared_quiz_id: str | None = None,
    now: datetime | None = None,
) -> QuizAttempt:
    score = calculate_percentage(answers, total_questions)
    timestamp = now or datetime.now(timezone.utc)
    return QuizAttempt(
        id=uuid4().hex,
        date=timestamp.isoformat(),
        score=score,
        total_questions=total_questions,
        time_spent_seconds=max(0, int(elapsed_seconds)),
        answers=tuple(answers),
        participant_name=participant_name,
        shared_quiz_id=shared_quiz_id,
    )
