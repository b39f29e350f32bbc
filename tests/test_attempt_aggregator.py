from datetime import datetime, timezone

import pytest

from student_quiz.core.attempt_aggregator import (
    AttemptAggregationError,
    calculate_percentage,
    finalize_attempt,
)
from student_quiz.core.models import Question, QuestionType, QuizAnswer

_QUESTION = Question(id="q", type=QuestionType.SHORT_ANSWER, prompt="?", correct_answer="a")


def _answer(question_id, is_correct, partial_score=None):
    return QuizAnswer(
        question_id=question_id,
        user_answer="x",
        is_correct=is_correct,
        question=_QUESTION,
        partial_score=partial_score,
    )


def test_partial_scores_are_weighted():
    answers = [_answer("a", True, 1.0), _answer("b", False, 0.5), _answer("c", False, 0.0)]
    assert calculate_percentage(answers, 3) == 50


def test_unanswered_questions_dilute_the_score():
    answers = [_answer("a", True, 1.0), _answer("b", True, 1.0)]
    assert calculate_percentage(answers, 4) == 50


def test_missing_partial_score_falls_back_to_correctness():
    answers = [_answer("a", True), _answer("b", False)]
    assert calculate_percentage(answers, 2) == 50


def test_half_rounds_up():
    answers = [_answer("a", False, 0.125)]
    assert calculate_percentage(answers, 20) == 1  # 0.625 -> 1
    assert calculate_percentage([_answer("a", False, 0.5)], 20) == 3  # 2.5 -> 3


def test_zero_questions_is_an_error():
    with pytest.raises(AttemptAggregationError):
        calculate_percentage([], 0)


def test_finalize_attempt_builds_record():
    now = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    answers = [_answer("a", True, 1.0)]
    attempt = finalize_attempt(
        answers,
        total_questions=2,
        elapsed_seconds=-3,
        participant_name="Ada",
        shared_quiz_id="abc",
        now=now,
    )
    assert attempt.score == 50
    assert attempt.total_questions == 2
    assert attempt.time_spent_seconds == 0
    assert attempt.answers == tuple(answers)
    assert attempt.date == now.isoformat()
    assert attempt.participant_name == "Ada"
    assert attempt.shared_quiz_id == "abc"
    assert len(attempt.id) == 32
