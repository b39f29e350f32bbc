from datetime import datetime, timedelta

import pytest

from student_quiz.constants.storage_constants import SHARED_QUIZZES_KEY
from student_quiz.core.attempt_aggregator import finalize_attempt
from student_quiz.core.models import QuizAttempt, SharedQuizSettings
from student_quiz.core.services.question_bank import QuestionBank
from student_quiz.core.services.shared_quiz_registry import (
    AccessStatus,
    SharedQuizRegistry,
    SharedQuizValidationError,
)


@pytest.fixture
def registry(store, date_clock):
    return SharedQuizRegistry(store, clock=date_clock)


def _create(registry, questions, **kwargs):
    quiz = registry.create(questions, "Geography", "Ms. Lee", SharedQuizSettings(), **kwargs)
    registry.save(quiz)
    return quiz


def test_create_snapshots_questions_with_new_ids(registry, questions):
    quiz = _create(registry, questions)
    assert len(quiz.id) >= 20
    assert quiz.id.isalnum()
    assert [q.id for q in quiz.questions] == [f"{quiz.id}_q1", f"{quiz.id}_q2", f"{quiz.id}_q3"]
    assert quiz.attempts == []
    assert quiz.is_active
    assert quiz.expires_at is None


def test_create_sets_expiry_from_days(registry, questions, date_clock):
    quiz = _create(registry, questions, expiration_days=7)
    assert datetime.fromisoformat(quiz.expires_at) == date_clock.now + timedelta(days=7)


def test_zero_expiration_days_never_expires(registry, questions):
    assert _create(registry, questions, expiration_days=0).expires_at is None


def test_create_requires_title_and_creator(registry, questions):
    with pytest.raises(SharedQuizValidationError):
        registry.create(questions, "  ", "Ms. Lee", SharedQuizSettings())
    with pytest.raises(SharedQuizValidationError):
        registry.create(questions, "Quiz", "", SharedQuizSettings())
    with pytest.raises(SharedQuizValidationError):
        registry.create([], "Quiz", "Ms. Lee", SharedQuizSettings())


def test_create_does_not_persist(registry, questions):
    registry.create(questions, "Quiz", "Ms. Lee", SharedQuizSettings())
    assert registry.get_all() == []


def test_snapshot_is_isolated_from_question_bank(store, registry):
    bank = QuestionBank(store)
    quiz = _create(registry, bank.get_questions())
    original_prompt = quiz.questions[0].prompt

    edited = bank.get_questions()[0]
    edited.prompt = "Edited after sharing"
    bank.save_question(edited)
    bank.delete_question(bank.get_questions()[1].id)

    stored = registry.get_by_id(quiz.id)
    assert stored.questions[0].prompt == original_prompt
    assert len(stored.questions) == 4


def test_save_upserts(registry, questions):
    quiz = _create(registry, questions)
    quiz.title = "Renamed"
    registry.save(quiz)
    assert [q.title for q in registry.get_all()] == ["Renamed"]


def test_lazy_expiry_deactivates_and_persists(store, registry, questions, date_clock):
    quiz = _create(registry, questions, expiration_days=1)
    date_clock.advance(days=2)

    assert store.get(SHARED_QUIZZES_KEY)[0]["is_active"] is True
    fetched = registry.get_by_id(quiz.id)
    assert fetched.is_active is False
    assert store.get(SHARED_QUIZZES_KEY)[0]["is_active"] is False


def test_get_by_id_before_expiry_keeps_quiz_active(registry, questions, date_clock):
    quiz = _create(registry, questions, expiration_days=1)
    date_clock.advance(hours=23)
    assert registry.get_by_id(quiz.id).is_active


def test_get_by_id_missing(registry):
    assert registry.get_by_id("nope") is None


def test_resolve_reports_status(registry, questions, date_clock):
    active = _create(registry, questions)
    closed = registry.set_active(_create(registry, questions), False)
    expiring = _create(registry, questions, expiration_days=1)
    date_clock.advance(days=3)

    assert registry.resolve(active.id).status is AccessStatus.AVAILABLE
    assert registry.resolve(closed.id).status is AccessStatus.INACTIVE
    assert registry.resolve(expiring.id).status is AccessStatus.EXPIRED
    assert registry.resolve("missing").status is AccessStatus.NOT_FOUND


def test_add_attempt_stamps_and_appends(registry, questions):
    quiz = _create(registry, questions)
    attempt = finalize_attempt([], total_questions=3, elapsed_seconds=10, participant_name="Sam")
    registry.add_attempt(quiz.id, attempt)

    stored = registry.get_by_id(quiz.id)
    assert len(stored.attempts) == 1
    assert stored.attempts[0].shared_quiz_id == quiz.id
    assert stored.attempts[0].participant_name == "Sam"


def test_add_attempt_to_missing_quiz_is_noop(registry):
    attempt = finalize_attempt([], total_questions=1, elapsed_seconds=0)
    registry.add_attempt("gone", attempt)
    assert registry.get_all() == []


def test_delete_removes_quiz(registry, questions):
    first = _create(registry, questions)
    second = _create(registry, questions)
    registry.delete(first.id)
    assert [q.id for q in registry.get_all()] == [second.id]


def test_reactivating_expired_quiz_is_allowed_until_next_lookup(registry, questions, date_clock):
    quiz = _create(registry, questions, expiration_days=1)
    date_clock.advance(days=2)
    expired = registry.get_by_id(quiz.id)
    assert not expired.is_active

    registry.set_active(expired, True)
    assert registry.get_all()[0].is_active
    assert not registry.get_by_id(quiz.id).is_active


def test_stats(registry, questions):
    quiz = _create(registry, questions)
    assert registry.get_stats(quiz).attempts == 0
    for index, score in enumerate((90, 45, 60)):
        attempt = QuizAttempt(
            id=str(index),
            date="2024-05-01T12:00:00+00:00",
            score=score,
            total_questions=3,
            time_spent_seconds=30,
        )
        registry.add_attempt(quiz.id, attempt)
    stats = registry.get_stats(registry.get_by_id(quiz.id))
    assert stats.attempts == 3
    assert stats.best_score == 90
    assert stats.average_score == 65


def test_corrupt_collection_reads_as_empty(store, registry):
    store.set(SHARED_QUIZZES_KEY, {"not": "a list"})
    assert registry.get_all() == []
    store.set(SHARED_QUIZZES_KEY, [{"id": "x"}])
    assert registry.get_all() == []


@pytest.mark.parametrize("expires_at", ["next tuesday", "2020-01-01T00:00:00"])
def test_unreadable_expiry_keeps_quiz_open(store, registry, questions, expires_at):
    quiz = _create(registry, questions, expiration_days=1)
    raw = store.get(SHARED_QUIZZES_KEY)
    raw[0]["expires_at"] = expires_at
    store.set(SHARED_QUIZZES_KEY, raw)

    assert registry.is_expired(registry.get_all()[0]) is False
    assert registry.resolve(quiz.id).status is AccessStatus.AVAILABLE
