"""Service owning the quizzes distributed through shareable links.

The whole collection is persisted under one store key. Reads of a single quiz
apply lazy expiry: the first lookup after ``expires_at`` has passed flips the
quiz to inactive and writes that change back, so ``get_by_id`` is a query with
a side effect and must not be treated as a pure read.

Separate processes sharing one store are not coordinated. Each write replaces
the entire collection, so two attempts appended at the same moment from
different processes can overwrite one another.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
import logging
from uuid import uuid4

from student_quiz.constants.storage_constants import SHARED_QUIZZES_KEY
from student_quiz.core.models import Question, QuizAttempt, SharedQuiz, SharedQuizSettings
from student_quiz.core.storage import KeyValueStore

logger = logging.getLogger(__name__)


class SharedQuizValidationError(ValueError):
    """Raised when a shared quiz cannot be created from the given input."""


class AccessStatus(str, Enum):
    AVAILABLE = "available"
    NOT_FOUND = "not-found"
    INACTIVE = "inactive"
    EXPIRED = "expired"


@dataclass(slots=True)
class SharedQuizAccess:
    """Outcome of opening a shared quiz link."""

    status: AccessStatus
    quiz: SharedQuiz | None = None

    @property
    def is_available(self) -> bool:
        return self.status is AccessStatus.AVAILABLE


@dataclass(slots=True)
class SharedQuizStats:
    attempts: int
    average_score: int
    best_score: int


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SharedQuizRegistry:
    """Creates, stores and looks up shared quizzes and their attempts."""

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._clock = clock

    def create(
        self,
        questions: Sequence[Question],
        title: str,
        creator_name: str,
        settings: SharedQuizSettings,
        description: str | None = None,
        expiration_days: int | None = None,
    ) -> SharedQuiz:
        """Build a new shared quiz with its own copy of ``questions``.

        The result is not persisted; pass it to ``save``.
        """
        if not title.strip():
            raise SharedQuizValidationError("A shared quiz needs a title.")
        if not creator_name.strip():
            raise SharedQuizValidationError("A shared quiz needs the creator's name.")
        if not questions:
            raise SharedQuizValidationError("Cannot share a quiz without questions.")

        existing_ids = {quiz.id for quiz in self.get_all()}
        quiz_id = uuid4().hex
        while quiz_id in existing_ids:
            quiz_id = uuid4().hex

        created_at = self._clock()
        expires_at = None
        if expiration_days and expiration_days > 0:
            expires_at = (created_at + timedelta(days=expiration_days)).isoformat()

        return SharedQuiz(
            id=quiz_id,
            title=title.strip(),
            description=description.strip() if description and description.strip() else None,
            questions=[q.copy_with_id(f"{quiz_id}_{q.id}") for q in questions],
            created_by=creator_name.strip(),
            created_at=created_at.isoformat(),
            expires_at=expires_at,
            settings=SharedQuizSettings.from_dict(settings.to_dict()),
            attempts=[],
            is_active=True,
        )

    def save(self, quiz: SharedQuiz) -> None:
        """Insert the quiz, or replace the stored quiz with the same id."""
        quizzes = self.get_all()
        for index, stored in enumerate(quizzes):
            if stored.id == quiz.id:
                quizzes[index] = quiz
                break
        else:
            quizzes.append(quiz)
        self._write(quizzes)

    def get_all(self) -> list[SharedQuiz]:
        raw = self._store.get(SHARED_QUIZZES_KEY, [])
        if not isinstance(raw, list):
            logger.warning("Shared quiz collection is malformed; treating it as empty.")
            return []
        try:
            return [SharedQuiz.from_dict(item) for item in raw]
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Could not load shared quizzes, treating them as empty: %s", exc)
            return []

    def get_by_id(self, quiz_id: str) -> SharedQuiz | None:
        """Look up a quiz, deactivating and persisting it if it has just expired."""
        quiz = next((q for q in self.get_all() if q.id == quiz_id), None)
        if quiz is None:
            return None
        if quiz.is_active and self.is_expired(quiz):
            logger.info("Shared quiz %s expired at %s; deactivating", quiz.id, quiz.expires_at)
            quiz.is_active = False
            self.save(quiz)
        return quiz

    def resolve(self, quiz_id: str) -> SharedQuizAccess:
        """Open a link target, reporting missing or closed quizzes as a status."""
        quiz = self.get_by_id(quiz_id)
        if quiz is None:
            return SharedQuizAccess(AccessStatus.NOT_FOUND)
        if not quiz.is_active:
            status = AccessStatus.EXPIRED if self.is_expired(quiz) else AccessStatus.INACTIVE
            return SharedQuizAccess(status, quiz)
        return SharedQuizAccess(AccessStatus.AVAILABLE, quiz)

    def add_attempt(self, quiz_id: str, attempt: QuizAttempt) -> None:
        quiz = self.get_by_id(quiz_id)
        if quiz is None:
            logger.info("Dropping attempt %s for missing shared quiz %s", attempt.id, quiz_id)
            return
        quiz.attempts.append(_stamp(attempt, quiz_id))
        self.save(quiz)

    def delete(self, quiz_id: str) -> None:
        self._write([q for q in self.get_all() if q.id != quiz_id])

    def set_active(self, quiz: SharedQuiz, active: bool) -> SharedQuiz:
        """Owner override; expiry is not re-checked until the next lookup."""
        quiz.is_active = active
        self.save(quiz)
        return quiz

    def is_expired(self, quiz: SharedQuiz) -> bool:
        if not quiz.expires_at:
            return False
        try:
            return self._clock() > datetime.fromisoformat(quiz.expires_at)
        except (TypeError, ValueError):
            logger.warning("Shared quiz %s has an unreadable expiry %r; treating it as open", quiz.id, quiz.expires_at)
            return False

    @staticmethod
    def get_stats(quiz: SharedQuiz) -> SharedQuizStats:
        scores = [attempt.score for attempt in quiz.attempts]
        if not scores:
            return SharedQuizStats(attempts=0, average_score=0, best_score=0)
        return SharedQuizStats(
            attempts=len(scores),
            average_score=int(sum(scores) / len(scores) + 0.5),
            best_score=max(scores),
        )

    def _write(self, quizzes: list[SharedQuiz]) -> None:
        self._store.set(SHARED_QUIZZES_KEY, [quiz.to_dict() for quiz in quizzes])


def _stamp(attempt: QuizAttempt, quiz_id: str) -> QuizAttempt:
    if attempt.shared_quiz_id == quiz_id:
        return attempt
    return replace(attempt, shared_quiz_id=quiz_id)
