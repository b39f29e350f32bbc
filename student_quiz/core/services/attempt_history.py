"""Service tracking the learner's own completed attempts over time."""

from __future__ import annotations

from dataclasses import dataclass
import logging

from student_quiz.constants.quiz_constants import (
    EXCELLENT_SCORE_THRESHOLD,
    GOOD_SCORE_THRESHOLD,
    RECENT_ATTEMPTS_LIMIT,
)
from student_quiz.constants.storage_constants import ATTEMPTS_KEY
from student_quiz.core.models import QuizAttempt
from student_quiz.core.storage import KeyValueStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProgressSummary:
    """Immutable snapshot returned to consumers."""

    best_score: int
    average_score: int
    total_attempts: int


def feedback_for_score(score: int) -> str:
    if score >= EXCELLENT_SCORE_THRESHOLD:
        return "Excellent!"
    if score >= GOOD_SCORE_THRESHOLD:
        return "Good job!"
    return "Keep practicing!"


class AttemptHistory:
    """Append-only record of personal quiz attempts."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def record_attempt(self, attempt: QuizAttempt) -> None:
        attempts = self.get_attempts()
        attempts.append(attempt)
        self._store.set(ATTEMPTS_KEY, [item.to_dict() for item in attempts])

    def get_attempts(self) -> list[QuizAttempt]:
        raw = self._store.get(ATTEMPTS_KEY, [])
        if not isinstance(raw, list):
            logger.warning("Attempt history is malformed; treating it as empty.")
            return []
        try:
            return [QuizAttempt.from_dict(item) for item in raw]
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Could not load attempt history, treating it as empty: %s", exc)
            return []

    def get_recent(self, limit: int = RECENT_ATTEMPTS_LIMIT) -> list[QuizAttempt]:
        """Return the newest attempts first."""
        ordered = sorted(self.get_attempts(), key=lambda a: a.date, reverse=True)
        return ordered[:limit]

    def get_summary(self) -> ProgressSummary:
        scores = [attempt.score for attempt in self.get_attempts()]
        if not scores:
            return ProgressSummary(best_score=0, average_score=0, total_attempts=0)
        return ProgressSummary(
            best_score=max(scores),
            average_score=int(sum(scores) / len(scores) + 0.5),
            total_attempts=len(scores),
        )
