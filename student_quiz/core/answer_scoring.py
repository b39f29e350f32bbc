"""Answer scoring: exact matching and word-overlap partial credit.

Multiple-choice and true/false answers, and short answers without partial
credit, are compared case-insensitively after trimming whitespace. Short
answers with partial credit enabled are scored by the share of distinct words
from the correct answer that also appear in the learner's answer; an overlap
of at least ``PARTIAL_CREDIT_THRESHOLD`` counts as correct.
"""

from __future__ import annotations

from dataclasses import dataclass
import re

from student_quiz.constants.quiz_constants import PARTIAL_CREDIT_THRESHOLD
from student_quiz.core.models import Question, QuestionType

_PUNCTUATION_RE = re.compile(r"[^\w\s]")


@dataclass(frozen=True, slots=True)
class WordOverlap:
    """Result of comparing the words of two answers."""

    score: float
    matched_words: tuple[str, ...]
    total_words: int


@dataclass(frozen=True, slots=True)
class ScoringResult:
    """Outcome of scoring one answer."""

    is_correct: bool
    partial_score: float | None = None
    matched_words: tuple[str, ...] | None = None
    total_words: int | None = None


def normalize_words(text: str) -> list[str]:
    """Lowercase, replace punctuation with spaces and split into word tokens."""
    cleaned = _PUNCTUATION_RE.sub(" ", text.lower())
    return [word for word in cleaned.split() if word]


def calculate_word_overlap(user_answer: str, correct_answer: str) -> WordOverlap:
    correct_words = set(normalize_words(correct_answer))
    if not correct_words:
        return WordOverlap(score=0.0, matched_words=(), total_words=0)

    matched: list[str] = []
    for word in normalize_words(user_answer):
        if word in correct_words and word not in matched:
            matched.append(word)

    score = min(1.0, len(matched) / len(correct_words))
    return WordOverlap(score=score, matched_words=tuple(matched), total_words=len(correct_words))


def is_exact_match(user_answer: str, correct_answer: str) -> bool:
    return user_answer.strip().lower() == correct_answer.strip().lower()


def score_answer(
    user_answer: str,
    correct_answer: str,
    question_type: QuestionType,
    partial_credit: bool = False,
) -> ScoringResult:
    """Decide whether ``user_answer`` is correct for a question of the given type."""

    if question_type is QuestionType.SHORT_ANSWER and partial_credit:
        overlap = calculate_word_overlap(user_answer, correct_answer)
        return ScoringResult(
            is_correct=overlap.score >= PARTIAL_CREDIT_THRESHOLD,
            partial_score=overlap.score,
            matched_words=overlap.matched_words,
            total_words=overlap.total_words,
        )

    matched = is_exact_match(user_answer, correct_answer)
    return ScoringResult(is_correct=matched, partial_score=1.0 if matched else 0.0)


def score_question(question: Question, user_answer: str) -> ScoringResult:
    return score_answer(
        user_answer,
        question.correct_answer,
        question.type,
        question.partial_credit,
    )
