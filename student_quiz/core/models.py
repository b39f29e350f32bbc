"""Domain models for the quiz application."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class QuestionType(str, Enum):
    """Supported question formats."""

    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    SHORT_ANSWER = "short-answer"


@dataclass(slots=True)
class Question:
    """A single question in the author's bank or in a shared snapshot."""

    id: str
    type: QuestionType
    prompt: str
    correct_answer: str
    options: list[str] | None = None  # Multiple-choice only
    explanation: str | None = None
    partial_credit: bool = False  # Short-answer only

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "prompt": self.prompt,
            "correct_answer": self.correct_answer,
            "options": list(self.options) if self.options is not None else None,
            "explanation": self.explanation,
            "partial_credit": self.partial_credit,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Question":
        options = data.get("options")
        return cls(
            id=str(data["id"]),
            type=QuestionType(data["type"]),
            prompt=str(data["prompt"]),
            correct_answer=str(data["correct_answer"]),
            options=[str(option) for option in options] if options is not None else None,
            explanation=data.get("explanation"),
            partial_credit=bool(data.get("partial_credit", False)),
        )

    def copy_with_id(self, new_id: str) -> "Question":
        """Return an independent copy of the question under a different id."""
        return Question(
            id=new_id,
            type=self.type,
            prompt=self.prompt,
            correct_answer=self.correct_answer,
            options=list(self.options) if self.options is not None else None,
            explanation=self.explanation,
            partial_credit=self.partial_credit,
        )


@dataclass(frozen=True, slots=True)
class QuizAnswer:
    """One learner response to one question within one attempt."""

    question_id: str
    user_answer: str
    is_correct: bool
    question: Question
    partial_score: float | None = None
    matched_words: tuple[str, ...] | None = None
    total_words: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "question_id": self.question_id,
            "user_answer": self.user_answer,
            "is_correct": self.is_correct,
            "question": self.question.to_dict(),
            "partial_score": self.partial_score,
            "matched_words": list(self.matched_words) if self.matched_words is not None else None,
            "total_words": self.total_words,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QuizAnswer":
        matched = data.get("matched_words")
        return cls(
            question_id=str(data["question_id"]),
            user_answer=str(data["user_answer"]),
            is_correct=bool(data["is_correct"]),
            question=Question.from_dict(data["question"]),
            partial_score=data.get("partial_score"),
            matched_words=tuple(matched) if matched is not None else None,
            total_words=data.get("total_words"),
        )


@dataclass(frozen=True, slots=True)
class QuizAttempt:
    """A completed, scored pass through a quiz."""

    id: str
    date: str
    score: int
    total_questions: int
    time_spent_seconds: int
    answers: tuple[QuizAnswer, ...] = ()
    participant_name: str | None = None
    shared_quiz_id: str | None = None

    @property
    def correct_count(self) -> int:
        return sum(1 for answer in self.answers if answer.is_correct)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "score": self.score,
            "total_questions": self.total_questions,
            "time_spent_seconds": self.time_spent_seconds,
            "answers": [answer.to_dict() for answer in self.answers],
            "participant_name": self.participant_name,
            "shared_quiz_id": self.shared_quiz_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QuizAttempt":
        return cls(
            id=str(data["id"]),
            date=str(data["date"]),
            score=int(data["score"]),
            total_questions=int(data["total_questions"]),
            time_spent_seconds=int(data["time_spent_seconds"]),
            answers=tuple(QuizAnswer.from_dict(item) for item in data.get("answers", [])),
            participant_name=data.get("participant_name"),
            shared_quiz_id=data.get("shared_quiz_id"),
        )


@dataclass(slots=True)
class SharedQuizSettings:
    """Options chosen by the author when sharing a quiz."""

    time_limit_minutes: int | None = None
    random_order: bool = True
    allow_retakes: bool = True
    show_results: bool = True
    collect_names: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "time_limit_minutes": self.time_limit_minutes,
            "random_order": self.random_order,
            "allow_retakes": self.allow_retakes,
            "show_results": self.show_results,
            "collect_names": self.collect_names,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SharedQuizSettings":
        return cls(
            time_limit_minutes=data.get("time_limit_minutes") or None,
            random_order=bool(data.get("random_order", True)),
            allow_retakes=bool(data.get("allow_retakes", True)),
            show_results=bool(data.get("show_results", True)),
            collect_names=bool(data.get("collect_names", True)),
        )


@dataclass(slots=True)
class SharedQuiz:
    """Question snapshot distributed through a link, collecting attempts."""

    id: str
    title: str
    questions: list[Question]
    created_by: str
    created_at: str
    settings: SharedQuizSettings
    description: str | None = None
    expires_at: str | None = None
    attempts: list[QuizAttempt] = field(default_factory=list)
    is_active: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "questions": [question.to_dict() for question in self.questions],
            "created_by": self.created_by,
            "created_at": self.created_at,
            "expires_at": self.expires_at,
            "settings": self.settings.to_dict(),
            "attempts": [attempt.to_dict() for attempt in self.attempts],
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SharedQuiz":
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            description=data.get("description"),
            questions=[Question.from_dict(item) for item in data.get("questions", [])],
            created_by=str(data["created_by"]),
            created_at=str(data["created_at"]),
            expires_at=data.get("expires_at"),
            settings=SharedQuizSettings.from_dict(data.get("settings", {})),
            attempts=[QuizAttempt.from_dict(item) for item in data.get("attempts", [])],
            is_active=bool(data.get("is_active", True)),
        )
