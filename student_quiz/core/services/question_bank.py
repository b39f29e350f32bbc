"""Service for managing the author's bank of questions."""

from __future__ import annotations

import logging
from uuid import uuid4

from student_quiz.constants.storage_constants import QUESTIONS_KEY
from student_quiz.core.models import Question, QuestionType
from student_quiz.core.quiz_exporter import serialize_questions
from student_quiz.core.quiz_importer import QuizImportError, parse_questions
from student_quiz.core.sample_questions import sample_questions
from student_quiz.core.storage import KeyValueStore

logger = logging.getLogger(__name__)

_TRUE_FALSE_ANSWERS = {"true", "false"}


class QuestionValidationError(ValueError):
    """Raised when an authored question is incomplete or inconsistent."""


class QuestionBank:
    """Manages the lifecycle and storage of the author's questions."""

    def __init__(self, store: KeyValueStore, seed_samples: bool = True) -> None:
        self._store = store
        if seed_samples and store.get(QUESTIONS_KEY) is None:
            self._write(sample_questions())

    def get_questions(self) -> list[Question]:
        raw = self._store.get(QUESTIONS_KEY, [])
        if not isinstance(raw, list):
            logger.warning("Question bank is malformed; treating it as empty.")
            return []
        try:
            return [Question.from_dict(item) for item in raw]
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Could not load question bank, treating it as empty: %s", exc)
            return []

    def get_question_count(self) -> int:
        return len(self.get_questions())

    def get_question(self, question_id: str) -> Question | None:
        return next((q for q in self.get_questions() if q.id == question_id), None)

    def save_question(self, question: Question) -> Question:
        """Validate and insert the question, or replace the one with the same id."""
        prepared = self._prepare_question(question)
        questions = self.get_questions()
        for index, existing in enumerate(questions):
            if existing.id == prepared.id:
                questions[index] = prepared
                break
        else:
            questions.append(prepared)
        self._write(questions)
        return prepared

    def delete_question(self, question_id: str) -> bool:
        questions = self.get_questions()
        remaining = [q for q in questions if q.id != question_id]
        if len(remaining) == len(questions):
            return False
        self._write(remaining)
        return True

    def replace_all(self, questions: list[Question]) -> None:
        self._write(questions)

    def import_json(self, text: str) -> int:
        """Replace the whole bank with the questions in ``text``.

        Every entry is validated like a hand-authored question. Raises
        ``QuizImportError`` and leaves the bank as it was if any entry fails.
        """
        questions = []
        for position, question in enumerate(parse_questions(text), start=1):
            try:
                questions.append(self._prepare_question(question))
            except QuestionValidationError as exc:
                raise QuizImportError(f"Entry {position} is invalid: {exc}") from exc
        self.replace_all(questions)
        logger.info("Imported %d question(s)", len(questions))
        return len(questions)

    def export_json(self) -> str:
        return serialize_questions(self.get_questions())

    @staticmethod
    def new_question_id() -> str:
        return uuid4().hex

    def _prepare_question(self, question: Question) -> Question:
        prompt = question.prompt.strip()
        correct_answer = question.correct_answer.strip()
        if not prompt or not correct_answer:
            raise QuestionValidationError("Please fill in the question and correct answer.")

        options = None
        if question.type is QuestionType.MULTIPLE_CHOICE:
            options = [option.strip() for option in question.options or []]
            if len(options) < 2:
                raise QuestionValidationError("Multiple-choice questions need at least two options.")
            if any(not option for option in options):
                raise QuestionValidationError("Option text cannot be empty.")
            if correct_answer not in options:
                raise QuestionValidationError("The correct answer must be one of the options.")
        elif question.type is QuestionType.TRUE_FALSE:
            correct_answer = correct_answer.lower()
            if correct_answer not in _TRUE_FALSE_ANSWERS:
                raise QuestionValidationError("True/false questions must be answered 'true' or 'false'.")

        explanation = (question.explanation or "").strip() or None
        return Question(
            id=question.id or self.new_question_id(),
            type=question.type,
            prompt=prompt,
            correct_answer=correct_answer,
            options=options,
            explanation=explanation,
            partial_credit=question.partial_credit and question.type is QuestionType.SHORT_ANSWER,
        )

    def _write(self, questions: list[Question]) -> None:
        self._store.set(QUESTIONS_KEY, [question.to_dict() for question in questions])
