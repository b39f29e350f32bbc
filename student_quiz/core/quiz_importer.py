"""Utilities for importing a question bank from a JSON document.

Document format: a top-level JSON array of question objects, as written by
``quiz_exporter``::

    [
      {
        "id": "1",
        "type": "multiple-choice",
        "prompt": "What is the capital of France?",
        "options": ["Berlin", "Paris", "Rome", "Madrid"],
        "correct_answer": "Paris",
        "explanation": "Paris has been the capital since 508 AD.",
        "partial_credit": false
      }
    ]

Importing replaces the entire bank. Parsing happens completely before
anything is written, so a bad document leaves the bank untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path

from student_quiz.core.models import Question


class QuizImportError(Exception):
    """Raised when a question document cannot be parsed."""


@dataclass(slots=True)
class ImportedQuiz:
    """Container for imported questions and where they came from."""

    source: str
    questions: list[Question]


def load_quiz_from_file(file_path: Path) -> ImportedQuiz:
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise QuizImportError(f"Could not read {file_path.name}: {exc}") from exc
    return ImportedQuiz(source=str(file_path), questions=parse_questions(text))


def parse_questions(text: str) -> list[Question]:
    try:
        payload = json.loads(text)
    except ValueError as exc:
        raise QuizImportError("Error reading file. Make sure it is a valid JSON file.") from exc

    if not isinstance(payload, list):
        raise QuizImportError("Invalid file format. Expected a JSON list of questions.")

    questions: list[Question] = []
    for position, item in enumerate(payload, start=1):
        if not isinstance(item, dict):
            raise QuizImportError(f"Entry {position} is not a question object.")
        try:
            questions.append(Question.from_dict(item))
        except KeyError as exc:
            raise QuizImportError(f"Entry {position} is missing field {exc.args[0]!r}.") from exc
        except (TypeError, ValueError) as exc:
            raise QuizImportError(f"Entry {position} is invalid: {exc}") from exc
    return questions
