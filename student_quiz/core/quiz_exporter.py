"""Utilities for exporting the question bank to the JSON import format."""

from __future__ import annotations

from datetime import date
import json
from pathlib import Path

from student_quiz.core.models import Question


def default_export_filename(today: date | None = None) -> str:
    return f"quiz-questions-{(today or date.today()).isoformat()}.json"


def serialize_questions(questions: list[Question]) -> str:
    return json.dumps([question.to_dict() for question in questions], indent=2)


def save_quiz_to_file(file_path: Path, questions: list[Question]) -> Path:
    """Write the questions to ``file_path``; a directory gets a dated file name."""

    file_path = file_path.resolve()
    if file_path.is_dir():
        file_path = file_path / default_export_filename()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(serialize_questions(questions) + "\n", encoding="utf-8")
    return file_path
