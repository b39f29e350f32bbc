"""Persistence keys and file locations."""

import os
from pathlib import Path

QUESTIONS_KEY: str = "quiz-questions"
ATTEMPTS_KEY: str = "quiz-attempts"
SHARED_QUIZZES_KEY: str = "shared-quizzes"

DATA_FILE_ENV_VAR: str = "STUDENT_QUIZ_DATA_FILE"
DEFAULT_DATA_FILE: Path = Path(
    os.environ.get(DATA_FILE_ENV_VAR, Path.home() / ".student_quiz" / "data.json")
)
