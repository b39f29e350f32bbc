"""Questions a fresh question bank starts with."""

from __future__ import annotations

from student_quiz.core.models import Question, QuestionType


def sample_questions() -> list[Question]:
    return [
        Question(
            id="1",
            type=QuestionType.MULTIPLE_CHOICE,
            prompt="What is the capital of France?",
            options=["London", "Berlin", "Paris", "Madrid"],
            correct_answer="Paris",
            explanation="Paris is the capital and most populous city of France.",
        ),
        Question(
            id="2",
            type=QuestionType.TRUE_FALSE,
            prompt="The Earth is flat.",
            correct_answer="false",
            explanation="The Earth is an oblate spheroid.",
        ),
        Question(
            id="3",
            type=QuestionType.SHORT_ANSWER,
            prompt="What is the chemical symbol for gold?",
            correct_answer="Au",
            explanation="Au comes from the Latin word for gold, aurum.",
        ),
        Question(
            id="4",
            type=QuestionType.SHORT_ANSWER,
            prompt="Describe what photosynthesis produces.",
            correct_answer="glucose and oxygen from carbon dioxide and water using sunlight",
            explanation="Plants turn light energy into chemical energy stored in glucose.",
            partial_credit=True,
        ),
    ]
