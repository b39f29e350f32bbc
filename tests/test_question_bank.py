import json

import pytest

from student_quiz.constants.storage_constants import QUESTIONS_KEY
from student_quiz.core.models import Question, QuestionType
from student_quiz.core.quiz_exporter import default_export_filename, save_quiz_to_file
from student_quiz.core.quiz_importer import QuizImportError, load_quiz_from_file, parse_questions
from student_quiz.core.services.question_bank import QuestionBank, QuestionValidationError


def test_new_bank_is_seeded_once(store):
    bank = QuestionBank(store)
    assert bank.get_question_count() == 4
    bank.replace_all([])
    assert QuestionBank(store).get_question_count() == 0


def test_save_question_inserts_and_updates(store):
    bank = QuestionBank(store, seed_samples=False)
    question = Question(id="a", type=QuestionType.SHORT_ANSWER, prompt=" Symbol for gold? ", correct_answer=" Au ")
    saved = bank.save_question(question)
    assert saved.prompt == "Symbol for gold?"
    assert saved.correct_answer == "Au"

    saved.prompt = "Chemical symbol for gold?"
    bank.save_question(saved)
    assert [q.prompt for q in bank.get_questions()] == ["Chemical symbol for gold?"]


@pytest.mark.parametrize(
    "question",
    [
        Question(id="a", type=QuestionType.SHORT_ANSWER, prompt="", correct_answer="x"),
        Question(id="a", type=QuestionType.SHORT_ANSWER, prompt="Q", correct_answer="  "),
        Question(id="a", type=QuestionType.MULTIPLE_CHOICE, prompt="Q", correct_answer="x", options=["x"]),
        Question(id="a", type=QuestionType.MULTIPLE_CHOICE, prompt="Q", correct_answer="z", options=["x", "y"]),
        Question(id="a", type=QuestionType.MULTIPLE_CHOICE, prompt="Q", correct_answer="x", options=["x", " "]),
        Question(id="a", type=QuestionType.TRUE_FALSE, prompt="Q", correct_answer="maybe"),
    ],
)
def test_invalid_questions_are_rejected_without_saving(store, question):
    bank = QuestionBank(store, seed_samples=False)
    with pytest.raises(QuestionValidationError):
        bank.save_question(question)
    assert bank.get_questions() == []


def test_options_and_partial_credit_dropped_for_other_types(store):
    bank = QuestionBank(store, seed_samples=False)
    saved = bank.save_question(
        Question(
            id="tf",
            type=QuestionType.TRUE_FALSE,
            prompt="Sky is blue",
            correct_answer="True",
            options=["a", "b"],
            partial_credit=True,
        )
    )
    assert saved.options is None
    assert saved.partial_credit is False
    assert saved.correct_answer == "true"


def test_delete_question(store):
    bank = QuestionBank(store)
    first_id = bank.get_questions()[0].id
    assert bank.delete_question(first_id)
    assert not bank.delete_question(first_id)
    assert bank.get_question(first_id) is None


def test_export_then_import_replaces_bank(store):
    bank = QuestionBank(store)
    document = bank.export_json()

    other = QuestionBank(type(store)(), seed_samples=False)
    other.save_question(Question(id="z", type=QuestionType.SHORT_ANSWER, prompt="Q", correct_answer="A"))
    assert other.import_json(document) == 4
    assert [q.id for q in other.get_questions()] == [q.id for q in bank.get_questions()]


@pytest.mark.parametrize("document", ["not json", '{"id": "1"}', "[1, 2]", '[{"id": "1"}]', '[{"id": "1", "type": "essay", "prompt": "p", "correct_answer": "a"}]'])
def test_malformed_import_leaves_bank_untouched(store, document):
    bank = QuestionBank(store)
    before = bank.get_questions()
    with pytest.raises(QuizImportError):
        bank.import_json(document)
    assert bank.get_questions() == before


@pytest.mark.parametrize(
    "entry",
    [
        {"id": "x", "type": "multiple-choice", "prompt": "", "options": ["A"], "correct_answer": "Z"},
        {"id": "x", "type": "multiple-choice", "prompt": "Pick", "options": ["A", "B"], "correct_answer": "Z"},
        {"id": "x", "type": "true-false", "prompt": "Sky is blue", "correct_answer": "maybe"},
        {"id": "x", "type": "short-answer", "prompt": "   ", "correct_answer": "Au"},
    ],
)
def test_import_rejects_invalid_questions(store, entry):
    bank = QuestionBank(store)
    before = bank.get_questions()
    with pytest.raises(QuizImportError, match="Entry 1"):
        bank.import_json(json.dumps([entry]))
    assert bank.get_questions() == before


def test_import_normalizes_like_saving(store):
    bank = QuestionBank(store, seed_samples=False)
    entry = {"id": "x", "type": "true-false", "prompt": " Sky is blue ", "options": ["a", "b"], "correct_answer": "TRUE"}
    bank.import_json(json.dumps([entry]))
    stored = bank.get_question("x")
    assert stored.prompt == "Sky is blue"
    assert stored.correct_answer == "true"
    assert stored.options is None


def test_import_accepts_empty_list():
    assert parse_questions("[]") == []


def test_file_round_trip(tmp_path, questions):
    written = save_quiz_to_file(tmp_path, questions)
    assert written.name == default_export_filename()
    imported = load_quiz_from_file(written)
    assert imported.questions == questions
    assert json.loads(written.read_text(encoding="utf-8"))[0]["type"] == "multiple-choice"


def test_corrupt_bank_reads_as_empty(store):
    store.set_raw(QUESTIONS_KEY, "{broken")
    bank = QuestionBank(store, seed_samples=False)
    assert bank.get_questions() == []
