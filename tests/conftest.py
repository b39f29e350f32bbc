from datetime import datetime, timedelta, timezone

import pytest

from student_quiz.core.models import Question, QuestionType
from student_quiz.core.storage import InMemoryStore


class ManualHandle:
    def __init__(self, callback):
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Tick scheduler driven by the test instead of a thread."""

    def __init__(self):
        self.handles = []

    def schedule(self, interval, callback):
        handle = ManualHandle(callback)
        self.handles.append(handle)
        return handle

    @property
    def active(self):
        return [h for h in self.handles if not h.cancelled]

    def tick(self, times=1):
        for _ in range(times):
            for handle in self.active:
                handle.callback()


class FakeClock:
    def __init__(self, start=0.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeDateTimeClock:
    def __init__(self, start=None):
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def date_clock():
    return FakeDateTimeClock()


@pytest.fixture
def questions():
    return [
        Question(
            id="q1",
            type=QuestionType.MULTIPLE_CHOICE,
            prompt="Capital of France?",
            options=["Berlin", "Paris", "Rome"],
            correct_answer="Paris",
        ),
        Question(
            id="q2",
            type=QuestionType.TRUE_FALSE,
            prompt="Water boils at 100C at sea level.",
            correct_answer="true",
        ),
        Question(
            id="q3",
            type=QuestionType.SHORT_ANSWER,
            prompt="Describe a fox.",
            correct_answer="The quick brown fox",
            partial_credit=True,
        ),
    ]
