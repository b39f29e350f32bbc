"""Service governing a learner's progress through one quiz pass."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import Enum, auto
import logging
import random
from threading import Lock
import time
from uuid import uuid4

from student_quiz.core.answer_scoring import score_question
from student_quiz.core.attempt_aggregator import finalize_attempt
from student_quiz.core.models import Question, QuizAnswer, QuizAttempt, SharedQuizSettings
from student_quiz.core.services.quiz_timer import QuizTimer, TickScheduler, TimerState

logger = logging.getLogger(__name__)


class SessionState(Enum):
    NOT_STARTED = auto()
    IN_PROGRESS = auto()
    COMPLETED = auto()


class QuizSession:
    """Walks a fixed question order, collects answers and produces an attempt.

    The working order is decided once at construction. A configured time limit
    runs a ``QuizTimer`` whose expiry completes the session even when questions
    remain unanswered; those questions score zero.
    """

    def __init__(
        self,
        questions: Sequence[Question],
        random_order: bool = False,
        time_limit_minutes: int | None = None,
        *,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
        scheduler: TickScheduler | None = None,
        on_complete: Callable[[QuizAttempt], None] | None = None,
        participant_name: str | None = None,
        shared_quiz_id: str | None = None,
        shared_title: str | None = None,
        shared_settings: SharedQuizSettings | None = None,
    ) -> None:
        if not questions:
            raise ValueError("A quiz session needs at least one question.")

        order = list(questions)
        if random_order:
            (rng or random.Random()).shuffle(order)

        self._id = uuid4().hex
        self._working_order: tuple[Question, ...] = tuple(order)
        self._state = SessionState.NOT_STARTED
        self._position = 0
        self._answers: list[QuizAnswer] = []
        self._attempt: QuizAttempt | None = None
        self._clock = clock
        self._started_at: float | None = None
        self._on_complete = on_complete
        self._participant_name = participant_name
        self._shared_quiz_id = shared_quiz_id
        self._shared_title = shared_title
        # Taken at start; later edits or deletion of the shared quiz do not apply.
        self._shared_settings = shared_settings
        self._completed_at: float | None = None
        self._lock = Lock()

        self._timer: QuizTimer | None = None
        if time_limit_minutes:
            self._timer = QuizTimer(
                time_limit_minutes * 60,
                on_expire=self._handle_time_up,
                scheduler=scheduler,
            )

    # --- Read accessors ---

    @property
    def id(self) -> str:
        return self._id

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def working_order(self) -> tuple[Question, ...]:
        return self._working_order

    @property
    def current_index(self) -> int:
        return self._position

    @property
    def current_question(self) -> Question | None:
        if self._state is not SessionState.IN_PROGRESS:
            return None
        return self._working_order[self._position]

    @property
    def is_last_question(self) -> bool:
        return self._position == len(self._working_order) - 1

    @property
    def progress(self) -> tuple[int, int]:
        return self._position + 1, len(self._working_order)

    @property
    def answers(self) -> list[QuizAnswer]:
        return list(self._answers)

    @property
    def attempt(self) -> QuizAttempt | None:
        return self._attempt

    @property
    def participant_name(self) -> str | None:
        return self._participant_name

    @property
    def shared_quiz_id(self) -> str | None:
        return self._shared_quiz_id

    @property
    def shared_title(self) -> str | None:
        return self._shared_title

    @property
    def shared_settings(self) -> SharedQuizSettings | None:
        return self._shared_settings

    @property
    def completed_at(self) -> float | None:
        """Clock reading when the session completed."""
        return self._completed_at

    @property
    def has_time_limit(self) -> bool:
        return self._timer is not None

    @property
    def time_remaining(self) -> int | None:
        return self._timer.remaining_seconds if self._timer else None

    @property
    def timer_state(self) -> TimerState | None:
        return self._timer.state if self._timer else None

    def answer_for(self, question_id: str) -> QuizAnswer | None:
        return next((a for a in self._answers if a.question_id == question_id), None)

    # --- Transitions ---

    def start(self) -> None:
        with self._lock:
            if self._state is not SessionState.NOT_STARTED:
                return
            self._state = SessionState.IN_PROGRESS
            self._started_at = self._clock()
            logger.info(
                "Session %s started with %d question(s)", self._id, len(self._working_order)
            )
        if self._timer is not None:
            self._timer.start()

    def submit_answer(self, question_id: str, text: str) -> QuizAnswer | None:
        """Score ``text`` for the current question; the latest answer replaces earlier ones."""
        with self._lock:
            question = self.current_question
            if question is None:
                logger.warning("Ignoring answer for session %s in state %s", self._id, self._state.name)
                return None
            if question.id != question_id:
                logger.warning(
                    "Ignoring stale answer for question %s; current question is %s",
                    question_id,
                    question.id,
                )
                return None

            result = score_question(question, text)
            answer = QuizAnswer(
                question_id=question.id,
                user_answer=text,
                is_correct=result.is_correct,
                question=question,
                partial_score=result.partial_score,
                matched_words=result.matched_words,
                total_words=result.total_words,
            )
            self._answers = [a for a in self._answers if a.question_id != question.id]
            self._answers.append(answer)
            return answer

    def advance(self) -> bool:
        """Move to the next question, completing the session after the last one.

        Returns ``False`` without changing anything when the current question has
        no recorded answer.
        """
        with self._lock:
            question = self.current_question
            if question is None or self.answer_for(question.id) is None:
                return False
            if not self.is_last_question:
                self._position += 1
                return True
        self.complete()
        return True

    def pause(self) -> None:
        if self._timer is not None and self._state is SessionState.IN_PROGRESS:
            self._timer.pause()

    def resume(self) -> None:
        if self._timer is not None and self._state is SessionState.IN_PROGRESS:
            self._timer.resume()

    def complete(self) -> QuizAttempt | None:
        """Finalize the attempt once; later calls return the same attempt."""
        with self._lock:
            if self._state is SessionState.COMPLETED:
                return self._attempt
            if self._state is SessionState.NOT_STARTED:
                return None
            self._state = SessionState.COMPLETED
            self._completed_at = self._clock()
            if self._timer is not None:
                self._timer.cancel()
            self._attempt = finalize_attempt(
                self._answers,
                total_questions=len(self._working_order),
                elapsed_seconds=self._elapsed_seconds(),
                participant_name=self._participant_name,
                shared_quiz_id=self._shared_quiz_id,
            )
            attempt = self._attempt
            logger.info("Session %s completed with score %d%%", self._id, attempt.score)

        if self._on_complete is not None:
            self._on_complete(attempt)
        return attempt

    def close(self) -> None:
        """Tear down without completing; no timer callback fires afterwards."""
        if self._timer is not None:
            self._timer.cancel()

    def _elapsed_seconds(self) -> int:
        if self._started_at is None:
            return 0
        return int(self._clock() - self._started_at + 0.5)

    def _handle_time_up(self) -> None:
        logger.info("Time limit reached for session %s", self._id)
        self.complete()
