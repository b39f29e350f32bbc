"""Business logic tying the question bank, sessions, history and sharing together."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
import logging
import random
from threading import RLock
import time

from student_quiz.constants.quiz_constants import (
    ANONYMOUS_PARTICIPANT,
    COMPLETED_SESSION_RETENTION_SECONDS,
    IDLE_SESSION_TIMEOUT_SECONDS,
)
from student_quiz.core.models import (
    Question,
    QuizAnswer,
    QuizAttempt,
    SharedQuiz,
    SharedQuizSettings,
)
from student_quiz.core.services.attempt_history import AttemptHistory, ProgressSummary
from student_quiz.core.services.question_bank import QuestionBank
from student_quiz.core.services.quiz_session import QuizSession, SessionState
from student_quiz.core.services.quiz_timer import TickScheduler
from student_quiz.core.services.shared_quiz_registry import (
    SharedQuizAccess,
    SharedQuizRegistry,
    SharedQuizStats,
)
from student_quiz.core.storage import KeyValueStore

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    """Raised when a session id does not refer to a running session."""


class ParticipantNameRequiredError(ValueError):
    """Raised when a shared quiz collects names and none was given."""


class QuizManager:
    """Facade for quiz services: QuestionBank, AttemptHistory, SharedQuizRegistry and sessions."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        registry: SharedQuizRegistry | None = None,
        scheduler: TickScheduler | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
        seed_samples: bool = True,
    ) -> None:
        # Timer callbacks complete sessions from a worker thread and re-enter the manager.
        self._lock = RLock()

        # Services
        self._bank = QuestionBank(store, seed_samples=seed_samples)
        self._history = AttemptHistory(store)
        self._registry = registry or SharedQuizRegistry(store)

        self._sessions: dict[str, QuizSession] = {}
        self._last_used: dict[str, float] = {}
        self._scheduler = scheduler
        self._rng = rng or random.Random()
        self._clock = clock

    @property
    def registry(self) -> SharedQuizRegistry:
        return self._registry

    # --- Question Bank Delegation ---

    def get_questions(self) -> list[Question]:
        with self._lock:
            return self._bank.get_questions()

    def save_question(self, question: Question) -> Question:
        with self._lock:
            return self._bank.save_question(question)

    def delete_question(self, question_id: str) -> bool:
        with self._lock:
            return self._bank.delete_question(question_id)

    def import_questions(self, text: str) -> int:
        with self._lock:
            return self._bank.import_json(text)

    def export_questions(self) -> str:
        with self._lock:
            return self._bank.export_json()

    # --- Attempt History Delegation ---

    def get_attempts(self) -> list[QuizAttempt]:
        with self._lock:
            return self._history.get_attempts()

    def get_recent_attempts(self) -> list[QuizAttempt]:
        with self._lock:
            return self._history.get_recent()

    def get_progress_summary(self) -> ProgressSummary:
        with self._lock:
            return self._history.get_summary()

    # --- Sessions ---

    def start_practice_session(
        self,
        time_limit_minutes: int | None = None,
        random_order: bool = True,
    ) -> QuizSession:
        """Start a quiz over the whole bank; the result goes to the personal history."""
        with self._lock:
            questions = self._bank.get_questions()
            if not questions:
                raise ValueError("Add some questions before starting a quiz.")
            session = QuizSession(
                questions,
                random_order=random_order,
                time_limit_minutes=time_limit_minutes,
                rng=self._rng,
                clock=self._clock,
                scheduler=self._scheduler,
                on_complete=self._record_practice_attempt,
            )
            return self._register(session)

    def start_shared_session(self, quiz: SharedQuiz, participant_name: str | None = None) -> QuizSession:
        """Start a link holder's pass; the result is appended to the shared quiz."""
        name = (participant_name or "").strip()
        if quiz.settings.collect_names and not name:
            raise ParticipantNameRequiredError("Please enter your name to continue.")

        with self._lock:
            session = QuizSession(
                quiz.questions,
                random_order=quiz.settings.random_order,
                time_limit_minutes=quiz.settings.time_limit_minutes,
                rng=self._rng,
                clock=self._clock,
                scheduler=self._scheduler,
                on_complete=self._record_shared_attempt,
                participant_name=name or ANONYMOUS_PARTICIPANT,
                shared_quiz_id=quiz.id,
                shared_title=quiz.title,
                shared_settings=replace(quiz.settings),
            )
            return self._register(session)

    def get_session(self, session_id: str) -> QuizSession:
        with self._lock:
            self._prune_sessions()
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            self._last_used[session_id] = self._clock()
            return session

    def submit_answer(self, session_id: str, question_id: str, text: str) -> QuizAnswer | None:
        with self._lock:
            return self.get_session(session_id).submit_answer(question_id, text)

    def advance_session(self, session_id: str) -> bool:
        with self._lock:
            return self.get_session(session_id).advance()

    def pause_session(self, session_id: str) -> None:
        with self._lock:
            self.get_session(session_id).pause()

    def resume_session(self, session_id: str) -> None:
        with self._lock:
            self.get_session(session_id).resume()

    def end_session(self, session_id: str) -> None:
        """Tear the session down and forget it."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
            self._last_used.pop(session_id, None)
        if session is not None:
            session.close()

    def shutdown(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
            self._last_used.clear()
        for session in sessions:
            session.close()

    # --- Sharing ---

    def share_quiz(
        self,
        title: str,
        creator_name: str,
        settings: SharedQuizSettings,
        description: str | None = None,
        expiration_days: int | None = None,
    ) -> SharedQuiz:
        """Snapshot the current bank into a new shared quiz and persist it."""
        with self._lock:
            quiz = self._registry.create(
                self._bank.get_questions(),
                title,
                creator_name,
                settings,
                description=description,
                expiration_days=expiration_days,
            )
            self._registry.save(quiz)
            logger.info("Shared quiz %s created with %d question(s)", quiz.id, len(quiz.questions))
            return quiz

    def open_shared_quiz(self, quiz_id: str) -> SharedQuizAccess:
        with self._lock:
            return self._registry.resolve(quiz_id)

    def get_shared_quizzes(self) -> list[SharedQuiz]:
        with self._lock:
            return self._registry.get_all()

    def get_shared_quiz(self, quiz_id: str) -> SharedQuiz | None:
        with self._lock:
            return self._registry.get_by_id(quiz_id)

    def is_shared_quiz_expired(self, quiz: SharedQuiz) -> bool:
        with self._lock:
            return self._registry.is_expired(quiz)

    def get_shared_quiz_stats(self, quiz: SharedQuiz) -> SharedQuizStats:
        return self._registry.get_stats(quiz)

    def set_shared_quiz_active(self, quiz_id: str, active: bool) -> SharedQuiz | None:
        with self._lock:
            quiz = self._registry.get_by_id(quiz_id)
            if quiz is None:
                return None
            return self._registry.set_active(quiz, active)

    def delete_shared_quiz(self, quiz_id: str) -> None:
        with self._lock:
            self._registry.delete(quiz_id)

    def _register(self, session: QuizSession) -> QuizSession:
        self._prune_sessions()
        self._sessions[session.id] = session
        self._last_used[session.id] = self._clock()
        session.start()
        return session

    def _prune_sessions(self) -> None:
        """Forget finished sessions past retention and unfinished ones left idle."""
        now = self._clock()
        for session_id, session in list(self._sessions.items()):
            last_used = self._last_used.get(session_id, now)
            if session.state is SessionState.COMPLETED:
                idle = now - max(last_used, session.completed_at or last_used)
                limit = COMPLETED_SESSION_RETENTION_SECONDS
            else:
                idle = now - last_used
                limit = IDLE_SESSION_TIMEOUT_SECONDS
            if idle <= limit:
                continue
            del self._sessions[session_id]
            self._last_used.pop(session_id, None)
            session.close()
            logger.info("Released %s session %s", session.state.name.lower(), session_id)

    def _record_practice_attempt(self, attempt: QuizAttempt) -> None:
        with self._lock:
            self._history.record_attempt(attempt)

    def _record_shared_attempt(self, attempt: QuizAttempt) -> None:
        with self._lock:
            if attempt.shared_quiz_id is None:
                return
            self._registry.add_attempt(attempt.shared_quiz_id, attempt)
