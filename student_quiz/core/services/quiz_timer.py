"""Countdown timer driving the time limit of a quiz session."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum, auto
import logging
from threading import Event, Lock, Thread
from typing import Protocol

from student_quiz.constants.quiz_constants import TIMER_TICK_SECONDS

logger = logging.getLogger(__name__)


class TimerState(Enum):
    IDLE = auto()
    RUNNING = auto()
    PAUSED = auto()
    EXPIRED = auto()


class TickHandle(Protocol):
    def cancel(self) -> None:
        ...


class TickScheduler(Protocol):
    """Schedules a callback to run repeatedly until its handle is cancelled."""

    def schedule(self, interval: float, callback: Callable[[], None]) -> TickHandle:
        ...


class _RepeatingTick:
    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        self._interval = interval
        self._callback = callback
        self._stopped = Event()
        self._thread = Thread(target=self._run, name="quiz-timer", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        self._stopped.set()

    def _run(self) -> None:
        while not self._stopped.wait(self._interval):
            self._callback()


class ThreadingTickScheduler:
    """Default scheduler running ticks on a daemon thread."""

    def schedule(self, interval: float, callback: Callable[[], None]) -> TickHandle:
        handle = _RepeatingTick(interval, callback)
        handle.start()
        return handle


class QuizTimer:
    """Counts down whole seconds and fires ``on_expire`` once at zero.

    Pausing suspends the countdown; it never moves the deadline. Any scheduled
    tick is cancelled on pause, on expiry and on ``cancel()``.
    """

    def __init__(
        self,
        total_seconds: int,
        on_expire: Callable[[], None] | None = None,
        scheduler: TickScheduler | None = None,
    ) -> None:
        if total_seconds < 0:
            raise ValueError("Timer duration cannot be negative.")
        self._total_seconds = total_seconds
        self._remaining = total_seconds
        self._on_expire = on_expire
        self._scheduler = scheduler or ThreadingTickScheduler()
        self._state = TimerState.IDLE
        self._handle: TickHandle | None = None
        self._lock = Lock()

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def remaining_seconds(self) -> int:
        return self._remaining

    @property
    def total_seconds(self) -> int:
        return self._total_seconds

    def start(self) -> None:
        with self._lock:
            if self._state is not TimerState.IDLE:
                return
            self._state = TimerState.RUNNING
            self._schedule()

    def pause(self) -> None:
        with self._lock:
            if self._state is not TimerState.RUNNING:
                return
            self._state = TimerState.PAUSED
            self._clear_schedule()

    def resume(self) -> None:
        with self._lock:
            if self._state is not TimerState.PAUSED:
                return
            self._state = TimerState.RUNNING
            self._schedule()

    def cancel(self) -> None:
        """Stop ticking for good (session completion or teardown)."""
        with self._lock:
            self._clear_schedule()
            if self._state is not TimerState.EXPIRED:
                self._state = TimerState.IDLE

    def tick(self) -> None:
        """Advance the countdown by one second."""
        with self._lock:
            if self._state is not TimerState.RUNNING:
                return
            self._remaining = max(0, self._remaining - 1)
            if self._remaining > 0:
                return
            self._state = TimerState.EXPIRED
            self._clear_schedule()

        logger.info("Quiz timer expired after %s seconds", self._total_seconds)
        if self._on_expire is not None:
            self._on_expire()

    def _schedule(self) -> None:
        self._handle = self._scheduler.schedule(TIMER_TICK_SECONDS, self.tick)

    def _clear_schedule(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
