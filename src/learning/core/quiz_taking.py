"""Quiz-taking session.

Client-side state machine around a server-authoritative quiz attempt:

    LOADING -> PRE_QUIZ -> TAKING -> SUBMITTING -> COMPLETED

Every transition is confirmed by a round trip to the backend. Answers are
applied optimistically and rolled back when the save fails. The countdown
is local, seeded from the server's remaining seconds, and triggers one
automatic submit when it runs out.

Usage:
    session = QuizSession(api, quiz_id=7, user=auth.user)
    session.load()
    session.start()
    session.select_answer(question_id=11, answer_id=42)
    session.submit()
"""

from __future__ import annotations

import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

import structlog

from learning.api.client import ApiError
from learning.api.endpoints import LmsApi
from learning.core.catalog import quiz_status
from learning.core.clock import now_local
from learning.core.errors import Notice, NoticeLevel, QuizNotStartableError, QuizStateError
from learning.models import AttemptStatus, Question, Quiz, QuizAttempt, User

logger = structlog.get_logger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

PLACEHOLDER_ANSWER_ID = -1

MSG_RESUMING = "Resuming your quiz attempt..."
MSG_STARTED = "Quiz started! Good luck!"
MSG_START_FAILED = "Failed to start quiz"
MSG_LOAD_FAILED = "Failed to load quiz"
MSG_ANSWER_FAILED = "Failed to save answer. Please try again."
MSG_SUBMITTED = "Quiz submitted successfully!"
MSG_SUBMIT_FAILED = "Failed to submit quiz"
MSG_TIME_UP = "Time is up! Submitting quiz automatically..."

# Server message for a duplicate answer; not worth a notice
DUPLICATE_ANSWER_MARKER = "already submitted"


class QuizState(str, Enum):
    LOADING = "loading"
    PRE_QUIZ = "pre-quiz"
    TAKING = "taking"
    SUBMITTING = "submitting"
    COMPLETED = "completed"


@dataclass
class AnswerRecord:
    """Selected answer plus the backend's user-answer record id."""

    user_answer_id: int
    selected_answer_id: int

    @property
    def confirmed(self) -> bool:
        return self.user_answer_id != PLACEHOLDER_ANSWER_ID


# =============================================================================
# COUNTDOWN
# =============================================================================


def format_clock(seconds: int) -> str:
    """Format seconds as m:ss."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


class QuizCountdown:
    """Local countdown seeded from the server's remaining seconds.

    Args:
        seconds: Seconds left when the countdown starts
        total_seconds: Full quiz duration, for the progress percentage
        clock: Monotonic time source in seconds
    """

    def __init__(
        self,
        seconds: int,
        total_seconds: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.initial = max(0, int(seconds))
        self.total_seconds = total_seconds if total_seconds is not None else self.initial
        self._clock = clock
        self._deadline = clock() + self.initial

    @property
    def running(self) -> bool:
        """A countdown seeded with zero seconds never runs."""
        return self.initial > 0

    @property
    def remaining(self) -> int:
        return max(0, math.ceil(self._deadline - self._clock()))

    @property
    def expired(self) -> bool:
        return self.running and self.remaining == 0

    @property
    def time_progress(self) -> float:
        """Remaining time as a percentage of the full duration."""
        if self.total_seconds <= 0:
            return 0.0
        return self.remaining / self.total_seconds * 100

    @property
    def level(self) -> str:
        """ok above 50%, warning above 20%, critical otherwise."""
        progress = self.time_progress
        if progress > 50:
            return "ok"
        if progress > 20:
            return "warning"
        return "critical"

    def formatted(self) -> str:
        return format_clock(self.remaining)


# =============================================================================
# SESSION
# =============================================================================


class QuizSession:
    """One user's pass through one quiz.

    State changes are serialized with a lock; backend calls run outside
    it so a slow request does not block readers.
    """

    def __init__(
        self,
        api: LmsApi,
        quiz_id: int,
        user: User | None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = now_local,
    ):
        self.api = api
        self.quiz_id = quiz_id
        self.user = user
        self._clock = clock
        self._now = now
        self._lock = threading.RLock()

        self.state = QuizState.LOADING
        self.quiz: Quiz | None = None
        self.questions: list[Question] = []
        self.attempt: QuizAttempt | None = None
        self.answers: dict[int, AnswerRecord] = {}
        self.current_index = 0
        self.countdown: QuizCountdown | None = None
        self.has_completed_attempt = False
        self.completed_attempt_id: int | None = None
        self.result_route: str | None = None
        self.notices: list[Notice] = []

        self._in_flight: set[int] = set()
        self._auto_submitted = False

    # -------------------------------------------------------------------------
    # Notices
    # -------------------------------------------------------------------------

    def _notify(self, level: NoticeLevel, message: str) -> None:
        self.notices.append(Notice(level, message))

    def drain_notices(self) -> list[Notice]:
        """Return and forget the pending notices."""
        with self._lock:
            notices, self.notices = self.notices, []
        return notices

    # -------------------------------------------------------------------------
    # Loading and starting
    # -------------------------------------------------------------------------

    def load(self) -> QuizState:
        """Resume an in-progress attempt or show the quiz preview.

        Raises:
            ApiError: If the quiz itself cannot be loaded
        """
        with self._lock:
            self.state = QuizState.LOADING

        try:
            if self.user is not None:
                if self._resume_in_progress():
                    return self.state
                if self._find_completed_attempt():
                    quiz = self.api.quizzes.get_by_id(self.quiz_id)
                    with self._lock:
                        self.quiz = quiz
                        self.state = QuizState.PRE_QUIZ
                    return self.state

            quiz = self.api.quizzes.get_by_id(self.quiz_id)
        except ApiError as e:
            logger.error("quiz_load_failed", quiz_id=self.quiz_id, error=e.message)
            with self._lock:
                self._notify("error", MSG_LOAD_FAILED)
            raise

        with self._lock:
            self.quiz = quiz
            self.state = QuizState.PRE_QUIZ
        return self.state

    def _resume_in_progress(self) -> bool:
        assert self.user is not None
        try:
            attempt = self.api.quiz_attempts.get_in_progress(self.user.id, self.quiz_id)
            if attempt is None:
                return False
            quiz = self.api.quizzes.get_with_questions(self.quiz_id)
            user_answers = self.api.user_answers.get_by_attempt(attempt.id)
        except ApiError as e:
            logger.info("in_progress_lookup_failed", quiz_id=self.quiz_id, error=e.message)
            return False

        answers = {
            ua.question_id: AnswerRecord(ua.id, ua.selected_answer_id)
            for ua in user_answers
            if ua.question_id and ua.selected_answer_id and ua.id
        }

        with self._lock:
            self.quiz = quiz
            self.questions = list(quiz.questions)
            self.attempt = attempt
            self.answers = answers
            self.current_index = 0
            self.countdown = QuizCountdown(
                attempt.remaining_seconds or 0,
                total_seconds=quiz.duration_minutes * 60,
                clock=self._clock,
            )
            self._auto_submitted = False
            self.state = QuizState.TAKING
            self._notify("info", MSG_RESUMING)

        logger.info(
            "quiz_attempt_resumed",
            attempt_id=attempt.id,
            quiz_id=self.quiz_id,
            answered=len(answers),
        )
        return True

    def _find_completed_attempt(self) -> bool:
        assert self.user is not None
        try:
            attempts = self.api.quiz_attempts.get_by_user_and_quiz(self.user.id, self.quiz_id)
        except ApiError as e:
            logger.info("completed_lookup_failed", quiz_id=self.quiz_id, error=e.message)
            return False

        completed = next(
            (a for a in attempts if a.status == AttemptStatus.COMPLETED), None
        )
        if completed is None:
            return False

        with self._lock:
            self.has_completed_attempt = True
            self.completed_attempt_id = completed.id
        return True

    def check_startable(self) -> None:
        """Raise QuizNotStartableError unless start() may proceed."""
        if self.user is None:
            raise QuizNotStartableError("Please log in to take this quiz")
        if self.quiz is None:
            raise QuizNotStartableError("Quiz not found")
        if self.has_completed_attempt:
            raise QuizNotStartableError("You have already completed this quiz")

        status = quiz_status(self.quiz, self._now())
        if status == "upcoming":
            raise QuizNotStartableError("This quiz has not started yet")
        if status == "expired":
            raise QuizNotStartableError("This quiz has ended")
        if status == "inactive":
            raise QuizNotStartableError("This quiz is not active")

    @property
    def can_start(self) -> bool:
        if self.state != QuizState.PRE_QUIZ:
            return False
        try:
            self.check_startable()
        except QuizNotStartableError:
            return False
        return True

    def start(self) -> QuizAttempt:
        """Create a new attempt and begin the countdown.

        Raises:
            QuizStateError: If not in the pre-quiz state
            QuizNotStartableError: If the quiz cannot be taken now
            ApiError: If the backend refuses (state stays PRE_QUIZ)
        """
        with self._lock:
            if self.state != QuizState.PRE_QUIZ:
                raise QuizStateError(f"Cannot start quiz while {self.state.value}")
            self.check_startable()
            assert self.user is not None and self.quiz is not None
            user_id = self.user.id
            fallback_seconds = self.quiz.duration_minutes * 60

        try:
            attempt = self.api.quiz_attempts.create(self.quiz_id, user_id)
            quiz = self.api.quizzes.get_with_questions(self.quiz_id)
        except ApiError as e:
            logger.error("quiz_start_failed", quiz_id=self.quiz_id, error=e.message)
            with self._lock:
                self._notify("error", MSG_START_FAILED)
                self.state = QuizState.PRE_QUIZ
            raise

        with self._lock:
            self.quiz = quiz
            self.questions = list(quiz.questions)
            self.attempt = attempt
            self.answers = {}
            self.current_index = 0
            self.countdown = QuizCountdown(
                attempt.remaining_seconds or fallback_seconds,
                total_seconds=quiz.duration_minutes * 60 or fallback_seconds,
                clock=self._clock,
            )
            self._auto_submitted = False
            self.state = QuizState.TAKING
            self._notify("success", MSG_STARTED)

        logger.info("quiz_attempt_started", attempt_id=attempt.id, quiz_id=self.quiz_id)
        return attempt

    # -------------------------------------------------------------------------
    # Answering
    # -------------------------------------------------------------------------

    def select_answer(self, question_id: int, answer_id: int) -> bool:
        """Save the chosen answer for a question.

        The choice shows immediately and is rolled back if the backend
        rejects it. A question with a save already in flight is skipped.

        Returns:
            True if the backend confirmed the answer
        """
        with self._lock:
            if self.state != QuizState.TAKING or self.attempt is None:
                raise QuizStateError(f"Cannot answer while {self.state.value}")
            if question_id in self._in_flight:
                logger.debug("answer_save_in_flight", question_id=question_id)
                return False

            previous = self.answers.get(question_id)
            record_id = previous.user_answer_id if previous else PLACEHOLDER_ANSWER_ID
            self.answers[question_id] = AnswerRecord(record_id, answer_id)
            self._in_flight.add(question_id)
            attempt_id = self.attempt.id

        try:
            if previous is not None:
                self.api.user_answers.update(previous.user_answer_id, answer_id)
                confirmed_id = previous.user_answer_id
            else:
                saved = self.api.user_answers.submit(attempt_id, question_id, answer_id)
                confirmed_id = saved.id

            with self._lock:
                self.answers[question_id] = AnswerRecord(confirmed_id, answer_id)
            return True
        except ApiError as e:
            logger.warning(
                "answer_save_failed",
                attempt_id=attempt_id,
                question_id=question_id,
                error=e.message,
            )
            with self._lock:
                if previous is not None:
                    self.answers[question_id] = previous
                else:
                    self.answers.pop(question_id, None)
                if DUPLICATE_ANSWER_MARKER not in (e.message or ""):
                    self._notify("error", MSG_ANSWER_FAILED)
            return False
        finally:
            with self._lock:
                self._in_flight.discard(question_id)

    def is_saving(self, question_id: int) -> bool:
        return question_id in self._in_flight

    def selected_answer(self, question_id: int) -> int | None:
        record = self.answers.get(question_id)
        return record.selected_answer_id if record else None

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    @property
    def current_question(self) -> Question | None:
        if not self.questions:
            return None
        return self.questions[self.current_index]

    def next(self) -> bool:
        with self._lock:
            if self.current_index < len(self.questions) - 1:
                self.current_index += 1
                return True
            return False

    def previous(self) -> bool:
        with self._lock:
            if self.current_index > 0:
                self.current_index -= 1
                return True
            return False

    def jump_to(self, index: int) -> bool:
        with self._lock:
            if 0 <= index < len(self.questions):
                self.current_index = index
                return True
            return False

    @property
    def answered_count(self) -> int:
        return sum(1 for q in self.questions if q.id in self.answers)

    @property
    def unanswered_count(self) -> int:
        return len(self.questions) - self.answered_count

    @property
    def progress(self) -> float:
        """Position of the current question as a percentage."""
        if not self.questions:
            return 0.0
        return (self.current_index + 1) / len(self.questions) * 100

    @property
    def needs_confirmation(self) -> bool:
        """Submitting with unanswered questions asks the user first."""
        return self.unanswered_count > 0

    # -------------------------------------------------------------------------
    # Submitting and the timer
    # -------------------------------------------------------------------------

    def submit(self) -> QuizAttempt | None:
        """Submit the attempt.

        Returns:
            The submitted attempt, or None if the backend refused (state
            goes back to TAKING).
        """
        with self._lock:
            if self.state != QuizState.TAKING or self.attempt is None:
                raise QuizStateError(f"Cannot submit while {self.state.value}")
            self.state = QuizState.SUBMITTING
            attempt = self.attempt

        try:
            submitted = self.api.quiz_attempts.submit(attempt.id)
        except ApiError as e:
            logger.error("quiz_submit_failed", attempt_id=attempt.id, error=e.message)
            with self._lock:
                self._notify("error", MSG_SUBMIT_FAILED)
                self.state = QuizState.TAKING
            return None

        with self._lock:
            if submitted is not None:
                self.attempt = submitted
            self.state = QuizState.COMPLETED
            self.result_route = f"/quiz/{self.quiz_id}/result/{attempt.id}"
            self._notify("success", MSG_SUBMITTED)

        logger.info("quiz_attempt_submitted", attempt_id=attempt.id, quiz_id=self.quiz_id)
        return self.attempt

    @property
    def time_remaining(self) -> int:
        return self.countdown.remaining if self.countdown else 0

    def check_timer(self) -> bool:
        """Auto-submit once when the countdown runs out.

        Returns:
            True if this call submitted the attempt
        """
        with self._lock:
            if (
                self.state != QuizState.TAKING
                or self.countdown is None
                or not self.countdown.expired
                or self._auto_submitted
            ):
                return False
            self._auto_submitted = True
            self._notify("info", MSG_TIME_UP)

        logger.info("quiz_time_expired", attempt_id=self.attempt.id if self.attempt else None)
        try:
            return self.submit() is not None
        except QuizStateError:
            # Submitted by the user in the meantime
            return False

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """Serializable view of the session (answers are never revealed)."""
        with self._lock:
            question = self.current_question
            return {
                "quiz_id": self.quiz_id,
                "state": self.state.value,
                "title": self.quiz.title if self.quiz else None,
                "attempt_id": self.attempt.id if self.attempt else None,
                "can_start": self.can_start,
                "has_completed_attempt": self.has_completed_attempt,
                "completed_attempt_id": self.completed_attempt_id,
                "current_index": self.current_index,
                "question_count": len(self.questions),
                "current_question": _question_view(question, self) if question else None,
                "answers": {
                    str(qid): rec.selected_answer_id for qid, rec in self.answers.items()
                },
                "answered_count": self.answered_count,
                "unanswered_count": self.unanswered_count,
                "progress": round(self.progress, 1),
                "time_remaining": self.time_remaining,
                "clock": format_clock(self.time_remaining),
                "needs_confirmation": self.needs_confirmation,
                "result_route": self.result_route,
            }


def _question_view(question: Question, session: QuizSession) -> dict[str, Any]:
    return {
        "id": question.id,
        "text": question.question_text,
        "points": question.points,
        "selected_answer_id": session.selected_answer(question.id),
        "saving": session.is_saving(question.id),
        "answers": [
            {"id": a.id, "text": a.answer_text} for a in question.ordered_answers()
        ],
    }
