"""Quiz result views and the admin analytics built on attempt summaries.

Scores and pass/fail come from the backend. The aggregates here (result
percentage, averages, pass rate, rankings) are display computations over
that data.
"""

from __future__ import annotations

import csv
import io
import math
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

import structlog

from learning.api.endpoints import LmsApi
from learning.core.catalog import QuizStatus, completed_attempts, filter_quizzes, quiz_status
from learning.core.clock import ensure_aware, parse_timestamp
from learning.models import Question, Quiz, QuizAttempt, QuizAttemptSummary, UserAnswer

logger = structlog.get_logger(__name__)

SortKey = Literal["score", "time", "date"]
SortOrder = Literal["asc", "desc"]

CSV_HEADERS = [
    "Name",
    "Email",
    "Score (%)",
    "Points",
    "Pass/Fail",
    "Time Taken",
    "Submitted At",
]


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (display rounding)."""
    return int(math.floor(value + 0.5))


def _number(value: float) -> str:
    """85.0 -> "85", 85.5 -> "85.5"."""
    return str(int(value)) if float(value).is_integer() else str(value)


def elapsed_seconds(started: str | None, completed: str | None) -> int | None:
    start = parse_timestamp(started)
    end = parse_timestamp(completed)
    if start is None or end is None:
        return None
    return int((end - start).total_seconds())


def format_duration(started: str | None, completed: str | None) -> str:
    """Time between two timestamps as "Xm Ys", or "N/A"."""
    seconds = elapsed_seconds(started, completed)
    if seconds is None:
        return "N/A"
    return f"{seconds // 60}m {seconds % 60}s"


# =============================================================================
# SINGLE RESULT
# =============================================================================


@dataclass
class ReviewItem:
    """One question in the answer review."""

    question: Question
    user_answer: UserAnswer | None

    @property
    def answered(self) -> bool:
        return self.user_answer is not None

    @property
    def correct(self) -> bool:
        return bool(self.user_answer and self.user_answer.correct)

    @property
    def selected_answer_text(self) -> str | None:
        if self.user_answer is None:
            return None
        for answer in self.question.answers:
            if answer.id == self.user_answer.selected_answer_id:
                return answer.answer_text
        return self.user_answer.selected_answer_text or None

    @property
    def correct_answer_text(self) -> str | None:
        answer = self.question.correct_answer
        return answer.answer_text if answer else None

    @property
    def points_earned(self) -> float:
        return self.user_answer.points_earned if self.user_answer else 0

    @property
    def explanation(self) -> str | None:
        return self.question.explanation


@dataclass
class QuizResult:
    """Result screen for one attempt."""

    attempt: QuizAttempt
    quiz: Quiz
    user_answers: list[UserAnswer]
    correct: int = 0
    incorrect: int = 0
    answered: int = 0
    unanswered: int = 0
    points_earned: float = 0
    total_points: int = 0
    percentage: int = 0
    passed: bool = False
    time_taken_seconds: int | None = None
    review: list[ReviewItem] = field(default_factory=list)

    @classmethod
    def build(
        cls, attempt: QuizAttempt, quiz: Quiz, user_answers: Sequence[UserAnswer]
    ) -> QuizResult:
        questions = quiz.questions
        correct = sum(1 for ua in user_answers if ua.correct)
        answered = len(user_answers)
        points_earned = sum(ua.points_earned or 0 for ua in user_answers)
        total_points = sum(q.points or 0 for q in questions)
        percentage = (
            round_half_up(points_earned / total_points * 100) if total_points > 0 else 0
        )

        by_question = {ua.question_id: ua for ua in user_answers}
        review = [ReviewItem(q, by_question.get(q.id)) for q in questions]

        return cls(
            attempt=attempt,
            quiz=quiz,
            user_answers=list(user_answers),
            correct=correct,
            incorrect=answered - correct,
            answered=answered,
            unanswered=len(questions) - answered,
            points_earned=points_earned,
            total_points=total_points,
            percentage=percentage,
            passed=percentage >= quiz.passing_score,
            time_taken_seconds=elapsed_seconds(attempt.started_at, attempt.completed_at),
            review=review,
        )

    @property
    def time_taken(self) -> str:
        if self.time_taken_seconds is None:
            return "N/A"
        minutes, seconds = divmod(self.time_taken_seconds, 60)
        return f"{minutes}:{seconds:02d}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempt_id": self.attempt.id,
            "quiz_id": self.quiz.id,
            "quiz_title": self.quiz.title,
            "correct": self.correct,
            "incorrect": self.incorrect,
            "answered": self.answered,
            "unanswered": self.unanswered,
            "points_earned": self.points_earned,
            "total_points": self.total_points,
            "percentage": self.percentage,
            "passed": self.passed,
            "time_taken": self.time_taken,
        }


def load_result(api: LmsApi, attempt_id: int) -> QuizResult:
    """Fetch everything the result screen shows for an attempt."""
    attempt = api.quiz_attempts.get_with_answers(attempt_id)
    if attempt.quiz_id is None:
        raise ValueError(f"Attempt {attempt_id} has no quiz")
    quiz = api.quizzes.get_with_questions(attempt.quiz_id)
    user_answers = api.user_answers.get_by_attempt(attempt_id)

    logger.debug("result_loaded", attempt_id=attempt_id, quiz_id=quiz.id)
    return QuizResult.build(attempt, quiz, user_answers)


# =============================================================================
# ANALYTICS
# =============================================================================


@dataclass
class QuizStatistics:
    """Aggregates over the completed attempts of one quiz."""

    total_attempts: int = 0
    average_score: int = 0
    highest_score: float = 0
    lowest_score: float = 0
    pass_rate: int = 0
    average_time_minutes: int = 0

    @classmethod
    def from_attempts(cls, attempts: Iterable[QuizAttemptSummary]) -> QuizStatistics:
        completed = completed_attempts(attempts)
        if not completed:
            return cls()

        scores = [a.score or 0 for a in completed]
        total = len(completed)
        passed = sum(1 for a in completed if a.passed)

        durations = [
            seconds
            for a in completed
            if (seconds := elapsed_seconds(a.started_at, a.completed_at)) is not None
        ]
        average_time = (
            round_half_up(sum(durations) / len(durations) / 60) if durations else 0
        )

        return cls(
            total_attempts=total,
            average_score=round_half_up(sum(scores) / total),
            highest_score=max(scores),
            lowest_score=min(scores),
            pass_rate=round_half_up(passed / total * 100),
            average_time_minutes=average_time,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_attempts": self.total_attempts,
            "average_score": self.average_score,
            "highest_score": self.highest_score,
            "lowest_score": self.lowest_score,
            "pass_rate": self.pass_rate,
            "average_time_minutes": self.average_time_minutes,
        }


@dataclass
class RankedAttempt:
    rank: int
    attempt: QuizAttemptSummary

    @property
    def label(self) -> str:
        return rank_label(self.rank)


def rank_label(rank: int) -> str:
    if rank == 1:
        return "1st"
    if rank == 2:
        return "2nd"
    if rank == 3:
        return "3rd"
    return f"{rank}th"


def rank_attempts(attempts: Iterable[QuizAttemptSummary]) -> list[RankedAttempt]:
    """Completed attempts by score, best first, ranked from 1."""
    ordered = sorted(completed_attempts(attempts), key=lambda a: a.score or 0, reverse=True)
    return [RankedAttempt(rank=i, attempt=a) for i, a in enumerate(ordered, start=1)]


def sort_attempts(
    attempts: Iterable[QuizAttemptSummary],
    by: SortKey = "score",
    order: SortOrder = "desc",
) -> list[QuizAttemptSummary]:
    """Sort by score, time taken or submission date."""

    def key(a: QuizAttemptSummary) -> float:
        if by == "score":
            return a.score or 0
        if by == "time":
            return elapsed_seconds(a.started_at, a.completed_at) or 0
        moment = parse_timestamp(a.completed_at or a.started_at)
        return moment.timestamp() if moment else 0

    return sorted(attempts, key=key, reverse=order == "desc")


# =============================================================================
# CSV EXPORT
# =============================================================================


def _csv_name(attempt: QuizAttemptSummary) -> str:
    if attempt.user is not None:
        return f"{attempt.user.first_name} {attempt.user.last_name}"
    return attempt.user_full_name


def results_csv(attempts: Sequence[QuizAttemptSummary], question_count: int = 0) -> str:
    """CSV export of quiz results, every cell quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)

    for attempt in attempts:
        completed = parse_timestamp(attempt.completed_at)
        writer.writerow(
            [
                _csv_name(attempt),
                attempt.user.email if attempt.user else "",
                _number(attempt.score or 0),
                f"{attempt.correct_answers or 0}/{attempt.total_questions or question_count}",
                "Pass" if attempt.passed else "Fail",
                format_duration(attempt.started_at, attempt.completed_at),
                completed.astimezone().strftime("%Y-%m-%d %H:%M:%S") if completed else "N/A",
            ]
        )

    return buffer.getvalue().rstrip("\n")


def export_filename(quiz_title: str) -> str:
    return re.sub(r"\s+", "_", quiz_title) + "_results.csv"


# =============================================================================
# OVERVIEW
# =============================================================================


@dataclass
class QuizOverviewRow:
    quiz: Quiz
    status: QuizStatus
    statistics: QuizStatistics

    def to_dict(self) -> dict[str, Any]:
        return {
            "quiz_id": self.quiz.id,
            "title": self.quiz.title,
            "topic_title": self.quiz.topic_title,
            "status": self.status,
            **self.statistics.to_dict(),
        }


def overview(
    api: LmsApi,
    now: datetime | None = None,
    query: str = "",
    status: QuizStatus | None = None,
) -> list[QuizOverviewRow]:
    """Every quiz with its completed-attempt statistics."""
    now = ensure_aware(now)
    quizzes = filter_quizzes(api.quizzes.get_all(active_only=False), query, status, now=now)

    rows = []
    for quiz in quizzes:
        summaries = api.quiz_attempts.get_summary_by_quiz(quiz.id)
        rows.append(
            QuizOverviewRow(
                quiz=quiz,
                status=quiz_status(quiz, now),
                statistics=QuizStatistics.from_attempts(summaries),
            )
        )
    return rows
