"""Dashboard data for the logged-in user."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

import structlog

from learning.api.client import ApiError
from learning.api.endpoints import LmsApi
from learning.core.catalog import completed_attempts, relevant_quizzes
from learning.core.clock import ensure_aware, parse_timestamp
from learning.models import Quiz, QuizAttemptSummary, Topic, User

logger = structlog.get_logger(__name__)

NEW_TOPIC_WINDOW = timedelta(days=7)
RECENT_ATTEMPT_LIMIT = 5


@dataclass
class DashboardStats:
    total_topics: int = 0
    available_quizzes: int = 0
    completed_quizzes: int = 0
    passed_quizzes: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "total_topics": self.total_topics,
            "available_quizzes": self.available_quizzes,
            "completed_quizzes": self.completed_quizzes,
            "passed_quizzes": self.passed_quizzes,
        }


@dataclass
class Dashboard:
    latest_topics: list[Topic] = field(default_factory=list)
    upcoming_quizzes: list[Quiz] = field(default_factory=list)
    recent_attempts: list[QuizAttemptSummary] = field(default_factory=list)
    stats: DashboardStats = field(default_factory=DashboardStats)

    def to_dict(self) -> dict[str, Any]:
        return {
            "latest_topics": [{"id": t.id, "title": t.title} for t in self.latest_topics],
            "upcoming_quizzes": [{"id": q.id, "title": q.title} for q in self.upcoming_quizzes],
            "recent_attempts": [
                {"id": a.id, "quiz_title": a.quiz_title, "score": a.score, "passed": a.passed}
                for a in self.recent_attempts
            ],
            "stats": self.stats.to_dict(),
        }


def load_dashboard(
    api: LmsApi, user: User | None, now: datetime | None = None
) -> Dashboard:
    """Load topics, quizzes and the user's attempt history.

    Topic and quiz failures propagate. A failure loading the user's
    attempts leaves the per-user stats at zero.
    """
    now = ensure_aware(now)

    topics = api.topics.get_all(active_only=True)
    quizzes = api.quizzes.get_all(active_only=True)

    cutoff = now - NEW_TOPIC_WINDOW
    latest = []
    for topic in topics:
        created = parse_timestamp(topic.created_at)
        if created is not None and created > cutoff:
            latest.append(topic)

    upcoming = relevant_quizzes(quizzes, now)
    stats = DashboardStats(total_topics=len(topics), available_quizzes=len(upcoming))
    dashboard = Dashboard(latest_topics=latest, upcoming_quizzes=upcoming, stats=stats)

    if user is None:
        return dashboard

    try:
        summaries = api.quiz_attempts.get_summary_by_user(user.id)
    except ApiError as e:
        logger.warning("user_stats_load_failed", user_id=user.id, error=e.message)
        return dashboard

    completed = completed_attempts(summaries)
    stats.completed_quizzes = len(completed)
    stats.passed_quizzes = sum(1 for a in completed if a.passed)

    epoch = datetime.fromtimestamp(0).astimezone()
    completed.sort(
        key=lambda a: parse_timestamp(a.completed_at) or epoch, reverse=True
    )
    dashboard.recent_attempts = completed[:RECENT_ATTEMPT_LIMIT]

    return dashboard
