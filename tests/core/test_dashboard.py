"""Tests for the dashboard loader and the notification center."""

from datetime import datetime, timezone

from learning.core.dashboard import load_dashboard
from learning.core.notifications import NotificationCenter, target_for
from learning.models import Notification

from conftest import LEARNER_ID

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class TestLoadDashboard:
    """Tests for load_dashboard."""

    def test_stats_and_latest_topics(self, api, learner):
        """Topics created in the last week are listed as new."""
        data = load_dashboard(api, learner.user, now=NOW)

        assert data.stats.total_topics == 3
        assert [t.id for t in data.latest_topics] == [1, 2, 3]
        assert data.stats.available_quizzes == 2
        assert data.stats.completed_quizzes == 0

    def test_old_topics_not_new(self, api, learner):
        """Nothing is new a month later."""
        later = datetime(2026, 2, 20, tzinfo=timezone.utc)
        assert load_dashboard(api, learner.user, now=later).latest_topics == []

    def test_recent_attempts_newest_first(self, lms, api, learner):
        """Recent results are completed attempts, newest first, at most five."""
        for day in range(1, 8):
            lms.add_completed_attempt(
                LEARNER_ID,
                7,
                score=50 + day,
                passed=day % 2 == 0,
                completed_at=f"2026-01-0{day}T10:00:00Z",
            )
        lms.add_in_progress_attempt(LEARNER_ID, 8)

        data = load_dashboard(api, learner.user, now=NOW)

        assert data.stats.completed_quizzes == 7
        assert data.stats.passed_quizzes == 3
        assert [a.score for a in data.recent_attempts] == [57, 56, 55, 54, 53]

    def test_attempt_failure_keeps_zero_stats(self, lms, api, learner):
        """A failing history call leaves per-user stats at zero."""
        lms.on("GET", r"/api/quiz-attempts/user/\d+/summary", status=500, body={})
        data = load_dashboard(api, learner.user, now=NOW)
        assert data.stats.completed_quizzes == 0
        assert data.stats.total_topics == 3

    def test_to_dict(self, api, learner):
        """The serialized dashboard has the four sections."""
        data = load_dashboard(api, learner.user, now=NOW).to_dict()
        assert set(data) == {"latest_topics", "upcoming_quizzes", "recent_attempts", "stats"}


class TestNotificationCenter:
    """Tests for the notification bell."""

    def test_load_and_unread(self, api):
        """Unread notifications drive the badge."""
        center = NotificationCenter(api, LEARNER_ID)
        assert center.load() is True
        assert center.unread_count == 1
        assert center.badge == "1"

    def test_badge_caps_at_nine(self, api):
        """More than nine unread shows 9+."""
        center = NotificationCenter(api, LEARNER_ID)
        center.notifications = [
            Notification(id=i, user_id=LEARNER_ID, title="n") for i in range(12)
        ]
        assert center.badge == "9+"

    def test_empty_badge(self, api):
        """Nothing unread shows no badge."""
        assert NotificationCenter(api, LEARNER_ID).badge == ""

    def test_mark_read_and_route(self, lms, api):
        """A quiz notification is marked read and points at the quiz."""
        center = NotificationCenter(api, LEARNER_ID)
        center.load()
        assert center.mark_as_read(31) is True
        assert target_for(center.notifications[0]) == "/quiz/7"
        assert center.unread_count == 0
        assert lms.notifications[31]["read"] is True

    def test_failed_mark_keeps_unread(self, lms, api):
        """The local flag changes only when the backend confirms."""
        lms.on("PATCH", r"/api/notifications/\d+/read", status=500, body={})
        center = NotificationCenter(api, LEARNER_ID)
        center.load()
        assert center.mark_as_read(31) is False
        assert center.unread_count == 1

    def test_failed_load_keeps_list(self, lms, api):
        """A failed reload keeps what was shown."""
        center = NotificationCenter(api, LEARNER_ID)
        center.load()
        lms.on("GET", r"/api/notifications/user/\d+", status=500, body={})
        assert center.load() is False
        assert len(center.notifications) == 2

    def test_targets(self):
        """Topic notifications open the topic; others the dashboard."""
        topic = Notification(id=1, user_id=1, title="t", type="NEW_TOPIC", related_id=4)
        other = Notification(id=2, user_id=1, title="t", type="QUIZ_RESULT", related_id=4)
        assert target_for(topic) == "/topics/4"
        assert target_for(other) == "/dashboard"
