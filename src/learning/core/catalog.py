"""Browsing helpers: quiz availability, topic hierarchy and list filters.

Pure functions over DTOs already fetched from the backend. Anything that
depends on time takes an explicit ``now`` so it can be tested.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Literal, Protocol

from learning.core.clock import ensure_aware, parse_timestamp
from learning.models import QuizAttemptSummary, Resource, Topic, User

QuizStatus = Literal["inactive", "upcoming", "active", "expired"]

QUIZ_STATUSES: tuple[QuizStatus, ...] = ("inactive", "upcoming", "active", "expired")

STATUS_LABELS: dict[str, str] = {
    "inactive": "Inactive",
    "upcoming": "Upcoming",
    "active": "Active Now",
    "expired": "Expired",
}


class Schedulable(Protocol):
    """Anything with an active flag and an optional time window."""

    active: bool
    start_time: str | None
    end_time: str | None


# =============================================================================
# QUIZ AVAILABILITY
# =============================================================================


@dataclass
class QuizAvailability:
    """Whether (and when) a quiz can be taken."""

    status: QuizStatus
    can_start: bool
    seconds_until_start: int | None = None
    seconds_until_end: int | None = None

    @property
    def label(self) -> str:
        return STATUS_LABELS[self.status]

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "label": self.label,
            "can_start": self.can_start,
            "seconds_until_start": self.seconds_until_start,
            "seconds_until_end": self.seconds_until_end,
        }


def quiz_status(quiz: Schedulable, now: datetime | None = None) -> QuizStatus:
    """Classify a quiz by its active flag and time window."""
    now = ensure_aware(now)

    if not quiz.active:
        return "inactive"

    start = parse_timestamp(quiz.start_time)
    if start is not None and start > now:
        return "upcoming"

    end = parse_timestamp(quiz.end_time)
    if end is not None and now > end:
        return "expired"

    return "active"


def can_start(quiz: Schedulable, now: datetime | None = None) -> bool:
    return quiz_status(quiz, now) == "active"


def availability(quiz: Schedulable, now: datetime | None = None) -> QuizAvailability:
    now = ensure_aware(now)
    status = quiz_status(quiz, now)

    start = parse_timestamp(quiz.start_time)
    end = parse_timestamp(quiz.end_time)

    until_start = None
    if start is not None and start > now:
        until_start = int((start - now).total_seconds())

    until_end = None
    if end is not None and end > now:
        until_end = int((end - now).total_seconds())

    return QuizAvailability(
        status=status,
        can_start=status == "active",
        seconds_until_start=until_start,
        seconds_until_end=until_end,
    )


def filter_quizzes(
    quizzes: Iterable[Any],
    query: str = "",
    status: QuizStatus | None = None,
    topic_id: int | None = None,
    now: datetime | None = None,
) -> list[Any]:
    """Case-insensitive search over title, description and topic title."""
    now = ensure_aware(now)
    needle = query.strip().lower()
    result = []

    for quiz in quizzes:
        if needle:
            haystack = (
                quiz.title,
                getattr(quiz, "description", "") or "",
                quiz.topic_title or "",
            )
            if not any(needle in text.lower() for text in haystack):
                continue
        if topic_id is not None and getattr(quiz, "topic_id", None) != topic_id:
            continue
        if status is not None and quiz_status(quiz, now) != status:
            continue
        result.append(quiz)

    return result


def relevant_quizzes(quizzes: Iterable[Any], now: datetime | None = None) -> list[Any]:
    """Quizzes not yet past their end time, soonest start first.

    A missing start time sorts as "now".
    """
    now = ensure_aware(now)
    kept = []
    for quiz in quizzes:
        end = parse_timestamp(quiz.end_time)
        if end is not None and end < now:
            continue
        kept.append(quiz)

    return sorted(kept, key=lambda q: parse_timestamp(q.start_time) or now)


# =============================================================================
# TOPIC HIERARCHY
# =============================================================================


@dataclass
class TopicNode:
    """A topic with its children attached."""

    topic: Topic
    children: list[TopicNode] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.topic.id,
            "title": self.topic.title,
            "description": self.topic.description,
            "active": self.topic.active,
            "has_quiz": self.topic.has_quiz,
            "resource_count": self.topic.resource_count,
            "children": [child.to_dict() for child in self.children],
        }


def filter_topics(topics: Iterable[Topic], query: str = "") -> list[Topic]:
    needle = query.strip().lower()
    if not needle:
        return list(topics)
    return [
        t
        for t in topics
        if needle in t.title.lower() or needle in (t.description or "").lower()
    ]


def build_topic_tree(topics: Sequence[Topic]) -> list[TopicNode]:
    """Attach topics to their parents by parent_topic_id.

    A topic whose parent is not in the list becomes a root. Input order is
    kept for roots and for siblings.
    """
    nodes = {t.id: TopicNode(topic=t) for t in topics}
    roots: list[TopicNode] = []

    for topic in topics:
        node = nodes[topic.id]
        parent_id = topic.parent_topic_id
        if parent_id is not None and parent_id in nodes and parent_id != topic.id:
            nodes[parent_id].children.append(node)
        else:
            roots.append(node)

    return roots


def walk_tree(nodes: Iterable[TopicNode], depth: int = 0) -> Iterator[tuple[int, TopicNode]]:
    """Depth-first (depth, node) pairs."""
    for node in nodes:
        yield depth, node
        yield from walk_tree(node.children, depth + 1)


# =============================================================================
# LIST FILTERS
# =============================================================================


def _value(raw: Enum | str | None) -> str | None:
    return raw.value if isinstance(raw, Enum) else raw


def filter_resources(
    resources: Iterable[Resource],
    query: str = "",
    topic_id: int | None = None,
    resource_type: str | None = None,
    status: Literal["all", "active", "inactive"] = "all",
) -> list[Resource]:
    needle = query.strip().lower()
    wanted_type = _value(resource_type)
    result = []

    for resource in resources:
        if needle and not (
            needle in resource.title.lower()
            or needle in (resource.description or "").lower()
        ):
            continue
        if topic_id is not None and resource.topic_id != topic_id:
            continue
        if wanted_type is not None and _value(resource.type) != wanted_type:
            continue
        if status == "active" and not resource.active:
            continue
        if status == "inactive" and resource.active:
            continue
        result.append(resource)

    return result


def completed_attempts(
    summaries: Iterable[QuizAttemptSummary],
) -> list[QuizAttemptSummary]:
    return [s for s in summaries if s.is_completed]


def filter_users(
    users: Iterable[User], query: str = "", role: str | None = None
) -> list[User]:
    """Search username, email, first and last name; optional role filter."""
    needle = query.strip().lower()
    wanted_role = _value(role)
    result = []

    for user in users:
        if needle and not any(
            needle in text.lower()
            for text in (user.username, user.email, user.first_name, user.last_name)
        ):
            continue
        if wanted_role is not None and _value(user.role) != wanted_role:
            continue
        result.append(user)

    return result
