"""DTO mirrors of the learning backend's entities.

The backend owns every invariant (uniqueness, referential integrity,
scores). These classes only map the camelCase JSON shape onto Python
objects; timestamps stay as the ISO strings the backend sends.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

# =============================================================================
# ENUMS
# =============================================================================


class UserRole(str, Enum):
    """Roles known to the backend."""

    ADMIN = "ADMIN"
    MODERATOR = "MODERATOR"
    USER = "USER"
    GUEST = "GUEST"


class ResourceType(str, Enum):
    """Kinds of learning resources attached to a topic."""

    PDF = "PDF"
    LINK = "LINK"
    DOCUMENT = "DOCUMENT"
    VIDEO = "VIDEO"


class AttemptStatus(str, Enum):
    """Lifecycle of a quiz attempt on the server."""

    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    EXPIRED = "EXPIRED"
    ABANDONED = "ABANDONED"


class NotificationType(str, Enum):
    """Notification categories."""

    NEW_TOPIC = "NEW_TOPIC"
    NEW_QUIZ = "NEW_QUIZ"
    QUIZ_RESULT = "QUIZ_RESULT"
    ANNOUNCEMENT = "ANNOUNCEMENT"


E = TypeVar("E", bound=Enum)
T = TypeVar("T")


def _enum(enum_cls: type[E], value: Any) -> E | str | None:
    """Map a raw value to an enum member, keeping unknown values as strings."""
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return value


def _int(value: Any) -> int | None:
    return int(value) if value is not None else None


def _float(value: Any) -> float | None:
    return float(value) if value is not None else None


def _many(cls: type[T], items: Any) -> list[T]:
    """Map a JSON list onto DTOs; None becomes an empty list."""
    return [cls.from_dict(item) for item in items or []]  # type: ignore[attr-defined]


# =============================================================================
# USERS
# =============================================================================


@dataclass
class User:
    """A backend user account."""

    id: int
    username: str
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    phone_number: str = ""
    role: UserRole | str = UserRole.USER
    active: bool = True
    soft_deleted: bool = False
    verified: bool = False
    login_attempts: int = 0
    account_locked_until: str | None = None
    last_login_at: str | None = None
    password_changed_at: str | None = None
    created_at: str = ""
    updated_at: str = ""

    @property
    def full_name(self) -> str:
        """First and last name, falling back to the username."""
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.username

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> User:
        """Create from backend JSON."""
        return cls(
            id=int(data["id"]),
            username=data.get("username", ""),
            email=data.get("email") or "",
            first_name=data.get("firstName") or "",
            last_name=data.get("lastName") or "",
            phone_number=data.get("phoneNumber") or "",
            role=_enum(UserRole, data.get("role")) or UserRole.USER,
            active=bool(data.get("active", True)),
            soft_deleted=bool(data.get("softDeleted", False)),
            verified=bool(data.get("verified", False)),
            login_attempts=int(data.get("loginAttempts") or 0),
            account_locked_until=data.get("accountLockedUntil"),
            last_login_at=data.get("lastLoginAt"),
            password_changed_at=data.get("passwordChangedAt"),
            created_at=data.get("createdAt") or "",
            updated_at=data.get("updatedAt") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert back to the backend's JSON shape (cached profile)."""
        role = self.role.value if isinstance(self.role, Enum) else self.role
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "phoneNumber": self.phone_number,
            "role": role,
            "active": self.active,
            "softDeleted": self.soft_deleted,
            "verified": self.verified,
            "loginAttempts": self.login_attempts,
            "accountLockedUntil": self.account_locked_until,
            "lastLoginAt": self.last_login_at,
            "passwordChangedAt": self.password_changed_at,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class LoginResponse:
    """Tokens and profile returned by login and register."""

    access_token: str
    user: User
    refresh_token: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LoginResponse:
        """Create from backend JSON."""
        return cls(
            access_token=data.get("accessToken") or data.get("token") or "",
            user=User.from_dict(data["user"]),
            refresh_token=data.get("refreshToken"),
        )


# =============================================================================
# TOPICS AND RESOURCES
# =============================================================================


@dataclass
class TopicSummary:
    """Compact topic used for sub-topic listings."""

    id: int
    title: str
    description: str = ""
    active: bool = True
    has_quiz: bool = False
    sub_topic_count: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TopicSummary:
        """Create from backend JSON."""
        return cls(
            id=int(data["id"]),
            title=data.get("title", ""),
            description=data.get("description") or "",
            active=bool(data.get("active", True)),
            has_quiz=bool(data.get("hasQuiz", False)),
            sub_topic_count=int(data.get("subTopicCount") or 0),
        )


@dataclass
class Topic:
    """A hierarchical content category."""

    id: int
    title: str
    description: str = ""
    parent_topic_id: int | None = None
    parent_topic_title: str | None = None
    sub_topics: list[TopicSummary] = field(default_factory=list)
    display_order: int = 0
    active: bool = True
    has_quiz: bool = False
    resource_count: int = 0
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Topic:
        """Create from backend JSON."""
        return cls(
            id=int(data["id"]),
            title=data.get("title", ""),
            description=data.get("description") or "",
            parent_topic_id=_int(data.get("parentTopicId")),
            parent_topic_title=data.get("parentTopicTitle"),
            sub_topics=_many(TopicSummary, data.get("subTopics")),
            display_order=int(data.get("displayOrder") or 0),
            active=bool(data.get("active", True)),
            has_quiz=bool(data.get("hasQuiz", False)),
            resource_count=int(data.get("resourceCount") or 0),
            created_at=data.get("createdAt") or "",
            updated_at=data.get("updatedAt") or "",
        )


@dataclass
class Resource:
    """A link, document or video attached to a topic."""

    id: int
    title: str
    url: str
    type: ResourceType | str = ResourceType.LINK
    description: str = ""
    topic_id: int | None = None
    topic_title: str | None = None
    display_order: int = 0
    active: bool = True
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Resource:
        """Create from backend JSON.

        With ``withTopic=true`` the backend nests the topic instead of
        flattening its id and title.
        """
        topic = data.get("topic") or {}
        return cls(
            id=int(data["id"]),
            title=data.get("title", ""),
            url=data.get("url", ""),
            type=_enum(ResourceType, data.get("type")) or ResourceType.LINK,
            description=data.get("description") or "",
            topic_id=_int(data.get("topicId", topic.get("id"))),
            topic_title=data.get("topicTitle", topic.get("title")),
            display_order=int(data.get("displayOrder") or 0),
            active=bool(data.get("active", True)),
            created_at=data.get("createdAt") or "",
            updated_at=data.get("updatedAt") or "",
        )


# =============================================================================
# QUIZZES, QUESTIONS, ANSWERS
# =============================================================================


@dataclass
class Answer:
    """One answer option of a question."""

    id: int
    answer_text: str
    correct: bool = False
    question_id: int | None = None
    display_order: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Answer:
        """Create from backend JSON (summaries omit ``correct``)."""
        return cls(
            id=int(data["id"]),
            answer_text=data.get("answerText", ""),
            correct=bool(data.get("correct", False)),
            question_id=_int(data.get("questionId")),
            display_order=int(data.get("displayOrder") or 0),
        )


@dataclass
class Question:
    """A quiz question with its answer options."""

    id: int
    question_text: str
    quiz_id: int | None = None
    explanation: str | None = None
    points: int = 1
    display_order: int = 0
    answers: list[Answer] = field(default_factory=list)
    active: bool = True

    @property
    def correct_answer(self) -> Answer | None:
        """First answer flagged correct, if the payload exposes it."""
        return next((a for a in self.answers if a.correct), None)

    def ordered_answers(self) -> list[Answer]:
        """Answers sorted by display order."""
        return sorted(self.answers, key=lambda a: a.display_order)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Question:
        """Create from backend JSON."""
        return cls(
            id=int(data["id"]),
            question_text=data.get("questionText", ""),
            quiz_id=_int(data.get("quizId")),
            explanation=data.get("explanation"),
            points=int(data.get("points") or 0),
            display_order=int(data.get("displayOrder") or 0),
            answers=_many(Answer, data.get("answers")),
            active=bool(data.get("active", True)),
        )


@dataclass
class Quiz:
    """A timed assessment attached to a topic."""

    id: int
    title: str
    description: str = ""
    topic_id: int | None = None
    topic_title: str | None = None
    duration_minutes: int = 0
    passing_score: int = 0
    active: bool = True
    start_time: str | None = None
    end_time: str | None = None
    shuffle_questions: bool = False
    show_results_immediately: bool = False
    question_count: int = 0
    total_points: int = 0
    questions: list[Question] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Quiz:
        """Create from backend JSON."""
        questions = _many(Question, data.get("questions"))
        return cls(
            id=int(data["id"]),
            title=data.get("title", ""),
            description=data.get("description") or "",
            topic_id=_int(data.get("topicId")),
            topic_title=data.get("topicTitle"),
            duration_minutes=int(data.get("durationMinutes") or 0),
            passing_score=int(data.get("passingScore") or 0),
            active=bool(data.get("active", True)),
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
            shuffle_questions=bool(data.get("shuffleQuestions", False)),
            show_results_immediately=bool(data.get("showResultsImmediately", False)),
            question_count=int(data.get("questionCount") or len(questions)),
            total_points=int(data.get("totalPoints") or 0),
            questions=questions,
            created_at=data.get("createdAt") or "",
            updated_at=data.get("updatedAt") or "",
        )


@dataclass
class QuizSummary:
    """Compact quiz listing row."""

    id: int
    title: str
    topic_title: str | None = None
    duration_minutes: int = 0
    passing_score: int = 0
    active: bool = True
    start_time: str | None = None
    end_time: str | None = None
    question_count: int = 0
    is_available: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QuizSummary:
        """Create from backend JSON."""
        return cls(
            id=int(data["id"]),
            title=data.get("title", ""),
            topic_title=data.get("topicTitle"),
            duration_minutes=int(data.get("durationMinutes") or 0),
            passing_score=int(data.get("passingScore") or 0),
            active=bool(data.get("active", True)),
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
            question_count=int(data.get("questionCount") or 0),
            is_available=bool(data.get("isAvailable", False)),
        )


# =============================================================================
# ATTEMPTS AND USER ANSWERS
# =============================================================================


@dataclass
class UserAnswer:
    """A recorded response to one question within an attempt."""

    id: int
    quiz_attempt_id: int | None = None
    question_id: int | None = None
    question_text: str = ""
    selected_answer_id: int | None = None
    selected_answer_text: str = ""
    correct: bool = False
    points_earned: float = 0
    explanation: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserAnswer:
        """Create from backend JSON.

        Summary payloads carry no record id; those map to ``id=0``.
        """
        return cls(
            id=int(data.get("id") or 0),
            quiz_attempt_id=_int(data.get("quizAttemptId")),
            question_id=_int(data.get("questionId")),
            question_text=data.get("questionText") or "",
            selected_answer_id=_int(data.get("selectedAnswerId")),
            selected_answer_text=data.get("selectedAnswerText") or "",
            correct=bool(data.get("correct", False)),
            points_earned=float(data.get("pointsEarned") or 0),
            explanation=data.get("explanation"),
        )


@dataclass
class UserAnswerStatistics:
    """Per-attempt answer statistics computed by the backend."""

    total_answers: int = 0
    correct_answers: int = 0
    incorrect_answers: int = 0
    total_points: float = 0
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserAnswerStatistics:
        """Create from backend JSON, keeping the raw payload."""
        return cls(
            total_answers=int(data.get("totalAnswers") or 0),
            correct_answers=int(data.get("correctAnswers") or 0),
            incorrect_answers=int(data.get("incorrectAnswers") or 0),
            total_points=float(data.get("totalPoints") or 0),
            raw=dict(data),
        )


@dataclass
class QuizAttempt:
    """One user's run through a quiz (server authoritative)."""

    id: int
    quiz_id: int | None = None
    quiz_title: str = ""
    user_id: int | None = None
    user_full_name: str = ""
    status: AttemptStatus | str = AttemptStatus.IN_PROGRESS
    started_at: str = ""
    completed_at: str | None = None
    expires_at: str | None = None
    score: float | None = None
    total_points: float | None = None
    passed: bool | None = None
    duration_minutes: int = 0
    remaining_seconds: int | None = None
    user_answers: list[UserAnswer] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QuizAttempt:
        """Create from backend JSON."""
        return cls(
            id=int(data["id"]),
            quiz_id=_int(data.get("quizId")),
            quiz_title=data.get("quizTitle") or "",
            user_id=_int(data.get("userId")),
            user_full_name=data.get("userFullName") or "",
            status=_enum(AttemptStatus, data.get("status")) or AttemptStatus.IN_PROGRESS,
            started_at=data.get("startedAt") or "",
            completed_at=data.get("completedAt"),
            expires_at=data.get("expiresAt"),
            score=_float(data.get("score")),
            total_points=_float(data.get("totalPoints")),
            passed=data.get("passed"),
            duration_minutes=int(data.get("durationMinutes") or 0),
            remaining_seconds=_int(data.get("remainingSeconds")),
            user_answers=_many(UserAnswer, data.get("userAnswers")),
        )


@dataclass
class QuizAttemptSummary:
    """Attempt listing row used by dashboards and result screens."""

    id: int
    quiz_id: int | None = None
    quiz_title: str = ""
    user_id: int | None = None
    user_full_name: str = ""
    user: User | None = None
    status: AttemptStatus | str = AttemptStatus.IN_PROGRESS
    started_at: str = ""
    completed_at: str | None = None
    score: float | None = None
    total_points: float | None = None
    passed: bool | None = None
    correct_answers: int | None = None
    total_questions: int | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == AttemptStatus.COMPLETED

    @property
    def display_name(self) -> str:
        """Name shown in result tables."""
        if self.user is not None:
            return self.user.full_name
        return self.user_full_name

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QuizAttemptSummary:
        """Create from backend JSON."""
        user = data.get("user")
        return cls(
            id=int(data["id"]),
            quiz_id=_int(data.get("quizId")),
            quiz_title=data.get("quizTitle") or "",
            user_id=_int(data.get("userId")),
            user_full_name=data.get("userFullName") or "",
            user=User.from_dict(user) if user else None,
            status=_enum(AttemptStatus, data.get("status")) or AttemptStatus.IN_PROGRESS,
            started_at=data.get("startedAt") or "",
            completed_at=data.get("completedAt"),
            score=_float(data.get("score")),
            total_points=_float(data.get("totalPoints")),
            passed=data.get("passed"),
            correct_answers=_int(data.get("correctAnswers")),
            total_questions=_int(data.get("totalQuestions")),
        )


# =============================================================================
# NOTIFICATIONS
# =============================================================================


@dataclass
class Notification:
    """A message addressed to one user."""

    id: int
    user_id: int
    title: str
    message: str = ""
    type: NotificationType | str = NotificationType.ANNOUNCEMENT
    read: bool = False
    created_at: str = ""
    related_id: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Notification:
        """Create from backend JSON."""
        return cls(
            id=int(data["id"]),
            user_id=int(data.get("userId") or 0),
            title=data.get("title", ""),
            message=data.get("message") or "",
            type=_enum(NotificationType, data.get("type")) or NotificationType.ANNOUNCEMENT,
            read=bool(data.get("read", False)),
            created_at=data.get("createdAt") or "",
            related_id=_int(data.get("relatedId")),
        )
