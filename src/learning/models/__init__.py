"""Backend DTO mirrors and request drafts."""

from learning.models.drafts import (
    AnswerDraft,
    QuestionDraft,
    QuizDraft,
    RegisterRequest,
    ResourceDraft,
    TopicDraft,
    UserDraft,
    UserUpdate,
)
from learning.models.entities import (
    Answer,
    AttemptStatus,
    LoginResponse,
    Notification,
    NotificationType,
    Question,
    Quiz,
    QuizAttempt,
    QuizAttemptSummary,
    QuizSummary,
    Resource,
    ResourceType,
    Topic,
    TopicSummary,
    User,
    UserAnswer,
    UserAnswerStatistics,
    UserRole,
)

__all__ = [
    "Answer",
    "AnswerDraft",
    "AttemptStatus",
    "LoginResponse",
    "Notification",
    "NotificationType",
    "Question",
    "QuestionDraft",
    "Quiz",
    "QuizAttempt",
    "QuizAttemptSummary",
    "QuizDraft",
    "QuizSummary",
    "RegisterRequest",
    "Resource",
    "ResourceDraft",
    "ResourceType",
    "Topic",
    "TopicDraft",
    "TopicSummary",
    "User",
    "UserAnswer",
    "UserAnswerStatistics",
    "UserDraft",
    "UserRole",
    "UserUpdate",
]
