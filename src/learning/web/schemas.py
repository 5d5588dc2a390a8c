"""Pydantic schemas for the web front end.

Request bodies and response models for sessions, catalog and quiz taking.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


# =============================================================================
# SESSION SCHEMAS
# =============================================================================


class LoginRequest(BaseModel):
    """Request body for logging in. ``guest`` ignores the credentials."""

    username: str = Field(default="", max_length=100)
    password: str = Field(default="", max_length=200)
    guest: bool = False


class UserResponse(BaseModel):
    """The logged-in user as the screens show it."""

    id: int
    username: str
    email: str
    full_name: str
    role: str


class SessionResponse(BaseModel):
    """Response for a browser session."""

    session_id: str
    user: UserResponse


# =============================================================================
# CATALOG SCHEMAS
# =============================================================================


class TopicNodeResponse(BaseModel):
    """One node of the topic tree."""

    id: int
    title: str
    description: str | None = None
    active: bool = True
    has_quiz: bool = False
    resource_count: int = 0
    children: list[TopicNodeResponse] = Field(default_factory=list)


class TopicTreeResponse(BaseModel):
    topics: list[TopicNodeResponse]
    count: int


class QuizListItem(BaseModel):
    """A quiz in the catalog with its availability."""

    id: int
    title: str
    description: str | None = None
    topic_id: int | None = None
    topic_title: str | None = None
    duration_minutes: int = 0
    passing_score: int = 0
    start_time: str | None = None
    end_time: str | None = None
    status: str
    label: str
    can_start: bool


class QuizListResponse(BaseModel):
    quizzes: list[QuizListItem]
    count: int


class DashboardResponse(BaseModel):
    latest_topics: list[dict[str, Any]]
    upcoming_quizzes: list[dict[str, Any]]
    recent_attempts: list[dict[str, Any]]
    stats: dict[str, int]


# =============================================================================
# QUIZ TAKING SCHEMAS
# =============================================================================


class AnswerRequest(BaseModel):
    """Select an answer for a question."""

    question_id: int
    answer_id: int


class NavigateRequest(BaseModel):
    """Jump to a question by its zero-based index."""

    index: int = Field(..., ge=0)


class NoticeResponse(BaseModel):
    level: str
    message: str


class AnswerOption(BaseModel):
    id: int
    text: str


class QuestionView(BaseModel):
    """The current question without its correct answer."""

    id: int
    text: str
    points: int | None = None
    selected_answer_id: int | None = None
    saving: bool = False
    answers: list[AnswerOption]


class QuizSessionResponse(BaseModel):
    """Snapshot of a quiz-taking session."""

    quiz_id: int
    state: str
    title: str | None = None
    attempt_id: int | None = None
    can_start: bool = False
    has_completed_attempt: bool = False
    completed_attempt_id: int | None = None
    current_index: int = 0
    question_count: int = 0
    current_question: QuestionView | None = None
    answers: dict[str, int] = Field(default_factory=dict)
    answered_count: int = 0
    unanswered_count: int = 0
    progress: float = 0
    time_remaining: int = 0
    clock: str = "0:00"
    needs_confirmation: bool = False
    result_route: str | None = None
    notices: list[NoticeResponse] = Field(default_factory=list)


# =============================================================================
# HEALTH SCHEMAS
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    sessions: int = 0
