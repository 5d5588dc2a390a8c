"""Moderator and admin CRUD helpers.

Each save validates the form first and raises FormValidationError before
any request is sent. Everything past validation is the backend's job.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal

import structlog

from learning.api.endpoints import LmsApi
from learning.core.clock import parse_timestamp
from learning.core.errors import FormValidationError
from learning.models import (
    AnswerDraft,
    Question,
    QuestionDraft,
    Quiz,
    QuizDraft,
    Resource,
    ResourceDraft,
    Topic,
    TopicDraft,
    User,
    UserDraft,
    UserUpdate,
)

logger = structlog.get_logger(__name__)

MIN_PASSWORD_LENGTH = 6

REQUIRED_FIELDS = "Please fill in all required fields"


def _blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _require(message: str, **values: object) -> None:
    for name, value in values.items():
        if _blank(value):
            raise FormValidationError(message, field=name)


# =============================================================================
# VALIDATION
# =============================================================================


def validate_topic(draft: TopicDraft) -> None:
    _require("Please fill in all fields", title=draft.title, description=draft.description)


def validate_resource(draft: ResourceDraft) -> None:
    _require(REQUIRED_FIELDS, title=draft.title, url=draft.url, topic_id=draft.topic_id)


def validate_quiz_create(draft: QuizDraft) -> None:
    _require(
        REQUIRED_FIELDS,
        title=draft.title,
        description=draft.description,
        topic_id=draft.topic_id,
    )


def validate_quiz_update(draft: QuizDraft) -> None:
    _require("Quiz title is required", title=draft.title)

    if draft.duration_minutes is None or draft.duration_minutes <= 0:
        raise FormValidationError(
            "Duration must be a positive number", field="duration_minutes"
        )

    start = parse_timestamp(draft.start_time)
    end = parse_timestamp(draft.end_time)
    if start is not None and end is not None and start >= end:
        raise FormValidationError("Start time must be before end time", field="start_time")


def validate_question(draft: QuestionDraft) -> None:
    _require("Please enter a question", question_text=draft.question_text)

    answers = draft.answers or []
    if any(_blank(a.answer_text) for a in answers):
        raise FormValidationError("Please fill in all answer options", field="answers")
    if not any(a.correct for a in answers):
        raise FormValidationError("Please mark one answer as correct", field="answers")


def validate_user_create(draft: UserDraft) -> None:
    _require(
        REQUIRED_FIELDS,
        email=draft.email,
        first_name=draft.first_name,
        last_name=draft.last_name,
        username=draft.username,
        password=draft.password,
    )


def validate_user_update(update: UserUpdate) -> None:
    _require(
        REQUIRED_FIELDS,
        email=update.email,
        first_name=update.first_name,
        last_name=update.last_name,
    )


def validate_password_reset(new_password: str, confirm_password: str) -> None:
    if new_password != confirm_password:
        raise FormValidationError("Passwords do not match", field="confirm_password")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise FormValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            field="new_password",
        )


# =============================================================================
# TOPICS, RESOURCES, QUIZZES
# =============================================================================


def save_topic(api: LmsApi, draft: TopicDraft, topic_id: int | None = None) -> Topic:
    validate_topic(draft)
    if topic_id is None:
        topic = api.topics.create(draft)
        logger.info("topic_created", topic_id=topic.id)
    else:
        topic = api.topics.update(topic_id, draft)
        logger.info("topic_updated", topic_id=topic_id)
    return topic


def save_resource(
    api: LmsApi, draft: ResourceDraft, resource_id: int | None = None
) -> Resource:
    validate_resource(draft)
    if resource_id is None:
        resource = api.resources.create(draft)
        logger.info("resource_created", resource_id=resource.id)
    else:
        resource = api.resources.update(resource_id, draft)
        logger.info("resource_updated", resource_id=resource_id)
    return resource


def create_quiz(api: LmsApi, draft: QuizDraft) -> Quiz:
    validate_quiz_create(draft)
    quiz = api.quizzes.create(draft)
    logger.info("quiz_created", quiz_id=quiz.id, topic_id=draft.topic_id)
    return quiz


def update_quiz(api: LmsApi, quiz_id: int, draft: QuizDraft) -> Quiz:
    validate_quiz_update(draft)
    quiz = api.quizzes.update(quiz_id, draft)
    logger.info("quiz_updated", quiz_id=quiz_id)
    return quiz


def save_question(
    api: LmsApi,
    quiz_id: int,
    draft: QuestionDraft,
    question_id: int | None = None,
    existing_count: int = 0,
) -> Question | None:
    """Create a question with its answers, or update one in place.

    New questions go last (display order = existing_count). Updates send
    the question fields, then each answer that already has an id.

    Returns:
        The created question, or None for an update.
    """
    validate_question(draft)
    answers = draft.answers or []

    if question_id is None:
        payload = QuestionDraft(
            question_text=draft.question_text,
            explanation=draft.explanation or None,
            quiz_id=quiz_id,
            points=draft.points,
            display_order=existing_count,
            answers=[
                AnswerDraft(answer_text=a.answer_text, correct=a.correct, display_order=i)
                for i, a in enumerate(answers)
            ],
            active=True,
        )
        question = api.questions.create(quiz_id, payload)
        logger.info("question_created", quiz_id=quiz_id, question_id=question.id)
        return question

    api.questions.update(
        quiz_id,
        question_id,
        QuestionDraft(
            question_text=draft.question_text,
            explanation=draft.explanation or None,
            points=draft.points,
        ),
    )
    for index, answer in enumerate(answers):
        if answer.id is None:
            continue
        api.answers.update(
            question_id,
            answer.id,
            AnswerDraft(answer_text=answer.answer_text, correct=answer.correct, display_order=index),
        )
    logger.info("question_updated", quiz_id=quiz_id, question_id=question_id)
    return None


# =============================================================================
# TOGGLES
# =============================================================================


def toggle_quiz_active(api: LmsApi, quiz: Quiz) -> str:
    """Flip a quiz's active flag and return the confirmation text."""
    if quiz.active:
        api.quizzes.deactivate(quiz.id)
        return "Quiz deactivated"
    api.quizzes.activate(quiz.id)
    return "Quiz activated"


def toggle_resource_active(api: LmsApi, resource: Resource) -> str:
    if resource.active:
        api.resources.deactivate(resource.id)
        return "Resource deactivated"
    api.resources.activate(resource.id)
    return "Resource activated"


def toggle_user_active(api: LmsApi, user: User) -> str:
    if user.active:
        api.users.deactivate(user.id)
        return "User deactivated"
    api.users.activate(user.id)
    return "User activated"


# =============================================================================
# USERS
# =============================================================================


def create_user(api: LmsApi, draft: UserDraft) -> User:
    validate_user_create(draft)
    user = api.users.create(draft)
    logger.info("user_created", user_id=user.id, role=draft.role)
    return user


def update_user(api: LmsApi, user_id: int, update: UserUpdate) -> User:
    validate_user_update(update)
    user = api.users.update(user_id, update)
    logger.info("user_updated", user_id=user_id)
    return user


def reset_user_password(
    api: LmsApi, user_id: int, new_password: str, confirm_password: str
) -> None:
    validate_password_reset(new_password, confirm_password)
    api.users.reset_password(user_id, new_password)
    logger.info("user_password_reset", user_id=user_id)


def load_users(
    api: LmsApi, status: Literal["all", "active", "inactive"] = "all"
) -> list[User]:
    if status == "active":
        return api.users.get_active()
    if status == "inactive":
        return api.users.get_inactive()
    return api.users.get_all()


def search_users(api: LmsApi, keyword: str, active_only: bool = False) -> Sequence[User]:
    """Server-side search; a blank keyword lists everyone."""
    if not keyword.strip():
        return api.users.get_all()
    return api.users.search(keyword.strip(), active_only=active_only)
