"""Typed endpoint groups for the learning backend.

Each group wraps one REST resource and maps responses onto the DTOs in
learning.models. Counts come back as int, existence checks as bool.

Usage:
    api = LmsApi(ApiClient())
    topics = api.topics.get_all(active_only=True)
"""

from __future__ import annotations

from typing import Any, TypeVar

from learning.api.client import ApiClient, ApiError
from learning.models import (
    Answer,
    AnswerDraft,
    LoginResponse,
    Notification,
    Question,
    QuestionDraft,
    Quiz,
    QuizAttempt,
    QuizAttemptSummary,
    QuizDraft,
    QuizSummary,
    RegisterRequest,
    Resource,
    ResourceDraft,
    Topic,
    TopicDraft,
    User,
    UserAnswer,
    UserAnswerStatistics,
    UserDraft,
    UserUpdate,
)

T = TypeVar("T")


# =============================================================================
# RESPONSE HELPERS
# =============================================================================


def _one(cls: type[T], data: Any) -> T:
    return cls.from_dict(data)  # type: ignore[attr-defined]


def _optional(cls: type[T], data: Any) -> T | None:
    if not data:
        return None
    return cls.from_dict(data)  # type: ignore[attr-defined]


def _list(cls: type[T], data: Any) -> list[T]:
    return [cls.from_dict(item) for item in data or []]  # type: ignore[attr-defined]


def _count(data: Any) -> int:
    """Counts arrive as a bare number or wrapped in an object."""
    if isinstance(data, dict):
        data = data.get("count", 0)
    return int(data or 0)


def _flag(data: Any) -> bool:
    """Boolean checks arrive bare or wrapped in an object."""
    if isinstance(data, dict):
        for key in ("exists", "available", "unique", "hasInProgress", "answered"):
            if key in data:
                return bool(data[key])
        return False
    if isinstance(data, str):
        return data.strip().lower() == "true"
    return bool(data)


def _number(data: Any) -> float | None:
    if isinstance(data, dict):
        data = next(iter(data.values()), None)
    return float(data) if data is not None else None


class _Group:
    def __init__(self, client: ApiClient):
        self.client = client


# =============================================================================
# AUTH
# =============================================================================


class AuthApi(_Group):
    """Login, registration and account recovery."""

    def login(self, username: str, password: str) -> LoginResponse:
        data = self.client.post(
            "/api/auth/login", json={"username": username, "password": password}
        )
        return LoginResponse.from_dict(data)

    def register(self, request: RegisterRequest) -> LoginResponse:
        data = self.client.post("/api/auth/register", json=request.to_payload())
        return LoginResponse.from_dict(data)

    def refresh_token(self, refresh_token: str) -> Any:
        return self.client.post(
            "/api/auth/refresh-token", json={"refreshToken": refresh_token}
        )

    def verify_email(self, token: str) -> Any:
        return self.client.get("/api/auth/verify-email", params={"token": token})

    def forgot_password(self, email: str) -> Any:
        return self.client.post("/api/auth/forgot-password", params={"email": email})

    def reset_password(self, token: str, new_password: str) -> Any:
        return self.client.post(
            "/api/auth/reset-password",
            json={"newPassword": new_password},
            params={"token": token},
        )

    def resend_verification(self, email: str) -> Any:
        return self.client.post(
            "/api/auth/resend-verification", params={"email": email}
        )


# =============================================================================
# USERS
# =============================================================================


class UsersApi(_Group):
    """User administration."""

    def get_all(self) -> list[User]:
        return _list(User, self.client.get("/api/users"))

    def get_active(self) -> list[User]:
        return _list(User, self.client.get("/api/users/active"))

    def get_inactive(self) -> list[User]:
        return _list(User, self.client.get("/api/users/inactive"))

    def get_by_id(self, user_id: int) -> User:
        return _one(User, self.client.get(f"/api/users/{user_id}"))

    def get_by_email(self, email: str) -> User:
        return _one(User, self.client.get(f"/api/users/email/{email}"))

    def search(self, keyword: str, active_only: bool = False) -> list[User]:
        data = self.client.get(
            "/api/users/search",
            params={"keyword": keyword, "activeOnly": active_only},
        )
        return _list(User, data)

    def get_by_role(self, role: str, active_only: bool = False) -> list[User]:
        data = self.client.get(
            f"/api/users/role/{role}", params={"activeOnly": active_only}
        )
        return _list(User, data)

    def create(self, draft: UserDraft) -> User:
        return _one(User, self.client.post("/api/users", json=draft.to_payload()))

    def update(self, user_id: int, update: UserUpdate) -> User:
        data = self.client.put(f"/api/users/{user_id}", json=update.to_payload())
        return _one(User, data)

    def delete(self, user_id: int) -> None:
        self.client.delete(f"/api/users/{user_id}")

    def activate(self, user_id: int) -> Any:
        return self.client.patch(f"/api/users/{user_id}/activate")

    def deactivate(self, user_id: int) -> Any:
        return self.client.patch(f"/api/users/{user_id}/deactivate")

    def reset_password(self, user_id: int, new_password: str) -> Any:
        return self.client.post(
            f"/api/users/{user_id}/reset-password",
            json={"newPassword": new_password},
        )

    def change_password(
        self, user_id: int, old_password: str, new_password: str
    ) -> Any:
        return self.client.post(
            f"/api/users/{user_id}/change-password",
            json={"oldPassword": old_password, "newPassword": new_password},
        )

    def check_email_exists(self, email: str, user_id: int | None = None) -> bool:
        data = self.client.get(
            "/api/users/check-email", params={"email": email, "id": user_id}
        )
        return _flag(data)

    def count_by_role(self, role: str) -> int:
        return _count(self.client.get(f"/api/users/role/{role}/count"))

    def count_active(self) -> int:
        return _count(self.client.get("/api/users/active/count"))

    def count_active_by_role(self, role: str) -> int:
        return _count(self.client.get(f"/api/users/role/{role}/active/count"))

    def with_quiz_attempts(self) -> list[User]:
        return _list(User, self.client.get("/api/users/with-quiz-attempts"))

    def without_quiz_attempts(self) -> list[User]:
        return _list(User, self.client.get("/api/users/without-quiz-attempts"))

    def get_quiz_attempt_count(self, user_id: int) -> int:
        return _count(self.client.get(f"/api/users/{user_id}/quiz-attempts/count"))

    def top_by_quiz_attempts(self) -> list[User]:
        return _list(User, self.client.get("/api/users/top-by-quiz-attempts"))


# =============================================================================
# TOPICS AND RESOURCES
# =============================================================================


class TopicsApi(_Group):
    """Topic hierarchy."""

    def create(self, draft: TopicDraft) -> Topic:
        return _one(Topic, self.client.post("/api/topics", json=draft.to_payload()))

    def get_by_id(self, topic_id: int) -> Topic:
        return _one(Topic, self.client.get(f"/api/topics/{topic_id}"))

    def get_all(self, active_only: bool = False) -> list[Topic]:
        data = self.client.get("/api/topics", params={"activeOnly": active_only})
        return _list(Topic, data)

    def get_root_topics(self, active_only: bool = False) -> list[Topic]:
        data = self.client.get("/api/topics/root", params={"activeOnly": active_only})
        return _list(Topic, data)

    def get_sub_topics(self, parent_topic_id: int, active_only: bool = False) -> list[Topic]:
        data = self.client.get(
            f"/api/topics/{parent_topic_id}/subtopics",
            params={"activeOnly": active_only},
        )
        return _list(Topic, data)

    def update(self, topic_id: int, draft: TopicDraft) -> Topic:
        data = self.client.put(f"/api/topics/{topic_id}", json=draft.to_payload())
        return _one(Topic, data)

    def delete(self, topic_id: int) -> None:
        self.client.delete(f"/api/topics/{topic_id}")

    def deactivate(self, topic_id: int) -> Any:
        return self.client.patch(f"/api/topics/{topic_id}/deactivate")

    def search(self, title: str, active_only: bool = False) -> list[Topic]:
        data = self.client.get(
            "/api/topics/search", params={"title": title, "activeOnly": active_only}
        )
        return _list(Topic, data)

    def exists(self, topic_id: int) -> bool:
        return _flag(self.client.get(f"/api/topics/{topic_id}/exists"))


class ResourcesApi(_Group):
    """Learning resources attached to topics."""

    def create(self, draft: ResourceDraft) -> Resource:
        data = self.client.post("/api/resources", json=draft.to_payload())
        return _one(Resource, data)

    def get_by_id(self, resource_id: int, with_topic: bool = False) -> Resource:
        data = self.client.get(
            f"/api/resources/{resource_id}", params={"withTopic": with_topic}
        )
        return _one(Resource, data)

    def update(self, resource_id: int, draft: ResourceDraft) -> Resource:
        data = self.client.put(f"/api/resources/{resource_id}", json=draft.to_payload())
        return _one(Resource, data)

    def delete(self, resource_id: int) -> None:
        self.client.delete(f"/api/resources/{resource_id}")

    def get_all(self, with_topic: bool = False, active_only: bool = False) -> list[Resource]:
        data = self.client.get(
            "/api/resources",
            params={"withTopic": with_topic, "activeOnly": active_only},
        )
        return _list(Resource, data)

    def get_by_topic(
        self, topic_id: int, active_only: bool = False, ordered: bool = False
    ) -> list[Resource]:
        data = self.client.get(
            f"/api/resources/topic/{topic_id}",
            params={"activeOnly": active_only, "ordered": ordered},
        )
        return _list(Resource, data)

    def get_by_type(self, resource_type: str, active_only: bool = False) -> list[Resource]:
        data = self.client.get(
            f"/api/resources/type/{resource_type}",
            params={"activeOnly": active_only},
        )
        return _list(Resource, data)

    def get_by_topic_and_type(
        self, topic_id: int, resource_type: str, active_only: bool = False
    ) -> list[Resource]:
        data = self.client.get(
            f"/api/resources/topic/{topic_id}/type/{resource_type}",
            params={"activeOnly": active_only},
        )
        return _list(Resource, data)

    def search(self, title: str, active_only: bool = False) -> list[Resource]:
        data = self.client.get(
            "/api/resources/search",
            params={"title": title, "activeOnly": active_only},
        )
        return _list(Resource, data)

    def activate(self, resource_id: int) -> Any:
        return self.client.patch(f"/api/resources/{resource_id}/activate")

    def deactivate(self, resource_id: int) -> Any:
        return self.client.patch(f"/api/resources/{resource_id}/deactivate")

    def reorder(self, topic_id: int, resource_ids: list[int]) -> Any:
        return self.client.put(
            f"/api/resources/topic/{topic_id}/reorder", json=list(resource_ids)
        )

    def count_by_topic(self, topic_id: int, active_only: bool = False) -> int:
        data = self.client.get(
            f"/api/resources/topic/{topic_id}/count",
            params={"activeOnly": active_only},
        )
        return _count(data)

    def count_by_type(self, resource_type: str) -> int:
        return _count(self.client.get(f"/api/resources/type/{resource_type}/count"))

    def delete_by_topic(self, topic_id: int) -> None:
        self.client.delete(f"/api/resources/topic/{topic_id}")

    def check_url_unique(self, url: str, resource_id: int | None = None) -> bool:
        data = self.client.get(
            "/api/resources/check-url", params={"url": url, "id": resource_id}
        )
        return _flag(data)


# =============================================================================
# QUIZZES, QUESTIONS, ANSWERS
# =============================================================================


class QuizzesApi(_Group):
    """Quizzes, globally and scoped to a topic."""

    def create(self, draft: QuizDraft) -> Quiz:
        return _one(Quiz, self.client.post("/api/quizzes", json=draft.to_payload()))

    def get_by_id(self, quiz_id: int) -> Quiz:
        return _one(Quiz, self.client.get(f"/api/quizzes/{quiz_id}"))

    def get_with_questions(self, quiz_id: int) -> Quiz:
        return _one(Quiz, self.client.get(f"/api/quizzes/{quiz_id}/with-questions"))

    def get_all(self, active_only: bool = False) -> list[Quiz]:
        data = self.client.get("/api/quizzes", params={"activeOnly": active_only})
        return _list(Quiz, data)

    def get_available(self) -> list[Quiz]:
        return _list(Quiz, self.client.get("/api/quizzes/available"))

    def get_scheduled(self) -> list[Quiz]:
        return _list(Quiz, self.client.get("/api/quizzes/scheduled"))

    def get_ended(self) -> list[Quiz]:
        return _list(Quiz, self.client.get("/api/quizzes/ended"))

    def search(self, title: str) -> list[Quiz]:
        return _list(Quiz, self.client.get("/api/quizzes/search", params={"title": title}))

    def update(self, quiz_id: int, draft: QuizDraft) -> Quiz:
        data = self.client.put(f"/api/quizzes/{quiz_id}", json=draft.to_payload())
        return _one(Quiz, data)

    def activate(self, quiz_id: int) -> Any:
        return self.client.patch(f"/api/quizzes/{quiz_id}/activate", json={})

    def deactivate(self, quiz_id: int) -> Any:
        return self.client.patch(f"/api/quizzes/{quiz_id}/deactivate", json={})

    def delete(self, quiz_id: int) -> None:
        self.client.delete(f"/api/quizzes/{quiz_id}")

    def exists(self, quiz_id: int) -> bool:
        return _flag(self.client.get(f"/api/quizzes/{quiz_id}/exists"))

    def is_available(self, quiz_id: int) -> bool:
        return _flag(self.client.get(f"/api/quizzes/{quiz_id}/is-available"))

    # Topic-scoped endpoints

    def create_for_topic(self, topic_id: int, draft: QuizDraft) -> Quiz:
        data = self.client.post(
            f"/api/topics/{topic_id}/quizzes", json=draft.to_payload()
        )
        return _one(Quiz, data)

    def get_for_topic(self, topic_id: int, quiz_id: int) -> Quiz:
        return _one(Quiz, self.client.get(f"/api/topics/{topic_id}/quizzes/{quiz_id}"))

    def get_by_topic(
        self, topic_id: int, active_only: bool = False, with_questions: bool = False
    ) -> list[Quiz]:
        data = self.client.get(
            f"/api/topics/{topic_id}/quizzes",
            params={"activeOnly": active_only, "withQuestions": with_questions},
        )
        return _list(Quiz, data)

    def get_summaries_by_topic(self, topic_id: int) -> list[QuizSummary]:
        data = self.client.get(f"/api/topics/{topic_id}/quizzes/summaries")
        return _list(QuizSummary, data)

    def get_available_by_topic(self, topic_id: int) -> list[Quiz]:
        return _list(Quiz, self.client.get(f"/api/topics/{topic_id}/quizzes/available"))

    def update_for_topic(self, topic_id: int, quiz_id: int, draft: QuizDraft) -> Quiz:
        data = self.client.put(
            f"/api/topics/{topic_id}/quizzes/{quiz_id}", json=draft.to_payload()
        )
        return _one(Quiz, data)

    def delete_for_topic(self, topic_id: int, quiz_id: int) -> None:
        self.client.delete(f"/api/topics/{topic_id}/quizzes/{quiz_id}")

    def delete_all_for_topic(self, topic_id: int) -> None:
        self.client.delete(f"/api/topics/{topic_id}/quizzes")

    def count_by_topic(self, topic_id: int, active_only: bool = False) -> int:
        data = self.client.get(
            f"/api/topics/{topic_id}/quizzes/count",
            params={"activeOnly": active_only},
        )
        return _count(data)

    def exists_for_topic(self, topic_id: int, quiz_id: int) -> bool:
        return _flag(self.client.get(f"/api/topics/{topic_id}/quizzes/{quiz_id}/exists"))


class QuestionsApi(_Group):
    """Questions nested under a quiz."""

    def create(self, quiz_id: int, draft: QuestionDraft) -> Question:
        data = self.client.post(
            f"/api/quizzes/{quiz_id}/questions", json=draft.to_payload()
        )
        return _one(Question, data)

    def get_by_id(self, quiz_id: int, question_id: int) -> Question:
        data = self.client.get(f"/api/quizzes/{quiz_id}/questions/{question_id}")
        return _one(Question, data)

    def get_by_quiz(self, quiz_id: int) -> list[Question]:
        return _list(Question, self.client.get(f"/api/quizzes/{quiz_id}/questions"))

    def get_summaries(self, quiz_id: int) -> list[Question]:
        data = self.client.get(f"/api/quizzes/{quiz_id}/questions/summaries")
        return _list(Question, data)

    def update(self, quiz_id: int, question_id: int, draft: QuestionDraft) -> Question:
        data = self.client.put(
            f"/api/quizzes/{quiz_id}/questions/{question_id}",
            json=draft.to_payload(),
        )
        return _one(Question, data)

    def delete(self, quiz_id: int, question_id: int) -> None:
        self.client.delete(f"/api/quizzes/{quiz_id}/questions/{question_id}")

    def delete_all(self, quiz_id: int) -> None:
        self.client.delete(f"/api/quizzes/{quiz_id}/questions")

    def reorder(self, quiz_id: int, question_ids: list[int]) -> Any:
        return self.client.put(
            f"/api/quizzes/{quiz_id}/questions/reorder", json=list(question_ids)
        )

    def count(self, quiz_id: int) -> int:
        return _count(self.client.get(f"/api/quizzes/{quiz_id}/questions/count"))

    def exists(self, quiz_id: int, question_id: int) -> bool:
        data = self.client.get(f"/api/quizzes/{quiz_id}/questions/{question_id}/exists")
        return _flag(data)


class AnswersApi(_Group):
    """Answer options nested under a question."""

    def create(self, question_id: int, draft: AnswerDraft) -> Answer:
        data = self.client.post(
            f"/api/questions/{question_id}/answers", json=draft.to_payload()
        )
        return _one(Answer, data)

    def get_by_id(self, question_id: int, answer_id: int) -> Answer:
        data = self.client.get(f"/api/questions/{question_id}/answers/{answer_id}")
        return _one(Answer, data)

    def get_by_question(self, question_id: int) -> list[Answer]:
        return _list(Answer, self.client.get(f"/api/questions/{question_id}/answers"))

    def get_summaries(self, question_id: int) -> list[Answer]:
        data = self.client.get(f"/api/questions/{question_id}/answers/summaries")
        return _list(Answer, data)

    def get_correct(self, question_id: int) -> list[Answer]:
        data = self.client.get(f"/api/questions/{question_id}/answers/correct")
        return _list(Answer, data)

    def update(self, question_id: int, answer_id: int, draft: AnswerDraft) -> Answer:
        data = self.client.put(
            f"/api/questions/{question_id}/answers/{answer_id}",
            json=draft.to_payload(),
        )
        return _one(Answer, data)

    def delete(self, question_id: int, answer_id: int) -> None:
        self.client.delete(f"/api/questions/{question_id}/answers/{answer_id}")

    def delete_all(self, question_id: int) -> None:
        self.client.delete(f"/api/questions/{question_id}/answers")

    def count(self, question_id: int) -> int:
        return _count(self.client.get(f"/api/questions/{question_id}/answers/count"))

    def count_correct(self, question_id: int) -> int:
        data = self.client.get(f"/api/questions/{question_id}/answers/count/correct")
        return _count(data)

    def exists(self, question_id: int, answer_id: int) -> bool:
        data = self.client.get(f"/api/questions/{question_id}/answers/{answer_id}/exists")
        return _flag(data)


# =============================================================================
# ATTEMPTS AND USER ANSWERS
# =============================================================================


class QuizAttemptsApi(_Group):
    """Quiz attempts (server authoritative lifecycle)."""

    def create(self, quiz_id: int, user_id: int) -> QuizAttempt:
        data = self.client.post(
            "/api/quiz-attempts", json={"quizId": quiz_id, "userId": user_id}
        )
        return _one(QuizAttempt, data)

    def get_by_id(self, attempt_id: int) -> QuizAttempt:
        return _one(QuizAttempt, self.client.get(f"/api/quiz-attempts/{attempt_id}"))

    def get_with_answers(self, attempt_id: int) -> QuizAttempt:
        data = self.client.get(f"/api/quiz-attempts/{attempt_id}/with-answers")
        return _one(QuizAttempt, data)

    def update(self, attempt_id: int, changes: dict[str, Any]) -> QuizAttempt:
        data = self.client.put(f"/api/quiz-attempts/{attempt_id}", json=changes)
        return _one(QuizAttempt, data)

    def delete(self, attempt_id: int) -> None:
        self.client.delete(f"/api/quiz-attempts/{attempt_id}")

    def get_all(self) -> list[QuizAttempt]:
        return _list(QuizAttempt, self.client.get("/api/quiz-attempts"))

    def get_all_summary(self) -> list[QuizAttemptSummary]:
        return _list(QuizAttemptSummary, self.client.get("/api/quiz-attempts/summary"))

    def get_by_user(self, user_id: int) -> list[QuizAttempt]:
        return _list(QuizAttempt, self.client.get(f"/api/quiz-attempts/user/{user_id}"))

    def get_summary_by_user(self, user_id: int) -> list[QuizAttemptSummary]:
        data = self.client.get(f"/api/quiz-attempts/user/{user_id}/summary")
        return _list(QuizAttemptSummary, data)

    def get_by_quiz(self, quiz_id: int) -> list[QuizAttempt]:
        return _list(QuizAttempt, self.client.get(f"/api/quiz-attempts/quiz/{quiz_id}"))

    def get_summary_by_quiz(self, quiz_id: int) -> list[QuizAttemptSummary]:
        data = self.client.get(f"/api/quiz-attempts/quiz/{quiz_id}/summary")
        return _list(QuizAttemptSummary, data)

    def get_by_user_and_quiz(self, user_id: int, quiz_id: int) -> list[QuizAttempt]:
        data = self.client.get(f"/api/quiz-attempts/user/{user_id}/quiz/{quiz_id}")
        return _list(QuizAttempt, data)

    def get_in_progress(self, user_id: int, quiz_id: int) -> QuizAttempt | None:
        """In-progress attempt, or None when the backend has none."""
        try:
            data = self.client.get(
                f"/api/quiz-attempts/user/{user_id}/quiz/{quiz_id}/in-progress"
            )
        except ApiError as e:
            if e.status_code == 404:
                return None
            raise
        return _optional(QuizAttempt, data)

    def get_latest(self, user_id: int, quiz_id: int) -> QuizAttempt | None:
        data = self.client.get(
            f"/api/quiz-attempts/user/{user_id}/quiz/{quiz_id}/latest"
        )
        return _optional(QuizAttempt, data)

    def get_by_status(self, status: str) -> list[QuizAttempt]:
        return _list(QuizAttempt, self.client.get(f"/api/quiz-attempts/status/{status}"))

    def submit(self, attempt_id: int) -> QuizAttempt | None:
        data = self.client.post(f"/api/quiz-attempts/{attempt_id}/submit")
        return _optional(QuizAttempt, data)

    def mark_expired(self) -> Any:
        return self.client.post("/api/quiz-attempts/mark-expired")

    def get_in_date_range(self, start_date: str, end_date: str) -> list[QuizAttempt]:
        data = self.client.get(
            "/api/quiz-attempts/date-range",
            params={"startDate": start_date, "endDate": end_date},
        )
        return _list(QuizAttempt, data)

    def get_user_in_date_range(
        self, user_id: int, start_date: str, end_date: str
    ) -> list[QuizAttempt]:
        data = self.client.get(
            f"/api/quiz-attempts/user/{user_id}/date-range",
            params={"startDate": start_date, "endDate": end_date},
        )
        return _list(QuizAttempt, data)

    def has_in_progress(self, user_id: int, quiz_id: int) -> bool:
        data = self.client.get(
            f"/api/quiz-attempts/user/{user_id}/quiz/{quiz_id}/has-in-progress"
        )
        return _flag(data)

    def get_user_count(self, user_id: int) -> int:
        return _count(self.client.get(f"/api/quiz-attempts/user/{user_id}/count"))

    def get_quiz_count(self, quiz_id: int) -> int:
        return _count(self.client.get(f"/api/quiz-attempts/quiz/{quiz_id}/count"))

    def get_user_passed_count(self, user_id: int) -> int:
        return _count(self.client.get(f"/api/quiz-attempts/user/{user_id}/passed-count"))

    def get_quiz_average_score(self, quiz_id: int) -> float | None:
        return _number(self.client.get(f"/api/quiz-attempts/quiz/{quiz_id}/average-score"))

    def get_user_best_score(self, user_id: int, quiz_id: int) -> float | None:
        data = self.client.get(
            f"/api/quiz-attempts/user/{user_id}/quiz/{quiz_id}/best-score"
        )
        return _number(data)


class UserAnswersApi(_Group):
    """Answers recorded within an attempt."""

    def submit(self, attempt_id: int, question_id: int, answer_id: int) -> UserAnswer:
        data = self.client.post(
            "/api/user-answers",
            json={
                "quizAttemptId": attempt_id,
                "questionId": question_id,
                "selectedAnswerId": answer_id,
            },
        )
        return _one(UserAnswer, data)

    def get_by_id(self, user_answer_id: int) -> UserAnswer:
        return _one(UserAnswer, self.client.get(f"/api/user-answers/{user_answer_id}"))

    def get_by_attempt(self, attempt_id: int) -> list[UserAnswer]:
        data = self.client.get(f"/api/user-answers/quiz-attempt/{attempt_id}")
        return _list(UserAnswer, data)

    def get_correct(self, attempt_id: int) -> list[UserAnswer]:
        data = self.client.get(f"/api/user-answers/quiz-attempt/{attempt_id}/correct")
        return _list(UserAnswer, data)

    def get_incorrect(self, attempt_id: int) -> list[UserAnswer]:
        data = self.client.get(f"/api/user-answers/quiz-attempt/{attempt_id}/incorrect")
        return _list(UserAnswer, data)

    def get_statistics(self, attempt_id: int) -> UserAnswerStatistics:
        data = self.client.get(
            f"/api/user-answers/quiz-attempt/{attempt_id}/statistics"
        )
        return UserAnswerStatistics.from_dict(data or {})

    def get_for_question(self, attempt_id: int, question_id: int) -> UserAnswer | None:
        data = self.client.get(
            f"/api/user-answers/quiz-attempt/{attempt_id}/question/{question_id}"
        )
        return _optional(UserAnswer, data)

    def has_answered(self, attempt_id: int, question_id: int) -> bool:
        data = self.client.get(
            f"/api/user-answers/quiz-attempt/{attempt_id}/question/{question_id}/exists"
        )
        return _flag(data)

    def update(self, user_answer_id: int, answer_id: int) -> UserAnswer | None:
        data = self.client.put(
            f"/api/user-answers/{user_answer_id}",
            json={"selectedAnswerId": answer_id},
        )
        return _optional(UserAnswer, data)

    def delete(self, user_answer_id: int) -> None:
        self.client.delete(f"/api/user-answers/{user_answer_id}")


class NotificationsApi(_Group):
    """Per-user notifications."""

    def get_for_user(self, user_id: int) -> list[Notification]:
        data = self.client.get(f"/api/notifications/user/{user_id}")
        return _list(Notification, data)

    def mark_as_read(self, notification_id: int) -> Any:
        return self.client.patch(f"/api/notifications/{notification_id}/read")


# =============================================================================
# FACADE
# =============================================================================


class LmsApi:
    """All endpoint groups over one shared ApiClient."""

    def __init__(self, client: ApiClient):
        self.client = client
        self.auth = AuthApi(client)
        self.users = UsersApi(client)
        self.topics = TopicsApi(client)
        self.resources = ResourcesApi(client)
        self.quizzes = QuizzesApi(client)
        self.questions = QuestionsApi(client)
        self.answers = AnswersApi(client)
        self.quiz_attempts = QuizAttemptsApi(client)
        self.user_answers = UserAnswersApi(client)
        self.notifications = NotificationsApi(client)

    def close(self) -> None:
        self.client.close()
