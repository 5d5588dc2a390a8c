"""Shared fixtures: an in-memory stand-in for the learning backend.

FakeLms answers the REST calls the client makes, keeps attempts and user
answers in dictionaries and scores submissions the way the backend does.
It is served through httpx.MockTransport, so no test touches the network.
"""

import json
import re
from datetime import datetime, timezone
from typing import Any, Callable

import httpx
import pytest

from learning.api.client import ApiClient
from learning.api.endpoints import LmsApi
from learning.api.token_store import TokenStore
from learning.config.app_config import ApiConfig, clear_config_cache
from learning.core.auth import AuthSession

BASE_URL = "http://lms.test"

LEARNER_ID = 1
MODERATOR_ID = 2
ADMIN_ID = 3
GUEST_ID = 4

Handler = Callable[..., httpx.Response]


class FakeClock:
    """Monotonic clock the test moves by hand."""

    def __init__(self):
        self.value = 1000.0

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def user_json(
    user_id: int,
    username: str,
    role: str = "USER",
    first_name: str = "",
    last_name: str = "",
    active: bool = True,
) -> dict[str, Any]:
    return {
        "id": user_id,
        "username": username,
        "email": f"{username}@example.com",
        "firstName": first_name,
        "lastName": last_name,
        "role": role,
        "active": active,
        "verified": True,
    }


def answer_json(answer_id: int, text: str, correct: bool, order: int) -> dict[str, Any]:
    return {"id": answer_id, "answerText": text, "correct": correct, "displayOrder": order}


def _ok(body: Any = None, status: int = 200) -> httpx.Response:
    if body is None:
        return httpx.Response(status)
    return httpx.Response(status, json=body)


def _error(status: int, message: str) -> httpx.Response:
    return httpx.Response(status, json={"message": message})


class FakeLms:
    """Stateful fake of the backend REST API.

    Overrides registered with ``on()`` are checked before the built-in
    routes, newest first.
    """

    def __init__(self):
        self.users: dict[int, dict[str, Any]] = {
            LEARNER_ID: user_json(LEARNER_ID, "alice", "USER", "Alice", "Smith"),
            MODERATOR_ID: user_json(MODERATOR_ID, "mod", "MODERATOR", "Mo", "Derator"),
            ADMIN_ID: user_json(ADMIN_ID, "root", "ADMIN", "Ada", "Admin"),
            GUEST_ID: user_json(GUEST_ID, "guest", "GUEST", "Guest", ""),
            5: user_json(5, "bob", "USER", "Bob", "Jones", active=False),
        }
        self.passwords = {
            "alice": "secret1",
            "mod": "modpass",
            "root": "rootpass",
            "guest": "guest",
        }
        self.topics: dict[int, dict[str, Any]] = {
            1: {
                "id": 1,
                "title": "Python Basics",
                "description": "Syntax and types",
                "active": True,
                "hasQuiz": True,
                "resourceCount": 2,
                "displayOrder": 0,
                "createdAt": "2026-01-10T09:00:00Z",
            },
            2: {
                "id": 2,
                "title": "Functions",
                "description": "Defining and calling functions",
                "parentTopicId": 1,
                "parentTopicTitle": "Python Basics",
                "active": True,
                "displayOrder": 0,
                "createdAt": "2026-01-11T09:00:00Z",
            },
            3: {
                "id": 3,
                "title": "Databases",
                "description": "Relational storage",
                "active": True,
                "hasQuiz": True,
                "displayOrder": 1,
                "createdAt": "2026-01-12T09:00:00Z",
            },
        }
        self.resources: dict[int, dict[str, Any]] = {
            21: {
                "id": 21,
                "title": "Official tutorial",
                "url": "https://docs.python.org/3/tutorial/",
                "type": "LINK",
                "topicId": 1,
                "topicTitle": "Python Basics",
                "displayOrder": 1,
                "active": True,
            },
            22: {
                "id": 22,
                "title": "Cheat sheet",
                "url": "https://example.com/python.pdf",
                "type": "PDF",
                "topicId": 1,
                "topicTitle": "Python Basics",
                "displayOrder": 0,
                "active": True,
            },
        }
        self.quizzes: dict[int, dict[str, Any]] = {
            7: {
                "id": 7,
                "title": "Python Fundamentals",
                "description": "Warm-up quiz",
                "topicId": 1,
                "topicTitle": "Python Basics",
                "durationMinutes": 10,
                "passingScore": 60,
                "active": True,
                "questions": [
                    {
                        "id": 11,
                        "questionText": "What is 2 + 2?",
                        "quizId": 7,
                        "points": 1,
                        "displayOrder": 0,
                        "explanation": "Basic arithmetic",
                        "answers": [
                            answer_json(41, "3", False, 0),
                            answer_json(42, "4", True, 1),
                        ],
                    },
                    {
                        "id": 12,
                        "questionText": "Which keyword defines a function?",
                        "quizId": 7,
                        "points": 1,
                        "displayOrder": 1,
                        "answers": [
                            answer_json(43, "def", True, 0),
                            answer_json(44, "func", False, 1),
                        ],
                    },
                ],
            },
            8: {
                "id": 8,
                "title": "SQL Intro",
                "description": "Select and join",
                "topicId": 3,
                "topicTitle": "Databases",
                "durationMinutes": 20,
                "passingScore": 70,
                "active": True,
                "startTime": "2099-01-01T00:00:00Z",
                "questions": [],
            },
        }
        self.attempts: dict[int, dict[str, Any]] = {}
        self.user_answers: dict[int, dict[str, Any]] = {}
        self.notifications: dict[int, dict[str, Any]] = {
            31: {
                "id": 31,
                "userId": LEARNER_ID,
                "title": "New quiz",
                "message": "Python Fundamentals is open",
                "type": "NEW_QUIZ",
                "read": False,
                "relatedId": 7,
                "createdAt": "2026-02-01T10:00:00Z",
            },
            32: {
                "id": 32,
                "userId": LEARNER_ID,
                "title": "Welcome",
                "message": "Glad to have you",
                "type": "ANNOUNCEMENT",
                "read": True,
                "createdAt": "2026-01-01T10:00:00Z",
            },
        }
        self.remaining_seconds: int | None = None
        self.expired_tokens: set[str] = set()
        self.requests: list[httpx.Request] = []
        self._overrides: list[tuple[str, re.Pattern[str], Handler]] = []
        self._next_id = 100
        self._routes: list[tuple[str, re.Pattern[str], Handler]] = [
            (method, re.compile(f"^{pattern}$"), handler)
            for method, pattern, handler in self._route_table()
        ]

    # -------------------------------------------------------------------------
    # Test helpers
    # -------------------------------------------------------------------------

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def on(
        self,
        method: str,
        path: str,
        status: int = 200,
        body: Any = None,
        handler: Handler | None = None,
    ) -> None:
        """Override one route with a canned response or a handler."""
        if handler is None:
            def handler(request: httpx.Request, *groups: str) -> httpx.Response:
                return _ok(body, status)
        self._overrides.insert(0, (method, re.compile(f"^{path}$"), handler))

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    @staticmethod
    def body_of(request: httpx.Request) -> Any:
        return json.loads(request.content) if request.content else None

    def new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def add_completed_attempt(
        self,
        user_id: int,
        quiz_id: int,
        score: float,
        passed: bool,
        started_at: str = "2026-03-01T10:00:00Z",
        completed_at: str = "2026-03-01T10:05:30Z",
        correct_answers: int = 1,
    ) -> dict[str, Any]:
        attempt = self._attempt(user_id, quiz_id)
        attempt.update(
            status="COMPLETED",
            score=score,
            passed=passed,
            startedAt=started_at,
            completedAt=completed_at,
            correctAnswers=correct_answers,
        )
        self.attempts[attempt["id"]] = attempt
        return attempt

    def add_in_progress_attempt(self, user_id: int, quiz_id: int) -> dict[str, Any]:
        attempt = self._attempt(user_id, quiz_id)
        self.attempts[attempt["id"]] = attempt
        return attempt

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        auth = request.headers.get("Authorization", "")
        token = auth.removeprefix("Bearer ").strip()
        if token and token in self.expired_tokens and not path.startswith("/api/auth/"):
            return _error(401, "Token expired")

        for method, pattern, handler in [*self._overrides, *self._routes]:
            if method != request.method:
                continue
            match = pattern.match(path)
            if match:
                return handler(request, *match.groups())
        return _error(404, f"No route for {request.method} {path}")

    def _route_table(self) -> list[tuple[str, str, Handler]]:
        num = r"(\d+)"
        return [
            ("POST", "/api/auth/login", self._login),
            ("POST", "/api/auth/register", self._register),
            ("POST", "/api/auth/refresh-token", self._refresh),
            ("POST", "/api/auth/forgot-password", lambda r: _ok({"message": "sent"})),
            ("POST", "/api/auth/reset-password", lambda r: _ok({"message": "updated"})),
            # users
            ("GET", "/api/users", lambda r: _ok(list(self.users.values()))),
            ("GET", "/api/users/active", lambda r: _ok(self._users_by_active(True))),
            ("GET", "/api/users/inactive", lambda r: _ok(self._users_by_active(False))),
            ("GET", "/api/users/search", self._search_users),
            ("GET", f"/api/users/{num}", lambda r, uid: self._get(self.users, uid)),
            ("POST", "/api/users", self._create_user),
            ("PUT", f"/api/users/{num}", self._update_user),
            ("PATCH", f"/api/users/{num}/activate", lambda r, uid: self._set_active(self.users, uid, True)),
            ("PATCH", f"/api/users/{num}/deactivate", lambda r, uid: self._set_active(self.users, uid, False)),
            ("POST", f"/api/users/{num}/reset-password", lambda r, uid: _ok({"message": "ok"})),
            # topics
            ("GET", "/api/topics", self._list_topics),
            ("GET", f"/api/topics/{num}", self._get_topic),
            ("POST", "/api/topics", lambda r: self._create(self.topics, r)),
            ("PUT", f"/api/topics/{num}", lambda r, tid: self._update(self.topics, tid, r)),
            ("DELETE", f"/api/topics/{num}", lambda r, tid: self._delete(self.topics, tid)),
            # resources
            ("GET", "/api/resources", lambda r: _ok(list(self.resources.values()))),
            ("GET", f"/api/resources/topic/{num}", self._resources_by_topic),
            ("GET", f"/api/resources/{num}", lambda r, rid: self._get(self.resources, rid)),
            ("POST", "/api/resources", lambda r: self._create(self.resources, r)),
            ("PUT", f"/api/resources/{num}", lambda r, rid: self._update(self.resources, rid, r)),
            ("DELETE", f"/api/resources/{num}", lambda r, rid: self._delete(self.resources, rid)),
            ("PATCH", f"/api/resources/{num}/activate", lambda r, rid: self._set_active(self.resources, rid, True)),
            ("PATCH", f"/api/resources/{num}/deactivate", lambda r, rid: self._set_active(self.resources, rid, False)),
            # quizzes
            ("GET", "/api/quizzes", self._list_quizzes),
            ("GET", f"/api/quizzes/{num}", lambda r, qid: self._get_quiz(qid, False)),
            ("GET", f"/api/quizzes/{num}/with-questions", lambda r, qid: self._get_quiz(qid, True)),
            ("POST", "/api/quizzes", self._create_quiz),
            ("PUT", f"/api/quizzes/{num}", lambda r, qid: self._update(self.quizzes, qid, r)),
            ("DELETE", f"/api/quizzes/{num}", lambda r, qid: self._delete(self.quizzes, qid)),
            ("PATCH", f"/api/quizzes/{num}/activate", lambda r, qid: self._set_active(self.quizzes, qid, True)),
            ("PATCH", f"/api/quizzes/{num}/deactivate", lambda r, qid: self._set_active(self.quizzes, qid, False)),
            ("GET", f"/api/topics/{num}/quizzes", self._quizzes_by_topic),
            # questions and answers
            ("GET", f"/api/quizzes/{num}/questions", self._list_questions),
            ("GET", f"/api/quizzes/{num}/questions/count", self._count_questions),
            ("POST", f"/api/quizzes/{num}/questions", self._create_question),
            ("PUT", f"/api/quizzes/{num}/questions/{num}", self._update_question),
            ("DELETE", f"/api/quizzes/{num}/questions/{num}", self._delete_question),
            ("PUT", f"/api/questions/{num}/answers/{num}", self._update_answer),
            # attempts
            ("POST", "/api/quiz-attempts", self._create_attempt),
            ("GET", f"/api/quiz-attempts/{num}/with-answers", self._attempt_with_answers),
            ("POST", f"/api/quiz-attempts/{num}/submit", self._submit_attempt),
            ("GET", f"/api/quiz-attempts/user/{num}/summary", self._summary_by_user),
            ("GET", f"/api/quiz-attempts/quiz/{num}/summary", self._summary_by_quiz),
            ("GET", f"/api/quiz-attempts/user/{num}/quiz/{num}", self._by_user_and_quiz),
            ("GET", f"/api/quiz-attempts/user/{num}/quiz/{num}/in-progress", self._in_progress),
            # user answers
            ("POST", "/api/user-answers", self._submit_answer),
            ("PUT", f"/api/user-answers/{num}", self._change_answer),
            ("GET", f"/api/user-answers/quiz-attempt/{num}", self._answers_by_attempt),
            # notifications
            ("GET", f"/api/notifications/user/{num}", self._notifications_for),
            ("PATCH", f"/api/notifications/{num}/read", self._mark_read),
        ]

    # -------------------------------------------------------------------------
    # Generic CRUD
    # -------------------------------------------------------------------------

    def _get(self, table: dict[int, dict[str, Any]], item_id: str) -> httpx.Response:
        item = table.get(int(item_id))
        if item is None:
            return _error(404, "Not found")
        return _ok(item)

    def _create(self, table: dict[int, dict[str, Any]], request: httpx.Request) -> httpx.Response:
        item = {"active": True, **self.body_of(request), "id": self.new_id()}
        table[item["id"]] = item
        return _ok(item, 201)

    def _update(
        self, table: dict[int, dict[str, Any]], item_id: str, request: httpx.Request
    ) -> httpx.Response:
        item = table.get(int(item_id))
        if item is None:
            return _error(404, "Not found")
        item.update(self.body_of(request) or {})
        return _ok(item)

    def _delete(self, table: dict[int, dict[str, Any]], item_id: str) -> httpx.Response:
        if table.pop(int(item_id), None) is None:
            return _error(404, "Not found")
        return _ok(status=204)

    def _set_active(
        self, table: dict[int, dict[str, Any]], item_id: str, active: bool
    ) -> httpx.Response:
        item = table.get(int(item_id))
        if item is None:
            return _error(404, "Not found")
        item["active"] = active
        return _ok(item)

    @staticmethod
    def _active_only(request: httpx.Request) -> bool:
        return request.url.params.get("activeOnly") == "true"

    # -------------------------------------------------------------------------
    # Auth and users
    # -------------------------------------------------------------------------

    def _login(self, request: httpx.Request) -> httpx.Response:
        body = self.body_of(request)
        username = body.get("username")
        if self.passwords.get(username) != body.get("password"):
            return _error(401, "Bad credentials")
        user = next(u for u in self.users.values() if u["username"] == username)
        return _ok(
            {
                "accessToken": f"token-{username}",
                "refreshToken": f"refresh-{username}",
                "user": user,
            }
        )

    def _register(self, request: httpx.Request) -> httpx.Response:
        body = self.body_of(request)
        if any(u["username"] == body["username"] for u in self.users.values()):
            return _error(409, "Username already taken")
        user = user_json(
            self.new_id(), body["username"], "USER", body.get("firstName", ""), body.get("lastName", "")
        )
        self.users[user["id"]] = user
        self.passwords[body["username"]] = body["password"]
        return _ok({"accessToken": f"token-{body['username']}", "user": user}, 201)

    def _refresh(self, request: httpx.Request) -> httpx.Response:
        body = self.body_of(request) or {}
        token = body.get("refreshToken", "")
        if not token.startswith("refresh-"):
            return _error(401, "Invalid refresh token")
        return _ok({"accessToken": f"fresh-{token.removeprefix('refresh-')}"})

    def _users_by_active(self, active: bool) -> list[dict[str, Any]]:
        return [u for u in self.users.values() if u["active"] == active]

    def _search_users(self, request: httpx.Request) -> httpx.Response:
        keyword = request.url.params.get("keyword", "").lower()
        found = [
            u
            for u in self.users.values()
            if keyword in u["username"].lower() or keyword in u["email"].lower()
        ]
        if self._active_only(request):
            found = [u for u in found if u["active"]]
        return _ok(found)

    def _create_user(self, request: httpx.Request) -> httpx.Response:
        body = self.body_of(request)
        user = user_json(
            self.new_id(),
            body["username"],
            body.get("role", "USER"),
            body.get("firstName", ""),
            body.get("lastName", ""),
        )
        self.users[user["id"]] = user
        return _ok(user, 201)

    def _update_user(self, request: httpx.Request, user_id: str) -> httpx.Response:
        user = self.users.get(int(user_id))
        if user is None:
            return _error(404, "User not found")
        user.update(self.body_of(request))
        return _ok(user)

    # -------------------------------------------------------------------------
    # Topics, resources, quizzes
    # -------------------------------------------------------------------------

    def _list_topics(self, request: httpx.Request) -> httpx.Response:
        topics = list(self.topics.values())
        if self._active_only(request):
            topics = [t for t in topics if t.get("active", True)]
        return _ok(topics)

    def _get_topic(self, request: httpx.Request, topic_id: str) -> httpx.Response:
        topic = self.topics.get(int(topic_id))
        if topic is None:
            return _error(404, "Topic not found")
        children = [
            {"id": t["id"], "title": t["title"]}
            for t in self.topics.values()
            if t.get("parentTopicId") == topic["id"]
        ]
        return _ok({**topic, "subTopics": children})

    def _resources_by_topic(self, request: httpx.Request, topic_id: str) -> httpx.Response:
        found = [r for r in self.resources.values() if r.get("topicId") == int(topic_id)]
        if self._active_only(request):
            found = [r for r in found if r.get("active", True)]
        if request.url.params.get("ordered") == "true":
            found.sort(key=lambda r: r.get("displayOrder", 0))
        return _ok(found)

    def _quiz_view(self, quiz: dict[str, Any], with_questions: bool) -> dict[str, Any]:
        questions = quiz.get("questions", [])
        view = {k: v for k, v in quiz.items() if k != "questions"}
        view["questionCount"] = len(questions)
        view["totalPoints"] = sum(q.get("points", 0) for q in questions)
        if with_questions:
            view["questions"] = questions
        return view

    def _list_quizzes(self, request: httpx.Request) -> httpx.Response:
        quizzes = list(self.quizzes.values())
        if self._active_only(request):
            quizzes = [q for q in quizzes if q.get("active", True)]
        return _ok([self._quiz_view(q, False) for q in quizzes])

    def _get_quiz(self, quiz_id: str, with_questions: bool) -> httpx.Response:
        quiz = self.quizzes.get(int(quiz_id))
        if quiz is None:
            return _error(404, "Quiz not found")
        return _ok(self._quiz_view(quiz, with_questions))

    def _create_quiz(self, request: httpx.Request) -> httpx.Response:
        quiz = {"active": True, "questions": [], **self.body_of(request), "id": self.new_id()}
        self.quizzes[quiz["id"]] = quiz
        return _ok(self._quiz_view(quiz, False), 201)

    def _quizzes_by_topic(self, request: httpx.Request, topic_id: str) -> httpx.Response:
        found = [q for q in self.quizzes.values() if q.get("topicId") == int(topic_id)]
        if self._active_only(request):
            found = [q for q in found if q.get("active", True)]
        return _ok([self._quiz_view(q, False) for q in found])

    def _list_questions(self, request: httpx.Request, quiz_id: str) -> httpx.Response:
        quiz = self.quizzes.get(int(quiz_id))
        if quiz is None:
            return _error(404, "Quiz not found")
        return _ok(quiz.get("questions", []))

    def _count_questions(self, request: httpx.Request, quiz_id: str) -> httpx.Response:
        quiz = self.quizzes.get(int(quiz_id), {})
        return _ok(len(quiz.get("questions", [])))

    def _create_question(self, request: httpx.Request, quiz_id: str) -> httpx.Response:
        quiz = self.quizzes.get(int(quiz_id))
        if quiz is None:
            return _error(404, "Quiz not found")
        body = self.body_of(request)
        question = {**body, "id": self.new_id(), "quizId": int(quiz_id)}
        question["answers"] = [
            {**a, "id": self.new_id(), "questionId": question["id"]} for a in body.get("answers", [])
        ]
        quiz.setdefault("questions", []).append(question)
        return _ok(question, 201)

    def _find_question(self, question_id: int) -> dict[str, Any] | None:
        for quiz in self.quizzes.values():
            for question in quiz.get("questions", []):
                if question["id"] == question_id:
                    return question
        return None

    def _update_question(
        self, request: httpx.Request, quiz_id: str, question_id: str
    ) -> httpx.Response:
        question = self._find_question(int(question_id))
        if question is None:
            return _error(404, "Question not found")
        question.update(self.body_of(request))
        return _ok(question)

    def _delete_question(
        self, request: httpx.Request, quiz_id: str, question_id: str
    ) -> httpx.Response:
        quiz = self.quizzes.get(int(quiz_id), {})
        before = len(quiz.get("questions", []))
        quiz["questions"] = [q for q in quiz.get("questions", []) if q["id"] != int(question_id)]
        if len(quiz["questions"]) == before:
            return _error(404, "Question not found")
        return _ok(status=204)

    def _update_answer(
        self, request: httpx.Request, question_id: str, answer_id: str
    ) -> httpx.Response:
        question = self._find_question(int(question_id))
        if question is None:
            return _error(404, "Question not found")
        for answer in question.get("answers", []):
            if answer["id"] == int(answer_id):
                answer.update(self.body_of(request))
                return _ok(answer)
        return _error(404, "Answer not found")

    # -------------------------------------------------------------------------
    # Attempts and answers
    # -------------------------------------------------------------------------

    def _attempt(self, user_id: int, quiz_id: int) -> dict[str, Any]:
        quiz = self.quizzes[quiz_id]
        user = self.users[user_id]
        remaining = self.remaining_seconds
        if remaining is None:
            remaining = quiz.get("durationMinutes", 0) * 60
        return {
            "id": self.new_id(),
            "quizId": quiz_id,
            "quizTitle": quiz["title"],
            "userId": user_id,
            "userFullName": f"{user['firstName']} {user['lastName']}".strip(),
            "status": "IN_PROGRESS",
            "startedAt": _now_iso(),
            "durationMinutes": quiz.get("durationMinutes", 0),
            "remainingSeconds": remaining,
            "totalQuestions": len(quiz.get("questions", [])),
        }

    def _summary(self, attempt: dict[str, Any]) -> dict[str, Any]:
        return {**attempt, "user": self.users.get(attempt["userId"])}

    def _create_attempt(self, request: httpx.Request) -> httpx.Response:
        body = self.body_of(request)
        quiz_id, user_id = body["quizId"], body["userId"]
        if int(quiz_id) not in self.quizzes:
            return _error(404, "Quiz not found")
        if any(
            a["quizId"] == quiz_id and a["userId"] == user_id and a["status"] == "IN_PROGRESS"
            for a in self.attempts.values()
        ):
            return _error(409, "Attempt already in progress")
        attempt = self._attempt(user_id, quiz_id)
        self.attempts[attempt["id"]] = attempt
        return _ok(attempt, 201)

    def _answers_for(self, attempt_id: int) -> list[dict[str, Any]]:
        return [ua for ua in self.user_answers.values() if ua["quizAttemptId"] == attempt_id]

    def _attempt_with_answers(self, request: httpx.Request, attempt_id: str) -> httpx.Response:
        attempt = self.attempts.get(int(attempt_id))
        if attempt is None:
            return _error(404, "Attempt not found")
        return _ok({**attempt, "userAnswers": self._answers_for(attempt["id"])})

    def _submit_attempt(self, request: httpx.Request, attempt_id: str) -> httpx.Response:
        attempt = self.attempts.get(int(attempt_id))
        if attempt is None:
            return _error(404, "Attempt not found")
        if attempt["status"] != "IN_PROGRESS":
            return _error(409, "Attempt already submitted")

        quiz = self.quizzes[attempt["quizId"]]
        answers = self._answers_for(attempt["id"])
        total = sum(q.get("points", 0) for q in quiz.get("questions", []))
        earned = sum(ua["pointsEarned"] for ua in answers)
        score = round(earned / total * 100, 2) if total else 0
        attempt.update(
            status="COMPLETED",
            completedAt=_now_iso(),
            score=score,
            passed=score >= quiz.get("passingScore", 0),
            correctAnswers=sum(1 for ua in answers if ua["correct"]),
            remainingSeconds=0,
        )
        return _ok(attempt)

    def _summary_by_user(self, request: httpx.Request, user_id: str) -> httpx.Response:
        found = [a for a in self.attempts.values() if a["userId"] == int(user_id)]
        return _ok([self._summary(a) for a in found])

    def _summary_by_quiz(self, request: httpx.Request, quiz_id: str) -> httpx.Response:
        found = [a for a in self.attempts.values() if a["quizId"] == int(quiz_id)]
        return _ok([self._summary(a) for a in found])

    def _by_user_and_quiz(
        self, request: httpx.Request, user_id: str, quiz_id: str
    ) -> httpx.Response:
        found = [
            a
            for a in self.attempts.values()
            if a["userId"] == int(user_id) and a["quizId"] == int(quiz_id)
        ]
        return _ok(found)

    def _in_progress(self, request: httpx.Request, user_id: str, quiz_id: str) -> httpx.Response:
        for attempt in self.attempts.values():
            if (
                attempt["userId"] == int(user_id)
                and attempt["quizId"] == int(quiz_id)
                and attempt["status"] == "IN_PROGRESS"
            ):
                return _ok(attempt)
        return _error(404, "No attempt in progress")

    def _grade(self, question_id: int, answer_id: int) -> tuple[bool, float, str]:
        question = self._find_question(question_id) or {}
        for answer in question.get("answers", []):
            if answer["id"] == answer_id:
                correct = bool(answer.get("correct"))
                return correct, float(question.get("points", 0)) if correct else 0.0, answer["answerText"]
        return False, 0.0, ""

    def _submit_answer(self, request: httpx.Request) -> httpx.Response:
        body = self.body_of(request)
        attempt_id = body["quizAttemptId"]
        if any(
            ua["quizAttemptId"] == attempt_id and ua["questionId"] == body["questionId"]
            for ua in self.user_answers.values()
        ):
            return _error(409, "Answer already submitted for this question")
        correct, points, text = self._grade(body["questionId"], body["selectedAnswerId"])
        record = {
            "id": self.new_id(),
            "quizAttemptId": attempt_id,
            "questionId": body["questionId"],
            "selectedAnswerId": body["selectedAnswerId"],
            "selectedAnswerText": text,
            "correct": correct,
            "pointsEarned": points,
        }
        self.user_answers[record["id"]] = record
        return _ok(record, 201)

    def _change_answer(self, request: httpx.Request, user_answer_id: str) -> httpx.Response:
        record = self.user_answers.get(int(user_answer_id))
        if record is None:
            return _error(404, "Answer not found")
        answer_id = self.body_of(request)["selectedAnswerId"]
        correct, points, text = self._grade(record["questionId"], answer_id)
        record.update(
            selectedAnswerId=answer_id,
            selectedAnswerText=text,
            correct=correct,
            pointsEarned=points,
        )
        return _ok(record)

    def _answers_by_attempt(self, request: httpx.Request, attempt_id: str) -> httpx.Response:
        return _ok(self._answers_for(int(attempt_id)))

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def _notifications_for(self, request: httpx.Request, user_id: str) -> httpx.Response:
        found = [n for n in self.notifications.values() if n["userId"] == int(user_id)]
        found.sort(key=lambda n: n["createdAt"], reverse=True)
        return _ok(found)

    def _mark_read(self, request: httpx.Request, notification_id: str) -> httpx.Response:
        notification = self.notifications.get(int(notification_id))
        if notification is None:
            return _error(404, "Notification not found")
        notification["read"] = True
        return _ok(notification)


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Point the client config at the fake backend and a temp data dir."""
    monkeypatch.setenv("LEARNING_API_BASE_URL", BASE_URL)
    monkeypatch.setenv("LEARNING_DATA_DIR", str(tmp_path / "data"))
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def lms() -> FakeLms:
    return FakeLms()


@pytest.fixture
def store() -> TokenStore:
    return TokenStore()


@pytest.fixture
def client(lms: FakeLms, store: TokenStore) -> ApiClient:
    config = ApiConfig(base_url=BASE_URL, timeout=5)
    api_client = ApiClient(config, store, transport=lms.transport())
    yield api_client
    api_client.close()


@pytest.fixture
def api(client: ApiClient) -> LmsApi:
    return LmsApi(client)


@pytest.fixture
def login_as(lms: FakeLms, store: TokenStore, api: LmsApi) -> Callable[[int], AuthSession]:
    """Put a user's session in the store and return a restored AuthSession."""

    def _login(user_id: int) -> AuthSession:
        user = lms.users[user_id]
        store.set_session(
            f"token-{user['username']}", f"refresh-{user['username']}", user
        )
        auth = AuthSession(api, store)
        auth.restore()
        return auth

    return _login


@pytest.fixture
def learner(login_as) -> AuthSession:
    return login_as(LEARNER_ID)


@pytest.fixture
def web_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def web_client(lms: FakeLms, web_clock: FakeClock):
    """TestClient for the web front end, wired to the fake backend and clock."""
    from fastapi.testclient import TestClient

    from learning.web.api import create_app
    from learning.web.sessions import reset_session_manager

    reset_session_manager(lms.transport(), clock=web_clock)
    with TestClient(create_app()) as test_client:
        yield test_client
    reset_session_manager()


@pytest.fixture
def web_login(web_client) -> Callable[..., dict[str, str]]:
    """Log in through the web API and return the session header."""

    def _login(username: str = "alice", password: str = "secret1") -> dict[str, str]:
        response = web_client.post(
            "/api/session/login", json={"username": username, "password": password}
        )
        assert response.status_code == 201, response.text
        return {"X-Session-Id": response.json()["session_id"]}

    return _login
