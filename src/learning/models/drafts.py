"""Request payloads sent to the learning backend.

Each draft serializes to camelCase JSON and leaves out unset (None)
fields, so the same class serves both create and partial update calls.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _serialize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [_serialize(v) for v in value]
    if hasattr(value, "to_payload"):
        return value.to_payload()
    return value


class _Payload:
    """Mixin providing camelCase serialization without None fields."""

    def to_payload(self) -> dict[str, Any]:
        """Convert to the JSON body expected by the backend."""
        payload: dict[str, Any] = {}
        for f in fields(self):  # type: ignore[arg-type]
            value = getattr(self, f.name)
            if value is None:
                continue
            payload[_camel(f.name)] = _serialize(value)
        return payload


@dataclass
class RegisterRequest(_Payload):
    """Self-service account registration."""

    username: str
    email: str
    password: str
    first_name: str
    last_name: str
    phone_number: str | None = None


@dataclass
class UserDraft(_Payload):
    """Admin account creation."""

    email: str
    first_name: str
    last_name: str
    username: str
    password: str
    role: str = "USER"
    phone_number: str | None = None


@dataclass
class UserUpdate(_Payload):
    """Admin account update."""

    email: str
    first_name: str
    last_name: str
    role: str = "USER"


@dataclass
class TopicDraft(_Payload):
    """Topic create/update body."""

    title: str | None = None
    description: str | None = None
    parent_topic_id: int | None = None
    display_order: int | None = None
    active: bool | None = None


@dataclass
class ResourceDraft(_Payload):
    """Resource create/update body."""

    title: str | None = None
    url: str | None = None
    type: str | None = None
    topic_id: int | None = None
    description: str | None = None
    display_order: int | None = None
    active: bool | None = None


@dataclass
class QuizDraft(_Payload):
    """Quiz create/update body."""

    title: str | None = None
    description: str | None = None
    topic_id: int | None = None
    duration_minutes: int | None = None
    passing_score: int | None = None
    active: bool | None = None
    start_time: str | None = None
    end_time: str | None = None
    shuffle_questions: bool | None = None
    show_results_immediately: bool | None = None


@dataclass
class AnswerDraft(_Payload):
    """Answer option body. ``id`` is client-side only (edits)."""

    answer_text: str
    correct: bool = False
    display_order: int | None = None
    id: int | None = None

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload.pop("id", None)
        return payload


@dataclass
class QuestionDraft(_Payload):
    """Question create/update body."""

    question_text: str
    explanation: str | None = None
    quiz_id: int | None = None
    points: int | None = None
    display_order: int | None = None
    answers: list[AnswerDraft] | None = None
    active: bool | None = None
