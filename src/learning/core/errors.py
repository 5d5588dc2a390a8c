"""Domain errors and user-facing notices raised by the core view helpers.

HTTP failures use the ApiError family from learning.api.client; the
errors here cover client-side checks made before (or instead of) a call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal


class LearningError(Exception):
    """Base class for client-side errors."""

    pass


class NotAuthenticatedError(LearningError):
    """A screen needs a logged-in user and there is none."""

    def __init__(self, message: str = "Please log in first"):
        super().__init__(message)
        self.message = message


class AccessDeniedError(LearningError):
    """The current user's role is not allowed on a screen."""

    def __init__(self, role: str | None, allowed: tuple[str, ...]):
        self.role = role
        self.allowed = allowed
        self.message = (
            f"Access denied: requires {' or '.join(allowed)} (you are {role or 'anonymous'})"
        )
        super().__init__(self.message)


class FormValidationError(LearningError):
    """A form failed its client-side checks; nothing was sent."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


class QuizNotStartableError(LearningError):
    """Start was requested for a quiz that cannot be started now."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class QuizStateError(LearningError):
    """An action is not valid in the quiz session's current state."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


NoticeLevel = Literal["info", "success", "warning", "error"]


@dataclass
class Notice:
    """A short message shown to the user (toast)."""

    level: NoticeLevel
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"level": self.level, "message": self.message}
