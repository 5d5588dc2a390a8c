"""Authentication context shared by every screen.

Holds the current user and token, persists them through the TokenStore,
and provides the role guard used by the CLI commands and web routes.
Role checks here only decide what to show; the backend enforces access.
"""

from __future__ import annotations

from enum import Enum

import structlog

from learning.api.client import ApiConnectionError, ApiError
from learning.api.endpoints import LmsApi
from learning.api.token_store import TokenStore
from learning.core.errors import AccessDeniedError, NotAuthenticatedError
from learning.models import RegisterRequest, User, UserRole

logger = structlog.get_logger(__name__)

GUEST_CREDENTIALS = ("guest", "guest")

STAFF_ROLES = (UserRole.MODERATOR.value, UserRole.ADMIN.value)
ADMIN_ONLY = (UserRole.ADMIN.value,)

# Screen -> roles allowed. Screens not listed need any logged-in user.
ROUTE_ROLES: dict[str, tuple[str, ...]] = {
    "/moderator/topics": STAFF_ROLES,
    "/moderator/resources": STAFF_ROLES,
    "/moderator/quizzes": STAFF_ROLES,
    "/moderator/quiz/edit": STAFF_ROLES,
    "/moderator/quiz/questions": STAFF_ROLES,
    "/admin/users": ADMIN_ONLY,
    "/admin/analytics": ADMIN_ONLY,
    "/admin/quiz-results": STAFF_ROLES,
    "/admin/quiz/results": STAFF_ROLES,
    "/admin/quiz/result": STAFF_ROLES,
}


def _role_value(role: UserRole | str | None) -> str | None:
    if isinstance(role, Enum):
        return role.value
    return role


def describe_login_error(exc: Exception) -> str:
    """Map a failed login to the message shown on the login screen."""
    if isinstance(exc, ApiConnectionError):
        return "Unable to connect to server. Please check your connection"

    if not isinstance(exc, ApiError) or exc.status_code is None:
        return "Login failed. Please try again"

    status = exc.status_code
    server_message = _server_message(exc)

    if status == 401:
        return "Invalid username or password"
    if status == 403:
        return server_message or "Account is not active or verified"
    if status == 429:
        return "Too many login attempts. Please try again later"
    if status >= 500:
        return "Server error. Please try again later"
    return server_message or "Login failed. Please try again"


def describe_guest_login_error(exc: Exception) -> str:
    """Map a failed guest login to its own, shorter message."""
    if isinstance(exc, ApiError) and exc.status_code == 401:
        return "Guest account not available"
    return "Failed to login as guest"


def _server_message(exc: ApiError) -> str | None:
    """Message from the response body only, not the generic fallback."""
    if isinstance(exc.payload, dict):
        return exc.payload.get("message") or exc.payload.get("error")
    return None


class AuthSession:
    """Current user, token and the persistence around them."""

    def __init__(self, api: LmsApi, store: TokenStore):
        self.api = api
        self.store = store
        self._user: User | None = None
        self._token: str | None = None

    @property
    def user(self) -> User | None:
        return self._user

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None and self._token is not None

    @property
    def role(self) -> str | None:
        return _role_value(self._user.role) if self._user else None

    def restore(self) -> bool:
        """Load the stored token and user. Both must be present.

        Returns:
            True if a session was restored
        """
        token = self.store.access_token
        user_data = self.store.user

        if not token or not user_data:
            self._user = None
            self._token = None
            return False

        try:
            self._user = User.from_dict(user_data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("stored_user_invalid", error=str(e))
            self.store.clear()
            self._user = None
            self._token = None
            return False

        self._token = token
        logger.debug("auth_session_restored", user_id=self._user.id)
        return True

    def login(self, username: str, password: str) -> User:
        """Log in and persist the session. Errors propagate to the caller."""
        response = self.api.auth.login(username, password)
        self._accept(response.access_token, response.refresh_token, response.user)
        logger.info("user_logged_in", user_id=response.user.id, role=self.role)
        return response.user

    def login_as_guest(self) -> User:
        return self.login(*GUEST_CREDENTIALS)

    def register(self, request: RegisterRequest) -> User:
        """Register a new account and log it in."""
        response = self.api.auth.register(request)
        self._accept(response.access_token, response.refresh_token, response.user)
        logger.info("user_registered", user_id=response.user.id)
        return response.user

    def logout(self) -> None:
        """Forget the session locally (the backend is not called)."""
        user_id = self._user.id if self._user else None
        self.store.clear()
        self._user = None
        self._token = None
        logger.info("user_logged_out", user_id=user_id)

    def sync(self) -> None:
        """Pick up a token/user replaced by a background refresh."""
        if self.store.access_token is None:
            self._user = None
            self._token = None
        elif self._token != self.store.access_token:
            self.restore()

    def has_role(self, *roles: UserRole | str) -> bool:
        if self._user is None:
            return False
        allowed = {_role_value(r) for r in roles}
        return self.role in allowed

    def require(self, *roles: UserRole | str) -> User:
        """Route guard. No roles means any authenticated user.

        Raises:
            NotAuthenticatedError: If nobody is logged in
            AccessDeniedError: If the user's role is not allowed
        """
        if not self.is_authenticated or self._user is None:
            raise NotAuthenticatedError()
        if roles and not self.has_role(*roles):
            allowed = tuple(str(_role_value(r)) for r in roles)
            logger.info("access_denied", user_id=self._user.id, role=self.role)
            raise AccessDeniedError(self.role, allowed)
        return self._user

    def require_route(self, route: str) -> User:
        """Guard a screen by its route using ROUTE_ROLES."""
        return self.require(*ROUTE_ROLES.get(route, ()))

    def _accept(
        self, access_token: str, refresh_token: str | None, user: User
    ) -> None:
        self.store.set_session(access_token, refresh_token, user.to_dict())
        self._token = access_token
        self._user = user
