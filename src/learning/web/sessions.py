"""Browser session management for the web front end.

Each login gets a BrowserSession that owns its own API client, auth
context (in-memory token store) and the quiz-taking sessions opened from
that browser. Clients send the session id back in the X-Session-Id header.

Routes are plain `def` handlers run in FastAPI's threadpool, because the
httpx client underneath is synchronous; the locks here are threading locks.
"""

from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

import httpx
import structlog
from fastapi import Header, HTTPException, status

from learning.api.client import ApiClient
from learning.api.endpoints import LmsApi
from learning.api.token_store import TokenStore
from learning.config.app_config import load_app_config
from learning.core.auth import AuthSession
from learning.core.quiz_taking import QuizSession

logger = structlog.get_logger(__name__)

SESSION_HEADER = "X-Session-Id"


@dataclass
class BrowserSession:
    """One browser's connection to the backend."""

    session_id: str
    api: LmsApi
    auth: AuthSession
    created_at: str = ""
    quizzes: dict[int, QuizSession] = field(default_factory=dict)
    lock: threading.RLock = field(default_factory=threading.RLock)
    clock: Callable[[], float] = time.monotonic

    def __post_init__(self):
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc).isoformat()

    def open_quiz(self, quiz_id: int) -> QuizSession:
        """Create (or replace) the quiz-taking session for a quiz."""
        user = self.auth.user
        session = QuizSession(self.api, quiz_id, user, clock=self.clock)
        with self.lock:
            self.quizzes[quiz_id] = session
        return session

    def quiz(self, quiz_id: int) -> QuizSession | None:
        with self.lock:
            return self.quizzes.get(quiz_id)

    def close(self) -> None:
        with self.lock:
            self.quizzes.clear()
        self.api.close()


class BrowserSessionManager:
    """Holds active browser sessions.

    Args:
        transport: httpx transport for every backend client (tests pass a
            MockTransport; None uses the network)
        clock: monotonic clock for quiz countdowns
    """

    def __init__(
        self,
        transport: httpx.BaseTransport | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._transport = transport
        self._clock = clock
        self._sessions: dict[str, BrowserSession] = {}
        self._lock = threading.Lock()

    def create_session(self) -> BrowserSession:
        """Create a new, not yet authenticated, browser session."""
        config = load_app_config()
        store = TokenStore()
        client = ApiClient(config.api, store, transport=self._transport)
        api = LmsApi(client)

        session = BrowserSession(
            session_id=uuid.uuid4().hex,
            api=api,
            auth=AuthSession(api, store),
            clock=self._clock,
        )
        with self._lock:
            self._sessions[session.session_id] = session

        logger.info("browser_session_created", session_id=session.session_id)
        return session

    def get_session(self, session_id: str) -> BrowserSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def end_session(self, session_id: str) -> bool:
        """Log out and drop a session.

        Returns:
            True if the session existed
        """
        with self._lock:
            session = self._sessions.pop(session_id, None)

        if session is None:
            return False

        session.auth.logout()
        session.close()
        logger.info("browser_session_ended", session_id=session_id)
        return True

    def get_session_count(self) -> int:
        with self._lock:
            return len(self._sessions)


# Global session manager instance
_session_manager: BrowserSessionManager | None = None


def get_session_manager() -> BrowserSessionManager:
    """Get the global session manager instance."""
    global _session_manager
    if _session_manager is None:
        _session_manager = BrowserSessionManager()
    return _session_manager


def reset_session_manager(
    transport: httpx.BaseTransport | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """Replace the session manager (for testing)."""
    global _session_manager
    _session_manager = None
    if transport is not None:
        _session_manager = BrowserSessionManager(transport, clock)


def current_session(
    x_session_id: str | None = Header(default=None, alias=SESSION_HEADER),
) -> BrowserSession:
    """Dependency: the caller's browser session, refreshed from its store."""
    session = get_session_manager().get_session(x_session_id) if x_session_id else None
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session not found. Please log in",
        )
    session.auth.sync()
    return session
