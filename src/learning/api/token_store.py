"""Persisted client authentication state.

Holds the access token, refresh token and cached user profile between
runs in data/state/auth_v1.json. Nothing else is persisted client side.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

AUTH_STATE_FILENAME = "auth_v1.json"
AUTH_STATE_SCHEMA = "auth_state_v1"


class TokenStore:
    """Access/refresh tokens plus cached user JSON.

    With ``path=None`` the store lives only in memory (used by the web
    front end, one store per browser session).
    """

    def __init__(self, path: Path | None = None):
        self.path = path
        self._access_token: str | None = None
        self._refresh_token: str | None = None
        self._user: dict[str, Any] | None = None

    @classmethod
    def for_state_dir(cls, state_dir: Path) -> TokenStore:
        """Create a file-backed store under the given state directory."""
        store = cls(state_dir / AUTH_STATE_FILENAME)
        store.load()
        return store

    @property
    def access_token(self) -> str | None:
        return self._access_token

    @property
    def refresh_token(self) -> str | None:
        return self._refresh_token

    @property
    def user(self) -> dict[str, Any] | None:
        return self._user

    def load(self) -> None:
        """Load state from disk. Missing or invalid files leave the store empty."""
        self._access_token = None
        self._refresh_token = None
        self._user = None

        if self.path is None or not self.path.exists():
            return

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("auth_state_unreadable", path=str(self.path), error=str(e))
            return

        if not isinstance(data, dict) or data.get("$schema") != AUTH_STATE_SCHEMA:
            logger.warning(
                "auth_state_invalid_schema",
                expected=AUTH_STATE_SCHEMA,
                got=data.get("$schema") if isinstance(data, dict) else None,
            )
            return

        self._access_token = data.get("access_token")
        self._refresh_token = data.get("refresh_token")
        self._user = data.get("user")

    def save(self) -> None:
        """Persist the current state (no-op for in-memory stores)."""
        if self.path is None:
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "$schema": AUTH_STATE_SCHEMA,
            "access_token": self._access_token,
            "refresh_token": self._refresh_token,
            "user": self._user,
        }
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def set_session(
        self,
        access_token: str,
        refresh_token: str | None,
        user: dict[str, Any] | None,
    ) -> None:
        """Store a fresh login. A missing refresh token keeps none."""
        self._access_token = access_token
        self._refresh_token = refresh_token
        self._user = user
        self.save()

    def update_access_token(
        self, access_token: str, user: dict[str, Any] | None = None
    ) -> None:
        """Replace the access token after a refresh."""
        self._access_token = access_token
        if user is not None:
            self._user = user
        self.save()

    def clear(self) -> None:
        """Forget everything and remove the state file."""
        self._access_token = None
        self._refresh_token = None
        self._user = None
        if self.path is not None and self.path.exists():
            self.path.unlink()
