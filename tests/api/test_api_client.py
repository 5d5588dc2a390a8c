"""Tests for the REST client: auth header, refresh-and-retry, error mapping."""

import httpx
import pytest

from learning.api.client import ApiClient, ApiConnectionError, ApiError, SessionExpiredError
from learning.api.token_store import TokenStore
from learning.config.app_config import ApiConfig

from conftest import BASE_URL, LEARNER_ID


class TestRequests:
    """Tests for plain request handling."""

    def test_sends_bearer_token_from_store(self, lms, client, store):
        """The access token in the store goes in the Authorization header."""
        store.set_session("token-alice", "refresh-alice", lms.users[LEARNER_ID])
        client.get("/api/topics")
        request = lms.calls("GET", "/api/topics")[0]
        assert request.headers["Authorization"] == "Bearer token-alice"

    def test_no_header_without_token(self, lms, client):
        """Anonymous calls carry no Authorization header."""
        client.get("/api/topics")
        assert "Authorization" not in lms.calls("GET", "/api/topics")[0].headers

    def test_booleans_encoded_lowercase(self, lms, client):
        """Boolean params are sent as true/false."""
        client.get("/api/topics", params={"activeOnly": True, "skip": None})
        request = lms.calls("GET", "/api/topics")[0]
        assert request.url.params["activeOnly"] == "true"
        assert "skip" not in request.url.params

    def test_empty_body_returns_none(self, lms, client):
        """204 responses decode to None."""
        assert client.delete("/api/topics/3") is None


class TestErrors:
    """Tests for error mapping."""

    def test_error_uses_body_message(self, lms, client):
        """The backend's message becomes the error message."""
        with pytest.raises(ApiError) as exc_info:
            client.get("/api/topics/999")
        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Topic not found"

    def test_error_falls_back_to_error_key(self, lms, client):
        """A body with only 'error' uses that."""
        lms.on("GET", "/api/topics", status=400, body={"error": "Bad filter"})
        with pytest.raises(ApiError, match="Bad filter"):
            client.get("/api/topics")

    def test_error_generic_fallback(self, lms, client):
        """No message in the body gives the generic text."""
        lms.on("GET", "/api/topics", status=500, body={})
        with pytest.raises(ApiError, match="Request failed with status 500"):
            client.get("/api/topics")

    def test_connection_error(self, store):
        """Transport failures become ApiConnectionError."""

        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        client = ApiClient(
            ApiConfig(base_url=BASE_URL), store, transport=httpx.MockTransport(refuse)
        )
        with pytest.raises(ApiConnectionError):
            client.get("/api/topics")


class TestRefresh:
    """Tests for the 401 refresh-and-retry."""

    def test_refreshes_and_retries_once(self, lms, client, store):
        """An expired token is refreshed and the call repeated."""
        store.set_session("token-alice", "refresh-alice", lms.users[LEARNER_ID])
        lms.expired_tokens.add("token-alice")

        topics = client.get("/api/topics")

        assert len(topics) == 3
        assert store.access_token == "fresh-alice"
        retried = lms.calls("GET", "/api/topics")[-1]
        assert retried.headers["Authorization"] == "Bearer fresh-alice"

    def test_refresh_failure_clears_store(self, lms, client, store):
        """A rejected refresh token ends the session."""
        store.set_session("token-alice", "bogus", lms.users[LEARNER_ID])
        lms.expired_tokens.add("token-alice")

        with pytest.raises(SessionExpiredError):
            client.get("/api/topics")
        assert store.access_token is None
        assert store.user is None

    def test_missing_refresh_token_expires_session(self, lms, client, store):
        """Without a refresh token a 401 cannot be recovered."""
        store.set_session("token-alice", None, lms.users[LEARNER_ID])
        lms.expired_tokens.add("token-alice")

        with pytest.raises(SessionExpiredError):
            client.get("/api/topics")

    def test_second_401_does_not_loop(self, lms, client, store):
        """A retry that is rejected again ends the session without another refresh."""
        store.set_session("token-alice", "refresh-alice", lms.users[LEARNER_ID])
        lms.expired_tokens.update({"token-alice", "fresh-alice"})

        with pytest.raises(SessionExpiredError):
            client.get("/api/topics")

        assert len(lms.calls("POST", "/api/auth/refresh-token")) == 1
        assert len(lms.calls("GET", "/api/topics")) == 2
        assert store.access_token is None

    def test_login_401_is_not_refreshed(self, lms, client):
        """Bad credentials surface directly as a 401 ApiError."""
        with pytest.raises(ApiError) as exc_info:
            client.post("/api/auth/login", json={"username": "alice", "password": "x"})
        assert exc_info.value.status_code == 401
        assert not isinstance(exc_info.value, SessionExpiredError)
        assert lms.calls("POST", "/api/auth/refresh-token") == []


class TestTokenStore:
    """Tests for the persisted auth state."""

    def test_roundtrip_through_file(self, tmp_path):
        """A saved session loads back from disk."""
        store = TokenStore.for_state_dir(tmp_path)
        store.set_session("tok", "ref", {"id": 1, "username": "alice"})

        reloaded = TokenStore.for_state_dir(tmp_path)
        assert reloaded.access_token == "tok"
        assert reloaded.refresh_token == "ref"
        assert reloaded.user == {"id": 1, "username": "alice"}

    def test_foreign_schema_is_ignored(self, tmp_path):
        """A file with another schema tag leaves the store empty."""
        (tmp_path / "auth_v1.json").write_text('{"$schema": "other", "access_token": "x"}')
        store = TokenStore.for_state_dir(tmp_path)
        assert store.access_token is None

    def test_clear_removes_file(self, tmp_path):
        """Logging out deletes the state file."""
        store = TokenStore.for_state_dir(tmp_path)
        store.set_session("tok", None, None)
        store.clear()
        assert not (tmp_path / "auth_v1.json").exists()
