"""HTTP client for the learning backend REST API.

Provides a thin JSON client on top of httpx with:
- bearer token authentication from the TokenStore
- one refresh-and-retry on 401 responses
- a small error family mapped from HTTP status codes

All business rules live in the backend; this module only moves JSON.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from learning.api.token_store import TokenStore
from learning.config.app_config import ApiConfig, load_app_config

logger = structlog.get_logger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

REFRESH_PATH = "/api/auth/refresh-token"

# 401 on these endpoints means bad credentials, not an expired session
NO_REFRESH_PATHS = frozenset(
    {
        "/api/auth/login",
        "/api/auth/register",
        REFRESH_PATH,
    }
)

DEFAULT_ERROR_MESSAGE = "Request failed with status {status}"


# =============================================================================
# ERRORS
# =============================================================================


class ApiError(Exception):
    """Error response from the backend."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        payload: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    @classmethod
    def from_response(cls, response: httpx.Response) -> ApiError:
        """Build an error from a failed response, using the body's message."""
        payload: Any = None
        try:
            payload = response.json()
        except ValueError:
            payload = response.text or None

        message = None
        if isinstance(payload, dict):
            message = payload.get("message") or payload.get("error")
        if not message:
            message = DEFAULT_ERROR_MESSAGE.format(status=response.status_code)

        return cls(str(message), status_code=response.status_code, payload=payload)


class ApiConnectionError(ApiError):
    """No response from the backend (refused, DNS, timeout)."""

    pass


class SessionExpiredError(ApiError):
    """Authentication was rejected and could not be refreshed."""

    pass


# =============================================================================
# CLIENT
# =============================================================================


def _encode_params(params: dict[str, Any] | None) -> dict[str, Any] | None:
    """Drop None values and send booleans the way the backend parses them."""
    if not params:
        return None
    encoded: dict[str, Any] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            encoded[key] = "true" if value else "false"
        else:
            encoded[key] = value
    return encoded


class ApiClient:
    """JSON client bound to one backend and one token store."""

    def __init__(
        self,
        config: ApiConfig | None = None,
        store: TokenStore | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            config: Connection settings (loads app config if not provided)
            store: Token store (in-memory store if not provided)
            transport: Optional httpx transport (tests use MockTransport)
        """
        if config is None:
            config = load_app_config().api

        self.config = config
        self.store = store if store is not None else TokenStore()

        self._client = httpx.Client(
            base_url=config.base_url,
            headers={"Content-Type": "application/json"},
            timeout=config.timeout,
            transport=transport,
        )

        logger.debug("api_client_initialized", base_url=config.base_url)

    def __enter__(self) -> ApiClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        """Release the underlying connection pool."""
        self._client.close()

    # -------------------------------------------------------------------------
    # Generic verbs
    # -------------------------------------------------------------------------

    def get(self, url: str, params: dict[str, Any] | None = None) -> Any:
        return self.request("GET", url, params=params)

    def post(
        self, url: str, json: Any = None, params: dict[str, Any] | None = None
    ) -> Any:
        return self.request("POST", url, json=json, params=params)

    def put(
        self, url: str, json: Any = None, params: dict[str, Any] | None = None
    ) -> Any:
        return self.request("PUT", url, json=json, params=params)

    def patch(
        self, url: str, json: Any = None, params: dict[str, Any] | None = None
    ) -> Any:
        return self.request("PATCH", url, json=json, params=params)

    def delete(self, url: str, params: dict[str, Any] | None = None) -> Any:
        return self.request("DELETE", url, params=params)

    def request(
        self,
        method: str,
        url: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Returns:
            Decoded JSON, raw text for non-JSON bodies, or None when empty.

        Raises:
            ApiConnectionError: If the backend cannot be reached
            SessionExpiredError: If a 401 cannot be recovered by refreshing
            ApiError: For any other error status
        """
        response = self._send(method, url, json, params, self.store.access_token)

        if response.status_code == 401 and url not in NO_REFRESH_PATHS:
            token = self._refresh_access_token()
            response = self._send(method, url, json, params, token)
            if response.status_code == 401:
                logger.warning("auth_rejected_after_refresh", method=method, url=url)
                self.store.clear()
                raise SessionExpiredError(
                    "Session expired. Please log in again.", status_code=401
                )

        return self._decode(response)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _send(
        self,
        method: str,
        url: str,
        json: Any,
        params: dict[str, Any] | None,
        token: str | None,
    ) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token}"} if token else None
        try:
            response = self._client.request(
                method,
                url,
                json=json,
                params=_encode_params(params),
                headers=headers,
            )
        except httpx.TransportError as e:
            logger.warning("api_unreachable", method=method, url=url, error=str(e))
            raise ApiConnectionError(
                f"Unable to reach {self.config.base_url}: {e}"
            ) from e

        logger.debug(
            "api_response",
            method=method,
            url=url,
            status=response.status_code,
        )
        return response

    def _refresh_access_token(self) -> str:
        """Exchange the refresh token for a new access token.

        Clears the store and raises SessionExpiredError when not possible.
        """
        refresh_token = self.store.refresh_token
        if not refresh_token:
            self.store.clear()
            raise SessionExpiredError(
                "Session expired. Please log in again.", status_code=401
            )

        try:
            response = self._client.post(
                REFRESH_PATH, json={"refreshToken": refresh_token}
            )
        except httpx.TransportError as e:
            logger.warning("token_refresh_unreachable", error=str(e))
            self.store.clear()
            raise SessionExpiredError(
                "Session expired. Please log in again.", status_code=401
            ) from e

        data: Any = None
        if response.is_success:
            try:
                data = response.json()
            except ValueError:
                data = None

        token = None
        if isinstance(data, dict):
            token = data.get("token") or data.get("accessToken")

        if not token:
            logger.info("token_refresh_failed", status=response.status_code)
            self.store.clear()
            raise SessionExpiredError(
                "Session expired. Please log in again.", status_code=401
            )

        self.store.update_access_token(token, data.get("user"))
        logger.info("token_refreshed")
        return token

    def _decode(self, response: httpx.Response) -> Any:
        if response.is_error:
            raise ApiError.from_response(response)

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError:
            return response.text
