"""
HTTP client for the careers platform API with transparent token refresh.

Every request carries the in-memory access token. A 401 triggers at most one
refresh call at a time (see SessionContext); the failed request is retried
once with the new token. A failed refresh ends the session: the token is
dropped, queued requests fail with SessionExpired and the navigator is sent
to the login page.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

import requests
from requests.structures import CaseInsensitiveDict

from careers_client.context import SessionContext

logger = logging.getLogger(__name__)

SKIP_INTERCEPTOR_HEADER = "X-Skip-Interceptor"
REFRESH_PATH = "/auth/refresh"
LOGIN_PATH = "/login"


class ApiError(Exception):
    def __init__(self, status: int, message: str, payload: Optional[Dict[str, Any]] = None):
        super().__init__(f"{status}: {message}")
        self.status = status
        self.message = message
        self.payload = payload or {}


class SessionExpired(Exception):
    """The refresh token was rejected; the user has to log in again."""


class Navigator:
    """Tracks where the application is; headless apps just record redirects."""

    def __init__(self, path: str = "/"):
        self.path = path

    def redirect(self, path: str) -> None:
        logger.info("redirecting to %s", path)
        self.path = path


class _Waiter:
    def __init__(self):
        self._event = threading.Event()
        self._token: Optional[str] = None
        self._error: Optional[BaseException] = None

    def resolve(self, token: str) -> None:
        self._token = token
        self._event.set()

    def reject(self, error: BaseException) -> None:
        self._error = error
        self._event.set()

    def wait(self, timeout: Optional[float]) -> str:
        if not self._event.wait(timeout):
            raise SessionExpired("Timed out waiting for token refresh")
        if self._error is not None:
            raise SessionExpired("Session refresh failed") from self._error
        return self._token


def access_token_from(data: Any) -> str:
    """The accessToken of a refresh/login body; ValueError when there is none."""
    token = data.get("accessToken") if isinstance(data, dict) else None
    if not isinstance(token, str) or not token:
        raise ValueError("Response carried no access token")
    return token


def _error_from(response: requests.Response) -> ApiError:
    try:
        payload = response.json()
    except ValueError:
        payload = {}
    message = payload.get("message") if isinstance(payload, dict) else None
    return ApiError(response.status_code, message or response.reason or "Request failed", payload)


class ApiClient:
    def __init__(
        self,
        context: SessionContext,
        base_url: str,
        http: Optional[requests.Session] = None,
        navigator: Optional[Navigator] = None,
        login_path: str = LOGIN_PATH,
        timeout: float = 30,
    ):
        self.context = context
        self.base_url = base_url.rstrip("/")
        self.http = http or requests.Session()
        self.navigator = navigator or Navigator()
        self.login_path = login_path
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _send(self, method: str, path: str, headers: Dict[str, str], token: Optional[str], kwargs):
        headers = dict(headers)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        kwargs.setdefault("timeout", self.timeout)
        return self.http.request(method, self._url(path), headers=headers, **kwargs)

    @staticmethod
    def _checked(response: requests.Response) -> requests.Response:
        if response.status_code >= 400:
            raise _error_from(response)
        return response

    def request(self, method: str, path: str, **kwargs) -> requests.Response:
        headers = CaseInsensitiveDict(kwargs.pop("headers", None) or {})
        token = self.context.token
        response = self._send(method, path, headers, token, dict(kwargs))

        if (
            response.status_code != 401
            or SKIP_INTERCEPTOR_HEADER in headers
            or path.rstrip("/").endswith(REFRESH_PATH)
        ):
            return self._checked(response)

        fresh = self._fresh_token(stale=token)
        # Retried once; a second 401 is final
        return self._checked(self._send(method, path, headers, fresh, dict(kwargs)))

    def get(self, path: str, **kwargs) -> requests.Response:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs) -> requests.Response:
        return self.request("POST", path, **kwargs)

    def patch(self, path: str, **kwargs) -> requests.Response:
        return self.request("PATCH", path, **kwargs)

    def delete(self, path: str, **kwargs) -> requests.Response:
        return self.request("DELETE", path, **kwargs)

    def refresh(self) -> Dict[str, Any]:
        """Bare refresh call: cookie only, never intercepted."""
        response = self.http.post(self._url(REFRESH_PATH), timeout=self.timeout)
        return self._checked(response).json()

    def _fresh_token(self, stale: Optional[str]) -> str:
        waiter = _Waiter()
        if not self.context.claim_refresh(stale, waiter.resolve, waiter.reject):
            return waiter.wait(self.timeout)

        try:
            token = access_token_from(self.refresh())
        except Exception as exc:
            # Any failure must release the waiters, or later 401s queue forever
            logger.info("token refresh failed: %s", exc)
            self.context.fail_refresh(exc)
            self._go_to_login()
            raise SessionExpired("Session refresh failed") from exc

        self.context.finish_refresh(token)
        return token

    def _go_to_login(self) -> None:
        if not self.navigator.path.startswith(self.login_path):
            self.navigator.redirect(self.login_path)


def create_api_client(
    context: SessionContext,
    base_url: str,
    http: Optional[requests.Session] = None,
    navigator: Optional[Navigator] = None,
    **kwargs,
) -> ApiClient:
    """Build the client the whole application shares for one SessionContext."""
    return ApiClient(context, base_url, http=http, navigator=navigator, **kwargs)
