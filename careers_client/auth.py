from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from careers_client.http import ApiClient, ApiError, SKIP_INTERCEPTOR_HEADER, REFRESH_PATH, access_token_from

logger = logging.getLogger(__name__)

_SKIP = {SKIP_INTERCEPTOR_HEADER: "true"}


class LoginFailed(Exception):
    pass


@dataclass
class AuthState:
    user: Optional[Dict[str, Any]] = None
    is_loading: bool = True

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


class AuthProvider:
    """
    Application-level auth state on top of an ApiClient.

    check_auth() is the mount-time session check: it trades the refresh cookie (if
    any) for an access token. Having no valid cookie is the ordinary
    logged-out state, not an error.
    """

    def __init__(self, api: ApiClient):
        self.api = api
        self.state = AuthState()

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return self.state.user

    @property
    def is_authenticated(self) -> bool:
        return self.state.is_authenticated

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    def _signed_in(self, data: Dict[str, Any]) -> Dict[str, Any]:
        self.api.context.set_token(data["accessToken"])
        self.state.user = data["user"]
        return data["user"]

    def _signed_out(self) -> None:
        self.api.context.clear()
        self.state.user = None

    def check_auth(self) -> bool:
        self.state.is_loading = True
        try:
            data = self.api.post(REFRESH_PATH, headers=_SKIP).json()
            access_token_from(data)
            self._signed_in(data)
        except (ApiError, requests.RequestException, ValueError) as exc:
            logger.debug("no active session: %s", exc)
            self._signed_out()
        finally:
            self.state.is_loading = False
        return self.is_authenticated

    def login(self, email: str, password: str) -> Dict[str, Any]:
        self.state.is_loading = True
        try:
            # Wrong credentials are a plain 401, not a reason to refresh
            response = self.api.post("/auth/login", json={"email": email, "password": password}, headers=_SKIP)
            return self._signed_in(response.json())
        except ApiError as exc:
            raise LoginFailed(exc.message or "Login failed") from exc
        finally:
            self.state.is_loading = False

    def register(self, **fields: Any) -> Dict[str, Any]:
        self.state.is_loading = True
        try:
            response = self.api.post("/auth/register", json=fields, headers=_SKIP)
            return self._signed_in(response.json())
        finally:
            self.state.is_loading = False

    def logout(self) -> None:
        try:
            self.api.post("/auth/logout")
        except (ApiError, requests.RequestException) as exc:
            logger.warning("logout request failed: %s", exc)
        finally:
            self._signed_out()

    def refresh_user(self) -> Optional[Dict[str, Any]]:
        """Re-read the profile so role/company changes show up."""
        self.state.user = self.api.get("/auth/me").json()["user"]
        return self.state.user
