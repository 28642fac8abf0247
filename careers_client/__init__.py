from careers_client.context import SessionContext
from careers_client.http import (
    ApiClient,
    ApiError,
    Navigator,
    SessionExpired,
    SKIP_INTERCEPTOR_HEADER,
    create_api_client,
)
from careers_client.auth import AuthProvider, AuthState, LoginFailed

__all__ = [
    "ApiClient",
    "ApiError",
    "AuthProvider",
    "AuthState",
    "LoginFailed",
    "Navigator",
    "SessionContext",
    "SessionExpired",
    "SKIP_INTERCEPTOR_HEADER",
    "create_api_client",
]
