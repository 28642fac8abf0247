"""
security helpers:
- Argon2 password hashing via argon2-cffi
- Access / refresh JWT creation and verification via PyJWT
- Principal: the {userId, email, role} identity carried by both token kinds

encode_token/decode_token are pure over (secret, payload); the issue_*/verify_*
wrappers read secrets and lifetimes from the Flask app config.
"""
from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from functools import lru_cache
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, InvalidHashError

from flask import current_app

ACCESS = "access"
REFRESH = "refresh"

ph = PasswordHasher()


class InvalidToken(Exception):
    """Signature, structure, type or expiry check failed."""


class TokenExpired(InvalidToken):
    """Correctly signed token whose exp has passed."""


@dataclass(frozen=True)
class Principal:
    user_id: str
    email: str
    role: str

    @classmethod
    def from_user(cls, user) -> "Principal":
        return cls(user_id=str(user.id), email=user.email, role=user.role)

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "Principal":
        try:
            return cls(user_id=str(claims["userId"]), email=claims["email"], role=claims["role"])
        except KeyError as exc:
            raise InvalidToken(f"Missing claim: {exc.args[0]}") from exc

    def to_claims(self) -> Dict[str, str]:
        return {"userId": self.user_id, "email": self.email, "role": self.role}


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2 (salted)."""
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a plaintext password against an Argon2 hash."""
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


@lru_cache(maxsize=1)
def dummy_password_hash() -> str:
    """Hash checked for unknown emails so login costs the same either way."""
    return ph.hash(secrets.token_urlsafe(16))


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID)."""
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


def encode_token(
    principal: Principal,
    secret: str,
    expires_in: timedelta,
    token_type: str,
    algorithm: str = "HS256",
    issuer: str | None = None,
) -> str:
    now = _now()
    payload = {
        **principal.to_claims(),
        "type": token_type,
        "jti": generate_jti(),
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
    }
    if issuer:
        payload["iss"] = issuer
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_token(
    token: str,
    secret: str,
    token_type: str,
    algorithm: str = "HS256",
    issuer: str | None = None,
) -> Principal:
    """
    Decode and validate a JWT. Raises TokenExpired / InvalidToken.
    No leeway: a token is rejected from the second its exp is reached.
    """
    try:
        decoded = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            issuer=issuer,
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpired("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidToken(f"Invalid token: {exc}") from exc

    if decoded.get("type") != token_type:
        raise InvalidToken("Wrong token type")
    return Principal.from_claims(decoded)


def _cfg(key: str):
    return current_app.config[key]


def issue_access_token(principal: Principal) -> str:
    return encode_token(
        principal,
        _cfg("ACCESS_TOKEN_SECRET"),
        _cfg("ACCESS_TOKEN_EXPIRES"),
        ACCESS,
        algorithm=_cfg("JWT_ALGORITHM"),
        issuer=current_app.config.get("JWT_ISSUER"),
    )


def issue_refresh_token(principal: Principal) -> str:
    return encode_token(
        principal,
        _cfg("REFRESH_TOKEN_SECRET"),
        _cfg("REFRESH_TOKEN_EXPIRES"),
        REFRESH,
        algorithm=_cfg("JWT_ALGORITHM"),
        issuer=current_app.config.get("JWT_ISSUER"),
    )


def verify_access_token(token: str) -> Principal:
    return decode_token(
        token,
        _cfg("ACCESS_TOKEN_SECRET"),
        ACCESS,
        algorithm=_cfg("JWT_ALGORITHM"),
        issuer=current_app.config.get("JWT_ISSUER"),
    )


def verify_refresh_token(token: str) -> Principal:
    return decode_token(
        token,
        _cfg("REFRESH_TOKEN_SECRET"),
        REFRESH,
        algorithm=_cfg("JWT_ALGORITHM"),
        issuer=current_app.config.get("JWT_ISSUER"),
    )


def refresh_token_expiry() -> datetime:
    """Store-side expiry for a refresh token issued now."""
    return _now() + _cfg("REFRESH_TOKEN_EXPIRES")
