"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout
- GET  /auth/me

The implementation:
- Uses argon2 for password hashing (via utils.security)
- Issues short-lived access tokens (response body) and long-lived refresh
  tokens (httpOnly cookie), signed with separate secrets
- Stores refresh tokens in DB (RefreshToken model) so logout can revoke them;
  refresh tokens are not rotated, a session lives until logout or expiry
"""
from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, g, abort, current_app

from models import storage
from models.user import User
from models.refresh_token import RefreshToken
from models.schemas.user import RegisterSchema, UserLoginSchema, UserOutSchema

from utils.accounts import create_user
from utils.decorators import jwt_required
from utils.security import (
    InvalidToken,
    Principal,
    TokenExpired,
    dummy_password_hash,
    issue_access_token,
    issue_refresh_token,
    refresh_token_expiry,
    verify_password,
    verify_refresh_token,
)

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__, url_prefix="/auth")

register_schema = RegisterSchema()
user_login_schema = UserLoginSchema()
user_out_schema = UserOutSchema()


def _set_refresh_cookie(response, token: str) -> None:
    cfg = current_app.config
    response.set_cookie(
        cfg["REFRESH_COOKIE_NAME"],
        token,
        max_age=int(cfg["REFRESH_TOKEN_EXPIRES"].total_seconds()),
        httponly=True,
        secure=cfg["REFRESH_COOKIE_SECURE"],
        samesite=cfg["REFRESH_COOKIE_SAMESITE"],
        path="/",
    )


def _clear_refresh_cookie(response) -> None:
    cfg = current_app.config
    response.delete_cookie(
        cfg["REFRESH_COOKIE_NAME"],
        path="/",
        httponly=True,
        secure=cfg["REFRESH_COOKIE_SECURE"],
        samesite=cfg["REFRESH_COOKIE_SAMESITE"],
    )


def _start_session(user: User, message: str, status: int):
    """Issue both tokens, persist the refresh row and build the response."""
    principal = Principal.from_user(user)
    access_token = issue_access_token(principal)
    refresh_token = issue_refresh_token(principal)
    RefreshToken.issue(user.id, refresh_token, refresh_token_expiry())

    response = jsonify(
        {
            "message": message,
            "user": user_out_schema.dump(user),
            "accessToken": access_token,
        }
    )
    response.status_code = status
    _set_refresh_cookie(response, refresh_token)
    return response


@bp.post("/register")
def register():
    """
    Register a new account and open a session.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [email, username, password, name]
          properties:
            email: { type: string }
            username: { type: string, minLength: 3 }
            password: { type: string, minLength: 8 }
            name: { type: string }
            role: { type: string, enum: [candidate] }
    responses:
      201:
        description: Created (sets refreshToken cookie)
      400:
        description: Validation error
      409:
        description: Email or username already taken
    """
    payload = request.get_json(silent=True) or {}
    data = register_schema.load(payload)
    user = create_user(data)
    return _start_session(user, "User registered successfully", 201)


@bp.post("/login")
def login():
    """
    Login: returns an access token and sets the refreshToken cookie
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK
      401:
        description: Invalid email or password
    """
    payload = request.get_json(silent=True) or {}
    data = user_login_schema.load(payload)

    user = storage.first(User, email=data["email"])
    # Unknown emails still pay for one argon2 verify, and both cases share one message
    password_hash = user.password_hash if user else dummy_password_hash()
    if not verify_password(data["password"], password_hash) or user is None:
        logger.info("failed login attempt")
        abort(401, description="Invalid email or password")

    logger.info("user %s logged in", user.id)
    return _start_session(user, "Login successful", 200)


@bp.post("/refresh")
def refresh():
    """
    Exchange the refreshToken cookie for a new access token.
    The refresh token itself is not rotated.
    ---
    tags:
      - Auth
    responses:
      200:
        description: OK (returns accessToken and user)
      401:
        description: Missing, invalid, revoked or expired refresh token
    """
    token = request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"])
    if not token:
        abort(401, description="Refresh token not found")

    try:
        principal = verify_refresh_token(token)
    except TokenExpired:
        if RefreshToken.revoke(token):
            logger.info("purged expired refresh token")
        abort(401, description="Refresh token expired")
    except InvalidToken:
        abort(401, description="Invalid refresh token")

    stored = RefreshToken.find(token)
    if stored is None or stored.user_id != principal.user_id:
        abort(401, description="Invalid refresh token")

    if stored.is_expired():
        logger.info("purging expired refresh token for user %s", stored.user_id)
        storage.delete(stored)
        storage.save()
        abort(401, description="Refresh token expired")

    # Re-read the user: deleted accounts lose their sessions, role changes apply
    user = storage.get(User, principal.user_id)
    if user is None:
        abort(401, description="User not found")

    return jsonify(
        {
            "accessToken": issue_access_token(Principal.from_user(user)),
            "user": user_out_schema.dump(user),
        }
    ), 200


@bp.post("/logout")
@jwt_required()
def logout():
    """
    Logout: revokes the session behind the refreshToken cookie and clears it
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out (idempotent)
      401:
        description: Unauthorized
    """
    token = request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"])
    if token:
        RefreshToken.revoke(token)
    logger.info("user %s logged out", g.principal.user_id)

    response = jsonify({"message": "Logout successful"})
    _clear_refresh_cookie(response)
    return response, 200


@bp.get("/me")
@jwt_required()
def me():
    """
    Current user, read fresh from the store.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
      404:
        description: User was deleted after the token was issued
    """
    user = storage.get(User, g.principal.user_id)
    if user is None:
        abort(404, description="User not found")
    return jsonify({"user": user_out_schema.dump(user)}), 200
