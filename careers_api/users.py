from __future__ import annotations

import logging
from typing import Tuple

from flask import Blueprint, request, jsonify, g, abort

from models import storage
from models.user import User
from models.schemas.user import UserCreateSchema, UserUpdateSchema, UserOutSchema
from utils.accounts import create_user, update_user
from utils.decorators import jwt_required, roles_required, owner_or_admin_required

logger = logging.getLogger(__name__)

MAX_LIMIT = 100

bp = Blueprint("users", __name__)

user_create_schema = UserCreateSchema()
user_update_schema = UserUpdateSchema()
user_out_schema = UserOutSchema()
user_list_out_schema = UserOutSchema(many=True)


def parse_pagination() -> Tuple[int, int]:
    try:
        page = int(request.args.get("page", "1"))
        limit = int(request.args.get("limit", "20"))
        page = max(page, 1)
        limit = max(1, min(limit, MAX_LIMIT))
        return page, limit
    except ValueError:
        abort(400, description="page and limit must be integers")


def _get_user_or_404(user_id: str) -> User:
    user = storage.get(User, user_id)
    if not user:
        abort(404, description="User not found")
    return user


@bp.get("/users")
@jwt_required()
@roles_required(["admin"])
def list_users():
    """
    List users, newest first - admin
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - { in: query, name: page, type: integer }
      - { in: query, name: limit, type: integer }
      - { in: query, name: role, type: string }
    responses:
      200: { description: OK }
      403: { description: Forbidden }
    """
    session = storage.get_session()
    page, limit = parse_pagination()

    query = session.query(User)
    role = request.args.get("role")
    if role:
        query = query.filter(User.role == role)

    total = query.count()
    rows = query.order_by(User.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return jsonify(
        {
            "users": user_list_out_schema.dump(rows),
            "meta": {"page": page, "limit": limit, "total": total},
        }
    )


@bp.post("/users")
@jwt_required()
@roles_required(["admin"])
def create():
    """
    Create a user with any role - admin
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            email: { type: string }
            username: { type: string }
            password: { type: string }
            name: { type: string }
            role: { type: string, enum: [admin, recruiter, candidate] }
            companyId: { type: string }
    responses:
      201: { description: Created }
      400: { description: Validation error }
      409: { description: Email or username already taken }
    """
    payload = request.get_json(silent=True) or {}
    data = user_create_schema.load(payload)
    user = create_user(data)
    return jsonify({"user": user_out_schema.dump(user)}), 201


@bp.get("/users/<user_id>")
@jwt_required()
@owner_or_admin_required(lambda user_id, **_: user_id)
def get_user(user_id: str):
    """
    Fetch one user - the user themself or an admin
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - { in: path, name: user_id, type: string, required: true }
    responses:
      200: { description: OK }
      403: { description: Forbidden }
      404: { description: Not found }
    """
    return jsonify({"user": user_out_schema.dump(_get_user_or_404(user_id))}), 200


@bp.patch("/users/<user_id>")
@jwt_required()
@roles_required(["admin"])
def update(user_id: str):
    """
    Update profile fields, role or company link - admin
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - { in: path, name: user_id, type: string, required: true }
      - in: body
        name: body
        schema:
          type: object
          properties:
            email: { type: string }
            username: { type: string }
            name: { type: string }
            role: { type: string }
            companyId: { type: string }
    responses:
      200: { description: OK }
      400: { description: Validation error }
      404: { description: Not found }
    """
    user = _get_user_or_404(user_id)
    payload = request.get_json(silent=True) or {}
    data = user_update_schema.load(payload)
    user = update_user(user, data)
    return jsonify({"user": user_out_schema.dump(user)}), 200


@bp.delete("/users/<user_id>")
@jwt_required()
@roles_required(["admin"])
def delete(user_id: str):
    """
    Delete a user and, by cascade, all of their sessions - admin
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - { in: path, name: user_id, type: string, required: true }
    responses:
      200: { description: Deleted }
      400: { description: Cannot delete yourself }
      404: { description: Not found }
    """
    if g.principal.user_id == user_id:
        abort(400, description="Cannot delete yourself")
    user = _get_user_or_404(user_id)
    storage.delete(user)
    storage.save()
    logger.info("admin %s deleted user %s", g.principal.user_id, user_id)
    return jsonify({"message": "User deleted successfully"}), 200
