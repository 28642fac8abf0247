"""
User creation / update use cases shared by sign-up and admin user management.

Both enforce the credential store invariants:
- email and username are unique (409)
- a recruiter points at an existing company (400)
- non-recruiters carry no company link
"""
from __future__ import annotations

import logging

from flask import abort

from models import storage
from models.company import Company
from models.user import User
from utils.security import hash_password

logger = logging.getLogger(__name__)


def _ensure_unique(email: str | None, username: str | None, exclude_id: str | None = None) -> None:
    session = storage.get_session()
    if email:
        query = session.query(User).filter(User.email == email)
        if exclude_id:
            query = query.filter(User.id != exclude_id)
        if query.first():
            abort(409, description="User with this email already exists")
    if username:
        query = session.query(User).filter(User.username == username)
        if exclude_id:
            query = query.filter(User.id != exclude_id)
        if query.first():
            abort(409, description="Username is already taken")


def _resolve_company_id(role: str, company_id: str | None) -> str | None:
    if role != "recruiter":
        return None
    if not company_id:
        abort(400, description="Recruiters must belong to a company")
    if storage.get(Company, company_id) is None:
        abort(400, description="companyId does not reference an existing company")
    return company_id


def create_user(data: dict) -> User:
    """data is the output of UserCreateSchema / RegisterSchema.load()."""
    _ensure_unique(data["email"], data["username"])
    role = data.get("role", "candidate")
    user = User(
        email=data["email"],
        username=data["username"],
        password_hash=hash_password(data["password"]),
        name=data["name"],
        role=role,
        company_id=_resolve_company_id(role, data.get("company_id")),
    )
    storage.new(user)
    storage.save()
    logger.info("created user %s (%s)", user.id, role)
    return user


def update_user(user: User, data: dict) -> User:
    """data is the output of UserUpdateSchema.load(); absent keys are left alone."""
    _ensure_unique(data.get("email"), data.get("username"), exclude_id=user.id)
    for field in ("email", "username", "name"):
        if field in data:
            setattr(user, field, data[field])

    role = data.get("role", user.role)
    company_id = data["company_id"] if "company_id" in data else user.company_id
    user.role = role
    user.company_id = _resolve_company_id(role, company_id)
    storage.new(user)
    storage.save()
    return user
