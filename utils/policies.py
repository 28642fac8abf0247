"""
Company-scoped authorization rules.

Admins manage every company. Anyone else must be a recruiter whose stored
company_id matches the target company; the user row is re-read so role or
company changes made after the token was issued take effect immediately.
"""
from __future__ import annotations

from flask import abort

from models import storage
from models.company import Company
from models.user import User


def find_company_or_404(slug: str) -> Company:
    company = storage.first(Company, slug=slug)
    if company is None:
        abort(404, description="Company not found")
    return company


def can_manage_company(principal, company: Company) -> bool:
    if principal is None:
        return False
    if principal.role == "admin":
        return True
    user = storage.get(User, principal.user_id)
    return bool(user and user.role == "recruiter" and user.company_id == company.id)


def ensure_company_access(principal, company: Company) -> None:
    if not can_manage_company(principal, company):
        abort(403, description="Access denied")
