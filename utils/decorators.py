from __future__ import annotations

import logging
from functools import wraps
from typing import Callable, Iterable

from flask import request, g, abort

from utils.security import InvalidToken, verify_access_token
from utils.policies import ensure_company_access, find_company_or_404

logger = logging.getLogger(__name__)


def _bearer_token() -> str | None:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    token = auth.split(" ", 1)[1].strip()
    return token or None


def jwt_required():
    """Require a valid access token; attaches g.principal."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = _bearer_token()
            if token is None:
                abort(401, description="Authentication required. Please provide a valid token.")
            try:
                g.principal = verify_access_token(token)
            except InvalidToken as exc:
                logger.debug("rejected access token: %s", exc)
                abort(401, description="Invalid or expired token. Please log in again.")
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def jwt_optional():
    """Attach g.principal when a valid token is present; anonymous otherwise."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            g.principal = None
            token = _bearer_token()
            if token is not None:
                try:
                    g.principal = verify_access_token(token)
                except InvalidToken:
                    pass
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def _current_principal():
    principal = getattr(g, "principal", None)
    if principal is None:
        abort(401, description="Authentication required")
    return principal


def roles_required(required_roles: Iterable[str]):
    """
    Allow access if the principal's role is one of required_roles.
    401 without a principal, 403 for any other role. Stack under jwt_required().
    """
    allowed = frozenset(required_roles)

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            principal = _current_principal()
            if principal.role not in allowed:
                abort(403, description="Access denied. You don't have permission to perform this action.")
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def owner_or_admin_required(get_owner_id: Callable[..., str]):
    """
    get_owner_id receives the view kwargs and returns the owning user id.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            principal = _current_principal()
            if principal.role != "admin" and principal.user_id != str(get_owner_id(**kwargs)):
                abort(403, description="Access denied. You can only access your own resources.")
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def company_access_required(slug_arg: str = "slug"):
    """
    Resolve the company named by the URL and apply both authorization layers:
    admin short-circuit, then the recruiter-of-this-company rule.
    The view receives the Company as `company` instead of the slug.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            principal = _current_principal()
            company = find_company_or_404(kwargs.pop(slug_arg))
            ensure_company_access(principal, company)
            return fn(*args, company=company, **kwargs)

        return wrapper

    return decorator
