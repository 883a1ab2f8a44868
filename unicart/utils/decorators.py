# ------- unicart/utils/decorators.py -------
from functools import wraps
from flask import jsonify
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

from ..utils.api import api_error

ROLE_LEVEL = {"user": 1, "staff": 2, "admin": 3}


class Identity:
    """Caller identity as vouched for by the external identity provider's token."""

    def __init__(self, user_id=None, name=None, role=None):
        self.user_id = user_id
        self.name = name
        self.role = role or "user"

    @property
    def authenticated(self) -> bool:
        return self.user_id is not None


def current_identity() -> Identity:
    """Read the (optional) bearer token; guests get an unauthenticated Identity."""
    verify_jwt_in_request(optional=True)
    uid = get_jwt_identity()
    if not uid:
        return Identity()
    claims = get_jwt() or {}
    return Identity(user_id=str(uid), name=claims.get("name"), role=claims.get("role"))


def role_at_least(min_role: str, message: str | None = None):  # admin > staff > user
    min_level = ROLE_LEVEL[min_role]
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            role = (get_jwt() or {}).get("role", "user")
            if ROLE_LEVEL.get(role, 0) < min_level:
                return jsonify(api_error(message or "Forbidden", {"code": "forbidden"})), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def admin_required(fn):
    return role_at_least("admin", message="Admins only")(fn)
