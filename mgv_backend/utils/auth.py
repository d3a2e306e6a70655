# mgv_backend/utils/auth.py
from functools import wraps

from flask import g, request

from ..errors import AuthenticationRequired, Unauthorized
from ..services.auth_service import load_user_from_token


def _bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


def current_user():
    """User for this request, or None. Cached on flask.g."""
    if "current_user" not in g:
        g.current_user = load_user_from_token(_bearer_token())
    return g.current_user


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if current_user() is None:
            raise AuthenticationRequired("Authentication required. Please log in.")
        return view(*args, **kwargs)
    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        user = current_user()
        if user is None:
            raise AuthenticationRequired("Authentication required. Please log in.")
        if not user.is_admin:
            raise Unauthorized("Admin access required.")
        return view(*args, **kwargs)
    return wrapper
