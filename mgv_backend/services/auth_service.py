"""
Bearer token issuance and password-reset tokens.
"""

import logging
import secrets
from datetime import timedelta
from typing import Optional

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..models import User, db, utcnow

logger = logging.getLogger(__name__)

TOKEN_SALT = "mgv-auth-token"


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)


def issue_token(user: User) -> str:
    return _serializer().dumps({"id": user.id, "email": user.email, "role": user.role})


def load_user_from_token(token: str) -> Optional[User]:
    if not token:
        return None
    try:
        data = _serializer().loads(token, max_age=current_app.config["AUTH_TOKEN_MAX_AGE"])
    except SignatureExpired:
        logger.info("Rejected expired auth token")
        return None
    except BadSignature:
        logger.warning("Rejected auth token with bad signature")
        return None
    user = db.session.get(User, data.get("id"))
    if user is None or not user.is_active:
        return None
    return user


def start_password_reset(user: User) -> str:
    token = secrets.token_hex(32)
    user.reset_password_token = token
    user.reset_password_expires = utcnow() + timedelta(seconds=current_app.config["PASSWORD_RESET_MAX_AGE"])
    return token


def find_user_by_reset_token(token: str) -> Optional[User]:
    if not token:
        return None
    user = User.query.filter_by(reset_password_token=token).first()
    if user is None or user.reset_password_expires is None:
        return None
    expires = user.reset_password_expires
    if expires.tzinfo is None:
        # SQLite hands datetimes back without tzinfo
        expires = expires.replace(tzinfo=utcnow().tzinfo)
    if expires <= utcnow():
        return None
    return user
