# mgv_backend/blueprints/users.py
import logging

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import IntegrityError

from ..errors import Conflict, InvalidInput, NotFound
from ..models import Order, QuoteRequest, User, db
from ..models.user import ADMIN_ROLES, ROLE_CUSTOMER, ROLES
from ..services.auth_service import find_user_by_reset_token, issue_token, start_password_reset
from ..services.notification_service import get_notifier
from ..utils.auth import admin_required, current_user, login_required
from ..utils.payload import text

logger = logging.getLogger(__name__)

bp = Blueprint("users", __name__)

MIN_PASSWORD_LENGTH = 8
PROFILE_FIELDS = ("name", "email", "phone")


def _get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found.")
    return user


def _auth_payload(user: User):
    return {
        "user": {"id": user.id, "name": user.name, "email": user.email, "role": user.role},
        "token": issue_token(user),
    }


def _apply_profile_fields(user: User, data: dict) -> None:
    for key in PROFILE_FIELDS:
        if key in data:
            value = text(data, key)
            if key == "email":
                value = value.lower()
            if key in ("name", "email") and not value:
                raise InvalidInput(f"{key} cannot be empty.")
            setattr(user, key, value)


def _commit_unique_email():
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("Email already registered.")


# ---------------------------
# Public
# ---------------------------
@bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}
    name = text(data, "name")
    email = text(data, "email").lower()
    password = text(data, "password", strip=False)
    if not name or not email or not password:
        raise InvalidInput("All fields are required.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInput(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")
    if User.query.filter_by(email=email).first():
        raise InvalidInput("Email already registered.")

    # self-registration never grants a staff role
    user = User(name=name, email=email, phone=text(data, "phone"), role=ROLE_CUSTOMER)
    user.set_password(password)
    db.session.add(user)
    _commit_unique_email()
    logger.info("Registered user %s", user.email)

    notifier = get_notifier()
    notifier.deliver(user.email, f"Welcome to {notifier.brand}, {user.name}!", "welcome", user=user)
    notifier.notify_admins(f"New User Registration: {user.name}", "new_user_admin", user=user)

    return jsonify(_auth_payload(user)), 201


@bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email = text(data, "email").lower()
    user = User.query.filter_by(email=email).first()
    if user is None or not user.is_active or not user.check_password(text(data, "password", strip=False)):
        raise InvalidInput("Invalid credentials.")
    return jsonify(_auth_payload(user))


@bp.post("/forgot-password")
def request_password_reset():
    data = request.get_json(silent=True) or {}
    email = text(data, "email").lower()
    user = User.query.filter_by(email=email).first()
    if user is None:
        raise InvalidInput("User not found.")
    token = start_password_reset(user)
    db.session.commit()

    notifier = get_notifier()
    reset_url = f"{notifier.frontend_url}/resetpassword/{token}"
    notifier.deliver(user.email, f"Password Reset for {user.name or user.email}", "password_reset",
                     user=user, reset_url=reset_url)
    return jsonify({"message": "Password reset email sent."})


@bp.post("/reset-password")
def reset_password():
    data = request.get_json(silent=True) or {}
    new_password = text(data, "new_password", strip=False)
    user = find_user_by_reset_token(text(data, "token", strip=False))
    if user is None:
        raise InvalidInput("Invalid or expired token.")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise InvalidInput(f"New password must be at least {MIN_PASSWORD_LENGTH} characters long.")
    user.set_password(new_password)
    user.reset_password_token = None
    user.reset_password_expires = None
    db.session.commit()
    return jsonify({"message": "Password has been reset successfully."})


# ---------------------------
# Own profile
# ---------------------------
@bp.get("/profile")
@login_required
def get_profile():
    return jsonify(current_user().to_dict())


@bp.put("/profile")
@login_required
def update_profile():
    user = current_user()
    # role, is_active and password are not editable here
    _apply_profile_fields(user, request.get_json(silent=True) or {})
    _commit_unique_email()
    return jsonify(user.to_dict())


# ---------------------------
# Admin
# ---------------------------
@bp.get("/")
@admin_required
def list_users():
    return jsonify([u.to_dict() for u in User.query.order_by(User.created_at.desc()).all()])


@bp.get("/admins")
@admin_required
def list_admins():
    admins = User.query.filter(User.role.in_(ADMIN_ROLES)).order_by(User.name).all()
    return jsonify([u.to_brief() for u in admins])


@bp.put("/<int:user_id>")
@admin_required
def edit_user(user_id: int):
    user = _get_user(user_id)
    data = request.get_json(silent=True) or {}
    _apply_profile_fields(user, data)
    if "role" in data:
        if data["role"] not in ROLES:
            db.session.rollback()
            raise InvalidInput(f"Role must be one of: {', '.join(ROLES)}.")
        user.role = data["role"]
    if "is_active" in data:
        user.is_active = bool(data["is_active"])
    _commit_unique_email()
    return jsonify(user.to_dict())


@bp.delete("/<int:user_id>")
@admin_required
def delete_user(user_id: int):
    user = _get_user(user_id)
    if Order.query.filter_by(user_id=user.id).first() is not None:
        raise Conflict("User still owns orders; disable the account instead.")
    QuoteRequest.query.filter_by(assigned_to_id=user.id).update({"assigned_to_id": None})
    db.session.delete(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("User is still referenced; disable the account instead.")
    return jsonify({"message": "User deleted."})


@bp.put("/<int:user_id>/disable")
@admin_required
def disable_user(user_id: int):
    user = _get_user(user_id)
    user.is_active = False
    db.session.commit()
    current_app.logger.info("User %s disabled", user.email)
    return jsonify({"message": "User disabled."})


@bp.put("/<int:user_id>/reset-password")
@admin_required
def reset_user_password(user_id: int):
    data = request.get_json(silent=True) or {}
    new_password = text(data, "new_password", strip=False)
    if not new_password:
        raise InvalidInput("New password is required.")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise InvalidInput(f"New password must be at least {MIN_PASSWORD_LENGTH} characters long.")
    user = _get_user(user_id)
    user.set_password(new_password)
    db.session.commit()
    return jsonify({"message": "Password reset successfully."})
