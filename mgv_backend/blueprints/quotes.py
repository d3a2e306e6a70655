# mgv_backend/blueprints/quotes.py
import logging

from flask import Blueprint, jsonify, request

from ..errors import InvalidInput, NotFound, Unauthorized
from ..models import QuoteReply, QuoteRequest, User, db, utcnow
from ..models.quote import SENDER_ADMIN, SENDER_CUSTOMER, QuoteStatus
from ..services.notification_service import get_notifier
from ..utils.auth import admin_required, current_user, login_required
from ..utils.payload import parse_id, text

logger = logging.getLogger(__name__)

bp = Blueprint("quotes", __name__)

REQUIRED_FIELDS = ("name", "email", "phone", "service", "message")
EDITABLE_FIELDS = ("name", "email", "phone", "service", "message", "status")


def _get_quote(quote_id: int) -> QuoteRequest:
    quote = db.session.get(QuoteRequest, quote_id)
    if quote is None:
        raise NotFound("Quote request not found.")
    return quote


def _reply_message(data: dict) -> str:
    message = text(data, "reply_message")
    if not message:
        raise InvalidInput("Reply message is required.")
    return message


def _owns(quote: QuoteRequest, user) -> bool:
    return (quote.email or "").lower() == (user.email or "").lower()


# ---------------------------
# Public
# ---------------------------
@bp.post("/quote")
def send_quote_request():
    data = request.get_json(silent=True) or {}
    values = {key: text(data, key) for key in REQUIRED_FIELDS}
    if not all(values.values()):
        raise InvalidInput("All fields are required.")
    values["email"] = values["email"].lower()

    quote = QuoteRequest(**values)
    db.session.add(quote)
    db.session.commit()
    logger.info("Quote request %s received for %s", quote.id, quote.service)

    notifier = get_notifier()
    notifier.notify_admins(f"New Quote Request: {quote.service} from {quote.name}", "quote_received_admin",
                           quote=quote)
    notifier.deliver(quote.email, f"We received your quote request | {notifier.brand}",
                     "quote_received_customer", quote=quote)
    return jsonify({"message": "Quote request sent and saved successfully!", "quote": quote.to_dict()}), 201


# ---------------------------
# Admin
# ---------------------------
@bp.get("/quotes")
@admin_required
def list_quotes():
    quotes = QuoteRequest.query.order_by(QuoteRequest.created_at.desc()).all()
    return jsonify([q.to_dict() for q in quotes])


@bp.get("/quotes/assigned")
@admin_required
def assigned_quotes():
    quotes = (QuoteRequest.query
              .filter_by(assigned_to_id=current_user().id)
              .order_by(QuoteRequest.created_at.desc())
              .all())
    return jsonify([q.to_dict() for q in quotes])


@bp.put("/quotes/<int:quote_id>")
@admin_required
def update_quote(quote_id: int):
    quote = _get_quote(quote_id)
    data = request.get_json(silent=True) or {}
    if "status" in data and data["status"] not in QuoteStatus.values():
        raise InvalidInput("Invalid quote status.", allowed=QuoteStatus.values())

    changed = {}
    for key in EDITABLE_FIELDS:
        if key in data:
            value = text(data, key)
            if key != "phone" and not value:
                raise InvalidInput(f"{key} cannot be empty.")
            changed[key] = value
    for key, value in changed.items():
        setattr(quote, key, value)
    db.session.commit()

    notifier = get_notifier()
    notifier.deliver(quote.email, f"Your Quote Request Update - {quote.service} | {notifier.brand}",
                     "quote_updated_customer", quote=quote,
                     changes={k: v for k, v in changed.items() if k != "status"})
    return jsonify(quote.to_dict())


@bp.delete("/quotes/<int:quote_id>")
@admin_required
def delete_quote(quote_id: int):
    db.session.delete(_get_quote(quote_id))
    db.session.commit()
    return jsonify({"message": "Quote request deleted."})


@bp.put("/quotes/<int:quote_id>/assign")
@admin_required
def assign_quote(quote_id: int):
    data = request.get_json(silent=True) or {}
    assignee_id = data.get("assigned_to_id")
    if not assignee_id:
        raise InvalidInput("Assigned user ID is required.")
    quote = _get_quote(quote_id)
    user_id = parse_id(assignee_id)
    assignee = db.session.get(User, user_id) if user_id else None
    if assignee is None or not assignee.is_admin:
        raise InvalidInput("Invalid user for assignment. Must be an admin or super admin.")

    if quote.assigned_to_id == assignee.id:
        return jsonify({"message": "Quote already assigned to this admin.", "quote": quote.to_dict()})

    quote.assigned_to_id = assignee.id
    quote.assigned_at = utcnow()
    db.session.commit()
    logger.info("Quote %s assigned to %s by %s", quote.id, assignee.email, current_user().email)

    notifier = get_notifier()
    notifier.deliver(assignee.email, f"Quote Request #{quote.id} Assigned to You", "quote_assigned",
                     quote=quote, assignee=assignee, assigned_by=current_user())
    return jsonify({"message": "Quote assigned successfully!", "quote": quote.to_dict()})


@bp.post("/quotes/<int:quote_id>/reply/admin")
@admin_required
def admin_reply(quote_id: int):
    message = _reply_message(request.get_json(silent=True) or {})
    quote = _get_quote(quote_id)
    admin = current_user()
    reply = QuoteReply(quote=quote, sender_id=admin.id, sender_email=admin.email,
                       sender_type=SENDER_ADMIN, message=message)
    db.session.add(reply)
    quote.status = QuoteStatus.WAITING_FOR_CUSTOMER.value
    db.session.commit()

    notifier = get_notifier()
    notifier.deliver(quote.email, f"Reply to your quote request for {quote.service} | {notifier.brand}",
                     "quote_reply_customer", quote=quote, reply=reply)
    return jsonify({"message": "Reply sent and saved successfully!", "quote": quote.to_dict()})


# ---------------------------
# Customer
# ---------------------------
@bp.get("/customer/quotes/<int:quote_id>")
@login_required
def get_customer_quote(quote_id: int):
    quote = _get_quote(quote_id)
    user = current_user()
    if not user.is_admin and not _owns(quote, user):
        raise Unauthorized("Unauthorized access to this quote.")
    return jsonify(quote.to_dict())


@bp.post("/customer/quotes/<int:quote_id>/reply")
@login_required
def customer_reply(quote_id: int):
    message = _reply_message(request.get_json(silent=True) or {})
    quote = _get_quote(quote_id)
    user = current_user()
    if not _owns(quote, user):
        raise Unauthorized("Unauthorized: You can only reply to your own quotes.")

    reply = QuoteReply(quote=quote, sender_id=user.id, sender_email=user.email,
                       sender_type=SENDER_CUSTOMER, message=message)
    db.session.add(reply)
    quote.status = QuoteStatus.WAITING_FOR_SUPPORT.value
    db.session.commit()

    notifier = get_notifier()
    notifier.notify_admins(f"Customer Reply to Quote Request #{quote.id} from {user.name or user.email}",
                           "quote_reply_admin", quote=quote, reply=reply)
    notifier.deliver(user.email, f"Your Reply to Quote Request for {quote.service} Has Been Sent",
                     "quote_reply_confirmation", quote=quote, reply=reply)
    return jsonify({"message": "Reply sent and saved successfully!", "quote": quote.to_dict()})


@bp.get("/customer/my-quotes")
@login_required
def my_quotes():
    email = (current_user().email or "").lower()
    quotes = (QuoteRequest.query
              .filter(db.func.lower(QuoteRequest.email) == email)
              .order_by(QuoteRequest.created_at.desc())
              .all())
    return jsonify([q.to_dict() for q in quotes])
