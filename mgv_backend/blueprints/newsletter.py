# mgv_backend/blueprints/newsletter.py
import logging
import secrets

from flask import Blueprint, jsonify, request

from ..errors import InvalidInput, NotFound
from ..models import Newsletter, NewsletterSubscriber, db, utcnow
from ..models.newsletter import STATUS_DRAFT, STATUS_SENT
from ..services.notification_service import get_notifier
from ..utils.auth import admin_required, current_user
from ..utils.payload import string_list, text

logger = logging.getLogger(__name__)

bp = Blueprint("newsletter", __name__)


def _email(data: dict) -> str:
    email = text(data, "email").lower()
    if not email:
        raise InvalidInput("Email is required.")
    return email


def _subject_and_content(data: dict):
    subject = text(data, "subject")
    content = text(data, "content", strip=False)
    if not subject or not content.strip():
        raise InvalidInput("Subject and content are required.")
    return subject, content


def _unsubscribe_url(notifier, subscriber: NewsletterSubscriber) -> str:
    return f"{notifier.frontend_url}/app/unsubscribenewsletter/{subscriber.unsubscribe_token}"


def _get_subscriber(subscriber_id: int) -> NewsletterSubscriber:
    subscriber = db.session.get(NewsletterSubscriber, subscriber_id)
    if subscriber is None:
        raise NotFound("Subscriber not found.")
    return subscriber


def _get_newsletter(newsletter_id: int) -> Newsletter:
    newsletter = db.session.get(Newsletter, newsletter_id)
    if newsletter is None:
        raise NotFound("Newsletter not found.")
    return newsletter


# ---------------------------
# Public
# ---------------------------
@bp.post("/subscribe")
def subscribe():
    data = request.get_json(silent=True) or {}
    email = _email(data)
    name = text(data, "name")

    subscriber = NewsletterSubscriber.query.filter_by(email=email).first()
    if subscriber is not None and subscriber.is_active:
        return jsonify({"message": "Already subscribed."})

    if subscriber is None:
        subscriber = NewsletterSubscriber(email=email, name=name)
        db.session.add(subscriber)
    else:
        subscriber.is_active = True
        subscriber.unsubscribed_at = None
        subscriber.name = name or subscriber.name
    if not subscriber.unsubscribe_token:
        subscriber.unsubscribe_token = secrets.token_hex(24)
    db.session.commit()

    notifier = get_notifier()
    notifier.deliver(email, f"Newsletter Subscription Confirmed, {name or email}", "newsletter_welcome",
                     subscriber=subscriber, unsubscribe_url=_unsubscribe_url(notifier, subscriber))
    return jsonify({"message": "Subscribed successfully!"}), 201


@bp.post("/unsubscribe")
def unsubscribe():
    email = _email(request.get_json(silent=True) or {})
    subscriber = NewsletterSubscriber.query.filter_by(email=email).first()
    if subscriber is None or not subscriber.is_active:
        raise NotFound("Subscriber not found or already unsubscribed.")
    subscriber.is_active = False
    subscriber.unsubscribed_at = utcnow()
    db.session.commit()
    return jsonify({"message": "Unsubscribed successfully."})


@bp.get("/unsubscribe/<string:token>")
def unsubscribe_by_token(token: str):
    subscriber = NewsletterSubscriber.query.filter_by(unsubscribe_token=token, is_active=True).first()
    if subscriber is None:
        return jsonify({"message": "You have already unsubscribed or the link is invalid."})
    subscriber.is_active = False
    subscriber.unsubscribed_at = utcnow()
    db.session.commit()
    return jsonify({"message": "You have been successfully unsubscribed from our newsletter."})


# ---------------------------
# Admin: subscribers
# ---------------------------
@bp.get("/subscribers")
@admin_required
def list_subscribers():
    subscribers = NewsletterSubscriber.query.order_by(NewsletterSubscriber.subscribed_at.desc()).all()
    return jsonify([s.to_dict() for s in subscribers])


@bp.put("/subscribers/<int:subscriber_id>")
@admin_required
def edit_subscriber(subscriber_id: int):
    subscriber = _get_subscriber(subscriber_id)
    data = request.get_json(silent=True) or {}
    if "name" in data:
        subscriber.name = text(data, "name")
    if "is_active" in data:
        active = bool(data["is_active"])
        if subscriber.is_active and not active:
            subscriber.unsubscribed_at = utcnow()
        elif active:
            subscriber.unsubscribed_at = None
        subscriber.is_active = active
    db.session.commit()
    return jsonify(subscriber.to_dict())


@bp.delete("/subscribers/<int:subscriber_id>")
@admin_required
def remove_subscriber(subscriber_id: int):
    db.session.delete(_get_subscriber(subscriber_id))
    db.session.commit()
    return jsonify({"message": "Subscriber removed."})


# ---------------------------
# Admin: newsletters
# ---------------------------
@bp.post("/send")
@admin_required
def send_newsletter():
    data = request.get_json(silent=True) or {}
    subject, content = _subject_and_content(data)
    requested = [e.lower() for e in string_list(data, "recipients")]

    q = NewsletterSubscriber.query.filter_by(is_active=True)
    if requested:
        q = q.filter(NewsletterSubscriber.email.in_(requested))
    subscribers = q.order_by(NewsletterSubscriber.id).all()

    newsletter = Newsletter(
        subject=subject,
        content=content,
        recipients=[s.email for s in subscribers],
        status=STATUS_SENT,
        sent_at=utcnow(),
        sent_by_id=current_user().id,
    )
    db.session.add(newsletter)
    db.session.commit()

    notifier = get_notifier()
    delivered = 0
    for subscriber in subscribers:
        ok = notifier.deliver(subscriber.email, subject, "newsletter", subscriber=subscriber, content=content,
                              unsubscribe_url=_unsubscribe_url(notifier, subscriber))
        if ok:
            subscriber.last_newsletter_sent_at = utcnow()
            delivered += 1
    db.session.commit()
    logger.info("Newsletter %s delivered to %d of %d subscribers", newsletter.id, delivered, len(subscribers))

    return jsonify({"message": "Newsletter sent!", "delivered": delivered, "newsletter": newsletter.to_dict()})


@bp.get("/newsletters")
@admin_required
def list_newsletters():
    newsletters = Newsletter.query.order_by(Newsletter.created_at.desc()).all()
    return jsonify([n.to_dict() for n in newsletters])


@bp.post("/newsletters/draft")
@admin_required
def create_draft():
    data = request.get_json(silent=True) or {}
    subject, content = _subject_and_content(data)
    newsletter = Newsletter(subject=subject, content=content, recipients=string_list(data, "recipients"),
                            status=STATUS_DRAFT)
    db.session.add(newsletter)
    db.session.commit()
    return jsonify(newsletter.to_dict()), 201


@bp.put("/newsletters/<int:newsletter_id>")
@admin_required
def edit_newsletter(newsletter_id: int):
    newsletter = _get_newsletter(newsletter_id)
    if newsletter.status == STATUS_SENT:
        raise InvalidInput("Cannot edit a sent newsletter.")
    data = request.get_json(silent=True) or {}
    if "subject" in data:
        newsletter.subject = text(data, "subject")
    if "content" in data:
        newsletter.content = text(data, "content", strip=False)
    if "recipients" in data:
        newsletter.recipients = string_list(data, "recipients")
    if not newsletter.subject or not newsletter.content.strip():
        db.session.rollback()
        raise InvalidInput("Subject and content are required.")
    db.session.commit()
    return jsonify(newsletter.to_dict())


@bp.delete("/newsletters/<int:newsletter_id>")
@admin_required
def delete_newsletter(newsletter_id: int):
    db.session.delete(_get_newsletter(newsletter_id))
    db.session.commit()
    return jsonify({"message": "Newsletter deleted."})
