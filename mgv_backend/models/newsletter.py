# mgv_backend/models/newsletter.py
from . import db, iso, utcnow

STATUS_DRAFT = "draft"
STATUS_SENT = "sent"


class NewsletterSubscriber(db.Model):
    __tablename__ = "newsletter_subscribers"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    name = db.Column(db.String(255), default="")
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    unsubscribe_token = db.Column(db.String(64), unique=True, index=True)
    subscribed_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    unsubscribed_at = db.Column(db.DateTime(timezone=True))
    last_newsletter_sent_at = db.Column(db.DateTime(timezone=True))

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name or "",
            "is_active": bool(self.is_active),
            "subscribed_at": iso(self.subscribed_at),
            "unsubscribed_at": iso(self.unsubscribed_at),
            "last_newsletter_sent_at": iso(self.last_newsletter_sent_at),
        }


class Newsletter(db.Model):
    __tablename__ = "newsletters"

    id = db.Column(db.Integer, primary_key=True)
    subject = db.Column(db.String(255), nullable=False)
    content = db.Column(db.Text, nullable=False)
    recipients = db.Column(db.JSON, nullable=False, default=list)
    status = db.Column(db.String(16), nullable=False, default=STATUS_DRAFT)
    sent_at = db.Column(db.DateTime(timezone=True))
    sent_by_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "subject": self.subject,
            "content": self.content,
            "recipients": self.recipients or [],
            "status": self.status,
            "sent_at": iso(self.sent_at),
            "sent_by_id": self.sent_by_id,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
