# mgv_backend/models/quote.py
from enum import Enum

from . import db, iso, utcnow


class QuoteStatus(str, Enum):
    WAITING_FOR_SUPPORT = "Waiting for Support"
    WAITING_FOR_CUSTOMER = "Waiting for Customer"
    PENDING = "Pending"
    IN_REVIEW = "In Review"
    IN_PROGRESS = "In Progress"
    DONE = "Done"
    COMPLETED = "Completed"
    DECLINED = "Declined"
    REJECTED = "Rejected"
    RESOLVED = "Resolved"
    CLOSED = "Closed"

    @classmethod
    def values(cls):
        return [status.value for status in cls]


SENDER_ADMIN = "admin"
SENDER_CUSTOMER = "customer"


class QuoteRequest(db.Model):
    __tablename__ = "quote_requests"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, index=True)
    phone = db.Column(db.String(32), default="")
    service = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(32), nullable=False, default=QuoteStatus.WAITING_FOR_SUPPORT.value)

    assigned_to_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    assigned_at = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, index=True)

    assigned_to = db.relationship("User")
    replies = db.relationship(
        "QuoteReply",
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="QuoteReply.id",
    )

    def __repr__(self):
        return f"<QuoteRequest id={self.id} service={self.service!r} status={self.status!r}>"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone or "",
            "service": self.service,
            "message": self.message,
            "status": self.status,
            "assigned_to": self.assigned_to.to_brief() if self.assigned_to else None,
            "assigned_at": iso(self.assigned_at),
            "replies": [reply.to_dict() for reply in self.replies],
            "created_at": iso(self.created_at),
        }


class QuoteReply(db.Model):
    __tablename__ = "quote_replies"

    id = db.Column(db.Integer, primary_key=True)
    quote_id = db.Column(db.Integer, db.ForeignKey("quote_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    sender_email = db.Column(db.String(255), nullable=False)
    sender_type = db.Column(db.String(16), nullable=False)
    message = db.Column(db.Text, nullable=False)
    replied_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    quote = db.relationship("QuoteRequest", back_populates="replies")
    sender = db.relationship("User")

    def to_dict(self):
        return {
            "id": self.id,
            "sender": {"id": self.sender.id, "name": self.sender.name} if self.sender else None,
            "sender_email": self.sender_email,
            "sender_type": self.sender_type,
            "message": self.message,
            "replied_at": iso(self.replied_at),
        }
