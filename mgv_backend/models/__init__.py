# mgv_backend/models/__init__.py
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def iso(value):
    return value.isoformat() if value else None


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)
    sku = db.Column(db.String(64), nullable=False, unique=True)
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, default="")
    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    stock = db.Column(db.Integer, nullable=False, default=0)
    image_url = db.Column(db.String(500), default="")
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),)

    def __repr__(self):
        return f"<Product id={self.id} sku={self.sku!r} stock={self.stock}>"

    def to_dict(self):
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "description": self.description or "",
            "price": float(self.price or 0),
            "stock": int(self.stock or 0),
            "image_url": self.image_url or "",
        }


from .counter import Counter  # noqa: E402
from .user import User  # noqa: E402
from .order import Order, OrderItem, OrderStatus  # noqa: E402
from .quote import QuoteRequest, QuoteReply, QuoteStatus  # noqa: E402
from .newsletter import Newsletter, NewsletterSubscriber  # noqa: E402
from .project import Project  # noqa: E402

__all__ = [
    "db",
    "utcnow",
    "Product",
    "Counter",
    "User",
    "Order",
    "OrderItem",
    "OrderStatus",
    "QuoteRequest",
    "QuoteReply",
    "QuoteStatus",
    "Newsletter",
    "NewsletterSubscriber",
    "Project",
]
