# mgv_backend/models/order.py
from enum import Enum

from . import db, iso, utcnow


class OrderStatus(str, Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"

    @classmethod
    def parse(cls, raw):
        """Exact match on the display value; returns None for anything else."""
        for status in cls:
            if status.value == raw:
                return status
        return None


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(16), unique=True, nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    shipping_address = db.Column(db.JSON, nullable=False, default=dict)
    payment_method = db.Column(db.String(64), nullable=False)
    payment_result = db.Column(db.JSON, nullable=False, default=dict)

    items_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    tax_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    shipping_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    is_paid = db.Column(db.Boolean, nullable=False, default=False)
    paid_at = db.Column(db.DateTime(timezone=True))
    is_delivered = db.Column(db.Boolean, nullable=False, default=False)
    delivered_at = db.Column(db.DateTime(timezone=True))
    status = db.Column(db.String(20), nullable=False, default=OrderStatus.PENDING.value)

    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user = db.relationship("User", lazy="joined")
    items = db.relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    def __repr__(self):
        return f"<Order {self.order_number} status={self.status}>"

    # --------- status machine ---------
    def transition_to(self, status: OrderStatus, when=None) -> None:
        """
        Any-to-any transition. Delivered flags follow the status:
        entering Delivered keeps an existing delivered_at, leaving it clears both.
        """
        self.status = status.value
        if status is OrderStatus.DELIVERED:
            if not self.is_delivered or self.delivered_at is None:
                self.is_delivered = True
                self.delivered_at = when or utcnow()
        else:
            self.is_delivered = False
            self.delivered_at = None

    def mark_delivered(self, when=None) -> None:
        self.transition_to(OrderStatus.DELIVERED, when)

    # --------- serialization ---------
    def to_dict(self):
        return {
            "id": self.id,
            "order_number": self.order_number,
            "user": self.user.to_brief() if self.user else None,
            "user_id": self.user_id,
            "order_items": [item.to_dict() for item in self.items],
            "shipping_address": self.shipping_address or {},
            "payment_method": self.payment_method,
            "payment_result": self.payment_result or {},
            "items_price": float(self.items_price or 0),
            "tax_price": float(self.tax_price or 0),
            "shipping_price": float(self.shipping_price or 0),
            "total_price": float(self.total_price or 0),
            "is_paid": bool(self.is_paid),
            "paid_at": iso(self.paid_at),
            "is_delivered": bool(self.is_delivered),
            "delivered_at": iso(self.delivered_at),
            "status": self.status,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def to_public_dict(self):
        # unauthenticated tracking: no address, items, user or payment details
        return {
            "order_number": self.order_number,
            "status": self.status,
            "is_paid": bool(self.is_paid),
            "total_price": float(self.total_price or 0),
            "created_at": iso(self.created_at),
        }


class OrderItem(db.Model):
    """Line snapshot; later product edits do not touch placed orders."""
    __tablename__ = "order_items"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    name = db.Column(db.String(120), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(12, 2), nullable=False)
    image = db.Column(db.String(500), default="")

    order = db.relationship("Order", back_populates="items")

    __table_args__ = (db.CheckConstraint("quantity >= 1", name="ck_order_items_quantity_positive"),)

    def to_dict(self):
        return {
            "product_id": self.product_id,
            "name": self.name,
            "quantity": self.quantity,
            "price": float(self.price or 0),
            "image": self.image or "",
        }
