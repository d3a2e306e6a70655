"""
Best-effort email notifications.

Nothing in here raises to the caller. Each delivery attempt is isolated and
failures are only logged.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional, Tuple

from flask import current_app, render_template

from .email_service import EmailMessage

logger = logging.getLogger(__name__)

EXTENSION_KEY = "mgv_notifier"


class OrderEvent(str, Enum):
    CREATED = "order-created"
    DELIVERED = "order-delivered"
    STATUS_CHANGED = "order-status-changed"


# event -> ((customer subject, template), (admin subject, template))
_ORDER_MESSAGES: Dict[OrderEvent, Tuple[Tuple[str, str], Tuple[str, str]]] = {
    OrderEvent.CREATED: (
        ("Your Order Confirmation - {order_number} | {brand}", "order_created_customer"),
        ("New Order Placed - {order_number}", "order_created_admin"),
    ),
    OrderEvent.DELIVERED: (
        ("Your Order Has Been Delivered - {order_number}", "order_delivered_customer"),
        ("Order Delivered - {order_number}", "order_delivered_admin"),
    ),
    OrderEvent.STATUS_CHANGED: (
        ("Order Status Updated - {order_number} | {status}", "order_status_customer"),
        ("Order Status Updated - {order_number} | {status}", "order_status_admin"),
    ),
}


class NotificationDispatcher:

    def __init__(self, mailer, admin_emails: Optional[List[str]] = None,
                 frontend_url: str = "", brand: str = "Marshall Global Ventures"):
        self.mailer = mailer
        self.admin_emails = list(admin_emails or [])
        self.frontend_url = frontend_url.rstrip("/")
        self.brand = brand

    def deliver(self, to, subject: str, template: str, cc: Optional[List[str]] = None, **context) -> bool:
        """Render emails/<template>.html and send it. Returns False instead of raising."""
        recipients = [to] if isinstance(to, str) else list(to or [])
        if not recipients:
            logger.warning("Skipping email %r: no recipient", subject)
            return False
        try:
            html = render_template(
                f"emails/{template}.html",
                brand=self.brand,
                frontend_url=self.frontend_url,
                **context,
            )
            self.mailer.send(EmailMessage(to=recipients, subject=subject, html=html, cc=list(cc or [])))
            return True
        except Exception:
            logger.exception("Email %r to %s failed", subject, ", ".join(recipients))
            return False

    def notify_admins(self, subject: str, template: str, **context) -> bool:
        if not self.admin_emails:
            logger.warning("No admin emails configured; skipping %r", subject)
            return False
        return self.deliver(self.admin_emails[0], subject, template, cc=self.admin_emails[1:], **context)

    def notify(self, event: OrderEvent, order, user) -> None:
        """Customer and admin messages for an order lifecycle event, attempted independently."""
        (customer_subject, customer_template), (admin_subject, admin_template) = _ORDER_MESSAGES[event]
        fields = {"order_number": order.order_number, "status": order.status, "brand": self.brand}

        if user is not None and user.email:
            self.deliver(user.email, customer_subject.format(**fields), customer_template, order=order, user=user)
        else:
            logger.warning("Order %s has no reachable customer; customer email skipped", order.order_number)

        self.notify_admins(admin_subject.format(**fields), admin_template, order=order, user=user)


def get_notifier() -> NotificationDispatcher:
    return current_app.extensions[EXTENSION_KEY]
