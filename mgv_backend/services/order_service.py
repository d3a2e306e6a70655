"""
Order placement and administration.

Placement runs counter increment, order insert and stock decrements in one
transaction; notification emails go out only after the commit.
"""

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import (
    Conflict,
    InvalidInput,
    NotFound,
    PersistenceError,
    ServiceError,
    Unauthorized,
    ValidationFailed,
)
from ..models import Order, OrderItem, OrderStatus, User, db, utcnow
from ..utils.payload import parse_id
from .inventory_service import InventoryGate, RequestedItem
from .notification_service import OrderEvent, get_notifier
from .sequence_service import issue_order_number, normalize_order_number

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def _money(raw, field_name: str) -> Decimal:
    try:
        value = Decimal(str(raw if raw not in (None, "") else 0))
    except (InvalidOperation, ValueError):
        raise InvalidInput(f"Invalid value for {field_name}")
    if not value.is_finite() or value < 0:
        raise InvalidInput(f"Invalid value for {field_name}")
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def _product_ref(raw) -> Optional[int]:
    # accepts 12, "12" or {"id": 12}
    if isinstance(raw, dict):
        raw = raw.get("id")
    return parse_id(raw)


def parse_items(raw_items) -> List[RequestedItem]:
    if not isinstance(raw_items, list) or not raw_items:
        raise InvalidInput("No order items")

    items: List[RequestedItem] = []
    problems: List[str] = []
    for position, raw in enumerate(raw_items, start=1):
        if not isinstance(raw, dict):
            problems.append(f"Item {position} is not an object.")
            continue
        product_id = _product_ref(raw.get("product_id"))
        if product_id is None:
            problems.append(
                f"Invalid product ID format for item: {raw.get('name') or 'Unknown Product'}. "
                f"ID: {raw.get('product_id')}"
            )
            continue
        quantity = raw.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            problems.append(f"Invalid quantity for product {product_id}: {quantity!r}")
            continue
        items.append(RequestedItem(product_id=product_id, quantity=quantity,
                                   name=raw.get("name"), image=raw.get("image")))

    if problems:
        raise InvalidInput("Invalid order items", errors=problems)
    return items


class OrderService:
    """Order use cases. Callers pass the authenticated User where access matters."""

    @staticmethod
    def is_immediate_payment(payment_method: str) -> bool:
        return payment_method in current_app.config.get("IMMEDIATE_PAYMENT_METHODS", ())

    @staticmethod
    def create_order(user: User, items, shipping_address, payment_method,
                     payment_result=None, prices: Optional[Dict[str, Any]] = None) -> Order:
        """
        Place an order for ``user``.

        Args:
            items: list of {"product_id", "quantity"} dicts
            shipping_address: non-empty dict
            payment_method: e.g. "Credit/Debit Card" or "Bank Transfer"
            payment_result: provider payload stored as-is
            prices: optional {"tax_price", "shipping_price"}

        Raises:
            InvalidInput, ValidationFailed, Conflict, PersistenceError
        """
        requested = parse_items(items)
        if not isinstance(shipping_address, dict) or not shipping_address:
            raise InvalidInput("Shipping address is required")
        payment_method = (payment_method or "").strip() if isinstance(payment_method, str) else ""
        if not payment_method:
            raise InvalidInput("Payment method is required")
        if payment_result is not None and not isinstance(payment_result, dict):
            raise InvalidInput("Payment result must be an object")
        prices = prices or {}
        tax_price = _money(prices.get("tax_price"), "tax_price")
        shipping_price = _money(prices.get("shipping_price"), "shipping_price")

        logger.info("Placing order for user %s with %d line(s)", user.id, len(requested))

        paid_now = OrderService.is_immediate_payment(payment_method)
        try:
            check = InventoryGate.validate(requested)
            if not check.ok:
                raise ValidationFailed(check.error_dicts())

            order_number = issue_order_number()
            order = Order(
                order_number=order_number,
                user_id=user.id,
                shipping_address=shipping_address,
                payment_method=payment_method,
                payment_result=payment_result or {},
                is_paid=paid_now,
                paid_at=utcnow() if paid_now else None,
                status=(OrderStatus.PROCESSING if paid_now else OrderStatus.PENDING).value,
            )
            items_price = Decimal("0.00")
            for line in requested:
                product = check.products[line.product_id]
                unit_price = Decimal(str(product.price or 0)).quantize(CENTS, rounding=ROUND_HALF_UP)
                items_price += unit_price * line.quantity
                order.items.append(OrderItem(
                    product_id=product.id,
                    name=product.name,
                    quantity=line.quantity,
                    price=unit_price,
                    image=product.image_url or line.image or "",
                ))
            order.items_price = items_price
            order.tax_price = tax_price
            order.shipping_price = shipping_price
            order.total_price = items_price + tax_price + shipping_price

            db.session.add(order)
            db.session.flush()
            InventoryGate.reserve(requested)
            db.session.commit()
        except ServiceError:
            db.session.rollback()
            raise
        except IntegrityError as e:
            db.session.rollback()
            logger.error("Duplicate key while placing order: %s", e)
            raise Conflict("Failed to create order due to duplicate order number. Please try again.")
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error("Database error while placing order: %s", e)
            raise PersistenceError("Failed to create order. Please try again.")

        logger.info("Order %s saved (id=%s, status=%s)", order.order_number, order.id, order.status)
        OrderService._notify(OrderEvent.CREATED, order, user)
        return order

    # --------- reads ---------
    @staticmethod
    def get_order(order_id: int) -> Order:
        order = db.session.get(Order, order_id)
        if order is None:
            raise NotFound("Order not found")
        return order

    @staticmethod
    def get_order_for(order_id: int, caller: User) -> Order:
        order = OrderService.get_order(order_id)
        if order.user_id != caller.id and not caller.is_admin:
            raise Unauthorized("Not authorized to view this order")
        return order

    @staticmethod
    def list_for_user(user_id: int) -> List[Order]:
        return (Order.query.filter_by(user_id=user_id)
                .order_by(Order.created_at.desc(), Order.id.desc()).all())

    @staticmethod
    def list_all() -> List[Order]:
        return Order.query.order_by(Order.created_at.desc(), Order.id.desc()).all()

    @staticmethod
    def public_status(order_number: str) -> Dict[str, Any]:
        order = Order.query.filter_by(order_number=normalize_order_number(order_number)).first()
        if order is None:
            raise NotFound("Order not found with this number.")
        return order.to_public_dict()

    # --------- admin mutations ---------
    @staticmethod
    def mark_delivered(order_id: int) -> Order:
        order = OrderService.get_order(order_id)
        order.mark_delivered()
        OrderService._commit("mark order delivered")
        logger.info("Order %s marked delivered", order.order_number)
        OrderService._notify(OrderEvent.DELIVERED, order, order.user)
        return order

    @staticmethod
    def set_status(order_id: int, raw_status) -> Order:
        status = OrderStatus.parse(raw_status)
        if status is None:
            raise InvalidInput("Invalid status provided.")
        order = OrderService.get_order(order_id)
        previous = order.status
        order.transition_to(status)
        OrderService._commit("update order status")
        logger.info("Order %s status %s -> %s", order.order_number, previous, status.value)
        OrderService._notify(OrderEvent.STATUS_CHANGED, order, order.user)
        return order

    @staticmethod
    def delete_order(order_id: int) -> None:
        order = OrderService.get_order(order_id)
        number = order.order_number
        db.session.delete(order)
        OrderService._commit("delete order")
        logger.info("Order %s removed", number)

    # --------- helpers ---------
    @staticmethod
    def _commit(action: str) -> None:
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error("Failed to %s: %s", action, e)
            raise PersistenceError(f"Failed to {action}. Please try again.")

    @staticmethod
    def _notify(event: OrderEvent, order: Order, user: Optional[User]) -> None:
        try:
            get_notifier().notify(event, order, user)
        except Exception:
            logger.exception("Order %s notification (%s) failed", order.order_number, event.value)
