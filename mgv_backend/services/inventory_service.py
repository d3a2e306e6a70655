"""
Inventory gate for order placement: check every requested line against stock,
then decrement stock with a conditional update once the order row exists.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import update

from ..errors import ValidationFailed
from ..models import Product, db

logger = logging.getLogger(__name__)

REASON_NOT_FOUND = "not_found"
REASON_INSUFFICIENT_STOCK = "insufficient_stock"


@dataclass
class RequestedItem:
    """Line as requested by the client, already type-checked."""
    product_id: int
    quantity: int
    name: Optional[str] = None
    image: Optional[str] = None


@dataclass
class InventoryIssue:
    product_id: int
    reason: str
    message: str
    name: Optional[str] = None
    available: Optional[int] = None
    requested: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"product_id": self.product_id, "reason": self.reason, "message": self.message}
        if self.reason == REASON_INSUFFICIENT_STOCK:
            data.update(name=self.name, available=self.available, requested=self.requested)
        return data


@dataclass
class InventoryCheck:
    ok: bool
    errors: List[InventoryIssue] = field(default_factory=list)
    products: Dict[int, Product] = field(default_factory=dict)

    def error_dicts(self) -> List[Dict[str, Any]]:
        return [issue.to_dict() for issue in self.errors]


def requested_totals(items: List[RequestedItem]) -> Dict[int, int]:
    """Quantity per product, summed across lines, in first-seen order."""
    totals: Dict[int, int] = {}
    for item in items:
        totals[item.product_id] = totals.get(item.product_id, 0) + item.quantity
    return totals


def _insufficient(product: Product, available: int, requested: int) -> InventoryIssue:
    return InventoryIssue(
        product_id=product.id,
        reason=REASON_INSUFFICIENT_STOCK,
        message=f"Not enough stock for {product.name}. Available: {available}, Requested: {requested}.",
        name=product.name,
        available=available,
        requested=requested,
    )


class InventoryGate:

    @staticmethod
    def validate(items: List[RequestedItem]) -> InventoryCheck:
        """
        Evaluate every product, never stopping at the first problem.

        Returns:
            InventoryCheck with ok=False and one issue per failing product,
            or ok=True and the loaded products keyed by id.
        """
        totals = requested_totals(items)
        products = {
            p.id: p
            for p in Product.query.filter(Product.id.in_(list(totals))).all()
        }

        errors: List[InventoryIssue] = []
        for product_id, requested in totals.items():
            product = products.get(product_id)
            if product is None:
                errors.append(InventoryIssue(
                    product_id=product_id,
                    reason=REASON_NOT_FOUND,
                    message=f"Product with ID {product_id} not found.",
                ))
                continue
            available = int(product.stock or 0)
            if requested > available:
                errors.append(_insufficient(product, available, requested))

        if errors:
            logger.warning("Inventory check failed: %s", [e.message for e in errors])
        return InventoryCheck(ok=not errors, errors=errors, products=products)

    @staticmethod
    def reserve(items: List[RequestedItem]) -> None:
        """
        Decrement stock per product inside the current transaction.

        Each decrement only applies while stock >= quantity, so a concurrent order
        that drained the product in the meantime makes this raise ValidationFailed
        and the caller rolls the whole order back.
        """
        for product_id, quantity in requested_totals(items).items():
            result = db.session.execute(
                update(Product)
                .where(Product.id == product_id, Product.stock >= quantity)
                .values(stock=Product.stock - quantity)
                .execution_options(synchronize_session="fetch")
            )
            if result.rowcount != 1:
                product = db.session.get(Product, product_id, populate_existing=True)
                if product is None:
                    issue = InventoryIssue(
                        product_id=product_id,
                        reason=REASON_NOT_FOUND,
                        message=f"Product with ID {product_id} not found.",
                    )
                else:
                    issue = _insufficient(product, int(product.stock or 0), quantity)
                logger.warning("Stock reservation lost a race: %s", issue.message)
                raise ValidationFailed([issue.to_dict()])
            logger.info("Decremented stock for product %s by %s", product_id, quantity)
