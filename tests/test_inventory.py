import pytest

from mgv_backend.errors import ValidationFailed
from mgv_backend.models import Product, db
from mgv_backend.services.inventory_service import (
    REASON_INSUFFICIENT_STOCK,
    REASON_NOT_FOUND,
    InventoryGate,
    RequestedItem,
    requested_totals,
)


def test_requested_totals_sums_lines_per_product():
    items = [RequestedItem(1, 2), RequestedItem(2, 1), RequestedItem(1, 3)]
    assert requested_totals(items) == {1: 5, 2: 1}


def test_validate_passes_within_stock(app, make_product):
    pid = make_product(stock=5)
    with app.app_context():
        check = InventoryGate.validate([RequestedItem(pid, 5)])
        assert check.ok
        assert check.errors == []
        assert check.products[pid].name == "Widget"


def test_validate_reports_insufficient_stock(app, make_product):
    pid = make_product(stock=5)
    with app.app_context():
        check = InventoryGate.validate([RequestedItem(pid, 6)])
    assert not check.ok
    assert check.error_dicts() == [{
        "product_id": pid,
        "reason": REASON_INSUFFICIENT_STOCK,
        "message": "Not enough stock for Widget. Available: 5, Requested: 6.",
        "name": "Widget",
        "available": 5,
        "requested": 6,
    }]


def test_validate_checks_summed_quantity_across_lines(app, make_product):
    pid = make_product(stock=5)
    with app.app_context():
        check = InventoryGate.validate([RequestedItem(pid, 3), RequestedItem(pid, 3)])
    assert not check.ok
    assert check.errors[0].requested == 6


def test_validate_collects_every_problem(app, make_product):
    short = make_product(sku="A", name="Cable", stock=1)
    fine = make_product(sku="B", name="Router", stock=10)
    with app.app_context():
        check = InventoryGate.validate([RequestedItem(short, 2), RequestedItem(9999, 1), RequestedItem(fine, 1)])
    assert not check.ok
    reasons = {issue.product_id: issue.reason for issue in check.errors}
    assert reasons == {short: REASON_INSUFFICIENT_STOCK, 9999: REASON_NOT_FOUND}
    missing = [i for i in check.errors if i.reason == REASON_NOT_FOUND][0]
    assert missing.message == "Product with ID 9999 not found."
    assert "available" not in missing.to_dict()


def test_reserve_decrements_stock(app, make_product, stock_of):
    a = make_product(sku="A", stock=5)
    b = make_product(sku="B", stock=3)
    with app.app_context():
        InventoryGate.reserve([RequestedItem(a, 2), RequestedItem(b, 3), RequestedItem(a, 1)])
        db.session.commit()
    assert stock_of(a) == 2
    assert stock_of(b) == 0


def test_reserve_refuses_to_oversell(app, make_product, stock_of):
    pid = make_product(stock=2)
    with app.app_context():
        with pytest.raises(ValidationFailed) as excinfo:
            InventoryGate.reserve([RequestedItem(pid, 3)])
        db.session.rollback()
    assert excinfo.value.errors[0]["available"] == 2
    assert stock_of(pid) == 2


def test_reserve_after_stock_drained_elsewhere(app, make_product, stock_of):
    pid = make_product(stock=4)
    with app.app_context():
        check = InventoryGate.validate([RequestedItem(pid, 4)])
        assert check.ok
        # another order takes the stock between check and reserve
        db.session.query(Product).filter_by(id=pid).update({"stock": 1})
        with pytest.raises(ValidationFailed) as excinfo:
            InventoryGate.reserve([RequestedItem(pid, 4)])
        db.session.rollback()
    assert excinfo.value.errors[0]["message"] == "Not enough stock for Widget. Available: 1, Requested: 4."
    assert stock_of(pid) == 4
