# mgv_backend/blueprints/orders.py
from flask import Blueprint, jsonify, request

from ..services.order_service import OrderService
from ..utils.auth import admin_required, current_user, login_required

bp = Blueprint("orders", __name__)


@bp.post("/")
@login_required
def create_order():
    data = request.get_json(silent=True) or {}
    order = OrderService.create_order(
        current_user(),
        items=data.get("order_items"),
        shipping_address=data.get("shipping_address"),
        payment_method=data.get("payment_method"),
        payment_result=data.get("payment_result"),
        prices={
            "tax_price": data.get("tax_price"),
            "shipping_price": data.get("shipping_price"),
        },
    )
    return jsonify({"message": "Order placed successfully", "order": order.to_dict()}), 201


@bp.get("/myorders")
@login_required
def my_orders():
    orders = OrderService.list_for_user(current_user().id)
    return jsonify([o.to_dict() for o in orders])


@bp.get("/")
@admin_required
def list_orders():
    return jsonify([o.to_dict() for o in OrderService.list_all()])


@bp.get("/<int:order_id>")
@login_required
def get_order(order_id: int):
    order = OrderService.get_order_for(order_id, current_user())
    return jsonify(order.to_dict())


@bp.put("/<int:order_id>/deliver")
@admin_required
def mark_delivered(order_id: int):
    order = OrderService.mark_delivered(order_id)
    return jsonify({"message": "Order delivered successfully!", "order": order.to_dict()})


@bp.put("/<int:order_id>/status")
@admin_required
def update_status(order_id: int):
    data = request.get_json(silent=True) or {}
    order = OrderService.set_status(order_id, data.get("status"))
    return jsonify({"message": f"Order status updated to {order.status}!", "order": order.to_dict()})


@bp.delete("/<int:order_id>")
@admin_required
def delete_order(order_id: int):
    OrderService.delete_order(order_id)
    return jsonify({"message": "Order removed"})


@bp.get("/track/<string:order_number>")
def public_status(order_number: str):
    return jsonify(OrderService.public_status(order_number))
