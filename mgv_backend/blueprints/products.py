# mgv_backend/blueprints/products.py
from decimal import Decimal, InvalidOperation

from flask import Blueprint, jsonify, request
from sqlalchemy import asc, desc, or_
from sqlalchemy.exc import IntegrityError

from ..errors import Conflict, InvalidInput, NotFound
from ..models import Product, db
from ..utils.auth import admin_required
from ..utils.payload import MAX_ID, text

bp = Blueprint("products", __name__)


def _get_product(pid: int) -> Product:
    product = db.session.get(Product, pid)
    if product is None:
        raise NotFound("Product not found")
    return product


def _price(raw) -> Decimal:
    try:
        value = Decimal(str(raw or 0))
    except (InvalidOperation, ValueError):
        raise InvalidInput("Invalid price")
    if not value.is_finite() or value < 0:
        raise InvalidInput("Invalid price")
    return value


def _stock(raw) -> int:
    try:
        value = int(raw or 0)
    except (TypeError, ValueError):
        raise InvalidInput("Invalid stock")
    if value < 0:
        raise InvalidInput("Stock cannot be negative")
    if value > MAX_ID:
        raise InvalidInput("Invalid stock")
    return value


def _commit_or_conflict():
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("SKU already exists")


@bp.get("/")
def list_products():
    try:
        page = max(int(request.args.get("page", 1)), 1)
        per_page = max(min(int(request.args.get("per_page", 10)), 50), 1)
    except ValueError:
        raise InvalidInput("page and per_page must be integers")
    search = (request.args.get("search") or "").strip()
    sort_by = (request.args.get("sort_by") or "name").lower()
    sort_dir = (request.args.get("sort_dir") or "asc").lower()

    q = Product.query
    if search:
        like = f"%{search}%"
        q = q.filter(or_(Product.name.ilike(like), Product.description.ilike(like), Product.sku.ilike(like)))

    sort_map = {"name": Product.name, "price": Product.price, "id": Product.id, "sku": Product.sku, "stock": Product.stock}
    col = sort_map.get(sort_by, Product.name)
    q = q.order_by(asc(col) if sort_dir == "asc" else desc(col))

    pag = q.paginate(page=page, per_page=per_page, error_out=False)
    return jsonify({
        "products": [p.to_dict() for p in pag.items],
        "page": pag.page,
        "per_page": pag.per_page,
        "pages": pag.pages,
        "total": pag.total,
    })


@bp.get("/<int:pid>")
def get_product(pid: int):
    return jsonify(_get_product(pid).to_dict())


@bp.post("/")
@admin_required
def create_product():
    data = request.get_json(silent=True) or {}
    name = text(data, "name")
    sku = text(data, "sku")
    if not name or not sku:
        raise InvalidInput("name and sku are required")
    p = Product(
        sku=sku,
        name=name,
        description=text(data, "description"),
        price=_price(data.get("price")),
        stock=_stock(data.get("stock")),
        image_url=text(data, "image_url"),
    )
    db.session.add(p)
    _commit_or_conflict()
    return jsonify(p.to_dict()), 201


@bp.put("/<int:pid>")
@admin_required
def update_product(pid: int):
    p = _get_product(pid)
    data = request.get_json(silent=True) or {}
    if "sku" in data:
        p.sku = text(data, "sku")
    if "name" in data:
        p.name = text(data, "name")
    if "description" in data:
        p.description = text(data, "description")
    if "price" in data:
        p.price = _price(data.get("price"))
    if "stock" in data:
        p.stock = _stock(data.get("stock"))
    if "image_url" in data:
        p.image_url = text(data, "image_url")
    if not p.sku or not p.name:
        db.session.rollback()
        raise InvalidInput("name and sku are required")
    _commit_or_conflict()
    return jsonify(p.to_dict())


@bp.delete("/<int:pid>")
@admin_required
def delete_product(pid: int):
    p = _get_product(pid)
    db.session.delete(p)
    db.session.commit()
    return jsonify({"deleted": pid})
