from decimal import Decimal
from types import SimpleNamespace

import pytest

from mgv_backend.errors import NotificationFailure
from mgv_backend.main import create_app
from mgv_backend.models import Product, User, db
from mgv_backend.models.user import ROLE_ADMIN, ROLE_CUSTOMER
from mgv_backend.services.auth_service import issue_token

ADMIN_INBOXES = ["ops@mgv.test", "sales@mgv.test"]


class RecordingMailer:
    def __init__(self):
        self.outbox = []

    def send(self, message):
        self.outbox.append(message)
        return f"TEST_{len(self.outbox)}"

    def subjects_for(self, address):
        return [m.subject for m in self.outbox if address in m.to]


class FailingMailer:
    def __init__(self):
        self.attempts = 0

    def send(self, message):
        self.attempts += 1
        raise NotificationFailure("provider unavailable")


def build_app(mailer, **overrides):
    config = {
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "SQLALCHEMY_ENGINE_OPTIONS": {},
        "ADMIN_EMAILS": list(ADMIN_INBOXES),
        "FRONTEND_URL": "https://shop.mgv.test",
        "IMMEDIATE_PAYMENT_METHODS": ("Credit/Debit Card",),
        "LOG_LEVEL": "WARNING",
    }
    config.update(overrides)
    return create_app(config, mailer=mailer)


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def app(mailer):
    app = build_app(mailer)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(name="Ada Obi", email="ada@example.com", password="password123", role=ROLE_CUSTOMER):
        with app.app_context():
            user = User(name=name, email=email, role=role)
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            token = issue_token(user)
            return SimpleNamespace(
                id=user.id,
                email=user.email,
                password=password,
                headers={"Authorization": f"Bearer {token}"},
            )
    return _make


@pytest.fixture
def customer(make_user):
    return make_user()


@pytest.fixture
def other_customer(make_user):
    return make_user(name="Bola Ade", email="bola@example.com")


@pytest.fixture
def admin(make_user):
    return make_user(name="Grace Admin", email="grace@mgv.test", role=ROLE_ADMIN)


@pytest.fixture
def make_product(app):
    def _make(sku="WID-1", name="Widget", price="10.00", stock=5, image_url="https://cdn.mgv.test/widget.png"):
        with app.app_context():
            product = Product(sku=sku, name=name, price=Decimal(price), stock=stock, image_url=image_url)
            db.session.add(product)
            db.session.commit()
            return product.id
    return _make


@pytest.fixture
def stock_of(app):
    def _stock(product_id):
        with app.app_context():
            return db.session.get(Product, product_id).stock
    return _stock


SHIPPING = {"address": "12 Marina Road", "city": "Lagos", "postal_code": "100001", "country": "Nigeria"}


@pytest.fixture
def order_payload():
    def _payload(*lines, payment_method="Credit/Debit Card", tax_price=0, shipping_price=0):
        return {
            "order_items": [{"product_id": pid, "quantity": qty} for pid, qty in lines],
            "shipping_address": dict(SHIPPING),
            "payment_method": payment_method,
            "payment_result": {"id": "txn_1", "status": "succeeded"} if payment_method == "Credit/Debit Card" else None,
            "tax_price": tax_price,
            "shipping_price": shipping_price,
        }
    return _payload
