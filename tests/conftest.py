# tests/conftest.py
from __future__ import annotations

from datetime import timedelta

import pytest

from portal.app import create_app
from portal.config import TestConfig
from portal.extensions import db as _db
from portal.models import Order, OrderItem, Product, Profile
from portal.models._time import utcnow
from portal.services.auth_gateway import get_gateway


# Requesty nesmí běžet uvnitř app contextu fixture: sdílely by `g`
# a Flask-Login by si mezi nimi pamatoval current_user.
@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        _db.create_all()
    yield app
    with app.app_context():
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _persist(app, obj):
    with app.app_context():
        _db.session.add(obj)
        _db.session.commit()
        _db.session.refresh(obj)
    return obj


@pytest.fixture
def make_product(app):
    def _make(name: str = "Cabernet", category: str = "Víno", in_stock: bool = True) -> Product:
        return _persist(app, Product(name=name, category=category, in_stock=in_stock))

    return _make


@pytest.fixture
def make_profile(app):
    def _make(profile_id: str, is_admin: bool = False, **fields) -> Profile:
        fields.setdefault("email", f"{profile_id}@example.com")
        fields.setdefault("full_name", profile_id.title())
        return _persist(app, Profile(id=profile_id, is_admin=is_admin, **fields))

    return _make


@pytest.fixture
def make_order(app):
    """items: [(product, volume, quantity), ...]"""
    def _make(user_id=None, items=(), days_ago: float = 0, status: str = "pending", created_at=None, **fields) -> Order:
        fields.setdefault("customer_email", f"{user_id or 'host'}@example.com")
        fields.setdefault("customer_name", user_id or "Host")
        order = Order(
            user_id=user_id,
            status=status,
            created_at=created_at or utcnow() - timedelta(days=days_ago),
            **fields,
        )
        for product, volume, quantity in items:
            order.items.append(OrderItem(product_id=product.id, volume=volume, quantity=quantity))
        return _persist(app, order)

    return _make


@pytest.fixture
def bearer(app):
    def _bearer(user_id: str) -> dict:
        with app.app_context():
            token = get_gateway().issue_token(user_id)
        return {"Authorization": f"Bearer {token}"}

    return _bearer


@pytest.fixture
def admin_headers(make_profile, bearer):
    make_profile("admin-1", is_admin=True, full_name="Admin")
    return bearer("admin-1")


@pytest.fixture
def customer_headers(make_profile, bearer):
    make_profile("cust-token", full_name="Token Customer")
    return bearer("cust-token")
