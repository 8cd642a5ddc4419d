"""
Pytest fixtures for storefront backend tests.

Provides an in-memory database, the test client, admin accounts for each
role with bearer headers, and a product factory.
"""

import pytest

from storefront import create_app
from storefront.extensions import db
from storefront.models import Product
from storefront.models.auth import ROLE_ADMIN, ROLE_CASHIER, ROLE_OWNER
from storefront.services import session_service
from storefront.services.auth_service import create_admin


TEST_PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'ADMIN_REGISTER_CODE': 'letmein',
        'BILL_PREFIX': 'REDA',
        'REPORT_TIMEZONE': 'UTC',
        'CORS_ALLOWED_ORIGINS': ['http://localhost:3000'],
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def owner(db_session):
    return create_admin(name="Owner", email="owner@redastore.lk", password=TEST_PASSWORD, role=ROLE_OWNER)


@pytest.fixture(scope='function')
def admin(db_session):
    return create_admin(name="Admin", email="admin@redastore.lk", password=TEST_PASSWORD, role=ROLE_ADMIN)


@pytest.fixture(scope='function')
def cashier(db_session):
    return create_admin(name="Cashier", email="cashier@redastore.lk", password=TEST_PASSWORD, role=ROLE_CASHIER)


@pytest.fixture(scope='function')
def admin_headers(admin):
    _, token = session_service.create_session(admin.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def cashier_headers(cashier):
    _, token = session_service.create_session(cashier.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(sku="BP-1", stock_qty=5, selling_price=100, ...)."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = {
            "name": f"Product {counter['n']}",
            "brand": "Bosch",
            "category": "Brakes",
            "sku": f"SKU-{counter['n']:03d}",
            "description": "",
            "getting_price": 50,
            "selling_price": 100,
            "stock_qty": 10,
        }
        fields.update(overrides)
        product = Product(**fields)
        db_session.add(product)
        db_session.commit()
        return product

    return _make


def sale_item(product, qty: int = 1, unit_price: int | None = None) -> dict:
    """Checkout line for a product as the POS screen would send it."""
    unit_price = product.selling_price if unit_price is None else unit_price
    return {
        "productId": str(product.id),
        "productName": product.name,
        "sku": product.sku,
        "qty": qty,
        "unitPrice": unit_price,
        "gettingPrice": product.getting_price,
        "subtotal": qty * unit_price,
    }


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
