"""
Pytest fixtures for n-dizi backend tests.

Provides the test database, account/store/product fixtures, a Flask test
client, and a device-side local store.
"""

import httpx
import pytest

from ndizi import create_app
from ndizi.client.local_store import LocalStore
from ndizi.extensions import db
from ndizi.models import Product, Store, User
from ndizi.services.auth_service import hash_password


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
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
def user_a(db_session):
    """Account A (first tenant)."""
    user = User(
        email="owner_a@acme.in",
        password_hash=hash_password("Password123!"),
        store_name="Acme Kirana",
        owner_name="Owner A",
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def user_b(db_session):
    """Account B (second tenant)."""
    user = User(
        email="owner_b@beta.in",
        password_hash=hash_password("Password123!"),
        store_name="Beta Stores",
        owner_name="Owner B",
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def store_a(db_session, user_a):
    """Store belonging to account A."""
    store = Store(user_id=user_a.id, name="Acme Main Road")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def product_a(db_session, user_a):
    """Product owned by account A."""
    product = Product(
        user_id=user_a.id,
        code="RICE-5KG",
        name="Basmati Rice 5kg",
        category="Grains",
        quantity=20,
        price=450.0,
        gst=5.0,
        low_stock_threshold=5,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def local_store():
    """Initialized in-memory device store."""
    store = LocalStore(":memory:")
    store.init()
    yield store
    store.close()


@pytest.fixture(scope='function')
def cloud_http(app):
    """httpx client that talks to the Flask app in-process."""
    http = httpx.Client(transport=httpx.WSGITransport(app=app), base_url="http://testserver")
    yield http
    http.close()


def product_payload(**overrides) -> dict:
    """Wire-shaped product as a device would push it."""
    payload = {
        "id": "0f5b8c1e-0000-4000-8000-000000000001",
        "code": "SUGAR-1KG",
        "name": "Sugar 1kg",
        "category": "Grocery",
        "quantity": 40,
        "unit": "kg",
        "price": 44.0,
        "gst": 5,
        "lowStockThreshold": 10,
        "expiry": None,
        "description": None,
        "createdAt": "2026-01-05T09:00:00.000Z",
        "updatedAt": "2026-01-05T09:00:00.000Z",
    }
    payload.update(overrides)
    return payload


def transaction_payload(**overrides) -> dict:
    """Wire-shaped transaction as a device would push it."""
    payload = {
        "id": "7c1d2e3f-0000-4000-8000-000000000001",
        "invoiceNumber": "INV00001",
        "items": [
            {"id": "0f5b8c1e-0000-4000-8000-000000000001", "name": "Sugar 1kg",
             "price": 44.0, "gst": 5, "cartQuantity": 2},
        ],
        "subtotal": 88.0,
        "gst": 4.4,
        "total": 92.4,
        "createdAt": "2026-01-05T10:15:00.000Z",
    }
    payload.update(overrides)
    return payload
