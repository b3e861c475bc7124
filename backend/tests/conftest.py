"""
Pytest fixtures for shopbill backend tests.

Provides an in-memory database, a fresh schema per test, the billing engine
and a small catalog (Rice, Milk) used across the suites.
"""

import pytest

from shopbill import create_app
from shopbill.engine import BillingEngine
from shopbill.extensions import db
from shopbill.models import Category, Product, User
from shopbill.services import user_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SQLITE_WAL': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Minimum bcrypt cost factor for PINs hashed during tests."""
    monkeypatch.setattr(user_service, "BCRYPT_ROUNDS", 4)


@pytest.fixture(scope='function')
def client(app, db_session):
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
def engine(db_session):
    return BillingEngine.from_session(db_session)


@pytest.fixture(scope='function')
def category(db_session):
    cat = Category(name_en="Groceries", name_ta="மளிகை")
    db_session.add(cat)
    db_session.commit()
    return cat


@pytest.fixture(scope='function')
def make_product(db_session, category):
    """Factory: make_product(name_en="Tea", price_cents=1000, ...)."""
    def _make(**fields):
        values = {
            "name_en": "Item",
            "name_ta": "பொருள்",
            "category_id": category.id,
            "price_cents": 1000,
            "tax_rate_bps": 0,
            "tax_inclusive": False,
            "unit": "pcs",
            "stock": 0,
        }
        values.update(fields)
        product = Product(**values)
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def rice(make_product):
    """Rice: 60.00 per kg, 5% exclusive, 100 kg in stock."""
    return make_product(
        product_code="1", name_en="Rice", name_ta="அரிசி",
        price_cents=6000, tax_rate_bps=500, tax_inclusive=False,
        unit="kg", stock=100,
    )


@pytest.fixture(scope='function')
def milk(make_product):
    """Milk: 54.00 per litre, 5% inclusive, 40 in stock."""
    return make_product(
        product_code="2", barcode="8901234567890", name_en="Milk", name_ta="பால்",
        price_cents=5400, tax_rate_bps=500, tax_inclusive=True,
        unit="L", stock=40,
    )


@pytest.fixture(scope='function')
def cashier(db_session):
    user = User(username="cashier", phone="9000000001", role="user",
                pin_hash=user_service.hash_pin("1234"))
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def super_admin(db_session):
    user = User(username="owner", phone="9000000000", role="super_admin",
                pin_hash=user_service.hash_pin("4321"))
    db_session.add(user)
    db_session.commit()
    return user
