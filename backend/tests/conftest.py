"""
Pytest fixtures for StorePOS backend tests.

Provides test database setup, per-role users and tokens, catalog factories,
and test client.
"""

import pytest

from storepos import create_app
from storepos.config import TestConfig
from storepos.extensions import db
from storepos.models import Inventory, InventoryMovement, Order
from storepos.models.auth import ROLE_ADMIN, ROLE_CASHIER, ROLE_MANAGER
from storepos.services import build_services, catalog_service
from storepos.services.auth_service import create_user
from storepos.services.session_service import create_session


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function', autouse=True)
def db_session(app):
    """Fresh data for each test (schema kept)."""
    with app.app_context():
        # Core deletes bypass the ORM immutability guards on movements/items
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture(scope='function')
def services(db_session):
    return build_services(db_session)


@pytest.fixture(scope='function')
def admin(db_session):
    return create_user(name="Admin", email="admin@test.local", password=PASSWORD, role=ROLE_ADMIN)


@pytest.fixture(scope='function')
def manager(db_session):
    return create_user(name="Manager", email="manager@test.local", password=PASSWORD, role=ROLE_MANAGER)


@pytest.fixture(scope='function')
def cashier(db_session):
    return create_user(name="Cashier", email="cashier@test.local", password=PASSWORD, role=ROLE_CASHIER)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def token_for(user) -> str:
    _, token = create_session(user)
    return token


@pytest.fixture(scope='function')
def admin_headers(admin):
    return auth_headers(token_for(admin))


@pytest.fixture(scope='function')
def manager_headers(manager):
    return auth_headers(token_for(manager))


@pytest.fixture(scope='function')
def cashier_headers(cashier):
    return auth_headers(token_for(cashier))


@pytest.fixture(scope='function')
def category(db_session):
    return catalog_service.create_category({"name": "Drinks", "color": "#1890ff", "sortOrder": 1})


@pytest.fixture(scope='function')
def make_product(db_session, category):
    """Factory: make_product(price=20, stock=10, sku=None, **extra) -> Product."""
    counter = {"n": 0}

    def _make(price=20, stock=10, sku=None, name=None, **extra):
        counter["n"] += 1
        payload = {
            "name": name or f"Product {counter['n']}",
            "sku": sku or f"SKU-{counter['n']:03d}",
            "price": price,
            "categoryId": category.id,
            "initialStock": stock,
        }
        payload.update(extra)
        return catalog_service.create_product(payload)

    return _make


def quantity_of(product_id: int) -> int:
    """Committed on-hand quantity, bypassing any stale identity map state."""
    db.session.expire_all()
    return db.session.query(Inventory.quantity).filter_by(product_id=product_id).scalar()


def movements_of(product_id: int) -> list:
    """Movements oldest first."""
    db.session.expire_all()
    return (
        db.session.query(InventoryMovement)
        .join(Inventory, Inventory.id == InventoryMovement.inventory_id)
        .filter(Inventory.product_id == product_id)
        .order_by(InventoryMovement.id.asc())
        .all()
    )


def order_count() -> int:
    db.session.expire_all()
    return db.session.query(Order).count()


@pytest.fixture(name="quantity_of")
def quantity_of_fixture():
    return quantity_of


@pytest.fixture(name="movements_of")
def movements_of_fixture():
    return movements_of


@pytest.fixture(name="order_count")
def order_count_fixture():
    return order_count
