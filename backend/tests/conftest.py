"""
Pytest fixtures for Garments Tracker backend tests.

Provides the application on an in-memory database, per-test table
cleanup, actor/product factories, logged-in test clients and a fake
payment gateway.
"""

from dataclasses import replace

import pytest

from garments import create_app
from garments.extensions import db
from garments.models import User, Product
from garments.services.payment_service import PaymentRecord


TEST_CONFIG = {
    'TESTING': True,
    'SECRET_KEY': 'test',
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'ACCESS_TOKEN_SECRET': 'test-token-secret',
    'ACCESS_TOKEN_TTL_SECONDS': 3600,
    'STRIPE_SECRET_KEY': None,
    'PAYMENT_CURRENCY': 'usd',
    'APP_ENV': 'development',
}


class FakeGateway:
    """In-memory stand-in for the payment processor."""

    def __init__(self):
        self.intents = {}

    def create_payment_intent(self, amount_minor, currency, metadata=None):
        intent_id = f"pi_test_{len(self.intents) + 1}"
        self.intents[intent_id] = PaymentRecord(
            id=intent_id,
            status="requires_payment_method",
            amount=amount_minor,
            currency=currency,
            metadata=dict(metadata or {}),
        )
        return f"{intent_id}_secret"

    def retrieve_payment(self, intent_id):
        return self.intents.get(intent_id)

    def settle(self, intent_id):
        """Simulate the browser completing the card payment."""
        self.intents[intent_id] = replace(self.intents[intent_id], status="succeeded")

    def seed(self, amount_minor, *, order_id=None, currency="usd", status="succeeded"):
        """Register an intent directly; returns its id."""
        intent_id = f"pi_seed_{len(self.intents) + 1}"
        metadata = {"order_id": str(order_id)} if order_id is not None else {}
        self.intents[intent_id] = PaymentRecord(
            id=intent_id, status=status, amount=amount_minor, currency=currency, metadata=metadata,
        )
        return intent_id


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(autouse=True)
def db_session(app):
    """Clear all data but keep schema, before every test."""
    for table in reversed(db.metadata.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    db.session.rollback()


@pytest.fixture
def client(app):
    """Anonymous test client."""
    return app.test_client()


@pytest.fixture
def repos(app):
    return app.extensions["repositories"]


@pytest.fixture
def gateway(app):
    """Install a FakeGateway for the duration of a test."""
    fake = FakeGateway()
    previous = app.extensions.get("payment_gateway")
    app.extensions["payment_gateway"] = fake
    yield fake
    app.extensions["payment_gateway"] = previous


@pytest.fixture
def make_user(db_session):
    def _make(email, role="buyer", status="verified", **fields):
        user = User(email=email, role=role, status=status, **fields)
        db_session.add(user)
        db_session.commit()
        return user
    return _make


@pytest.fixture
def make_product(db_session):
    def _make(owner_email, *, name="Cotton Polo Shirt", price="12.50", quantity=10,
              min_order_qty=1, status="active", category="shirts"):
        product = Product(
            name=name,
            price=price,
            quantity=quantity,
            min_order_qty=min_order_qty,
            status=status,
            category=category,
            added_by=owner_email,
        )
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture
def login(app):
    """Return a fresh test client holding a session cookie for email."""
    def _login(email):
        client = app.test_client()
        response = client.post('/api/v1/auth/jwt', json={'email': email})
        assert response.status_code == 200, response.get_json()
        return client
    return _login


@pytest.fixture
def admin(make_user):
    return make_user("admin@garments.test", role="admin")


@pytest.fixture
def manager(make_user):
    return make_user("manager@garments.test", role="manager")


@pytest.fixture
def other_manager(make_user):
    return make_user("rival@garments.test", role="manager")


@pytest.fixture
def buyer(make_user):
    return make_user("a@x.com", role="buyer")


@pytest.fixture
def other_buyer(make_user):
    return make_user("b@x.com", role="buyer")


@pytest.fixture
def product(make_product, manager):
    """Active product owned by `manager` with 10 in stock."""
    return make_product(manager.email)
