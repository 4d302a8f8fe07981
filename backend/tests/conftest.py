"""
Pytest fixtures for SwiftFlow backend tests.

Provides the test app (in-memory SQLite), a per-test clean database, owners
with products, and an authenticated test client.
"""

import io

import httpx
import pytest
from swiftflow import create_app
from swiftflow.extensions import db
from swiftflow.models import Owner, Product
from swiftflow.models.owners import SETUP_DONE
from swiftflow.services.auth_service import hash_password
from swiftflow.services.email_service import SendGridClient
from swiftflow.services.session_service import create_session


PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'SENDGRID_API_KEY': 'test-sendgrid-key',
        'UPLOAD_FOLDER': str(tmp_path_factory.mktemp('uploads')),
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


def make_owner(db_session, email, display_name, **fields):
    owner = Owner(
        email=email,
        password_hash=hash_password(PASSWORD),
        display_name=display_name,
        setup_step=SETUP_DONE,
        is_registered=True,
        email_report_recipient=email,
        **fields,
    )
    db_session.add(owner)
    db_session.commit()
    return owner


def make_product(db_session, owner, name="Linen Shirt", price_cents=10000, stock=5, **fields):
    fields.setdefault("media", [{"url": "/uploads/products/x.jpg", "kind": "image"}])
    product = Product(owner_id=owner.id, name=name, price_cents=price_cents, stock=stock, **fields)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def owner_a(db_session):
    """Store owner A with bank details on file."""
    return make_owner(
        db_session,
        "thandi@example.com",
        "Thandi's Threads",
        bank_name="FNB",
        account_holder="T Nkosi",
        account_number="62012345678",
    )


@pytest.fixture(scope='function')
def owner_b(db_session):
    """Store owner B (second tenant)."""
    return make_owner(db_session, "sipho@example.com", "Sipho Sneakers")


@pytest.fixture(scope='function')
def product_a(db_session, owner_a):
    """Product in store A: stock 5 at R100.00."""
    return make_product(db_session, owner_a)


@pytest.fixture(scope='function')
def auth_headers_a(db_session, owner_a):
    _, token = create_session(owner_a.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope='function')
def auth_headers_b(db_session, owner_b):
    _, token = create_session(owner_b.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def sent_emails():
    """Requests captured by the fake SendGrid endpoint."""
    return []


@pytest.fixture
def email_client(sent_emails):
    """SendGrid client whose transport records requests and answers 202."""
    def handler(request):
        sent_emails.append(request)
        return httpx.Response(202)

    client = SendGridClient("test-sendgrid-key", transport=httpx.MockTransport(handler))
    yield client
    client.close()


@pytest.fixture
def image_file():
    def _make(name="proof.png"):
        return (io.BytesIO(b"\x89PNG\r\n\x1a\nfake"), name)
    return _make
