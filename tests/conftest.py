"""Pytest configuration and fixtures."""

import os
import tempfile
from unittest.mock import patch

# Keep uploaded avatars out of the working tree
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="accountforge-uploads-"))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from src.database import Base, get_db  # noqa: E402
from src.main import app  # noqa: E402
from src.models.enums import UserRole  # noqa: E402
from src.services.credentials import CredentialStore  # noqa: E402


class AuthHeaders(dict):
    """Dict subclass that also stores user info."""

    def __init__(self, *args, user_id: int | None = None, email: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.email = email


# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").replace(
        "/accountforge", "/accountforge_test"
    )
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

connect_args = {"check_same_thread": False} if "sqlite" in SQLALCHEMY_DATABASE_URL else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        from sqlalchemy_utils import create_database, database_exists

        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(autouse=True)
def outbox():
    """Capture emails queued for delivery instead of sending them to Celery.

    Each entry is a dict with kind, recipient, name and token.
    """
    sent = []

    def capture(kind):
        def record(recipient, name, token):
            sent.append({"kind": kind, "recipient": recipient, "name": name, "token": token})

        return record

    with (
        patch(
            "src.tasks.email.send_verification_email.delay", side_effect=capture("verification")
        ),
        patch(
            "src.tasks.email.send_password_reset_email.delay", side_effect=capture("reset")
        ),
    ):
        yield sent


@pytest.fixture(scope="function")
def client(db):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register_and_verify(client, outbox, email, password="testpass123", name="Test User"):
    """Register through the API and confirm the emailed verification token."""
    response = client.post(
        "/api/v1/auth/register", json={"email": email, "password": password, "name": name}
    )
    assert response.status_code == 201
    token = next(m["token"] for m in reversed(outbox) if m["recipient"] == email)
    assert client.post("/api/v1/auth/verify-email", json={"token": token}).status_code == 200
    return response.json()["user"]["id"]


def login(client, email, password="testpass123") -> dict:
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()["tokens"]


def make_verified_user(db, email, role=UserRole.USER, password="testpass123", name="Staff"):
    """Create a verified account directly through the credential store."""
    user = CredentialStore(db).create(email=email, password=password, name=name, role=role)
    user.is_verified = True
    db.commit()
    return user


@pytest.fixture
def auth_headers(client, outbox):
    """Register and verify a user, returning bearer headers with user info."""
    email = "test@example.com"
    user_id = register_and_verify(client, outbox, email)
    tokens = login(client, email)
    return AuthHeaders(
        {"Authorization": f"Bearer {tokens['access_token']}"}, user_id=user_id, email=email
    )


def _staff_headers(client, db, email, role):
    user = make_verified_user(db, email, role=role)
    tokens = login(client, email)
    return AuthHeaders(
        {"Authorization": f"Bearer {tokens['access_token']}"}, user_id=user.id, email=email
    )


@pytest.fixture
def admin_headers(client, db):
    """Bearer headers for a verified admin."""
    return _staff_headers(client, db, "admin@example.com", UserRole.ADMIN)


@pytest.fixture
def merchant_headers(client, db):
    """Bearer headers for a verified merchant."""
    return _staff_headers(client, db, "merchant@example.com", UserRole.MERCHANT)
