"""Shared test fixtures for authentication tests."""

import os

# Settings are read at import time; configure before importing the app
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-0123456789abcdef")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ["DEBUG"] = "true"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""
os.environ["CREDENTIAL_STORE"] = "sql"
os.environ["SENDGRID_API_KEY"] = ""

from unittest.mock import patch  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from billpay.database import Base, get_db  # noqa: E402
from billpay.dependencies.services import get_ephemeral_store  # noqa: E402
from billpay.main import app  # noqa: E402
from billpay.rate_limiter import limiter  # noqa: E402
from billpay.services.ephemeral_store import InMemoryEphemeralStore  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine():
    """In-memory SQLite engine shared across threads."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_maker(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


@pytest.fixture
def db(session_maker):
    session = session_maker()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def ephemeral_store(clock):
    return InMemoryEphemeralStore(clock=clock)


@pytest.fixture
def auth_client(session_maker, ephemeral_store):
    """Create test client with in-memory database and reset store.

    Yields a tuple of (TestClient, SessionMaker) for use in tests.
    """
    limiter.reset()

    def override_get_db():
        db = session_maker()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ephemeral_store] = lambda: ephemeral_store

    with TestClient(app) as test_client:
        yield test_client, session_maker

    app.dependency_overrides.clear()


@pytest.fixture
def signup_user():
    """Helper to sign a user up through the API."""

    def _signup(test_client: TestClient, email: str, password: str, **fields):
        payload = {
            "email": email,
            "first_name": fields.pop("first_name", "Ada"),
            "last_name": fields.pop("last_name", "Obi"),
            "password": password,
            **fields,
        }
        with patch("billpay.services.email_service.EmailService.send_welcome_email"):
            return test_client.post("/api/auth/signup", json=payload)

    return _signup
