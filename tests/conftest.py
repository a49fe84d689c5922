"""Pytest fixtures."""

import os
import uuid

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from suraksha.core.security import create_access_token
from suraksha.db.base import Base
from suraksha.db.session import get_db
from suraksha.main import app
from suraksha.models import AlertRecord, Guardian, LocationSample, PendingVerification, TrustedContact, User  # noqa: F401 - register for create_all

TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def unique_mobile() -> str:
    """Random 10-digit Indian mobile number."""
    return "9" + str(uuid.uuid4().int)[:9]


@pytest.fixture(scope="session")
def setup_db():
    """Create tables once for test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(setup_db):
    """Test client with overridden DB."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db(setup_db):
    """Direct session for service-level tests and fixtures."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    """Factory creating a user with unique mobile and email."""

    def _make(name: str = "Test User", mobile: str | None = None, email: str | None = None, status: str = "ACTIVE") -> User:
        uid = uuid.uuid4().hex[:8]
        user = User(
            name=name,
            mobile=mobile or unique_mobile(),
            email=email or f"user_{uid}@test.com",
            status=status,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def auth_headers():
    """Bearer headers for a user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers
