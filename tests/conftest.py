# tests/conftest.py
import os

# Must be set before booking_pricing.core.config is imported.
os.environ.setdefault("DATABASE_URL_LOCAL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from booking_pricing.api import deps
from booking_pricing.core.config import settings
from booking_pricing.db.base_class import Base
from booking_pricing.main import app
import booking_pricing.models  # noqa: F401

from tests.utils.factories import FIXED_NOW


# --- In-memory database shared by every connection ---
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


def make_token(sub: str = "user_123", role: str = None, org_id: str = "org_abc") -> str:
    claims = {"sub": sub, "orgId": org_id}
    if role:
        claims["role"] = role
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture
def user_headers():
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {make_token(sub='admin_1', role='admin')}"}


@pytest.fixture(scope="function")
def client(db):
    """
    TestClient backed by the in-memory database and a frozen clock.
    Authentication runs for real against JWT_SECRET.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_clock] = lambda: (lambda: FIXED_NOW)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
