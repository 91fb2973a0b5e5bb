"""
Pytest configuration for the authentication service tests.

Environment overrides must be in place before the service modules are imported,
since settings and the database engine are created at import time.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_identity.db")
os.environ["ENVIRONMENT"] = "test"
os.environ["REFRESH_TOKEN_SWEEP_ENABLED"] = "false"
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "1000")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")

import pytest
from fastapi.testclient import TestClient

from identity_platform.auth_service.auth import hash_password
from identity_platform.auth_service.db import Base, SessionLocal, engine
from identity_platform.auth_service.dashboard import dashboard_service
from identity_platform.auth_service.deps import dashboard_rate_limit_store, login_rate_limit_store
from identity_platform.auth_service.main import app
from identity_platform.auth_service.models import User


@pytest.fixture(autouse=True)
def reset_database():
    # Drop all tables and recreate them before each test
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


@pytest.fixture(autouse=True)
def reset_app_state():
    login_rate_limit_store.clear()
    dashboard_rate_limit_store.clear()
    dashboard_service.clear_cache()
    app.dependency_overrides.clear()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db_session):
    """Factory for users stored directly in the database."""
    def _make_user(
        email="user@example.com",
        password="Secret123!",
        first_name="Test",
        last_name="User",
        is_active=True,
        is_oauth=False,
    ):
        user = User(
            email=email,
            first_name=first_name,
            last_name=last_name,
            hashed_password=None if is_oauth else hash_password(password),
            is_oauth=is_oauth,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user

