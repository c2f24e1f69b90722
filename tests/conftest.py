import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("TRASH_SWEEP_ENABLED", "false")

import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core.database import Base, get_db
from app.models.user import User
from app.services.object_store import StoredObject, get_object_store

# In-memory SQLite database for tests
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeObjectStore:
    """Keeps payloads in a dict and records every destroy call."""

    def __init__(self):
        self.objects = {}
        self.destroyed = []
        self.failing = set()
        self.fail_uploads = False

    def store(self, data, filename, content_type, prefix=""):
        if self.fail_uploads:
            from app.core.exceptions import UpstreamFailureError

            raise UpstreamFailureError(f"Failed to upload {filename}")
        public_id = f"{prefix}/{len(self.objects) + 1}-{filename}"
        self.objects[public_id] = data
        return StoredObject(url=f"https://cdn.test/{public_id}", public_id=public_id)

    def destroy(self, public_id):
        self.destroyed.append(public_id)
        if public_id in self.failing:
            raise RuntimeError(f"cannot delete {public_id}")
        self.objects.pop(public_id, None)
        return True


@pytest.fixture(scope="function")
def db_session():
    """Fresh database session per test"""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def object_store():
    return FakeObjectStore()


@pytest.fixture(scope="function")
def client(db_session, object_store):
    """Test client bound to the test session and the fake object store"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_object_store] = lambda: object_store

    with patch("app.api.v1.auth.send_reset_email") as mock_send_reset:
        mock_send_reset.return_value = None

        with TestClient(app) as test_client:
            yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def create_test_user(db_session):
    """Factory fixture for users"""
    from app.core.security import get_password_hash

    def _create_user(email="testuser@example.com", name="Test User", password="TestPassword123!"):
        user = User(
            name=name,
            email=email,
            passwordhash=get_password_hash(password),
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _create_user


@pytest.fixture
def authenticated_client(client, create_test_user):
    """Client carrying a bearer token for a fresh user"""
    from app.core.security import create_access_token

    user = create_test_user()
    access_token = create_access_token(data={"sub": user.email})

    client.headers = {
        **client.headers,
        "Authorization": f"Bearer {access_token}"
    }

    return client, user


@pytest.fixture
def owner(create_test_user):
    return create_test_user(email="owner@example.com", name="Owner")


@pytest.fixture
def other_owner(create_test_user):
    return create_test_user(email="other@example.com", name="Other")
