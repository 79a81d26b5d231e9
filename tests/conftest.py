"""
Pytest configuration and fixtures for Blog API tests.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from blogapi.database import Base, get_db
from blogapi.limiter import limiter
from blogapi.main import app
from blogapi.models.user import User
from blogapi.models.post import Post
from blogapi.auth import get_password_hash, create_access_token
from blogapi.lifecycle import save_post

# Disable rate limiting for tests
limiter.enabled = False

# Use in-memory SQLite for tests with shared connection
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine, "connect")
def _sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Global session for sharing across requests
_test_session = None

PASSWORD = "testpassword123"
LONG_CONTENT = " ".join(["word"] * 250)


def get_test_db():
    """Get the shared test database session."""
    yield _test_session


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    global _test_session

    Base.metadata.create_all(bind=engine)
    _test_session = TestingSessionLocal()
    app.dependency_overrides[get_db] = get_test_db

    yield _test_session

    app.dependency_overrides.clear()
    _test_session.close()
    _test_session = None
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Create a test client."""
    with TestClient(app) as c:
        yield c


def _create_user(db, username, email, role="user", is_active=True):
    user = User(
        username=username,
        email=email,
        hashed_password=get_password_hash(PASSWORD),
        first_name=username.capitalize(),
        role=role,
        is_active=is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture(scope="function")
def test_user(db):
    """Create a test user."""
    return _create_user(db, "alice", "alice@example.com")


@pytest.fixture(scope="function")
def other_user(db):
    """A second regular user who owns nothing by default."""
    return _create_user(db, "bob", "bob@example.com")


@pytest.fixture(scope="function")
def admin_user(db):
    return _create_user(db, "root", "root@example.com", role="admin")


def headers_for(user):
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture(scope="function")
def auth_headers(test_user):
    """Get auth headers for the test user."""
    return headers_for(test_user)


@pytest.fixture(scope="function")
def make_post(db, test_user):
    """Factory that persists a post through the normal save path."""
    def _make(author=None, **fields):
        data = {
            "title": "Hello World!",
            "content": LONG_CONTENT,
            "category": "Technology",
            "status": "published",
            "tags": [],
        }
        data.update(fields)
        post = Post(author_id=(author or test_user).id)
        return save_post(db, post, data)

    return _make
