"""
Pytest configuration and fixtures for Blogline API tests.
"""
import os

os.environ.setdefault("BLOGLINE_DATABASE_URL", "sqlite://")
os.environ.setdefault("BLOGLINE_AUTH_JWT_SECRET", "test-signing-secret")

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import get_settings
from app.database import Base, enable_sqlite_foreign_keys, get_db, get_session_factory
from app.limiter import limiter
from app.main import app
from app.models import Category, Post

# Disable rate limiting for tests
limiter.enabled = False

# Use in-memory SQLite for tests with shared connection
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_test_db():
    """One session per request, like the real dependency."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def make_token(sub: str, **claims) -> str:
    """Sign an identity token the way the auth provider would."""
    settings = get_settings()
    return jwt.encode({"sub": sub, **claims}, settings.auth_jwt_secret, algorithm=settings.auth_jwt_algorithm)


def bearer(sub: str, **claims) -> dict:
    return {"Authorization": f"Bearer {make_token(sub, **claims)}"}


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()

    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal

    yield session

    # Cleanup
    app.dependency_overrides.clear()
    session.close()

    # Drop all tables
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Create a test client."""
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="function")
def author_headers():
    """Auth headers for the author of the sample posts."""
    return bearer("author-1")


@pytest.fixture(scope="function")
def other_headers():
    """Auth headers for a signed-in user who owns nothing."""
    return bearer("reader-2")


@pytest.fixture(scope="function")
def category(db):
    """Create a test category."""
    category = Category(name="Engineering", slug="engineering", description="Build notes")
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@pytest.fixture(scope="function")
def post(db, category):
    """Create a published post owned by author-1."""
    post = Post(
        title="First Post",
        slug="first-post",
        content="Hello from the first post",
        excerpt="Hello from the first post",
        status="published",
        author_id="author-1",
        category_id=category.id,
        view_count=0,
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    return post
