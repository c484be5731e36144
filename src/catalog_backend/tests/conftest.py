"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
import uuid
import pytest

# Test environment; must be set before catalog_backend reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CACHE_BACKEND"] = "memory"
os.environ["ENABLE_CACHE"] = "true"
os.environ.pop("ACCESS_POLICY_FILE", None)

# Ensure catalog_backend is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from aiocache import Cache
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from catalog_backend.api.cache import BookListCache, get_book_list_cache
from catalog_backend.database import get_db
from catalog_backend.model import Base, User
from catalog_backend.permissions.core import AccessPolicy
from catalog_backend.permissions.facts import AccessPolicyFacts
from catalog_backend.server import app


@pytest.fixture
def engine():
    """In-memory SQLite engine shared across threads of the test client"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    """Create a new database session for a test."""
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def policy():
    return AccessPolicy(AccessPolicyFacts())


@pytest.fixture
def memory_cache():
    return Cache(Cache.MEMORY)


@pytest.fixture
def book_cache(memory_cache):
    # A namespace per test keeps entries of other tests out of reach
    return BookListCache(memory_cache, ttl=60, enabled=True, namespace=f"books:list:{uuid.uuid4().hex}")


@pytest.fixture
def db_users(session):
    """Stored users resolvable through the X-Authenticated-User header"""
    users = [
        User(username="admin", name="Admin", email="admin@example.org", role="Administrator",
             access_rules=[{"learning_areas": ["*"], "grade_levels": []}]),
        User(username="leo", name="Leo", email="leo@example.org", role="Evaluator",
             access_rules=[{"learning_areas": ["*"], "grade_levels": []}]),
        User(username="pat", name="Pat", email="pat@example.org", role="Facilitator",
             access_rules=[{"learning_areas": ["English"], "grade_levels": [1, 2, 3]}]),
        User(username="newbie", name="Newbie", email="newbie@example.org", role="Facilitator",
             access_rules=[]),
    ]
    session.add_all(users)
    session.commit()
    return {user.username: user for user in users}


@pytest.fixture
def client(session, book_cache, db_users):

    def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_book_list_cache] = lambda: book_cache

    yield TestClient(app)

    app.dependency_overrides.clear()
