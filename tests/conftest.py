"""
Pytest configuration and fixtures for KidRewards tests.
"""

import os

# must be set before kidrewards.core.config is imported
os.environ.setdefault("KIDREWARDS_BCRYPT_ROUNDS", "4")
os.environ.setdefault("KIDREWARDS_SEED_DEMO_DATA", "false")

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from kidrewards.api.deps import get_db
from kidrewards.db.base import Base
from kidrewards.db.session import build_engine
from kidrewards.main import app
from kidrewards.services.authorization import KidPrincipal, ParentPrincipal
from kidrewards.services.identity_service import create_parent
from kidrewards.services.kid_service import create_kid


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'kidrewards-test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def family(db):
    """Two parents, each owning one kid."""
    alice = create_parent(db, username="alice", password="alice-pass")
    bob = create_parent(db, username="bob", password="bob-pass")
    ava = create_kid(db, parent_id=alice.id, display_name="Ava")
    ben = create_kid(db, parent_id=bob.id, display_name="Ben")
    return SimpleNamespace(
        parent_id=alice.id,
        other_parent_id=bob.id,
        kid_id=ava.id,
        other_kid_id=ben.id,
        parent=ParentPrincipal(parent_id=alice.id),
        other_parent=ParentPrincipal(parent_id=bob.id),
        kid=KidPrincipal(kid_id=ava.id, parent_id=alice.id),
        other_kid=KidPrincipal(kid_id=ben.id, parent_id=bob.id),
    )


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
