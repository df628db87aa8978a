"""Shared test fixtures for the node tree test suite.

All tests run against an in-memory SQLite database. Tables are dropped and
recreated before each test, so every test starts from an empty tree.
"""

import os

# Force auth off and use an in-memory database before any app imports.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"

from typing import Iterable

import pytest
from fastapi.testclient import TestClient

from nodetree.database import Base, get_db, engine, SessionLocal
from nodetree.main import app
from nodetree.core.auth import AuthContext
from nodetree.core.config import settings
from nodetree.core.session import SessionContext
from nodetree.core.token_factory import create_token
from nodetree.models.node import Node
from nodetree.repositories.node_repository import NodeRepository
from nodetree.repositories.user_repository import UserRepository
from nodetree.services.permission_service import PermissionChecker


@pytest.fixture(autouse=True)
def _clean_tables():
    """Recreate every table before each test for isolation."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client(db):
    """FastAPI TestClient with the DB dependency overridden to use the test session."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def session(db):
    """Session bag for a fixed test session id."""
    return SessionContext(db, "test-session")


@pytest.fixture()
def auth_enabled(monkeypatch):
    monkeypatch.setattr(settings, "auth_enabled", True)


def make_node(db, node_id: int, pid: int = 0, type: str = "folder", name: str = None,
              languages: str = None) -> Node:
    """Insert a node with a fixed id."""
    node = Node(
        id=node_id,
        pid=pid,
        type=type,
        name=name or f"Node {node_id}",
        sorting=node_id * 128,
        languages=languages,
    )
    db.add(node)
    db.commit()
    return node


def make_scenario_tree(db) -> None:
    """All nodes -> A(1, folder) -> B(2, content)."""
    make_node(db, 1, pid=0, type="folder", name="A")
    make_node(db, 2, pid=1, type="content", name="B")


def make_checker(db, permissions: Iterable[str] = (), mounts: Iterable[int] = (),
                 role: str = "user", session: SessionContext = None) -> PermissionChecker:
    auth = AuthContext(
        user_id="editor",
        role=role,
        permissions=frozenset(permissions),
        mounts=tuple(mounts),
    )
    return PermissionChecker(auth, NodeRepository(db), session)


def make_user_headers(db, user_id: str = "editor", role: str = "user",
                      permissions: Iterable[str] = (), mounts: Iterable[int] = ()) -> dict:
    """Create a user row and return bearer headers for it."""
    UserRepository(db).create(user_id, role=role, permissions=permissions, mounts=mounts)
    token = create_token(subject=user_id, secret=settings.jwt_secret_key)
    return {"Authorization": f"Bearer {token}"}
