"""
Shared fixtures. The database is an in-memory SQLite shared through
StaticPool, rebuilt for every test that asks for it.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest

from recall.database import Base, SessionLocal, engine
from recall.models import User
from recall.routers.auth import create_token, hash_password
from recall.state.session import Role, SessionContext, UserSession


# ─── Sessions (no database) ──────────────────────────────────────────────────

@pytest.fixture
def admin_session():
    return SessionContext(user=UserSession(id="admin-1", username="admin", role=Role.ADMIN))


@pytest.fixture
def student_session():
    return SessionContext(user=UserSession(
        id="user-1",
        username="student",
        can_access_proofreading=True,
        can_access_spelling=True,
        can_access_learning_hub=True,
    ))


@pytest.fixture
def plain_session():
    """Signed in, no optional capabilities."""
    return SessionContext(user=UserSession(id="user-2", username="plain"))


# ─── Database ────────────────────────────────────────────────────────────────

@pytest.fixture
def db():
    from recall import models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


def make_user(db, username, role="user", password="secret123", force_password_change=False, **flags):
    user = User(
        username=username,
        password_hash=hash_password(password),
        role=role,
        force_password_change=force_password_change,
        **flags,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def admin_user(db):
    return make_user(db, "mrs_lee", role="admin")


@pytest.fixture
def student_user(db):
    return make_user(db, "pupil", can_access_spelling=True, can_access_proofreading=True)


@pytest.fixture
def client(db):
    from fastapi.testclient import TestClient
    from recall.main import app

    with TestClient(app) as c:
        yield c


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_token(user.id, user.role)}"}
