import os

# Ensure SECRET_KEY exists before importing app modules (Settings reads env at import time).
os.environ.setdefault("SECRET_KEY", "test_secret_key")
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from contextlib import contextmanager

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.base import Base
from app.core.config import Settings
from app.core.security import create_access_token, hash_password

# Import models so they register with SQLAlchemy metadata.
from app.models.user import User
from app.models.job_entry import JobEntry  # noqa: F401

from app.core.database import get_db
from app.main import create_app


@pytest.fixture(scope="session")
def db_engine():
    # In-memory SQLite for fast, isolated tests.
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture()
def db_session(db_engine):
    # Important: because we use an in-memory SQLite DB with StaticPool, the DB
    # persists across tests. Reset schema per test to avoid cross-test coupling.
    Base.metadata.drop_all(bind=db_engine)
    Base.metadata.create_all(bind=db_engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def settings():
    """
    A fresh Settings object per test, so tests can flip policy switches
    without leaking into each other.
    """
    s = Settings()
    s.SECRET_KEY = "test_secret_key"
    s.GOOGLE_CLIENT_ID = "test-google-client-id"
    s.INVALID_TOKEN_STATUS = 400
    s.FEDERATION_ERROR_STATUS = 500
    s.JOB_UPDATE_REQUIRES_OWNER = False
    s.REGISTRATION_TOKEN_EXPIRE_HOURS = 24
    s.LOGIN_TOKEN_EXPIRE_HOURS = 0
    s.FEDERATED_TOKEN_EXPIRE_HOURS = 0
    return s


@pytest.fixture()
def app(db_session, settings):
    fastapi_app = create_app(settings, create_tables=False)

    def override_get_db():
        yield db_session
    fastapi_app.dependency_overrides[get_db] = override_get_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def users(db_session):
    """
    Two distinct local users for ownership / isolation tests.
    """
    alice = User(
        username="alice",
        email="a@x.com",
        password_hash=hash_password("pw1"),
    )
    bob = User(
        username="bob",
        email="b@x.com",
        password_hash=hash_password("pw2"),
    )
    db_session.add_all([alice, bob])
    db_session.commit()
    db_session.refresh(alice)
    db_session.refresh(bob)
    return alice, bob


@pytest.fixture()
def auth_headers(settings):
    """
    Build the auth header for a user.

    Usage:
        client.post(..., headers=auth_headers(user))
    """

    def _auth_headers(user: User) -> dict[str, str]:
        token = create_access_token(
            str(user.id),
            user.username,
            secret=settings.SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
        )
        return {settings.AUTH_HEADER_NAME: token}

    return _auth_headers


@pytest.fixture()
def client_for(client, auth_headers):
    """
    Context manager yielding a client that sends the given user's token.

    Usage:
        with client_for(user) as c:
            ...
    """

    @contextmanager
    def _client_for(user: User):
        previous = dict(client.headers)
        client.headers.update(auth_headers(user))
        try:
            yield client
        finally:
            client.headers.clear()
            client.headers.update(previous)

    return _client_for
