# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

from aot_ledger.core.security import create_access_token
from aot_ledger.db.session import Base, enable_sqlite_savepoints
from aot_ledger.db.session import get_db as app_get_session
from aot_ledger.main import app as fastapi_app
from aot_ledger.models import SubscriptionTier, Target, User, UserRole, UserType

TEST_DB_URL = "sqlite://"

_TARGET_COUNTER = count(1)
_USER_COUNTER = count(1)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if something escaped the rollback.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory that persists users with the given class and plan."""

    def _make_user(
        user_type: UserType = UserType.REGISTERED,
        subscription_tier: SubscriptionTier = SubscriptionTier.T1,
        role: UserRole = UserRole.USER,
        display_name: str | None = None,
    ) -> User:
        user = User(
            display_name=display_name or f"user-{next(_USER_COUNTER)}",
            user_type=user_type,
            subscription_tier=subscription_tier,
            role=role,
        )
        db_session.add(user)
        db_session.flush()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def make_target(db_session: Session) -> Callable[..., Target]:
    """Return a factory that persists active targets."""

    def _make_target(name: str | None = None, **fields: Any) -> Target:
        index = next(_TARGET_COUNTER)
        target = Target(
            slug=fields.pop("slug", f"target-{index}"),
            name=name or f"Target {index}",
            **fields,
        )
        db_session.add(target)
        db_session.flush()
        db_session.refresh(target)
        return target

    return _make_target


@pytest.fixture()
def test_user(make_user: Callable[..., User]) -> User:
    """Create the primary registered test user."""
    return make_user(display_name="Test User")


@pytest.fixture()
def other_user(make_user: Callable[..., User]) -> User:
    """Create a second, authenticated test user."""
    return make_user(user_type=UserType.AUTHENTICATED, display_name="Other User")


@pytest.fixture()
def moderator(make_user: Callable[..., User]) -> User:
    """Create a moderator account."""
    return make_user(role=UserRole.MODERATOR, display_name="Moderator")


@pytest.fixture()
def target(make_target: Callable[..., Target]) -> Target:
    """Create a default target."""
    return make_target(name="Test Target")


def auth_headers(user: User) -> dict[str, str]:
    """Return bearer headers for ``user``."""
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return auth_headers(test_user)


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return auth_headers(other_user)


@pytest.fixture()
def moderator_token(moderator: User) -> dict[str, str]:
    """Return authorization headers for the moderator."""
    return auth_headers(moderator)


@pytest.fixture()
def headers_for() -> Callable[[User], dict[str, str]]:
    """Return the bearer header builder for ad-hoc users."""
    return auth_headers
