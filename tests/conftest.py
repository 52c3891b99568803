# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from typing import Any

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("PYTEST_RUNNING", "true")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from headcount.db.session import Base, drop_tables
from headcount.db.session import get_db as app_get_session
from headcount.main import app as fastapi_app
from headcount.models import Member, UserStats
from headcount.services.counter import ensure_counter_row
from headcount.services.member_service import add_member

TEST_DB_URL = "sqlite://"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        drop_tables(engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db_session(engine: Engine, session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    ensure_counter_row(session)
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Ensure each test sees a clean database even if commits occurred.
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
def override_session(app: FastAPI) -> Iterator[Callable[[Any], None]]:
    """Swap the request session for an arbitrary object (e.g. a failing mock)."""

    def _install(session: Any) -> None:
        def _get_session_override() -> Generator[Any, None, None]:
            yield session

        app.dependency_overrides[app_get_session] = _get_session_override

    yield _install


@pytest.fixture()
def members(db_session: Session) -> list[Member]:
    """Three members registered through the normal write path."""
    return [
        add_member(db_session, "ada", "ada@example.com"),
        add_member(db_session, "grace", "grace@example.com"),
        add_member(db_session, "linus", "linus@example.com"),
    ]


def ledger_size(db: Session) -> int:
    """Count ledger rows directly, bypassing the counter."""
    return int(db.scalar(select(func.count()).select_from(Member)))


def stored_total(db: Session) -> int | None:
    """Read the stored counter value, or None when the row is missing."""
    return db.scalar(select(UserStats.total_users))
