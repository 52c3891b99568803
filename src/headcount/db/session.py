"""Database engine, session factory and provisioning helpers."""

from __future__ import annotations

import logging
import time
from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from headcount.core.settings import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import headcount.models  # noqa: E402,F401


def _attach_slow_query_log(engine: Engine, threshold_ms: float) -> None:
    @event.listens_for(engine, "before_cursor_execute")
    def _start_timer(conn, cursor, statement, parameters, context, executemany) -> None:
        conn.info.setdefault("query_start_time", []).append(time.perf_counter())

    @event.listens_for(engine, "after_cursor_execute")
    def _log_slow(conn, cursor, statement, parameters, context, executemany) -> None:
        started = conn.info["query_start_time"].pop()
        elapsed_ms = (time.perf_counter() - started) * 1000
        if elapsed_ms > threshold_ms:
            logger.warning("Slow query detected (%.0fms): %s", elapsed_ms, statement)


def build_engine(url: str, **overrides: Any) -> Engine:
    """Create an engine with the configured pool and slow-query logging.

    Pool sizing only applies to server databases; SQLite picks its own pool.
    """
    options: dict[str, Any] = {
        "pool_pre_ping": True,
        "echo": settings.sql_debug,
    }
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    else:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout_seconds,
            pool_recycle=settings.db_pool_recycle_seconds,
        )
    options.update(overrides)
    engine = create_engine(url, **options)
    _attach_slow_query_log(engine, settings.slow_query_ms)
    return engine


engine = build_engine(settings.effective_database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind: Engine | None = None) -> None:
    """Create all tables and provision the counter row."""
    from headcount.services.counter import ensure_counter_row

    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    with Session(bind) as db:
        ensure_counter_row(db)


def drop_tables(bind: Engine | None = None) -> None:
    """Drop all database tables."""
    Base.metadata.drop_all(bind=bind or engine)


def check_database(db: Session) -> dict[str, object]:
    """Probe the database with a trivial query.

    Returns:
        Dictionary with ``status`` ("healthy"/"unhealthy") and ``connected``
    """
    try:
        db.execute(text("SELECT 1"))
    except Exception as exc:
        logger.error("Database health check failed: %s", exc)
        return {"status": "unhealthy", "connected": False}
    return {"status": "healthy", "connected": True}
