"""Concurrent writers against a file-backed database.

Each worker uses its own session, the way request handlers do, so the
counter row is contended by independent connections.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import event
from sqlalchemy.orm import sessionmaker

from headcount.db.session import build_engine, create_tables
from headcount.services.counter import check_consistency, get_count, recalculate
from headcount.services.member_service import add_member, list_members, remove_member

INSERTS = 40
DELETES = 15
WORKERS = 8


@pytest.fixture()
def file_session_factory(tmp_path):
    url = f"sqlite:///{tmp_path / 'concurrency.db'}"
    engine = build_engine(url, connect_args={"check_same_thread": False, "timeout": 30})
    create_tables(engine)
    try:
        yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    finally:
        engine.dispose()


def _insert(factory, n: int) -> int:
    with factory() as db:
        return add_member(db, f"worker{n}", f"worker{n}@example.com").id


def _delete(factory, member_id: int) -> None:
    with factory() as db:
        remove_member(db, member_id)


def test_concurrent_inserts_then_deletes(file_session_factory):
    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        ids = list(pool.map(lambda n: _insert(file_session_factory, n), range(INSERTS)))

    with file_session_factory() as db:
        assert get_count(db).count == INSERTS

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        list(pool.map(lambda i: _delete(file_session_factory, i), ids[:DELETES]))

    with file_session_factory() as db:
        assert get_count(db).count == INSERTS - DELETES
        report = check_consistency(db)
        assert report.in_sync
        assert len(list_members(db, limit=INSERTS)) == INSERTS - DELETES


def test_reconcile_during_writes_stays_exact(file_session_factory):
    def _recalculate() -> int:
        with file_session_factory() as db:
            return recalculate(db)

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        inserts = [pool.submit(_insert, file_session_factory, n) for n in range(INSERTS)]
        reconciles = [pool.submit(_recalculate) for _ in range(5)]
        for future in inserts + reconciles:
            future.result()

    with file_session_factory() as db:
        report = check_consistency(db)
        assert report.in_sync
        assert report.actual == INSERTS


def test_consistency_check_during_committed_write(file_session_factory):
    """A correct write committing mid-check must not show up as drift."""
    engine = file_session_factory.kw["bind"]
    committed = False

    def _commit_member_before_count(conn, cursor, statement, parameters, context, executemany):
        nonlocal committed
        if committed or "count(" not in statement:
            return
        committed = True
        with file_session_factory() as other:
            add_member(other, "late", "late@example.com")

    event.listen(engine, "before_cursor_execute", _commit_member_before_count)
    try:
        with file_session_factory() as db:
            report = check_consistency(db, strict=True)
    finally:
        event.remove(engine, "before_cursor_execute", _commit_member_before_count)

    assert committed
    assert report.in_sync
    assert report.stored == report.actual == 1
