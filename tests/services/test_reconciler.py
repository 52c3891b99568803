import asyncio
import logging

import pytest
from sqlalchemy import update
from sqlalchemy.exc import OperationalError

from headcount.models import UserStats
from headcount.services.reconciler import ReconcileWorker
from tests.conftest import stored_total


@pytest.mark.asyncio
async def test_run_once_repairs_drift(db_session, session_factory, members):
    db_session.execute(update(UserStats).values(total_users=99))
    db_session.commit()

    worker = ReconcileWorker(session_factory=session_factory, interval_seconds=0)
    count = await worker.run_once()

    assert count == len(members)
    assert worker.runs == 1
    assert worker.last_count == len(members)
    db_session.expire_all()
    assert stored_total(db_session) == len(members)


@pytest.mark.asyncio
async def test_loop_runs_until_stopped(db_session, session_factory, members):
    worker = ReconcileWorker(session_factory=session_factory, interval_seconds=0.05)
    await worker.start()
    assert worker.running

    for _ in range(50):
        if worker.runs >= 2:
            break
        await asyncio.sleep(0.05)

    await worker.stop()
    assert worker.runs >= 2
    assert not worker.running
    assert worker.last_count == len(members)


@pytest.mark.asyncio
async def test_disabled_worker_never_starts(session_factory):
    worker = ReconcileWorker(session_factory=session_factory, interval_seconds=0)
    assert not worker.enabled

    await worker.start()
    assert not worker.running
    await worker.stop()
    assert worker.runs == 0


@pytest.mark.asyncio
async def test_loop_survives_unreachable_database(caplog):
    calls = 0

    def _broken_factory():
        nonlocal calls
        calls += 1
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    worker = ReconcileWorker(session_factory=_broken_factory, interval_seconds=0.05)
    with caplog.at_level(logging.WARNING, logger="headcount.services.reconciler"):
        await worker.start()
        for _ in range(50):
            if calls >= 2:
                break
            await asyncio.sleep(0.05)
        assert worker.running
        await worker.stop()

    assert calls >= 2
    assert worker.runs == 0
    assert "could not reach the database" in caplog.text
