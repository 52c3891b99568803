"""Tests for the counter adjustment, read path and reconciliation."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import delete, insert, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from headcount.models import Member, UserStats
from headcount.services.counter import (
    adjust_total,
    check_consistency,
    ensure_counter_row,
    get_count,
    recalculate,
    reconcile,
)
from headcount.services.errors import AggregateDrift, MissingAggregateRow, ReadUnavailable
from tests.conftest import ledger_size, stored_total

DRIFTED_VALUE = 42


def _bypass_insert(db: Session, *usernames: str) -> None:
    """Write ledger rows directly, skipping the counter adjustment."""
    for name in usernames:
        db.execute(insert(Member).values(username=name, email=f"{name}@example.com"))
    db.commit()


def test_empty_ledger_reads_zero(db_session):
    snapshot = get_count(db_session)
    assert snapshot.count == 0
    assert snapshot.last_updated is not None


def test_adjust_total_increments_and_stamps(db_session):
    before = get_count(db_session)

    adjust_total(db_session, +1)
    db_session.commit()

    after = get_count(db_session)
    assert after.count == before.count + 1
    assert after.last_updated >= before.last_updated


def test_adjust_total_is_part_of_callers_transaction(db_session):
    """Nothing is committed by the adjustment itself."""
    adjust_total(db_session, +1)
    db_session.rollback()
    assert get_count(db_session).count == 0


def test_adjust_total_missing_row(db_session):
    db_session.execute(delete(UserStats))
    db_session.commit()

    with pytest.raises(MissingAggregateRow):
        adjust_total(db_session, +1)
    db_session.rollback()


def test_adjust_total_below_zero_is_drift(db_session):
    with pytest.raises(AggregateDrift) as excinfo:
        adjust_total(db_session, -1)
    db_session.rollback()
    assert "below zero" in str(excinfo.value)
    assert "None" not in str(excinfo.value)
    assert stored_total(db_session) == 0


def test_recalculate_repairs_drift(db_session, members):
    db_session.execute(update(UserStats).values(total_users=DRIFTED_VALUE))
    db_session.commit()

    assert recalculate(db_session) == len(members)
    assert get_count(db_session).count == len(members)


def test_recalculate_counts_rows_written_around_the_counter(db_session, members):
    _bypass_insert(db_session, "ghost", "phantom")
    assert get_count(db_session).count == len(members)

    assert recalculate(db_session) == len(members) + 2
    assert stored_total(db_session) == ledger_size(db_session)


def test_reconcile_reports_previous_value(db_session, members):
    db_session.execute(update(UserStats).values(total_users=DRIFTED_VALUE))
    db_session.commit()

    result = reconcile(db_session)
    assert result.previous == DRIFTED_VALUE
    assert result.count == len(members)
    assert result.drifted


def test_reconcile_is_idempotent(db_session, members):
    first = reconcile(db_session)
    second = reconcile(db_session)

    assert first.count == second.count == len(members)
    assert second.previous == first.count
    assert not second.drifted
    assert second.last_updated >= first.last_updated


def test_reconcile_recreates_missing_row(db_session, members):
    db_session.execute(delete(UserStats))
    db_session.commit()

    result = reconcile(db_session)
    assert result.previous is None
    assert result.count == len(members)
    assert stored_total(db_session) == len(members)


def test_get_count_self_heals_missing_row(db_session, members):
    """Simulated corruption: the counter row vanishes, the next read rebuilds it."""
    db_session.execute(delete(UserStats))
    db_session.commit()

    snapshot = get_count(db_session)
    assert snapshot.count == len(members)
    assert stored_total(db_session) == len(members)


def test_get_count_unreachable_database():
    session = MagicMock(spec=Session)
    session.execute.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))

    with pytest.raises(ReadUnavailable):
        get_count(session)


def test_check_consistency_in_sync(db_session, members):
    report = check_consistency(db_session, strict=True)
    assert report.in_sync
    assert report.stored == report.actual == len(members)


def test_check_consistency_detects_drift(db_session, members):
    _bypass_insert(db_session, "ghost")

    report = check_consistency(db_session)
    assert not report.in_sync
    assert report.stored == len(members)
    assert report.actual == len(members) + 1

    with pytest.raises(AggregateDrift) as excinfo:
        check_consistency(db_session, strict=True)
    assert excinfo.value.actual == len(members) + 1


def test_check_consistency_without_row(db_session):
    db_session.execute(delete(UserStats))
    db_session.commit()

    report = check_consistency(db_session)
    assert report.stored is None
    assert not report.in_sync


def test_ensure_counter_row(db_session, members):
    assert ensure_counter_row(db_session) is False

    db_session.execute(delete(UserStats))
    db_session.commit()

    assert ensure_counter_row(db_session) is True
    assert stored_total(db_session) == len(members)
