"""Incrementally maintained user count.

The ``user_stats`` row is kept in lockstep with ``user_list``:

- every ledger insert/delete calls :func:`adjust_total` inside the same
  transaction, so a failed adjustment rolls the mutation back;
- readers call :func:`get_count`, a primary-key lookup that never scans the
  ledger;
- :func:`recalculate` rebuilds the row from a full scan to repair drift.

Reconciliation runs at the engine's default isolation level (READ COMMITTED
on PostgreSQL). It updates the counter row before counting, which takes the
row lock: adjusters that committed earlier are included in the scan, and
adjusters still in flight wait on the row and apply their delta afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from headcount.db.time import utcnow
from headcount.models import USER_STATS_ROW_ID, Member, UserStats
from headcount.services.errors import AggregateDrift, MissingAggregateRow, ReadUnavailable

__all__ = [
    "ConsistencyReport",
    "CountSnapshot",
    "ReconcileResult",
    "adjust_total",
    "check_consistency",
    "ensure_counter_row",
    "get_count",
    "reconcile",
    "recalculate",
]

logger = logging.getLogger(__name__)

# Failures meaning the database could not be reached at all.
UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError)


@dataclass(frozen=True)
class CountSnapshot:
    """Value returned by the read path."""

    count: int
    last_updated: datetime | None


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of a reconciliation run.

    ``previous`` is None when the counter row had to be re-created.
    """

    previous: int | None
    count: int
    last_updated: datetime

    @property
    def drifted(self) -> bool:
        return self.previous != self.count


@dataclass(frozen=True)
class ConsistencyReport:
    """Stored counter compared against the ledger cardinality."""

    stored: int | None
    actual: int
    last_updated: datetime | None

    @property
    def in_sync(self) -> bool:
        return self.stored == self.actual


def _counter_row():
    return UserStats.id == USER_STATS_ROW_ID


def _ledger_size(db: Session) -> int:
    return int(db.execute(select(func.count()).select_from(Member)).scalar_one())


def _read_snapshot(db: Session) -> CountSnapshot | None:
    row = db.execute(
        select(UserStats.total_users, UserStats.last_updated).where(_counter_row())
    ).first()
    if row is None:
        return None
    return CountSnapshot(count=int(row.total_users), last_updated=row.last_updated)


def adjust_total(db: Session, delta: int) -> None:
    """Apply ``delta`` to the stored count inside the caller's transaction.

    Issues a single UPDATE against the counter row; concurrent adjusters
    serialize on that row. The caller owns the commit.

    Raises:
        MissingAggregateRow: If the counter row does not exist
        AggregateDrift: If the update would take the count below zero
    """
    stmt = (
        update(UserStats)
        .where(_counter_row())
        .values(total_users=UserStats.total_users + delta, last_updated=utcnow())
        .execution_options(synchronize_session=False)
    )
    try:
        result = db.execute(stmt)
    except IntegrityError as exc:
        # CHECK (total_users >= 0): the ledger holds rows the counter never saw.
        logger.error("Counter adjustment %+d rejected; stored count is behind the ledger", delta)
        raise AggregateDrift(
            stored=None,
            actual=None,
            detail=f"adjustment {delta:+d} would take the stored count below zero",
        ) from exc

    if result.rowcount == 0:
        logger.critical("user_stats row missing during adjustment %+d; mutation aborted", delta)
        raise MissingAggregateRow()


def get_count(db: Session) -> CountSnapshot:
    """Return the current user count in O(1).

    If the counter row is absent it is rebuilt by :func:`recalculate` and the
    fresh value is returned instead of failing the read.

    Raises:
        ReadUnavailable: If the database cannot be reached
    """
    try:
        snapshot = _read_snapshot(db)
        if snapshot is None:
            logger.warning("user_stats row is missing, recalculating")
            recalculate(db)
            snapshot = _read_snapshot(db)
    except UNAVAILABLE_ERRORS as exc:
        logger.error("User count read failed: %s", exc)
        raise ReadUnavailable("User count storage is unavailable") from exc

    if snapshot is None:  # pragma: no cover - recalculate always leaves a row
        raise MissingAggregateRow()
    return snapshot


def _reconcile_once(db: Session) -> ReconcileResult:
    now = utcnow()
    # Touch the row first so the scan below runs with the counter locked.
    touched = db.execute(
        update(UserStats)
        .where(_counter_row())
        .values(last_updated=now)
        .execution_options(synchronize_session=False)
    )
    if touched.rowcount == 0:
        logger.warning("user_stats row missing; re-creating it during reconciliation")
        db.add(UserStats(id=USER_STATS_ROW_ID, total_users=0, last_updated=now))
        db.flush()
        previous = None
    else:
        previous = int(
            db.execute(select(UserStats.total_users).where(_counter_row())).scalar_one()
        )

    actual = _ledger_size(db)
    db.execute(
        update(UserStats)
        .where(_counter_row())
        .values(total_users=actual, last_updated=now)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return ReconcileResult(previous=previous, count=actual, last_updated=now)


def reconcile(db: Session) -> ReconcileResult:
    """Rebuild the counter row from a full scan of the ledger.

    Cost is proportional to the ledger size; this is the repair path, never
    the read path. Drift is logged, not raised.
    """
    try:
        result = _reconcile_once(db)
    except IntegrityError:
        # A concurrent reconciliation re-created the row first.
        db.rollback()
        try:
            result = _reconcile_once(db)
        except Exception:
            db.rollback()
            raise
    except Exception:
        db.rollback()
        raise

    if result.previous is not None and result.drifted:
        logger.warning("%s; counter repaired", AggregateDrift(result.previous, result.count))
    else:
        logger.info("Reconciled user count: %d", result.count)
    return result


def recalculate(db: Session) -> int:
    """Recompute the stored count from the ledger and return it."""
    return reconcile(db).count


def check_consistency(db: Session, strict: bool = False) -> ConsistencyReport:
    """Compare the stored count with the ledger without writing anything.

    Raises:
        AggregateDrift: If ``strict`` and the two disagree
    """
    # One statement, one snapshot: an adjuster committing mid-check cannot
    # land between the two reads.
    ledger_size = select(func.count()).select_from(Member).scalar_subquery()
    row = db.execute(
        select(UserStats.total_users, UserStats.last_updated, ledger_size.label("actual"))
        .where(_counter_row())
    ).first()
    if row is None:
        report = ConsistencyReport(stored=None, actual=_ledger_size(db), last_updated=None)
    else:
        report = ConsistencyReport(
            stored=int(row.total_users),
            actual=int(row.actual),
            last_updated=row.last_updated,
        )
    if strict and not report.in_sync:
        raise AggregateDrift(report.stored, report.actual)
    return report


def ensure_counter_row(db: Session) -> bool:
    """Provision the counter row if it is absent.

    The row is seeded with the current ledger size, which is zero on a fresh
    database. Returns True when a row was created.
    """
    if _read_snapshot(db) is not None:
        return False
    db.add(UserStats(id=USER_STATS_ROW_ID, total_users=_ledger_size(db)))
    db.commit()
    logger.info("Provisioned user_stats counter row")
    return True
