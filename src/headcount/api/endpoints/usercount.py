"""User count endpoints.

The read route only touches the single ``user_stats`` row. Reconciliation and
the consistency probe scan the ledger and are meant for operators.
"""

from __future__ import annotations

from fastapi import APIRouter

from headcount.api.dependencies import AdminDep, SessionDep
from headcount.db.time import as_utc
from headcount.schemas.usercount import (
    ConsistencyResponse,
    RecalculateResponse,
    UserCountResponse,
)
from headcount.services.counter import check_consistency, get_count, reconcile

router = APIRouter(prefix="/usercount", tags=["usercount"])


@router.get("", response_model=UserCountResponse)
def get_user_count(db: SessionDep) -> UserCountResponse:
    """Return the live user count in O(1).

    A missing counter row is rebuilt transparently; an unreachable database
    yields 503.
    """
    snapshot = get_count(db)
    return UserCountResponse(
        total_users=snapshot.count,
        last_updated=as_utc(snapshot.last_updated),
    )


@router.post("/recalculate", response_model=RecalculateResponse)
def recalculate_user_count(db: SessionDep, _: AdminDep) -> RecalculateResponse:
    """Rebuild the counter from a full ledger scan and report the repair."""
    result = reconcile(db)
    return RecalculateResponse(
        total_users=result.count,
        previous=result.previous,
        last_updated=as_utc(result.last_updated),
    )


@router.get("/consistency", response_model=ConsistencyResponse)
def get_user_count_consistency(db: SessionDep, _: AdminDep) -> ConsistencyResponse:
    """Compare the stored counter with the ledger without repairing it."""
    report = check_consistency(db)
    return ConsistencyResponse(
        stored=report.stored,
        actual=report.actual,
        in_sync=report.in_sync,
        last_updated=as_utc(report.last_updated),
    )
