"""Business logic services for the headcount service."""

from .counter import (
    ConsistencyReport,
    CountSnapshot,
    ReconcileResult,
    adjust_total,
    check_consistency,
    get_count,
    recalculate,
    reconcile,
)
from .errors import (
    AggregateDrift,
    DuplicateMember,
    HeadcountError,
    MemberNotFound,
    MissingAggregateRow,
    ReadUnavailable,
)
from .reconciler import ReconcileWorker

__all__ = [
    "ConsistencyReport", "CountSnapshot", "ReconcileResult",
    "adjust_total", "check_consistency", "get_count", "recalculate", "reconcile",
    "AggregateDrift", "DuplicateMember", "HeadcountError",
    "MemberNotFound", "MissingAggregateRow", "ReadUnavailable",
    "ReconcileWorker",
]
