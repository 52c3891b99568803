"""Write path for the member ledger.

Every insert or delete against ``user_list`` goes through this module so the
counter adjustment runs in the same transaction as the ledger write. A direct
SQL write that bypasses these helpers leaves the counter drifted until
reconciliation runs.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from headcount.models import Member
from headcount.services.counter import adjust_total
from headcount.services.errors import DuplicateMember, MemberNotFound

__all__ = [
    "get_member",
    "list_members",
    "add_member",
    "update_member",
    "remove_member",
    "seed_members",
]

logger = logging.getLogger(__name__)


def get_member(db: Session, member_id: int) -> Member | None:
    """Return a single member by primary key."""
    return db.get(Member, member_id)


def list_members(db: Session, skip: int = 0, limit: int = 100) -> Sequence[Member]:
    """Return members ordered by id with offset-based pagination."""
    stmt = select(Member).order_by(Member.id).offset(skip).limit(limit)
    return db.scalars(stmt).all()


def add_member(db: Session, username: str, email: str) -> Member:
    """Insert a member and increment the counter in one transaction.

    Raises:
        DuplicateMember: If the username or email is already registered
        MissingAggregateRow: If the counter row is missing; nothing is committed
    """
    member = Member(username=username, email=email)
    db.add(member)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateMember(username, email) from exc

    try:
        adjust_total(db, +1)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(member)
    logger.info("Added member %s (%s)", member.id, member.username)
    return member


def remove_member(db: Session, member_id: int) -> None:
    """Delete a member and decrement the counter in one transaction.

    Raises:
        MemberNotFound: If no member has ``member_id``
        MissingAggregateRow: If the counter row is missing; the delete is undone
        AggregateDrift: If the stored count is already zero
    """
    try:
        result = db.execute(delete(Member).where(Member.id == member_id))
        if result.rowcount == 0:
            raise MemberNotFound(member_id)
        adjust_total(db, -1)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Removed member %s", member_id)


def update_member(
    db: Session,
    member_id: int,
    *,
    username: str | None = None,
    email: str | None = None,
) -> Member:
    """Change a member's natural keys. The counter is never touched.

    Raises:
        MemberNotFound: If no member has ``member_id``
        DuplicateMember: If the new username or email is taken
    """
    member = db.get(Member, member_id)
    if member is None:
        raise MemberNotFound(member_id)

    if username is not None:
        member.username = username
    if email is not None:
        member.email = email

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateMember(username, email) from exc

    db.refresh(member)
    return member


def seed_members(db: Session, rows: Iterable[Mapping[str, str]]) -> tuple[int, int]:
    """Insert sample members, skipping ones that already exist.

    Returns:
        Tuple of ``(added, skipped)``
    """
    added = skipped = 0
    for row in rows:
        try:
            add_member(db, row["username"], row["email"])
        except DuplicateMember:
            logger.info("Member %s already exists, skipping", row["username"])
            skipped += 1
        else:
            added += 1
    return added, skipped
