"""Member ledger endpoints.

Inserts and deletes go through :mod:`headcount.services.member_service`, so
each one adjusts the user count in the same transaction.
"""

from __future__ import annotations

from fastapi import APIRouter, Query, Response, status

from headcount.api.dependencies import SessionDep
from headcount.db.time import as_utc
from headcount.models import Member
from headcount.schemas.member import MemberCreate, MemberResponse, MemberUpdate
from headcount.services import member_service
from headcount.services.errors import MemberNotFound

router = APIRouter(prefix="/users", tags=["users"])


def to_member_response(member: Member) -> MemberResponse:
    """Convert a Member ORM instance to an API schema."""
    return MemberResponse(
        id=member.id,
        username=member.username,
        email=member.email,
        created_at=as_utc(member.created_at),
        updated_at=as_utc(member.updated_at),
    )


@router.post("", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
def create_member(payload: MemberCreate, db: SessionDep) -> MemberResponse:
    """Register a member; duplicates are rejected with 409."""
    member = member_service.add_member(db, payload.username, payload.email)
    return to_member_response(member)


@router.get("", response_model=list[MemberResponse])
def list_members(
    db: SessionDep,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
) -> list[MemberResponse]:
    """List members ordered by id."""
    return [to_member_response(m) for m in member_service.list_members(db, skip, limit)]


@router.get("/{member_id}", response_model=MemberResponse)
def get_member(member_id: int, db: SessionDep) -> MemberResponse:
    """Return a single member."""
    member = member_service.get_member(db, member_id)
    if member is None:
        raise MemberNotFound(member_id)
    return to_member_response(member)


@router.patch("/{member_id}", response_model=MemberResponse)
def update_member(member_id: int, payload: MemberUpdate, db: SessionDep) -> MemberResponse:
    """Change a member's username or email; the user count is unaffected."""
    member = member_service.update_member(
        db,
        member_id,
        username=payload.username,
        email=payload.email,
    )
    return to_member_response(member)


@router.delete("/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_member(member_id: int, db: SessionDep) -> Response:
    """Remove a member and decrement the user count."""
    member_service.remove_member(db, member_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
