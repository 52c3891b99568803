"""Exceptions raised by the member ledger and the user counter."""

from __future__ import annotations


class HeadcountError(RuntimeError):
    """Base exception for ledger and counter failures."""


class DuplicateMember(HeadcountError):
    """Raised when a username or email is already taken.

    The insert is rolled back, so the counter is left untouched.
    """

    def __init__(self, username: str | None, email: str | None) -> None:
        super().__init__(f"Member already exists (username={username!r}, email={email!r})")
        self.username = username
        self.email = email


class MemberNotFound(HeadcountError):
    """Raised when a member id does not exist in the ledger."""

    def __init__(self, member_id: int) -> None:
        super().__init__(f"Member {member_id} not found")
        self.member_id = member_id


class MissingAggregateRow(HeadcountError):
    """Raised when the ``user_stats`` row is absent during an adjustment.

    This is a data-integrity fault: the enclosing mutation is rolled back and
    an operator has to run reconciliation. It must not be retried blindly.
    """

    def __init__(self) -> None:
        super().__init__("user_stats counter row is missing")


class AggregateDrift(HeadcountError):
    """The stored count no longer matches the ledger cardinality.

    ``detail`` replaces the stored/actual pair in the message when the values
    are not known, e.g. when an adjustment hits the non-negative constraint.
    """

    def __init__(self, stored: int | None, actual: int | None, detail: str | None = None) -> None:
        super().__init__(f"User count drift: {detail or f'stored={stored} actual={actual}'}")
        self.stored = stored
        self.actual = actual


class ReadUnavailable(HeadcountError):
    """Raised when the database cannot be reached while reading the count."""
