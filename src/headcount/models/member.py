"""SQLAlchemy model for the member ledger."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from headcount.db.session import Base
from headcount.db.time import utcnow


class Member(Base):
    """Authoritative ledger row; one per registered user."""

    __tablename__ = "user_list"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("idx_user_list_username", "username"),
        Index("idx_user_list_email", "email"),
        Index("idx_user_list_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Member id={self.id} username={self.username!r}>"
