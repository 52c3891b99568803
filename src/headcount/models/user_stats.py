"""Single-row aggregate holding the live user count."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from headcount.db.session import Base
from headcount.db.time import utcnow

# Primary key of the only row the table may hold.
USER_STATS_ROW_ID = 1


class UserStats(Base):
    """Materialized count of ``user_list`` rows.

    Written only by the member write path and by reconciliation.
    """

    __tablename__ = "user_stats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=USER_STATS_ROW_ID)
    total_users: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        CheckConstraint(f"id = {USER_STATS_ROW_ID}", name="single_row_constraint"),
        CheckConstraint("total_users >= 0", name="non_negative_total_users"),
    )
