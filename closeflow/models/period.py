from __future__ import annotations
from datetime import datetime
from enum import Enum
from sqlalchemy import String, DateTime, ForeignKey, Boolean, Integer, UniqueConstraint, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from closeflow.db.base import Base


class PeriodStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class Period(Base):
    """
    One monthly close cycle of a workspace. Opened by the rollover, which also
    seeds it with tasks cloned from the recurring templates; closed explicitly.
    Periods are never deleted, only archived.
    """
    __tablename__ = "periods"
    __table_args__ = (
        UniqueConstraint("workspace_id", "month_id", name="uq_periods_workspace_month"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    workspace_id: Mapped[int] = mapped_column(ForeignKey("workspaces.id"), index=True)

    year: Mapped[int] = mapped_column(Integer, index=True)
    month: Mapped[int] = mapped_column(Integer)  # 1-12
    # "YYYY-MM", unique per workspace
    month_id: Mapped[str] = mapped_column(String(7), index=True)
    quarter: Mapped[int] = mapped_column(Integer)  # 1-4

    status: Mapped[PeriodStatus] = mapped_column(
        SAEnum(PeriodStatus, name="period_status", create_constraint=True, native_enum=True),
        default=PeriodStatus.OPEN,
        index=True,
    )
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
