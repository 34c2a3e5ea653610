from __future__ import annotations
from datetime import datetime
from enum import Enum
from sqlalchemy import String, DateTime, ForeignKey, Numeric, Boolean, JSON, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from closeflow.db.base import Base


class LineItemStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class LineItemSource(str, Enum):
    EXCEL = "EXCEL"
    SHEETS = "SHEETS"
    MANUAL = "MANUAL"


class ReconciliationLineItem(Base):
    """
    A balance-sheet account reconciled at close: the general ledger balance
    is compared with the supporting (reconciled) balance. Line items are
    grouped for display by account type, then by category.
    """
    __tablename__ = "reconciliation_line_items"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    workspace_id: Mapped[int] = mapped_column(ForeignKey("workspaces.id"), index=True)

    name: Mapped[str] = mapped_column(String(255))
    account_number: Mapped[str] = mapped_column(String(64), index=True)
    # Names of ACCOUNT_TYPE and RECONCILIATION categories
    account_type: Mapped[str] = mapped_column(String(100), index=True)
    category: Mapped[str] = mapped_column(String(100), index=True)

    status: Mapped[LineItemStatus] = mapped_column(
        SAEnum(LineItemStatus, name="line_item_status", create_constraint=True, native_enum=True),
        default=LineItemStatus.ACTIVE,
    )
    source: Mapped[LineItemSource] = mapped_column(
        SAEnum(LineItemSource, name="line_item_source", create_constraint=True, native_enum=True),
        default=LineItemSource.MANUAL,
    )

    variance_threshold: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    gl_balance: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    rec_balance: Mapped[float] = mapped_column(Numeric(14, 2), default=0)

    links: Mapped[list[str]] = mapped_column(JSON, default=list)
    # Identity provider subjects
    assignees: Mapped[list[str]] = mapped_column(JSON, default=list)

    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
