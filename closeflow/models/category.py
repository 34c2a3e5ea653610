from __future__ import annotations
from datetime import datetime
from enum import Enum
from sqlalchemy import String, DateTime, Boolean, ForeignKey, Text, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from closeflow.db.base import Base


class CategoryKind(str, Enum):
    CHECKLIST = "CHECKLIST"
    RECONCILIATION = "RECONCILIATION"
    ACCOUNT_TYPE = "ACCOUNT_TYPE"


class Category(Base):
    """
    Workspace-defined grouping label. Checklist categories group tasks;
    reconciliation and account-type categories group reconciliation line
    items. Names are unique per (workspace, kind) among live categories.
    """
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    workspace_id: Mapped[int] = mapped_column(ForeignKey("workspaces.id"), index=True)
    kind: Mapped[CategoryKind] = mapped_column(
        SAEnum(CategoryKind, name="category_kind", create_constraint=True, native_enum=True),
        default=CategoryKind.CHECKLIST,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), index=True)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    color: Mapped[str] = mapped_column(String(20), default="#64748b")
    show_by_default: Mapped[bool] = mapped_column(Boolean, default=True)
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
