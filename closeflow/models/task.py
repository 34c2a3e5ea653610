from __future__ import annotations
from datetime import datetime, date
from enum import Enum
from sqlalchemy import String, Date, DateTime, ForeignKey, Text, Boolean, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from closeflow.db.base import Base


class TaskFrequency(str, Enum):
    ONE_TIME = "ONE_TIME"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    ANNUALLY = "ANNUALLY"


RECURRING_FREQUENCIES = (TaskFrequency.MONTHLY, TaskFrequency.QUARTERLY, TaskFrequency.ANNUALLY)


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    SUBMITTED = "SUBMITTED"
    COMPLETED = "COMPLETED"
    UNASSIGNED = "UNASSIGNED"


class Task(Base):
    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    workspace_id: Mapped[int] = mapped_column(ForeignKey("workspaces.id"), index=True)

    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, default=None)
    category_id: Mapped[int | None] = mapped_column(ForeignKey("categories.id"), nullable=True, index=True)

    frequency: Mapped[TaskFrequency] = mapped_column(
        SAEnum(TaskFrequency, name="task_frequency", create_constraint=True, native_enum=True),
        index=True,
    )
    # Templates are never bound to a period; the rollover clones them into one
    is_template: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    is_subtask: Mapped[bool] = mapped_column(Boolean, default=False)
    parent_task_id: Mapped[int | None] = mapped_column(ForeignKey("tasks.id"), nullable=True, index=True)
    period_id: Mapped[int | None] = mapped_column(ForeignKey("periods.id"), nullable=True, index=True)

    # Identity provider subjects
    preparer_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    reviewer_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)

    status: Mapped[TaskStatus] = mapped_column(
        SAEnum(TaskStatus, name="task_status", create_constraint=True, native_enum=True),
        default=TaskStatus.PENDING,
        index=True,
    )
    due_date_preparer: Mapped[date | None] = mapped_column(Date, default=None)
    due_date_reviewer: Mapped[date | None] = mapped_column(Date, default=None)

    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
