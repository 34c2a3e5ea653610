from __future__ import annotations

from datetime import date, datetime
from pydantic import BaseModel, Field, field_validator
from typing import ClassVar, Optional

from closeflow.models.task import TaskFrequency, TaskStatus


def _clean_title(v: str) -> str:
    if not v.strip():
        raise ValueError('Task title cannot be empty')
    return v.strip()


class TaskBase(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    category_id: Optional[int] = None
    frequency: TaskFrequency
    is_template: bool = False
    is_subtask: bool = False
    preparer_id: Optional[str] = None
    reviewer_id: Optional[str] = None
    due_date_preparer: Optional[date] = None
    due_date_reviewer: Optional[date] = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _clean_title(v)


class TaskCreate(TaskBase):
    workspace_id: int
    parent_task_id: Optional[int] = None
    period_id: Optional[int] = None


class TaskUpdate(BaseModel):
    """
    Partial update of a task. Only fields present in the request body are
    applied; sending ``null`` clears an optional field. Workspace, period and
    parent bindings are not patchable.
    """
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category_id: Optional[int] = None
    frequency: Optional[TaskFrequency] = None
    is_template: Optional[bool] = None
    is_subtask: Optional[bool] = None
    preparer_id: Optional[str] = None
    reviewer_id: Optional[str] = None
    due_date_preparer: Optional[date] = None
    due_date_reviewer: Optional[date] = None
    status: Optional[TaskStatus] = None

    # These are required on the model; null is not a valid "clear"
    NON_NULLABLE: ClassVar[frozenset[str]] = frozenset({"title", "frequency", "is_template", "is_subtask", "status"})

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _clean_title(v)

    def changes(self) -> dict:
        """Fields the caller actually sent"""
        return self.model_dump(exclude_unset=True)


class TaskAssigneeUpdate(BaseModel):
    """Set or clear the preparer/reviewer; an empty string clears the role."""
    preparer_id: Optional[str] = None
    reviewer_id: Optional[str] = None

    def changes(self) -> dict:
        return {
            field: (value or None)
            for field, value in self.model_dump(exclude_unset=True).items()
        }


class TaskOut(BaseModel):
    id: int
    workspace_id: int
    title: str
    description: Optional[str] = None
    category_id: Optional[int] = None
    frequency: TaskFrequency
    is_template: bool
    is_subtask: bool
    parent_task_id: Optional[int] = None
    period_id: Optional[int] = None
    preparer_id: Optional[str] = None
    reviewer_id: Optional[str] = None
    status: TaskStatus
    due_date_preparer: Optional[date] = None
    due_date_reviewer: Optional[date] = None
    is_archived: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
