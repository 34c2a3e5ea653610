from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel, Field, computed_field
from typing import Optional

from closeflow.models.period import PeriodStatus
from closeflow.schemas.task import TaskOut


class PeriodOpen(BaseModel):
    workspace_id: int
    year: int = Field(ge=1, le=9999)
    month: int = Field(ge=1, le=12)


class PeriodOut(BaseModel):
    id: int
    workspace_id: int
    year: int
    month: int
    month_id: str
    quarter: int
    status: PeriodStatus
    is_archived: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CloneOutcome(BaseModel):
    """Result of cloning one eligible template during a rollover"""
    template_id: int
    title: str
    succeeded: bool
    task_id: Optional[int] = None
    error: Optional[str] = None


class RolloverResult(BaseModel):
    period: PeriodOut
    cloned_tasks: list[TaskOut] = Field(default_factory=list)
    outcomes: list[CloneOutcome] = Field(default_factory=list)

    @computed_field
    @property
    def eligible_count(self) -> int:
        return len(self.outcomes)

    @computed_field
    @property
    def failed_count(self) -> int:
        return sum(1 for o in self.outcomes if not o.succeeded)

    @computed_field
    @property
    def is_partial(self) -> bool:
        return self.failed_count > 0


class PeriodClosed(BaseModel):
    period_id: int


class NextPeriodOut(BaseModel):
    year: int
    month: int
    month_id: str


class PeriodSummary(BaseModel):
    period: PeriodOut
    task_count: int
    completed_count: int
    completion_percent: int
