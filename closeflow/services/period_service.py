"""
Opening and closing monthly close periods.

Opening a period (the rollover) inserts the period and then clones every
eligible recurring template of the workspace into a concrete task bound to
it. The period and each clone are committed separately: a clone that fails
is rolled back, logged and reported in the result, while the period and the
other clones stand.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from closeflow.core.config import settings
from closeflow.core.exceptions import (
    DuplicatePeriod,
    InvalidPeriod,
    PeriodNotFound,
    PeriodReopenNotAllowed,
    TemplateCloneFailure,
    WorkspaceNotFound,
)
from closeflow.models.period import Period, PeriodStatus
from closeflow.models.task import Task, TaskStatus
from closeflow.repositories.period_repository import PeriodRepository
from closeflow.repositories.task_repository import TaskRepository
from closeflow.repositories.workspace_repository import WorkspaceRepository
from closeflow.schemas.period import (
    CloneOutcome,
    NextPeriodOut,
    PeriodOut,
    PeriodSummary,
    RolloverResult,
)
from closeflow.schemas.task import TaskOut
from closeflow.services.audit_service import AuditService
from closeflow.services.period_rules import (
    completion_percent,
    find_current_period,
    make_month_id,
    next_month,
    quarter_for_month,
    should_include_template,
)

logger = logging.getLogger(__name__)


def build_clone_payload(template: Task, period: Period) -> dict:
    """Column values of the concrete task a template turns into for a period"""
    now = datetime.utcnow()
    return {
        "workspace_id": template.workspace_id,
        "title": template.title,
        "description": template.description,
        "category_id": template.category_id,
        "preparer_id": template.preparer_id,
        "reviewer_id": template.reviewer_id,
        "frequency": template.frequency,
        "due_date_preparer": template.due_date_preparer,
        "due_date_reviewer": template.due_date_reviewer,
        "period_id": period.id,
        "parent_task_id": None,
        "status": TaskStatus.PENDING,
        "is_template": False,
        "is_subtask": False,
        "is_archived": False,
        "created_at": now,
        "updated_at": now,
    }


class PeriodService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.period_repo = PeriodRepository(db)
        self.task_repo = TaskRepository(db)
        self.workspace_repo = WorkspaceRepository(db)

    async def open_period(
        self,
        workspace_id: int,
        year: int,
        month: int,
        user_id: Optional[str] = None,
    ) -> RolloverResult:
        """
        Open the (year, month) period of a workspace and seed it with tasks
        cloned from the workspace's recurring templates.

        Raises InvalidPeriod, WorkspaceNotFound or DuplicatePeriod before any
        write. Per-template clone failures never raise; they show up as failed
        entries in ``RolloverResult.outcomes``.
        """
        try:
            month_id = make_month_id(year, month)
        except ValueError as e:
            raise InvalidPeriod(str(e))

        if not await self.workspace_repo.get_by_id(workspace_id):
            raise WorkspaceNotFound(workspace_id)

        if await self.period_repo.get_by_month_id(workspace_id, month_id):
            raise DuplicatePeriod(workspace_id, month_id)

        now = datetime.utcnow()
        try:
            period = await self.period_repo.create(Period(
                workspace_id=workspace_id,
                year=year,
                month=month,
                month_id=month_id,
                quarter=quarter_for_month(month),
                status=PeriodStatus.OPEN,
                is_archived=False,
                created_at=now,
                updated_at=now,
            ))
        except IntegrityError:
            # Lost the race against a concurrent open of the same month
            await self.db.rollback()
            raise DuplicatePeriod(workspace_id, month_id)

        templates = await self.task_repo.list_templates(workspace_id)
        eligible = [t for t in templates if should_include_template(t.frequency, month)]
        # Snapshot before cloning: a rollback expires every loaded instance
        pending = [(t.id, t.title, build_clone_payload(t, period)) for t in eligible]

        cloned_tasks: List[Task] = []
        outcomes: List[CloneOutcome] = []
        for template_id, title, payload in pending:
            try:
                task = await self.task_repo.create(payload)
            except Exception as e:
                await self.db.rollback()
                failure = TemplateCloneFailure(template_id, str(e))
                logger.error("Period %s of workspace %s: %s", month_id, workspace_id, failure)
                outcomes.append(CloneOutcome(
                    template_id=template_id, title=title, succeeded=False, error=failure.reason
                ))
                continue
            cloned_tasks.append(task)
            outcomes.append(CloneOutcome(
                template_id=template_id, title=title, succeeded=True, task_id=task.id
            ))

        if len(cloned_tasks) != len(pending):
            logger.warning(
                "Some templates failed to clone into period %s of workspace %s. Expected: %d, Succeeded: %d",
                month_id, workspace_id, len(pending), len(cloned_tasks),
            )
            await self.db.refresh(period)
            for task in cloned_tasks:
                await self.db.refresh(task)
        else:
            logger.info(
                "Opened period %s of workspace %s with %d task(s)", month_id, workspace_id, len(cloned_tasks)
            )

        result = RolloverResult(
            period=PeriodOut.model_validate(period),
            cloned_tasks=[TaskOut.model_validate(t) for t in cloned_tasks],
            outcomes=outcomes,
        )

        await AuditService(self.db).log_period_action(
            user_id=user_id,
            action='open',
            period_id=result.period.id,
            workspace_id=workspace_id,
            details={
                'month_id': month_id,
                'eligible_templates': result.eligible_count,
                'cloned_tasks': len(result.cloned_tasks),
                'failed_template_ids': [o.template_id for o in outcomes if not o.succeeded],
            },
        )
        return result

    async def _get_live_period(self, period_id: int) -> Period:
        period = await self.period_repo.get_by_id(period_id)
        if not period or period.is_archived:
            raise PeriodNotFound(period_id)
        return period

    async def close_period(self, period_id: int, user_id: Optional[str] = None) -> int:
        """Mark a period CLOSED; its tasks keep their own status"""
        period = await self._get_live_period(period_id)
        if period.status == PeriodStatus.CLOSED:
            return period.id

        period = await self.period_repo.set_status(period, PeriodStatus.CLOSED)
        logger.info("Closed period %s of workspace %s", period.month_id, period.workspace_id)
        await AuditService(self.db).log_period_action(
            user_id=user_id,
            action='close',
            period_id=period.id,
            workspace_id=period.workspace_id,
            details={'month_id': period.month_id},
        )
        return period.id

    async def reopen_period(self, period_id: int, user_id: Optional[str] = None) -> Period:
        """Move a CLOSED period back to OPEN, when ALLOW_PERIOD_REOPEN is enabled"""
        period = await self._get_live_period(period_id)
        if not settings.ALLOW_PERIOD_REOPEN:
            raise PeriodReopenNotAllowed(period_id)
        if period.status == PeriodStatus.OPEN:
            return period

        period = await self.period_repo.set_status(period, PeriodStatus.OPEN)
        logger.info("Reopened period %s of workspace %s", period.month_id, period.workspace_id)
        await AuditService(self.db).log_period_action(
            user_id=user_id,
            action='reopen',
            period_id=period.id,
            workspace_id=period.workspace_id,
            details={'month_id': period.month_id},
        )
        return period

    async def get_period(self, workspace_id: int, year: int, month: int) -> Optional[Period]:
        return await self.period_repo.get_by_month_id(workspace_id, make_month_id(year, month))

    async def get_period_by_month_id(self, workspace_id: int, month_id: str) -> Optional[Period]:
        return await self.period_repo.get_by_month_id(workspace_id, month_id)

    async def list_periods(self, workspace_id: int) -> List[Period]:
        return await self.period_repo.list_by_workspace(workspace_id)

    async def list_active_periods(self, workspace_id: int) -> List[Period]:
        return await self.period_repo.list_by_workspace(workspace_id, status=PeriodStatus.OPEN)

    async def get_current_period(self, workspace_id: int) -> Optional[Period]:
        """Latest open period, derived from the stored periods on every call"""
        return find_current_period(await self.period_repo.list_by_workspace(workspace_id))

    async def get_next_period(self, workspace_id: int, today: Optional[date] = None) -> NextPeriodOut:
        """Month following the current period, or this calendar month when none is open"""
        current = await self.get_current_period(workspace_id)
        if current:
            try:
                year, month = next_month(current.year, current.month)
            except ValueError as e:
                raise InvalidPeriod(str(e))
        else:
            today = today or date.today()
            year, month = today.year, today.month
        return NextPeriodOut(year=year, month=month, month_id=make_month_id(year, month))

    async def get_period_summary(self, period_id: int) -> PeriodSummary:
        period = await self._get_live_period(period_id)
        counts = await self.task_repo.count_by_status(period.id)
        statuses = [status for status, count in counts.items() for _ in range(count)]
        return PeriodSummary(
            period=PeriodOut.model_validate(period),
            task_count=len(statuses),
            completed_count=counts.get(TaskStatus.COMPLETED, 0) + counts.get(TaskStatus.SUBMITTED, 0),
            completion_percent=completion_percent(statuses),
        )
