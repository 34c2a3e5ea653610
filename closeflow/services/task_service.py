from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from closeflow.core.exceptions import (
    CategoryNotFound,
    PeriodNotFound,
    TaskInvariantViolation,
    TaskNotFound,
    WorkspaceNotFound,
)
from closeflow.models.category import CategoryKind
from closeflow.models.task import Task, TaskFrequency, TaskStatus, RECURRING_FREQUENCIES
from closeflow.repositories.category_repository import CategoryRepository
from closeflow.repositories.period_repository import PeriodRepository
from closeflow.repositories.task_repository import TaskRepository
from closeflow.repositories.workspace_repository import WorkspaceRepository
from closeflow.schemas.task import TaskCreate, TaskUpdate, TaskAssigneeUpdate
from closeflow.services.audit_service import AuditService


def check_task_invariants(
    *,
    frequency: TaskFrequency,
    is_template: bool,
    period_id: Optional[int],
) -> None:
    """Raise TaskInvariantViolation when the combination is not a valid task"""
    if is_template and period_id is not None:
        raise TaskInvariantViolation("Template tasks should not be associated with a period")
    if is_template and frequency not in RECURRING_FREQUENCIES:
        raise TaskInvariantViolation("Template tasks must recur monthly, quarterly or annually")
    if frequency == TaskFrequency.ONE_TIME and period_id is None:
        raise TaskInvariantViolation("One-time tasks must be associated with a period")


class TaskService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.task_repo = TaskRepository(db)
        self.period_repo = PeriodRepository(db)
        self.category_repo = CategoryRepository(db)
        self.workspace_repo = WorkspaceRepository(db)

    async def _check_category(self, workspace_id: int, category_id: Optional[int]) -> None:
        if category_id is None:
            return
        category = await self.category_repo.get(category_id)
        if (
            not category
            or category.workspace_id != workspace_id
            or category.kind != CategoryKind.CHECKLIST
            or category.is_archived
        ):
            raise CategoryNotFound(category_id)

    async def create_task(self, data: TaskCreate, user_id: Optional[str] = None) -> Task:
        if not await self.workspace_repo.get_by_id(data.workspace_id):
            raise WorkspaceNotFound(data.workspace_id)

        check_task_invariants(
            frequency=data.frequency,
            is_template=data.is_template,
            period_id=data.period_id,
        )

        if data.period_id is not None:
            period = await self.period_repo.get_by_id(data.period_id)
            if not period or period.is_archived:
                raise PeriodNotFound(data.period_id)
            if period.workspace_id != data.workspace_id:
                raise TaskInvariantViolation("Period does not belong to the workspace")

        if data.parent_task_id is not None:
            parent = await self.task_repo.get_by_id(data.parent_task_id)
            if not parent or parent.workspace_id != data.workspace_id:
                raise TaskNotFound(data.parent_task_id)
            if parent.is_archived or parent.is_template:
                raise TaskInvariantViolation("Subtasks need a live, non-template parent task")

        await self._check_category(data.workspace_id, data.category_id)

        payload = data.model_dump()
        payload.update(status=TaskStatus.PENDING, is_archived=False)
        if data.parent_task_id is not None:
            payload["is_subtask"] = True
        task = await self.task_repo.create(payload)

        await AuditService(self.db).log_task_action(
            user_id=user_id,
            action='create',
            task_id=task.id,
            workspace_id=task.workspace_id,
            details={'title': task.title, 'is_template': task.is_template},
        )
        return task

    async def get_task(self, task_id: int) -> Task:
        task = await self.task_repo.get_by_id(task_id)
        if not task:
            raise TaskNotFound(task_id)
        return task

    async def list_tasks(
        self,
        workspace_id: int,
        period_id: Optional[int] = None,
        parent_task_id: Optional[int] = None,
    ) -> List[Task]:
        return await self.task_repo.list_tasks(workspace_id, period_id=period_id, parent_task_id=parent_task_id)

    async def list_templates(self, workspace_id: int) -> List[Task]:
        return await self.task_repo.list_templates(workspace_id)

    async def update_task(self, task_id: int, data: TaskUpdate, user_id: Optional[str] = None) -> Task:
        """Apply only the fields present in the request"""
        task = await self.get_task(task_id)
        update_data = data.changes()

        for field in TaskUpdate.NON_NULLABLE:
            if field in update_data and update_data[field] is None:
                raise TaskInvariantViolation(f"'{field}' cannot be cleared")

        if not update_data:
            return task

        check_task_invariants(
            frequency=update_data.get('frequency', task.frequency),
            is_template=update_data.get('is_template', task.is_template),
            period_id=task.period_id,
        )
        if 'category_id' in update_data:
            await self._check_category(task.workspace_id, update_data['category_id'])

        updated = await self.task_repo.update(task, update_data)
        await AuditService(self.db).log_task_action(
            user_id=user_id,
            action='update',
            task_id=updated.id,
            workspace_id=updated.workspace_id,
            details={'fields': sorted(update_data)},
        )
        return updated

    async def update_assignees(self, task_id: int, data: TaskAssigneeUpdate, user_id: Optional[str] = None) -> Task:
        task = await self.get_task(task_id)
        update_data = data.changes()
        if not update_data:
            return task
        updated = await self.task_repo.update(task, update_data)
        await AuditService(self.db).log_task_action(
            user_id=user_id,
            action='assign',
            task_id=updated.id,
            workspace_id=updated.workspace_id,
            details=update_data,
        )
        return updated

    async def archive_task(self, task_id: int, user_id: Optional[str] = None) -> Task:
        task = await self.get_task(task_id)
        archived = await self.task_repo.archive(task)
        await AuditService(self.db).log_task_action(
            user_id=user_id,
            action='archive',
            task_id=archived.id,
            workspace_id=archived.workspace_id,
        )
        return archived
