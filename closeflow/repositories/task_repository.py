from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import and_, select, func
from datetime import datetime

from closeflow.models.task import Task, TaskStatus, RECURRING_FREQUENCIES


class TaskRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: dict) -> Task:
        """Insert a single task and commit it on its own"""
        task = Task(**data)
        self.db.add(task)
        await self.db.commit()
        await self.db.refresh(task)
        return task

    async def get_by_id(self, task_id: int) -> Optional[Task]:
        res = await self.db.execute(select(Task).where(Task.id == task_id))
        return res.scalar_one_or_none()

    async def list_templates(self, workspace_id: int) -> List[Task]:
        """Non-archived recurring templates of a workspace"""
        res = await self.db.execute(
            select(Task)
            .where(
                and_(
                    Task.workspace_id == workspace_id,
                    Task.is_archived == False,
                    Task.is_template == True,
                    Task.frequency.in_(RECURRING_FREQUENCIES),
                )
            )
            .order_by(Task.id)
        )
        return list(res.scalars().all())

    async def list_tasks(
        self,
        workspace_id: int,
        period_id: Optional[int] = None,
        parent_task_id: Optional[int] = None,
    ) -> List[Task]:
        """Concrete (non-template, non-archived) tasks; top-level ones when no parent is given"""
        conditions = [
            Task.workspace_id == workspace_id,
            Task.is_archived == False,
            Task.is_template == False,
        ]
        if period_id is not None:
            conditions.append(Task.period_id == period_id)
        if parent_task_id is not None:
            conditions.append(Task.parent_task_id == parent_task_id)
        else:
            conditions.append(Task.parent_task_id.is_(None))

        res = await self.db.execute(
            select(Task).where(and_(*conditions)).order_by(Task.created_at.desc(), Task.id.desc())
        )
        return list(res.scalars().all())

    async def count_by_status(self, period_id: int) -> dict[TaskStatus, int]:
        """Non-archived task counts of a period grouped by status"""
        res = await self.db.execute(
            select(Task.status, func.count(Task.id))
            .where(
                and_(
                    Task.period_id == period_id,
                    Task.is_archived == False,
                    Task.is_template == False,
                )
            )
            .group_by(Task.status)
        )
        return {status: count for status, count in res.all()}

    async def update(self, task: Task, update_data: dict) -> Task:
        for field, value in update_data.items():
            setattr(task, field, value)
        task.updated_at = datetime.utcnow()
        await self.db.commit()
        await self.db.refresh(task)
        return task

    async def archive(self, task: Task) -> Task:
        task.is_archived = True
        task.updated_at = datetime.utcnow()
        await self.db.commit()
        await self.db.refresh(task)
        return task
