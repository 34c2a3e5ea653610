from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from typing import List, Optional
from datetime import datetime

from closeflow.models.period import Period, PeriodStatus


class PeriodRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, period: Period) -> Period:
        """Insert a period; the (workspace_id, month_id) constraint rejects duplicates"""
        self.db.add(period)
        await self.db.commit()
        await self.db.refresh(period)
        return period

    async def get_by_id(self, period_id: int) -> Optional[Period]:
        result = await self.db.execute(
            select(Period).where(Period.id == period_id)
        )
        return result.scalar_one_or_none()

    async def get_by_month_id(self, workspace_id: int, month_id: str) -> Optional[Period]:
        """Lookup by the (workspace_id, month_id) identity, archived or not"""
        result = await self.db.execute(
            select(Period)
            .where(
                and_(
                    Period.workspace_id == workspace_id,
                    Period.month_id == month_id,
                )
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_by_workspace(self, workspace_id: int, status: PeriodStatus | None = None) -> List[Period]:
        """Non-archived periods of a workspace, newest month first"""
        query = select(Period).where(
            and_(
                Period.workspace_id == workspace_id,
                Period.is_archived == False,
            )
        )
        if status is not None:
            query = query.where(Period.status == status)
        query = query.order_by(Period.year.desc(), Period.month.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def set_status(self, period: Period, status: PeriodStatus) -> Period:
        period.status = status
        period.updated_at = datetime.utcnow()
        await self.db.commit()
        await self.db.refresh(period)
        return period
