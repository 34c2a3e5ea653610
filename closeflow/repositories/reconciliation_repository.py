from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import and_, select

from closeflow.models.reconciliation import ReconciliationLineItem


class ReconciliationRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: dict) -> ReconciliationLineItem:
        item = ReconciliationLineItem(**data)
        self.db.add(item)
        await self.db.commit()
        await self.db.refresh(item)
        return item

    async def get_by_id(self, line_item_id: int) -> Optional[ReconciliationLineItem]:
        res = await self.db.execute(
            select(ReconciliationLineItem).where(ReconciliationLineItem.id == line_item_id)
        )
        return res.scalar_one_or_none()

    async def list(
        self,
        workspace_id: int,
        account_type: Optional[str] = None,
        category: Optional[str] = None,
    ) -> List[ReconciliationLineItem]:
        """Non-archived line items of a workspace"""
        conditions = [
            ReconciliationLineItem.workspace_id == workspace_id,
            ReconciliationLineItem.is_archived == False,
        ]
        if account_type is not None:
            conditions.append(ReconciliationLineItem.account_type == account_type)
        if category is not None:
            conditions.append(ReconciliationLineItem.category == category)
        res = await self.db.execute(
            select(ReconciliationLineItem)
            .where(and_(*conditions))
            .order_by(ReconciliationLineItem.account_number, ReconciliationLineItem.id)
        )
        return list(res.scalars().all())

    async def update(self, item: ReconciliationLineItem, data: dict) -> ReconciliationLineItem:
        for field, value in data.items():
            setattr(item, field, value)
        await self.db.commit()
        await self.db.refresh(item)
        return item
