from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional

from closeflow.models import Category, CategoryKind


class CategoryRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(
        self,
        workspace_id: int,
        kind: Optional[CategoryKind] = None,
        include_archived: bool = False,
    ) -> List[Category]:
        """List the categories of a workspace, optionally of one kind"""
        query = select(Category).where(Category.workspace_id == workspace_id)
        if kind is not None:
            query = query.where(Category.kind == kind)
        if not include_archived:
            query = query.where(Category.is_archived == False)
        query = query.order_by(Category.name)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get(self, category_id: int) -> Category | None:
        result = await self.db.execute(
            select(Category).where(Category.id == category_id)
        )
        return result.scalar_one_or_none()

    async def get_by_name(self, workspace_id: int, kind: CategoryKind, name: str) -> Category | None:
        result = await self.db.execute(
            select(Category).where(
                Category.workspace_id == workspace_id,
                Category.kind == kind,
                Category.name == name,
                Category.is_archived == False,
            )
        )
        return result.scalars().first()

    async def create(self, category: Category) -> Category:
        self.db.add(category)
        await self.db.commit()
        await self.db.refresh(category)
        return category

    async def update(self, category: Category) -> Category:
        await self.db.commit()
        await self.db.refresh(category)
        return category
