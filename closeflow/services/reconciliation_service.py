import logging
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from closeflow.core.exceptions import LineItemNotFound, WorkspaceNotFound
from closeflow.models.reconciliation import ReconciliationLineItem
from closeflow.repositories.reconciliation_repository import ReconciliationRepository
from closeflow.repositories.workspace_repository import WorkspaceRepository
from closeflow.schemas.reconciliation import (
    AccountTypeGroup,
    CategoryGroup,
    LineItemCreate,
    LineItemOut,
    LineItemUpdate,
    compute_variance,
)
from closeflow.services.audit_service import AuditService

logger = logging.getLogger(__name__)


def account_number_key(item: ReconciliationLineItem) -> tuple:
    """Numeric account numbers first, in numeric order, then the rest alphabetically"""
    number = item.account_number.strip()
    if number.isdigit():
        return (0, int(number), "", item.id)
    return (1, 0, number, item.id)


def _totals(items: List[ReconciliationLineItem]) -> dict:
    gl = sum((Decimal(str(i.gl_balance)) for i in items), Decimal("0"))
    rec = sum((Decimal(str(i.rec_balance)) for i in items), Decimal("0"))
    return {
        "gl_balance": float(gl),
        "rec_balance": float(rec),
        "variance": compute_variance(gl, rec),
    }


def group_line_items(items: List[ReconciliationLineItem]) -> List[AccountTypeGroup]:
    """
    Build the account type -> category -> line item tree with GL, reconciled
    and variance totals at every level. Account types and categories are
    sorted by name; line items by account number.
    """
    tree: dict[str, dict[str, list]] = {}
    for item in items:
        tree.setdefault(item.account_type, {}).setdefault(item.category, []).append(item)

    groups = []
    for account_type in sorted(tree):
        categories = []
        for category in sorted(tree[account_type]):
            members = sorted(tree[account_type][category], key=account_number_key)
            categories.append(CategoryGroup(
                name=category,
                items=[LineItemOut.model_validate(i) for i in members],
                **_totals(members),
            ))
        every_item = [i for members in tree[account_type].values() for i in members]
        groups.append(AccountTypeGroup(name=account_type, categories=categories, **_totals(every_item)))
    return groups


class ReconciliationService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = ReconciliationRepository(db)
        self.workspace_repo = WorkspaceRepository(db)

    async def create_line_item(self, data: LineItemCreate, user_id: Optional[str] = None) -> ReconciliationLineItem:
        if not await self.workspace_repo.get_by_id(data.workspace_id):
            raise WorkspaceNotFound(data.workspace_id)

        item = await self.repo.create({**data.model_dump(), "is_archived": False})
        await AuditService(self.db).log_action(
            user_id=user_id,
            action='create',
            entity='reconciliation',
            entity_id=str(item.id),
            workspace_id=item.workspace_id,
            details={'account_number': item.account_number, 'name': item.name},
        )
        return item

    async def get_line_item(self, line_item_id: int) -> ReconciliationLineItem:
        item = await self.repo.get_by_id(line_item_id)
        if not item:
            raise LineItemNotFound(line_item_id)
        return item

    async def list_line_items(
        self,
        workspace_id: int,
        account_type: Optional[str] = None,
        category: Optional[str] = None,
    ) -> List[ReconciliationLineItem]:
        items = await self.repo.list(workspace_id, account_type=account_type, category=category)
        return sorted(items, key=account_number_key)

    async def get_grouped_line_items(self, workspace_id: int) -> List[AccountTypeGroup]:
        return group_line_items(await self.repo.list(workspace_id))

    async def update_line_item(
        self,
        line_item_id: int,
        data: LineItemUpdate,
        user_id: Optional[str] = None,
    ) -> ReconciliationLineItem:
        item = await self.get_line_item(line_item_id)
        if item.is_archived:
            raise LineItemNotFound(line_item_id)
        changes = data.changes()
        item = await self.repo.update(item, changes)

        await AuditService(self.db).log_action(
            user_id=user_id,
            action='update',
            entity='reconciliation',
            entity_id=str(item.id),
            workspace_id=item.workspace_id,
            details={'fields': sorted(changes)},
        )
        return item

    async def archive_line_item(self, line_item_id: int, user_id: Optional[str] = None) -> ReconciliationLineItem:
        """Soft delete: archived items drop out of lists and groupings"""
        item = await self.get_line_item(line_item_id)
        if item.is_archived:
            return item
        item = await self.repo.update(item, {"is_archived": True})

        await AuditService(self.db).log_action(
            user_id=user_id,
            action='archive',
            entity='reconciliation',
            entity_id=str(item.id),
            workspace_id=item.workspace_id,
        )
        logger.info("Archived reconciliation line item %s in workspace %s", item.id, item.workspace_id)
        return item
