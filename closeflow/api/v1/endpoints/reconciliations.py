from fastapi import APIRouter, HTTPException, Query
from typing import List, Optional

from closeflow.core.deps import DBSessionDep, CurrentUserDep, require_workspace_member
from closeflow.core.exceptions import CloseflowError
from closeflow.services.reconciliation_service import ReconciliationService
from closeflow.schemas.reconciliation import AccountTypeGroup, LineItemCreate, LineItemOut, LineItemUpdate

router = APIRouter()


async def _load_scoped_line_item(db, line_item_id: int, user):
    try:
        item = await ReconciliationService(db).get_line_item(line_item_id)
    except CloseflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    await require_workspace_member(db, item.workspace_id, user)
    return item


@router.post("/", response_model=LineItemOut)
async def create_line_item(data: LineItemCreate, db: DBSessionDep, user: CurrentUserDep):
    await require_workspace_member(db, data.workspace_id, user)
    try:
        return await ReconciliationService(db).create_line_item(data, user_id=user.user_id)
    except CloseflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/workspace/{workspace_id}", response_model=List[LineItemOut])
async def list_line_items(
    workspace_id: int,
    db: DBSessionDep,
    user: CurrentUserDep,
    account_type: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
):
    """Live line items ordered by account number"""
    await require_workspace_member(db, workspace_id, user)
    return await ReconciliationService(db).list_line_items(workspace_id, account_type=account_type, category=category)


@router.get("/workspace/{workspace_id}/grouped", response_model=List[AccountTypeGroup])
async def get_grouped_line_items(workspace_id: int, db: DBSessionDep, user: CurrentUserDep):
    """Line items grouped by account type and category, with balance totals"""
    await require_workspace_member(db, workspace_id, user)
    return await ReconciliationService(db).get_grouped_line_items(workspace_id)


@router.get("/{line_item_id}", response_model=LineItemOut)
async def get_line_item(line_item_id: int, db: DBSessionDep, user: CurrentUserDep):
    return await _load_scoped_line_item(db, line_item_id, user)


@router.patch("/{line_item_id}", response_model=LineItemOut)
async def update_line_item(line_item_id: int, data: LineItemUpdate, db: DBSessionDep, user: CurrentUserDep):
    await _load_scoped_line_item(db, line_item_id, user)
    try:
        return await ReconciliationService(db).update_line_item(line_item_id, data, user_id=user.user_id)
    except CloseflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{line_item_id}/archive", response_model=LineItemOut)
async def archive_line_item(line_item_id: int, db: DBSessionDep, user: CurrentUserDep):
    await _load_scoped_line_item(db, line_item_id, user)
    return await ReconciliationService(db).archive_line_item(line_item_id, user_id=user.user_id)
