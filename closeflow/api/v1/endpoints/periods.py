from fastapi import APIRouter, HTTPException, Query
from typing import List, Optional

from closeflow.core.deps import DBSessionDep, CurrentUserDep, require_workspace_member
from closeflow.core.exceptions import CloseflowError, PeriodNotFound
from closeflow.models.period import PeriodStatus
from closeflow.repositories.period_repository import PeriodRepository
from closeflow.services.period_service import PeriodService
from closeflow.schemas.period import (
    NextPeriodOut,
    PeriodClosed,
    PeriodOpen,
    PeriodOut,
    PeriodSummary,
    RolloverResult,
)

router = APIRouter()


async def _load_scoped_period(db, period_id: int, user):
    """Fetch a period and check the caller belongs to its workspace"""
    period = await PeriodRepository(db).get_by_id(period_id)
    if not period or period.is_archived:
        raise HTTPException(status_code=404, detail=PeriodNotFound(period_id).message)
    await require_workspace_member(db, period.workspace_id, user)
    return period


@router.post("/", response_model=RolloverResult)
async def open_period(data: PeriodOpen, db: DBSessionDep, user: CurrentUserDep):
    """Open a period and clone the eligible recurring templates into it"""
    await require_workspace_member(db, data.workspace_id, user)
    try:
        return await PeriodService(db).open_period(
            data.workspace_id, data.year, data.month, user_id=user.user_id
        )
    except CloseflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{period_id}/close", response_model=PeriodClosed)
async def close_period(period_id: int, db: DBSessionDep, user: CurrentUserDep):
    await _load_scoped_period(db, period_id, user)
    try:
        closed_id = await PeriodService(db).close_period(period_id, user_id=user.user_id)
    except CloseflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return PeriodClosed(period_id=closed_id)


@router.post("/{period_id}/reopen", response_model=PeriodOut)
async def reopen_period(period_id: int, db: DBSessionDep, user: CurrentUserDep):
    await _load_scoped_period(db, period_id, user)
    try:
        return await PeriodService(db).reopen_period(period_id, user_id=user.user_id)
    except CloseflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/workspace/{workspace_id}", response_model=List[PeriodOut])
async def list_periods(
    workspace_id: int,
    db: DBSessionDep,
    user: CurrentUserDep,
    status: Optional[PeriodStatus] = Query(None, description="Only periods with this status"),
):
    await require_workspace_member(db, workspace_id, user)
    service = PeriodService(db)
    if status == PeriodStatus.OPEN:
        return await service.list_active_periods(workspace_id)
    periods = await service.list_periods(workspace_id)
    if status is not None:
        periods = [p for p in periods if p.status == status]
    return periods


@router.get("/workspace/{workspace_id}/current", response_model=PeriodOut)
async def get_current_period(workspace_id: int, db: DBSessionDep, user: CurrentUserDep):
    await require_workspace_member(db, workspace_id, user)
    period = await PeriodService(db).get_current_period(workspace_id)
    if not period:
        raise HTTPException(status_code=404, detail="No open period")
    return period


@router.get("/workspace/{workspace_id}/next", response_model=NextPeriodOut)
async def get_next_period(workspace_id: int, db: DBSessionDep, user: CurrentUserDep):
    await require_workspace_member(db, workspace_id, user)
    try:
        return await PeriodService(db).get_next_period(workspace_id)
    except CloseflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/workspace/{workspace_id}/month/{month_id}", response_model=PeriodOut)
async def get_period_by_month(workspace_id: int, month_id: str, db: DBSessionDep, user: CurrentUserDep):
    await require_workspace_member(db, workspace_id, user)
    period = await PeriodService(db).get_period_by_month_id(workspace_id, month_id)
    if not period or period.is_archived:
        raise HTTPException(status_code=404, detail=f"Period {month_id} not found")
    return period


@router.get("/{period_id}", response_model=PeriodSummary)
async def get_period_summary(period_id: int, db: DBSessionDep, user: CurrentUserDep):
    """Period with its task completion figures"""
    await _load_scoped_period(db, period_id, user)
    return await PeriodService(db).get_period_summary(period_id)
