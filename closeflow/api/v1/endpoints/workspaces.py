from fastapi import APIRouter, HTTPException, Query
from typing import List

from closeflow.core.deps import DBSessionDep, CurrentUserDep, require_workspace_admin, require_workspace_member
from closeflow.core.exceptions import CloseflowError
from closeflow.services.workspace_service import WorkspaceService
from closeflow.schemas.workspace import MemberInvite, MemberOut, MemberUpdate, WorkspaceCreate, WorkspaceOut

router = APIRouter()


@router.post("/", response_model=WorkspaceOut)
async def create_workspace(data: WorkspaceCreate, db: DBSessionDep, user: CurrentUserDep):
    """Create a workspace; the caller becomes its admin"""
    return await WorkspaceService(db).create_workspace(data, user)


@router.get("/", response_model=List[WorkspaceOut])
async def list_my_workspaces(db: DBSessionDep, user: CurrentUserDep):
    """Workspaces the caller is an active member of"""
    return await WorkspaceService(db).list_for_user(user.user_id)


@router.get("/{workspace_id}", response_model=WorkspaceOut)
async def get_workspace(workspace_id: int, db: DBSessionDep, user: CurrentUserDep):
    return await require_workspace_member(db, workspace_id, user)


@router.get("/{workspace_id}/members", response_model=List[MemberOut])
async def list_members(
    workspace_id: int,
    db: DBSessionDep,
    user: CurrentUserDep,
    include_inactive: bool = Query(False),
):
    """Active and pending members of a workspace"""
    await require_workspace_member(db, workspace_id, user)
    return await WorkspaceService(db).list_members(workspace_id, include_inactive=include_inactive)


@router.post("/{workspace_id}/members", response_model=MemberOut)
async def invite_member(workspace_id: int, data: MemberInvite, db: DBSessionDep, user: CurrentUserDep):
    """Invite someone by email (admin only); they join once they accept"""
    await require_workspace_admin(db, workspace_id, user)
    try:
        return await WorkspaceService(db).invite_member(workspace_id, data, user)
    except CloseflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{workspace_id}/members/accept", response_model=MemberOut)
async def accept_invitation(workspace_id: int, db: DBSessionDep, user: CurrentUserDep):
    """Accept the pending invitation sent to the caller's email"""
    try:
        return await WorkspaceService(db).accept_invitation(workspace_id, user)
    except CloseflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{workspace_id}/members/{member_id}", response_model=MemberOut)
async def update_member(
    workspace_id: int,
    member_id: int,
    data: MemberUpdate,
    db: DBSessionDep,
    user: CurrentUserDep,
):
    await require_workspace_admin(db, workspace_id, user)
    try:
        return await WorkspaceService(db).update_member(workspace_id, member_id, data, user.user_id)
    except CloseflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{workspace_id}/members/{member_id}/deactivate", response_model=MemberOut)
async def deactivate_member(workspace_id: int, member_id: int, db: DBSessionDep, user: CurrentUserDep):
    """Deactivate a membership; the user loses access to the workspace"""
    await require_workspace_admin(db, workspace_id, user)
    try:
        return await WorkspaceService(db).deactivate_member(workspace_id, member_id, user.user_id)
    except CloseflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
