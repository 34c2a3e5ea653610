from fastapi import APIRouter, HTTPException, Query
from typing import List, Optional

from closeflow.core.deps import DBSessionDep, CurrentUserDep, require_workspace_member
from closeflow.core.exceptions import CloseflowError
from closeflow.services.task_service import TaskService
from closeflow.schemas.task import TaskCreate, TaskUpdate, TaskAssigneeUpdate, TaskOut

router = APIRouter()


async def _load_scoped_task(db, task_id: int, user):
    try:
        task = await TaskService(db).get_task(task_id)
    except CloseflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    await require_workspace_member(db, task.workspace_id, user)
    return task


@router.post("/", response_model=TaskOut)
async def create_task(data: TaskCreate, db: DBSessionDep, user: CurrentUserDep):
    """Create a task or a recurring template"""
    await require_workspace_member(db, data.workspace_id, user)
    try:
        return await TaskService(db).create_task(data, user_id=user.user_id)
    except CloseflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/workspace/{workspace_id}", response_model=List[TaskOut])
async def list_tasks(
    workspace_id: int,
    db: DBSessionDep,
    user: CurrentUserDep,
    period_id: Optional[int] = Query(None),
    parent_task_id: Optional[int] = Query(None, description="List subtasks of this task"),
):
    await require_workspace_member(db, workspace_id, user)
    return await TaskService(db).list_tasks(workspace_id, period_id=period_id, parent_task_id=parent_task_id)


@router.get("/workspace/{workspace_id}/templates", response_model=List[TaskOut])
async def list_templates(workspace_id: int, db: DBSessionDep, user: CurrentUserDep):
    await require_workspace_member(db, workspace_id, user)
    return await TaskService(db).list_templates(workspace_id)


@router.get("/{task_id}", response_model=TaskOut)
async def get_task(task_id: int, db: DBSessionDep, user: CurrentUserDep):
    return await _load_scoped_task(db, task_id, user)


@router.patch("/{task_id}", response_model=TaskOut)
async def update_task(task_id: int, data: TaskUpdate, db: DBSessionDep, user: CurrentUserDep):
    """Partial update - only the fields sent are changed"""
    await _load_scoped_task(db, task_id, user)
    try:
        return await TaskService(db).update_task(task_id, data, user_id=user.user_id)
    except CloseflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{task_id}/assignees", response_model=TaskOut)
async def update_task_assignees(task_id: int, data: TaskAssigneeUpdate, db: DBSessionDep, user: CurrentUserDep):
    await _load_scoped_task(db, task_id, user)
    return await TaskService(db).update_assignees(task_id, data, user_id=user.user_id)


@router.post("/{task_id}/archive", response_model=TaskOut)
async def archive_task(task_id: int, db: DBSessionDep, user: CurrentUserDep):
    await _load_scoped_task(db, task_id, user)
    return await TaskService(db).archive_task(task_id, user_id=user.user_id)
