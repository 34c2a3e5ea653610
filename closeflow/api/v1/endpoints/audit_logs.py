from fastapi import APIRouter, Query
from typing import Optional

from closeflow.core.deps import DBSessionDep, CurrentUserDep, require_workspace_member
from closeflow.repositories.audit_repository import AuditRepository
from closeflow.schemas.audit_log import AuditLogOut


router = APIRouter()


@router.get("/workspace/{workspace_id}", response_model=list[AuditLogOut])
async def list_audit_logs(
    workspace_id: int,
    db: DBSessionDep,
    user: CurrentUserDep,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    entity: Optional[str] = Query(None),
    entity_id: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
):
    """
    List the audit trail of a workspace
    Supports filtering by entity and action
    """
    await require_workspace_member(db, workspace_id, user)
    return await AuditRepository(db).list(
        workspace_id,
        limit=limit,
        offset=offset,
        entity=entity,
        entity_id=entity_id,
        action=action,
    )
