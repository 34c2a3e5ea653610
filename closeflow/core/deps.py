from typing import Annotated
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from closeflow.db.session import get_db
from closeflow.core.security import Identity, decode_token
from closeflow.core.exceptions import CloseflowError
from closeflow.models.workspace import Workspace
from closeflow.services.workspace_service import WorkspaceService


# Tokens are issued by the hosted identity provider; this service only verifies them
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=False)


DBSessionDep = Annotated[AsyncSession, Depends(get_db)]


async def get_current_user(token: Annotated[str | None, Depends(oauth2_scheme)]) -> Identity:
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    payload = decode_token(token)
    if not payload or not payload.get("sub"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return Identity(
        user_id=str(payload["sub"]),
        email=payload.get("email"),
        name=payload.get("name"),
    )


CurrentUserDep = Annotated[Identity, Depends(get_current_user)]


async def require_workspace_member(db: AsyncSession, workspace_id: int, user: Identity) -> Workspace:
    """Scope a request to a workspace the caller is an active member of"""
    try:
        return await WorkspaceService(db).ensure_member(workspace_id, user.user_id)
    except CloseflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


async def require_workspace_admin(db: AsyncSession, workspace_id: int, user: Identity) -> Workspace:
    """Like require_workspace_member, but the caller must also be an admin"""
    service = WorkspaceService(db)
    try:
        await service.ensure_admin(workspace_id, user.user_id)
        return await service.get_workspace(workspace_id)
    except CloseflowError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
