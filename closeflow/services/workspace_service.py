from __future__ import annotations
import logging
from typing import List
from uuid import uuid4
from sqlalchemy.ext.asyncio import AsyncSession

from closeflow.core.exceptions import (
    InvitationNotFound,
    LastAdminRequired,
    MemberAlreadyExists,
    MemberError,
    MemberNotFound,
    WorkspaceAccessDenied,
    WorkspaceAdminRequired,
    WorkspaceNotFound,
)
from closeflow.core.security import Identity
from closeflow.models.workspace import Workspace, WorkspaceMember, MemberRole, MemberStatus
from closeflow.repositories.workspace_repository import WorkspaceRepository
from closeflow.schemas.workspace import MemberInvite, MemberUpdate, WorkspaceCreate
from closeflow.services.audit_service import AuditService

logger = logging.getLogger(__name__)


def _display_name(identity: Identity) -> str:
    return identity.name or (identity.email.split("@")[0] if identity.email else "Anonymous")


class WorkspaceService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.workspace_repo = WorkspaceRepository(db)

    async def create_workspace(self, data: WorkspaceCreate, identity: Identity) -> Workspace:
        """Create a workspace; the creator becomes its active admin"""
        workspace = Workspace(**data.model_dump(), owner_id=identity.user_id)
        owner = WorkspaceMember(
            user_id=identity.user_id,
            email=identity.email or "",
            name=_display_name(identity),
            role=MemberRole.ADMIN,
            status=MemberStatus.ACTIVE,
            invited_by=identity.user_id,
        )
        return await self.workspace_repo.create(workspace, owner)

    async def list_for_user(self, user_id: str) -> List[Workspace]:
        return await self.workspace_repo.list_for_user(user_id)

    async def get_workspace(self, workspace_id: int) -> Workspace:
        workspace = await self.workspace_repo.get_by_id(workspace_id)
        if not workspace:
            raise WorkspaceNotFound(workspace_id)
        return workspace

    async def ensure_member(self, workspace_id: int, user_id: str) -> Workspace:
        """Return the workspace if the user is an active member of it"""
        workspace = await self.get_workspace(workspace_id)
        member = await self.workspace_repo.get_member(workspace_id, user_id)
        if not member or member.status != MemberStatus.ACTIVE:
            raise WorkspaceAccessDenied(workspace_id, user_id)
        return workspace

    async def ensure_admin(self, workspace_id: int, user_id: str) -> WorkspaceMember:
        """Return the caller's membership if they are an active admin"""
        await self.ensure_member(workspace_id, user_id)
        member = await self.workspace_repo.get_member(workspace_id, user_id)
        if member.role != MemberRole.ADMIN:
            raise WorkspaceAdminRequired(workspace_id, user_id)
        return member

    async def list_members(self, workspace_id: int, include_inactive: bool = False) -> List[WorkspaceMember]:
        await self.get_workspace(workspace_id)
        return await self.workspace_repo.list_members(workspace_id, include_inactive=include_inactive)

    async def invite_member(self, workspace_id: int, data: MemberInvite, inviter: Identity) -> WorkspaceMember:
        """
        Record a PENDING membership for an email address. The invitee becomes
        an ACTIVE member once they accept while signed in with that email.
        """
        await self.get_workspace(workspace_id)
        existing = await self.workspace_repo.find_member_by_email(
            workspace_id, data.email, (MemberStatus.ACTIVE, MemberStatus.PENDING)
        )
        if existing:
            raise MemberAlreadyExists(workspace_id, data.email)

        member = await self.workspace_repo.add_member(WorkspaceMember(
            workspace_id=workspace_id,
            # Replaced by the real subject on acceptance
            user_id=f"pending_{uuid4().hex}",
            email=data.email,
            name=data.name or data.email.split("@")[0],
            role=data.role,
            status=MemberStatus.PENDING,
            invited_by=inviter.user_id,
        ))
        await AuditService(self.db).log_action(
            user_id=inviter.user_id,
            action='invite',
            entity='member',
            entity_id=str(member.id),
            workspace_id=workspace_id,
            details={'email': member.email, 'role': member.role.value},
        )
        return member

    async def accept_invitation(self, workspace_id: int, identity: Identity) -> WorkspaceMember:
        """Activate the pending invitation addressed to the caller's email"""
        await self.get_workspace(workspace_id)
        invite = None
        if identity.email:
            invite = await self.workspace_repo.find_member_by_email(
                workspace_id, identity.email, (MemberStatus.PENDING,)
            )
        if not invite:
            raise InvitationNotFound(workspace_id, identity.email)

        # A former member keeps their original row; the invitation is retired
        member = await self.workspace_repo.get_member(workspace_id, identity.user_id)
        if member is None:
            member = invite
        else:
            invite.status = MemberStatus.INACTIVE
            member.role = invite.role
        member.user_id = identity.user_id
        member.email = identity.email
        member.name = identity.name or invite.name
        member.status = MemberStatus.ACTIVE
        member = await self.workspace_repo.update_member(member)

        await AuditService(self.db).log_action(
            user_id=identity.user_id,
            action='accept',
            entity='member',
            entity_id=str(member.id),
            workspace_id=workspace_id,
        )
        return member

    async def _get_workspace_member(self, workspace_id: int, member_id: int) -> WorkspaceMember:
        member = await self.workspace_repo.get_member_by_id(member_id)
        if not member or member.workspace_id != workspace_id:
            raise MemberNotFound(member_id)
        return member

    async def update_member(
        self,
        workspace_id: int,
        member_id: int,
        data: MemberUpdate,
        user_id: str,
    ) -> WorkspaceMember:
        """Change role and/or status; the last active admin cannot be demoted or deactivated"""
        member = await self._get_workspace_member(workspace_id, member_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        new_role = changes.get('role', member.role)
        new_status = changes.get('status', member.status)

        if member.status == MemberStatus.PENDING and new_status == MemberStatus.ACTIVE:
            raise MemberError("Pending invitations become active when they are accepted")

        was_active_admin = member.role == MemberRole.ADMIN and member.status == MemberStatus.ACTIVE
        stays_active_admin = new_role == MemberRole.ADMIN and new_status == MemberStatus.ACTIVE
        if was_active_admin and not stays_active_admin:
            if await self.workspace_repo.count_active_admins(workspace_id) <= 1:
                raise LastAdminRequired(workspace_id)

        member.role = new_role
        member.status = new_status
        member = await self.workspace_repo.update_member(member)

        await AuditService(self.db).log_action(
            user_id=user_id,
            action='update',
            entity='member',
            entity_id=str(member.id),
            workspace_id=workspace_id,
            details={field: value.value for field, value in changes.items()},
        )
        logger.info("Member %s of workspace %s is now %s/%s", member.id, workspace_id, new_role.value, new_status.value)
        return member

    async def deactivate_member(self, workspace_id: int, member_id: int, user_id: str) -> WorkspaceMember:
        return await self.update_member(
            workspace_id, member_id, MemberUpdate(status=MemberStatus.INACTIVE), user_id
        )
