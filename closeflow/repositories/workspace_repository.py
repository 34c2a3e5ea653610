from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, func

from closeflow.models.workspace import Workspace, WorkspaceMember, MemberRole, MemberStatus


class WorkspaceRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, workspace: Workspace, owner: WorkspaceMember) -> Workspace:
        """Create a workspace together with its owner's membership"""
        self.db.add(workspace)
        await self.db.flush()
        owner.workspace_id = workspace.id
        self.db.add(owner)
        await self.db.commit()
        await self.db.refresh(workspace)
        return workspace

    async def get_by_id(self, workspace_id: int) -> Optional[Workspace]:
        res = await self.db.execute(select(Workspace).where(Workspace.id == workspace_id))
        return res.scalar_one_or_none()

    async def list_for_user(self, user_id: str) -> List[Workspace]:
        """Workspaces the user is an active member of"""
        res = await self.db.execute(
            select(Workspace)
            .join(WorkspaceMember, WorkspaceMember.workspace_id == Workspace.id)
            .where(
                and_(
                    WorkspaceMember.user_id == user_id,
                    WorkspaceMember.status == MemberStatus.ACTIVE,
                )
            )
            .order_by(Workspace.created_at.desc())
        )
        return list(res.scalars().unique().all())

    async def get_member(self, workspace_id: int, user_id: str) -> Optional[WorkspaceMember]:
        res = await self.db.execute(
            select(WorkspaceMember).where(
                and_(
                    WorkspaceMember.workspace_id == workspace_id,
                    WorkspaceMember.user_id == user_id,
                )
            ).limit(1)
        )
        return res.scalar_one_or_none()

    async def get_member_by_id(self, member_id: int) -> Optional[WorkspaceMember]:
        res = await self.db.execute(select(WorkspaceMember).where(WorkspaceMember.id == member_id))
        return res.scalar_one_or_none()

    async def list_members(self, workspace_id: int, include_inactive: bool = False) -> List[WorkspaceMember]:
        """Members of a workspace, active and pending unless asked for all"""
        query = select(WorkspaceMember).where(WorkspaceMember.workspace_id == workspace_id)
        if not include_inactive:
            query = query.where(WorkspaceMember.status.in_([MemberStatus.ACTIVE, MemberStatus.PENDING]))
        res = await self.db.execute(query.order_by(WorkspaceMember.created_at, WorkspaceMember.id))
        return list(res.scalars().all())

    async def find_member_by_email(
        self,
        workspace_id: int,
        email: str,
        statuses: tuple[MemberStatus, ...],
    ) -> Optional[WorkspaceMember]:
        res = await self.db.execute(
            select(WorkspaceMember).where(
                and_(
                    WorkspaceMember.workspace_id == workspace_id,
                    func.lower(WorkspaceMember.email) == email.lower(),
                    WorkspaceMember.status.in_(statuses),
                )
            ).order_by(WorkspaceMember.updated_at.desc()).limit(1)
        )
        return res.scalar_one_or_none()

    async def count_active_admins(self, workspace_id: int) -> int:
        res = await self.db.execute(
            select(func.count(WorkspaceMember.id)).where(
                and_(
                    WorkspaceMember.workspace_id == workspace_id,
                    WorkspaceMember.role == MemberRole.ADMIN,
                    WorkspaceMember.status == MemberStatus.ACTIVE,
                )
            )
        )
        return res.scalar_one()

    async def list_memberships_for_user(self, user_id: str) -> List[WorkspaceMember]:
        res = await self.db.execute(select(WorkspaceMember).where(WorkspaceMember.user_id == user_id))
        return list(res.scalars().all())

    async def add_member(self, member: WorkspaceMember) -> WorkspaceMember:
        self.db.add(member)
        await self.db.commit()
        await self.db.refresh(member)
        return member

    async def update_member(self, member: WorkspaceMember) -> WorkspaceMember:
        await self.db.commit()
        await self.db.refresh(member)
        return member
