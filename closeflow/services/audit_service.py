import json
from typing import Any, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from closeflow.models.audit_log import AuditLog
from closeflow.repositories.audit_repository import AuditRepository


class AuditService:
    """Service for logging audit events"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = AuditRepository(db)

    async def log_action(
        self,
        user_id: Optional[str],
        action: str,
        entity: str,
        entity_id: str,
        workspace_id: Optional[int] = None,
        details: Optional[dict[str, Any]] = None
    ) -> AuditLog:
        """
        Log an audit action

        Args:
            user_id: Identity subject of the acting user (None for system actions)
            action: Action type (e.g., 'open', 'close', 'create', 'update', 'archive')
            entity: Entity type (e.g., 'period', 'task', 'category')
            entity_id: ID of the entity being acted upon
            workspace_id: Workspace the entity belongs to
            details: Optional dictionary with additional details about the action
        """
        details_str = json.dumps(details, ensure_ascii=False, default=str) if details else None

        log = AuditLog(
            workspace_id=workspace_id,
            user_id=user_id,
            action=action,
            entity=entity,
            entity_id=str(entity_id),
            details=details_str
        )

        return await self.repository.create(log)

    async def log_period_action(
        self,
        user_id: Optional[str],
        action: str,
        period_id: int,
        workspace_id: int,
        details: Optional[dict[str, Any]] = None
    ) -> AuditLog:
        """Log a period-related action"""
        return await self.log_action(
            user_id=user_id,
            action=action,
            entity='period',
            entity_id=str(period_id),
            workspace_id=workspace_id,
            details=details
        )

    async def log_task_action(
        self,
        user_id: Optional[str],
        action: str,
        task_id: int,
        workspace_id: int,
        details: Optional[dict[str, Any]] = None
    ) -> AuditLog:
        """Log a task-related action"""
        return await self.log_action(
            user_id=user_id,
            action=action,
            entity='task',
            entity_id=str(task_id),
            workspace_id=workspace_id,
            details=details
        )
