# Import all models to ensure they are registered with SQLAlchemy
# Tables referenced by foreign keys are imported first
from closeflow.models.workspace import Workspace, WorkspaceMember, MemberRole, MemberStatus
from closeflow.models.category import Category, CategoryKind
from closeflow.models.period import Period, PeriodStatus
from closeflow.models.task import Task, TaskFrequency, TaskStatus, RECURRING_FREQUENCIES
from closeflow.models.reconciliation import ReconciliationLineItem, LineItemStatus, LineItemSource
from closeflow.models.audit_log import AuditLog

__all__ = [
    "Workspace",
    "WorkspaceMember",
    "MemberRole",
    "MemberStatus",
    "Category",
    "CategoryKind",
    "Period",
    "PeriodStatus",
    "Task",
    "TaskFrequency",
    "TaskStatus",
    "RECURRING_FREQUENCIES",
    "ReconciliationLineItem",
    "LineItemStatus",
    "LineItemSource",
    "AuditLog",
]
