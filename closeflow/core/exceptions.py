"""
Typed errors raised by the closeflow services.

Every error carries a machine-readable ``code`` and the HTTP status the API
layer answers with, so endpoints and the global handler in ``main.py`` can
translate them without parsing messages.

    CloseflowError
    +-- WorkspaceNotFound          404
    +-- WorkspaceAccessDenied      403
    +-- CategoryNotFound           404
    +-- MemberError
    |   +-- WorkspaceAdminRequired 403
    |   +-- MemberNotFound         404
    |   +-- MemberAlreadyExists    409
    |   +-- InvitationNotFound     404
    |   +-- LastAdminRequired      409
    +-- LineItemNotFound           404
    +-- PeriodError
    |   +-- InvalidPeriod          422
    |   +-- DuplicatePeriod        409
    |   +-- PeriodNotFound         404
    |   +-- PeriodReopenNotAllowed 409
    +-- TaskError
        +-- TaskNotFound           404
        +-- TaskInvariantViolation 400
        +-- TemplateCloneFailure   (never raised to callers)
"""
from __future__ import annotations


class CloseflowError(Exception):
    code: str = "CLOSEFLOW_ERROR"
    status_code: int = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class WorkspaceNotFound(CloseflowError):
    code = "WORKSPACE_NOT_FOUND"
    status_code = 404

    def __init__(self, workspace_id: int):
        self.workspace_id = workspace_id
        super().__init__(f"Workspace {workspace_id} not found")


class WorkspaceAccessDenied(CloseflowError):
    code = "WORKSPACE_ACCESS_DENIED"
    status_code = 403

    def __init__(self, workspace_id: int, user_id: str):
        self.workspace_id = workspace_id
        self.user_id = user_id
        super().__init__(f"User {user_id} is not a member of workspace {workspace_id}")


class CategoryNotFound(CloseflowError):
    code = "CATEGORY_NOT_FOUND"
    status_code = 404

    def __init__(self, category_id: int):
        self.category_id = category_id
        super().__init__(f"Category {category_id} not found")


class MemberError(CloseflowError):
    code = "MEMBER_ERROR"


class WorkspaceAdminRequired(MemberError):
    code = "WORKSPACE_ADMIN_REQUIRED"
    status_code = 403

    def __init__(self, workspace_id: int, user_id: str):
        self.workspace_id = workspace_id
        self.user_id = user_id
        super().__init__("Access denied. Admin role required")


class MemberNotFound(MemberError):
    code = "MEMBER_NOT_FOUND"
    status_code = 404

    def __init__(self, member_id: int):
        self.member_id = member_id
        super().__init__(f"Member {member_id} not found")


class MemberAlreadyExists(MemberError):
    code = "MEMBER_ALREADY_EXISTS"
    status_code = 409

    def __init__(self, workspace_id: int, email: str):
        self.workspace_id = workspace_id
        self.email = email
        super().__init__(f"{email} is already a member of or invited to workspace {workspace_id}")


class InvitationNotFound(MemberError):
    code = "INVITATION_NOT_FOUND"
    status_code = 404

    def __init__(self, workspace_id: int, email: str | None):
        self.workspace_id = workspace_id
        self.email = email
        super().__init__("No invitation found for this email")


class LastAdminRequired(MemberError):
    """The change would leave the workspace without an active admin."""

    code = "LAST_ADMIN_REQUIRED"
    status_code = 409

    def __init__(self, workspace_id: int):
        self.workspace_id = workspace_id
        super().__init__(f"Workspace {workspace_id} must keep at least one active admin")


class LineItemNotFound(CloseflowError):
    code = "LINE_ITEM_NOT_FOUND"
    status_code = 404

    def __init__(self, line_item_id: int):
        self.line_item_id = line_item_id
        super().__init__(f"Reconciliation line item {line_item_id} not found")


class PeriodError(CloseflowError):
    code = "PERIOD_ERROR"


class InvalidPeriod(PeriodError):
    code = "INVALID_PERIOD"
    status_code = 422


class DuplicatePeriod(PeriodError):
    code = "DUPLICATE_PERIOD"
    status_code = 409

    def __init__(self, workspace_id: int, month_id: str):
        self.workspace_id = workspace_id
        self.month_id = month_id
        super().__init__(f"Period {month_id} already exists")


class PeriodNotFound(PeriodError):
    code = "PERIOD_NOT_FOUND"
    status_code = 404

    def __init__(self, period_id: int):
        self.period_id = period_id
        super().__init__(f"Period {period_id} not found")


class PeriodReopenNotAllowed(PeriodError):
    code = "PERIOD_REOPEN_NOT_ALLOWED"
    status_code = 409

    def __init__(self, period_id: int):
        self.period_id = period_id
        super().__init__(f"Period {period_id} is closed and closed periods cannot be reopened")


class TaskError(CloseflowError):
    code = "TASK_ERROR"


class TaskNotFound(TaskError):
    code = "TASK_NOT_FOUND"
    status_code = 404

    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class TaskInvariantViolation(TaskError):
    code = "TASK_INVARIANT_VIOLATION"
    status_code = 400


class TemplateCloneFailure(TaskError):
    """A single template could not be cloned during a rollover."""

    code = "TEMPLATE_CLONE_FAILURE"
    status_code = 500

    def __init__(self, template_id: int, reason: str):
        self.template_id = template_id
        self.reason = reason
        super().__init__(f"Failed to clone template {template_id}: {reason}")
