from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from closeflow.models.workspace import MemberRole, MemberStatus


class WorkspaceCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    timezone: str = "UTC"
    fiscal_year_end: str = Field(min_length=1, max_length=32)
    first_period: str = Field(min_length=1, max_length=32)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('Workspace name cannot be empty')
        return v.strip()


class WorkspaceOut(BaseModel):
    id: int
    name: str
    timezone: str
    fiscal_year_end: str
    first_period: str
    owner_id: str
    created_at: datetime

    class Config:
        from_attributes = True


class MemberInvite(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    name: str = Field(default="", max_length=255)
    role: MemberRole = MemberRole.MEMBER

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        local, _, domain = v.partition('@')
        if not local or not domain:
            raise ValueError('Invalid email address')
        return v

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return v.strip()


class MemberUpdate(BaseModel):
    """Change a member's role and/or status; omitted fields are left as they are."""
    role: Optional[MemberRole] = None
    status: Optional[MemberStatus] = None

    @field_validator('status')
    @classmethod
    def validate_status(cls, v: Optional[MemberStatus]) -> Optional[MemberStatus]:
        if v == MemberStatus.PENDING:
            raise ValueError('Members cannot be moved back to PENDING')
        return v


class MemberOut(BaseModel):
    id: int
    workspace_id: int
    user_id: str
    email: str
    name: str
    role: MemberRole
    status: MemberStatus
    invited_by: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
