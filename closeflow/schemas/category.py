from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from closeflow.models.category import CategoryKind


class CategoryBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    color: str = Field(default="#64748b", max_length=20)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate category name - trim whitespace"""
        if not v or not v.strip():
            raise ValueError('Category name cannot be empty')
        return v.strip()


class CategoryCreate(CategoryBase):
    workspace_id: int
    kind: CategoryKind = CategoryKind.CHECKLIST


class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    color: str | None = Field(default=None, max_length=20)
    show_by_default: bool | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if not v.strip():
            raise ValueError('Category name cannot be empty')
        return v.strip()


class CategoryOut(CategoryBase):
    id: int
    workspace_id: int
    kind: CategoryKind
    show_by_default: bool
    is_archived: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
