from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field, computed_field, field_validator
from typing import Optional

from closeflow.models.reconciliation import LineItemSource, LineItemStatus


def compute_variance(gl_balance, rec_balance) -> float:
    """GL balance minus reconciled balance, to the cent"""
    return float(Decimal(str(gl_balance)) - Decimal(str(rec_balance)))


def _clean_label(v: str) -> str:
    if not v.strip():
        raise ValueError('Value cannot be empty')
    return v.strip()


class LineItemBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    account_number: str = Field(min_length=1, max_length=64)
    account_type: str = Field(min_length=1, max_length=100)
    category: str = Field(min_length=1, max_length=100)
    status: LineItemStatus = LineItemStatus.ACTIVE
    source: LineItemSource = LineItemSource.MANUAL
    variance_threshold: float = Field(default=0, ge=0)
    gl_balance: float = 0
    rec_balance: float = 0
    links: list[str] = Field(default_factory=list)
    assignees: list[str] = Field(default_factory=list)

    @field_validator('name', 'account_number', 'account_type', 'category')
    @classmethod
    def validate_labels(cls, v: str) -> str:
        return _clean_label(v)


class LineItemCreate(LineItemBase):
    workspace_id: int


class LineItemUpdate(BaseModel):
    """Partial update of a line item; only fields present in the body are applied."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    account_number: Optional[str] = Field(None, min_length=1, max_length=64)
    account_type: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    status: Optional[LineItemStatus] = None
    source: Optional[LineItemSource] = None
    variance_threshold: Optional[float] = Field(None, ge=0)
    gl_balance: Optional[float] = None
    rec_balance: Optional[float] = None
    links: Optional[list[str]] = None
    assignees: Optional[list[str]] = None

    @field_validator('name', 'account_number', 'account_type', 'category')
    @classmethod
    def validate_labels(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _clean_label(v)

    def changes(self) -> dict:
        # Every field is required on the model, so null means "leave as is"
        return self.model_dump(exclude_unset=True, exclude_none=True)


class LineItemOut(LineItemBase):
    id: int
    workspace_id: int
    is_archived: bool
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def variance(self) -> float:
        return compute_variance(self.gl_balance, self.rec_balance)

    @computed_field
    @property
    def exceeds_threshold(self) -> bool:
        return abs(self.variance) > self.variance_threshold

    class Config:
        from_attributes = True


class CategoryGroup(BaseModel):
    name: str
    gl_balance: float
    rec_balance: float
    variance: float
    items: list[LineItemOut]


class AccountTypeGroup(BaseModel):
    name: str
    gl_balance: float
    rec_balance: float
    variance: float
    categories: list[CategoryGroup]
