from datetime import datetime
from pydantic import BaseModel
from typing import Optional


class AuditLogOut(BaseModel):
    id: int
    workspace_id: Optional[int] = None
    user_id: Optional[str] = None
    action: str
    entity: str
    entity_id: str
    details: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
