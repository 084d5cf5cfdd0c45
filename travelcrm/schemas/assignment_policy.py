from typing import List, Literal, Optional
from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime


class AssignmentPolicyRead(BaseModel):
    mode: Literal["manual", "auto"]
    strategy: Literal["rotating", "load_aware"]
    allow_list: List[UUID]
    rotation_cursor: int
    capacity_ceiling: int
    skip_inactive: bool
    require_recent_activity: bool
    updated_by: Optional[UUID] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class AssignmentPolicyUpdate(BaseModel):
    """Partial update from the settings screen. Unset fields are left alone."""

    mode: Optional[Literal["manual", "auto"]] = None
    strategy: Optional[Literal["rotating", "load_aware"]] = None
    allow_list: Optional[List[UUID]] = None
    rotation_cursor: Optional[int] = Field(None, ge=0)
    capacity_ceiling: Optional[int] = Field(None, ge=0)
    skip_inactive: Optional[bool] = None
    require_recent_activity: Optional[bool] = None
