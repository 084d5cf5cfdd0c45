from typing import Literal, Optional
from pydantic import BaseModel
from uuid import UUID
from datetime import datetime

from travelcrm.schemas.lead import LeadStatus


# --- Main request ---
class LeadUpdateRequest(BaseModel):
    """
    Combined status/assignment change. Sending `assigned_to: null` explicitly
    unassigns; leaving the field out keeps the current owner.
    """

    status: Optional[LeadStatus] = None
    status_change_notes: Optional[str] = None
    assigned_to: Optional[UUID] = None
    priority: Optional[Literal["low", "medium", "high"]] = None


class LeadAssignRequest(BaseModel):
    assigned_to: UUID
    reason: Optional[str] = None


# --- History item ---
class StatusHistoryItem(BaseModel):
    sequence: int
    status: str
    previous_status: Optional[str] = None
    changed_by: Optional[UUID] = None
    changed_at: datetime
    notes: Optional[str] = None

    model_config = {"from_attributes": True}


# --- Ownership log item ---
class AssignmentLogItem(BaseModel):
    agent_id: Optional[UUID] = None
    previous_agent_id: Optional[UUID] = None
    assigned_by: Optional[UUID] = None
    assignment_mode: str
    action: str
    reason: Optional[str] = None
    assigned_at: datetime

    model_config = {"from_attributes": True}
