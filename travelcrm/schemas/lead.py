from typing import List, Literal, Optional, Annotated
from pydantic import BaseModel, EmailStr, Field, StringConstraints
from uuid import UUID
from datetime import datetime

LeadStatus = Literal["new", "contacted", "interested", "quoted", "converted", "lost", "not-interested"]
LeadSourceType = Literal[
    "manual", "website", "booking", "social-media", "phone-call", "email", "referral", "walk-in", "other"
]
Phone = Annotated[str, StringConstraints(strip_whitespace=True, min_length=7, max_length=20)]


# --- Public contact form ---
class InquiryRequest(BaseModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
    email: Optional[EmailStr] = None
    phone: Phone
    city: Optional[str] = None
    destination: Optional[str] = None
    travel_date: Optional[datetime] = None
    number_of_travelers: Optional[int] = Field(None, ge=1)
    budget: Optional[str] = None
    message: Optional[str] = None


# --- Manual CRM entry ---
class LeadCreateRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[Phone] = None
    city: Optional[str] = None
    source: LeadSourceType = "manual"
    destination: Optional[str] = None
    package_name: Optional[str] = None
    travel_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    number_of_travelers: Optional[int] = Field(None, ge=1)
    budget: Optional[str] = None
    message: Optional[str] = None
    tags: List[str] = []
    status: LeadStatus = "new"
    priority: Literal["low", "medium", "high"] = "medium"
    assigned_to: Optional[UUID] = None


# --- Assigned Agent ---
class AssignedAgent(BaseModel):
    agent_id: UUID
    name: str
    email: Optional[str] = None


class LeadCaptureResponse(BaseModel):
    success: bool
    lead_id: UUID
    status: str
    assignment_mode: str
    assigned_agent: Optional[AssignedAgent] = None


class LeadResponse(BaseModel):
    lead_id: UUID
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    source: str
    platform: str
    destination: Optional[str] = None
    package_name: Optional[str] = None
    travel_date: Optional[datetime] = None
    number_of_travelers: Optional[int] = None
    status: str
    priority: str
    assigned_to: Optional[UUID] = None
    assigned_by: Optional[UUID] = None
    assignment_mode: str
    sales_rep_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
