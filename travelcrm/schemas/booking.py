from typing import Optional, Annotated
from pydantic import BaseModel, EmailStr, Field, StringConstraints
from uuid import UUID
from datetime import datetime
from decimal import Decimal


class WebsiteBookingRequest(BaseModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
    email: EmailStr
    phone: Optional[Annotated[str, StringConstraints(strip_whitespace=True, max_length=20)]] = None
    package_name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
    destination: Optional[str] = None
    package_price: Decimal = Field(Decimal("0"), ge=0)
    travel_date: datetime
    number_of_travelers: int = Field(1, ge=1)
    message: Optional[str] = None


class BookingRead(BaseModel):
    booking_id: UUID
    lead_id: UUID
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    package_name: str
    travel_date: datetime
    number_of_travelers: int
    total_amount: Decimal
    paid_amount: Decimal
    booking_status: str
    payment_status: str
    special_requests: Optional[str] = None
    assigned_to: Optional[UUID] = None
    assignment_mode: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class WebsiteBookingResponse(BaseModel):
    success: bool
    booking_id: UUID
    lead_id: UUID
    sales_rep_id: Optional[UUID] = None
