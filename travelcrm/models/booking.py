# models/booking.py
from sqlalchemy import Column, String, Integer, Numeric, Text, DateTime, Uuid, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship
from uuid import uuid4
from datetime import datetime
from travelcrm.db.base_class import Base


class Booking(Base):
    __tablename__ = "bookings"

    booking_id = Column(Uuid, primary_key=True, default=uuid4)
    lead_id = Column(Uuid, ForeignKey("leads.lead_id", ondelete="CASCADE"), nullable=False)
    customer_name = Column(String(200), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(20), nullable=True)
    package_name = Column(String(200), nullable=False)
    travel_date = Column(DateTime, nullable=False)
    number_of_travelers = Column(Integer, nullable=False, default=1)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=0)
    booking_status = Column(String(20), nullable=False, default="pending")
    payment_status = Column(String(20), nullable=False, default="pending")
    special_requests = Column(Text, nullable=True)
    assigned_to = Column(Uuid, ForeignKey("agents.agent_id", ondelete="SET NULL"), nullable=True)
    assignment_mode = Column(String(10), nullable=False, default="manual")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint(
            "booking_status IN ('pending','confirmed','cancelled','completed')",
            name="chk_booking_status",
        ),
        CheckConstraint(
            "payment_status IN ('pending','partial','paid','refunded')",
            name="chk_booking_payment_status",
        ),
        CheckConstraint("number_of_travelers >= 1", name="chk_booking_travelers"),
        Index("idx_booking_lead", "lead_id"),
        Index("idx_booking_assigned", "assigned_to"),
    )

    # Relationships
    lead = relationship("Lead", back_populates="bookings")
