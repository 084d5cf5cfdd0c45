# models/lead.py
from sqlalchemy import Column, String, Integer, Text, DateTime, JSON, Uuid, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship
from uuid import uuid4
from datetime import datetime
from travelcrm.db.base_class import Base

LEAD_STATUSES = ("new", "contacted", "interested", "quoted", "converted", "lost", "not-interested")

# Pipeline stages that still count against an agent's workload
OPEN_LEAD_STATUSES = ("new", "contacted", "interested", "quoted")

LEAD_SOURCES = (
    "manual", "website", "booking", "social-media", "phone-call",
    "email", "referral", "walk-in", "other",
)

LEAD_PLATFORMS = (
    "Manual Entry", "Website Form", "Paid Package", "Social Media",
    "Phone Call", "Email", "Referral", "Walk-in",
)


class Lead(Base):
    __tablename__ = "leads"

    lead_id = Column(Uuid, primary_key=True, default=uuid4)
    name = Column(String(200), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    city = Column(String(100), nullable=True)
    source = Column(String(30), nullable=False, default="manual")
    platform = Column(String(30), nullable=False, default="Manual Entry")
    destination = Column(String(200), nullable=True)
    package_name = Column(String(200), nullable=True)
    travel_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    number_of_travelers = Column(Integer, nullable=True)
    budget = Column(String(50), nullable=True)
    message = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    status = Column(String(30), nullable=False, default="new")
    priority = Column(String(10), nullable=False, default="medium")
    assigned_to = Column(Uuid, ForeignKey("agents.agent_id", ondelete="SET NULL"), nullable=True)
    assigned_by = Column(Uuid, ForeignKey("agents.agent_id", ondelete="SET NULL"), nullable=True)
    assignment_mode = Column(String(10), nullable=False, default="manual")
    sales_rep_name = Column(String(200), nullable=True)  # display copy of the assignee's name
    created_by = Column(Uuid, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint(
            "status IN ('new','contacted','interested','quoted','converted','lost','not-interested')",
            name="chk_lead_status",
        ),
        CheckConstraint("priority IN ('low','medium','high')", name="chk_lead_priority"),
        CheckConstraint("assignment_mode IN ('manual','auto')", name="chk_lead_assignment_mode"),
        Index("idx_lead_assigned_status", "assigned_to", "status"),
        Index("idx_lead_status_created", "status", "created_at"),
        Index("idx_lead_source_created", "source", "created_at"),
        Index("idx_lead_assignment_mode", "assignment_mode"),
    )

    # Relationships
    status_history = relationship(
        "LeadStatusHistory",
        back_populates="lead",
        order_by="LeadStatusHistory.sequence",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    assignments = relationship(
        "LeadAssignment",
        back_populates="lead",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    bookings = relationship("Booking", back_populates="lead", passive_deletes=True)
