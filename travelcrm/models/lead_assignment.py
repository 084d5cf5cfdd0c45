# models/lead_assignment.py
from sqlalchemy import Column, String, DateTime, Uuid, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship
from uuid import uuid4
from datetime import datetime
from travelcrm.db.base_class import Base

ASSIGNMENT_ACTIONS = ("auto", "assign", "claim", "unassign")


class LeadAssignment(Base):
    """One row per change of a lead's owner. The current owner lives on the lead."""

    __tablename__ = "lead_assignments"

    assignment_id = Column(Uuid, primary_key=True, default=uuid4)
    lead_id = Column(Uuid, ForeignKey("leads.lead_id", ondelete="CASCADE"), nullable=False)
    agent_id = Column(Uuid, ForeignKey("agents.agent_id", ondelete="SET NULL"), nullable=True)
    previous_agent_id = Column(Uuid, nullable=True)
    assigned_by = Column(Uuid, nullable=True)
    assignment_mode = Column(String(10), nullable=False)
    action = Column(String(10), nullable=False)
    reason = Column(String(255), nullable=True)
    assigned_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("action IN ('auto','assign','claim','unassign')", name="chk_assignment_action"),
        Index("idx_assignment_agent", "agent_id"),
        Index("idx_assignment_lead", "lead_id"),
        Index("idx_assignment_time", "assigned_at"),
    )

    # Relationships
    lead = relationship("Lead", back_populates="assignments")
