# models/lead_status_history.py
from sqlalchemy import Column, String, Integer, Text, DateTime, Uuid, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from uuid import uuid4
from datetime import datetime
from travelcrm.db.base_class import Base


class LeadStatusHistory(Base):
    """Append-only log of a lead's status changes. Rows are never updated."""

    __tablename__ = "lead_status_history"

    history_id = Column(Uuid, primary_key=True, default=uuid4)
    lead_id = Column(Uuid, ForeignKey("leads.lead_id", ondelete="CASCADE"), nullable=False)
    sequence = Column(Integer, nullable=False)
    status = Column(String(30), nullable=False)
    previous_status = Column(String(30), nullable=True)
    changed_by = Column(Uuid, nullable=True)  # actor id, null for public submissions
    changed_at = Column(DateTime, default=datetime.utcnow)
    notes = Column(Text, nullable=True)

    # Relationships
    lead = relationship("Lead", back_populates="status_history")

    __table_args__ = (
        UniqueConstraint("lead_id", "sequence", name="uq_history_lead_sequence"),
        Index("idx_history_lead", "lead_id"),
        Index("idx_history_status", "status"),
        Index("idx_history_time", "changed_at"),
    )
