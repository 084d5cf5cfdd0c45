# models/agent.py
from sqlalchemy import Column, String, Boolean, DateTime, Uuid, CheckConstraint, Index
from uuid import uuid4
from datetime import datetime
from travelcrm.db.base_class import Base

AGENT_ROLES = ("admin", "superadmin", "sales_rep")
ADMIN_ROLES = ("admin", "superadmin")


class Agent(Base):
    """Directory entry for a console user. Sales reps are the assignable agents."""

    __tablename__ = "agents"

    agent_id = Column(Uuid, primary_key=True, default=uuid4)
    full_name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(20), nullable=True)
    role = Column(String(20), nullable=False, default="sales_rep")
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("role IN ('admin','superadmin','sales_rep')", name="chk_agent_role"),
        Index("idx_agent_role_active", "role", "is_active"),
        Index("idx_agent_last_login", "last_login"),
    )
