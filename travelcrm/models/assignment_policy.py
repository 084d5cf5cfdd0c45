# models/assignment_policy.py
from sqlalchemy import Column, String, Integer, Boolean, DateTime, JSON, Uuid, ForeignKey, CheckConstraint
from uuid import UUID
from datetime import datetime
from typing import Set
from travelcrm.db.base_class import Base

POLICY_ID = 1

ASSIGNMENT_MODES = ("manual", "auto")
ASSIGNMENT_STRATEGIES = ("rotating", "load_aware")

POLICY_DEFAULTS = {
    "mode": "manual",
    "strategy": "rotating",
    "allow_list": [],
    "rotation_cursor": 0,
    "capacity_ceiling": 100,
    "skip_inactive": True,
    "require_recent_activity": False,
}


class AssignmentPolicy(Base):
    __tablename__ = "assignment_policy"

    policy_id = Column(Integer, primary_key=True, default=POLICY_ID, autoincrement=False)
    mode = Column(String(10), nullable=False, default="manual")
    strategy = Column(String(20), nullable=False, default="rotating")
    allow_list = Column(JSON, nullable=False, default=list)  # agent ids as strings
    rotation_cursor = Column(Integer, nullable=False, default=0)
    capacity_ceiling = Column(Integer, nullable=False, default=100)
    skip_inactive = Column(Boolean, nullable=False, default=True)
    require_recent_activity = Column(Boolean, nullable=False, default=False)
    updated_by = Column(Uuid, ForeignKey("agents.agent_id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("policy_id = 1", name="chk_policy_singleton"),
        CheckConstraint("mode IN ('manual','auto')", name="chk_policy_mode"),
        CheckConstraint("strategy IN ('rotating','load_aware')", name="chk_policy_strategy"),
        CheckConstraint("rotation_cursor >= 0", name="chk_policy_cursor"),
    )

    @property
    def allowed_agent_ids(self) -> Set[UUID]:
        return {UUID(str(agent_id)) for agent_id in (self.allow_list or [])}
