# travelcrm/crud/lead.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import Select, select, func
from typing import Dict, Iterable, List, Optional
from uuid import UUID
from datetime import datetime

from travelcrm.models import Lead, LeadStatusHistory, LeadAssignment
from travelcrm.models.lead import OPEN_LEAD_STATUSES


# --- Fetch Lead by ID ---
def select_lead(lead_id: UUID, for_update: bool = False) -> Select:
    stmt = select(Lead).where(Lead.lead_id == lead_id)
    if for_update:
        # Row lock serialises concurrent writers, so history sequence numbers
        # are read after the previous change committed
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    return stmt


async def get_lead_by_id(db: AsyncSession, lead_id: UUID, for_update: bool = False) -> Lead | None:
    result = await db.execute(select_lead(lead_id, for_update))
    return result.scalar_one_or_none()


# --- Insert Lead ---
async def create_lead(db: AsyncSession, lead: Lead) -> Lead:
    db.add(lead)
    await db.flush()
    return lead


# --- Open workload per agent ---
async def count_open_leads_by_agent(db: AsyncSession, agent_ids: Iterable[UUID]) -> Dict[UUID, int]:
    """Open lead count per assignee. Agents with no open leads are absent."""
    agent_ids = list(agent_ids)
    if not agent_ids:
        return {}

    stmt = (
        select(Lead.assigned_to, func.count(Lead.lead_id))
        .where(
            Lead.assigned_to.in_(agent_ids),
            Lead.status.in_(OPEN_LEAD_STATUSES),
        )
        .group_by(Lead.assigned_to)
    )
    result = await db.execute(stmt)
    return {agent_id: count for agent_id, count in result.all()}


# --- Status history (append-only) ---
async def append_status_history(
    db: AsyncSession,
    lead_id: UUID,
    status: str,
    previous_status: Optional[str] = None,
    changed_by: Optional[UUID] = None,
    notes: Optional[str] = None,
) -> LeadStatusHistory:
    last_sequence = await db.scalar(
        select(func.coalesce(func.max(LeadStatusHistory.sequence), 0))
        .where(LeadStatusHistory.lead_id == lead_id)
    )
    entry = LeadStatusHistory(
        lead_id=lead_id,
        sequence=last_sequence + 1,
        status=status,
        previous_status=previous_status,
        changed_by=changed_by,
        changed_at=datetime.utcnow(),
        notes=notes,
    )
    db.add(entry)
    await db.flush()
    return entry


async def get_status_history(db: AsyncSession, lead_id: UUID) -> List[LeadStatusHistory]:
    result = await db.execute(
        select(LeadStatusHistory)
        .where(LeadStatusHistory.lead_id == lead_id)
        .order_by(LeadStatusHistory.sequence.asc())
    )
    return list(result.scalars().all())


# --- Assignment log ---
async def record_assignment(
    db: AsyncSession,
    lead_id: UUID,
    agent_id: Optional[UUID],
    action: str,
    assignment_mode: str,
    previous_agent_id: Optional[UUID] = None,
    assigned_by: Optional[UUID] = None,
    reason: Optional[str] = None,
) -> LeadAssignment:
    assignment = LeadAssignment(
        lead_id=lead_id,
        agent_id=agent_id,
        previous_agent_id=previous_agent_id,
        assigned_by=assigned_by,
        assignment_mode=assignment_mode,
        action=action,
        reason=reason,
        assigned_at=datetime.utcnow(),
    )
    db.add(assignment)
    return assignment


async def get_assignments_by_lead(db: AsyncSession, lead_id: UUID) -> List[LeadAssignment]:
    result = await db.execute(
        select(LeadAssignment)
        .where(LeadAssignment.lead_id == lead_id)
        .order_by(LeadAssignment.assigned_at.asc())
    )
    return list(result.scalars().all())
