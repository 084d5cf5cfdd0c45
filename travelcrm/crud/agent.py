# crud/agent.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Iterable, List, Optional
from uuid import UUID

from travelcrm.models.agent import Agent


async def get_agent_by_id(db: AsyncSession, agent_id: UUID) -> Optional[Agent]:
    result = await db.execute(select(Agent).where(Agent.agent_id == agent_id))
    return result.scalar_one_or_none()


async def list_sales_agents(
    db: AsyncSession,
    active_only: bool = False,
    agent_ids: Optional[Iterable[UUID]] = None,
) -> List[Agent]:
    """
    Sales reps in a stable order (creation time, then id).
    The rotation cursor is only meaningful against this ordering.
    """
    stmt = select(Agent).where(Agent.role == "sales_rep")
    if active_only:
        stmt = stmt.where(Agent.is_active.is_(True))
    if agent_ids:
        stmt = stmt.where(Agent.agent_id.in_(list(agent_ids)))
    stmt = stmt.order_by(Agent.created_at.asc(), Agent.agent_id.asc())

    result = await db.execute(stmt)
    return list(result.scalars().all())
