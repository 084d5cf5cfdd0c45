from typing import Iterable, List, Optional
from datetime import datetime, timedelta
from sqlalchemy.ext.asyncio import AsyncSession

from travelcrm.crud import agent as crud_agent
from travelcrm.models.agent import Agent
from travelcrm.models.assignment_policy import AssignmentPolicy

# An agent counts as recently active if they logged in within this window
RECENT_ACTIVITY_WINDOW = timedelta(hours=1)


def filter_candidates(
    agents: Iterable[Agent],
    policy: AssignmentPolicy,
    now: Optional[datetime] = None,
) -> List[Agent]:
    """
    Apply the policy's eligibility rules to `agents`, keeping their order.

    - `skip_inactive`: drop deactivated accounts.
    - non-empty `allow_list`: keep only listed agents.
    - `require_recent_activity`: drop agents without a login inside
      RECENT_ACTIVITY_WINDOW.
    """
    now = now or datetime.utcnow()
    cutoff = now - RECENT_ACTIVITY_WINDOW
    allowed = policy.allowed_agent_ids

    candidates = []
    for agent in agents:
        if policy.skip_inactive and not agent.is_active:
            continue
        if allowed and agent.agent_id not in allowed:
            continue
        if policy.require_recent_activity and (agent.last_login is None or agent.last_login < cutoff):
            continue
        candidates.append(agent)
    return candidates


async def eligible_agents(
    db: AsyncSession,
    policy: AssignmentPolicy,
    now: Optional[datetime] = None,
) -> List[Agent]:
    """Eligible sales reps in stable order. An empty list means nobody qualifies."""
    agents = await crud_agent.list_sales_agents(
        db,
        active_only=policy.skip_inactive,
        agent_ids=policy.allowed_agent_ids or None,
    )
    return filter_candidates(agents, policy, now)
