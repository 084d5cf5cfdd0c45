from typing import Optional
from dataclasses import dataclass
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from travelcrm.models.agent import Agent
from travelcrm.models.lead import Lead
from travelcrm.models.assignment_policy import AssignmentPolicy, ASSIGNMENT_STRATEGIES
from travelcrm.crud import assignment_policy as crud_policy
from travelcrm.crud import lead as crud_lead
from travelcrm.services.eligibility import eligible_agents
from travelcrm.services.selection import pick_rotating, pick_load_aware, ROTATING
from travelcrm.services.notifications import AssignmentNotifier

logger = logging.getLogger(__name__)


@dataclass
class AssignmentResult:
    assigned: bool
    agent: Optional[Agent] = None


class LeadAssignmentManager:
    """
        Service class responsible for picking the sales agent that owns a
        newly created lead.

        Responsibilities:
        1. Auto-assignment (`assign_if_needed`):
        - Does nothing unless the policy is in `auto` mode and the draft has
            no explicit owner.
        - Builds the eligible candidate list (active / allow-list / recent login).
        - Picks with the policy's strategy and stamps the draft in place.

        2. Best Agent Selection (`find_best_agent`):
        - `rotating`: claims a ticket from the persisted rotation cursor with
            one atomic UPDATE, then indexes the candidates with it.
        - `load_aware`: counts open leads per candidate and takes the
            least loaded one below the capacity ceiling.

        3. Notification (`notify_assignment`):
        - Hands the assignment to the notifier once the caller has committed.

        Usage:
        - Called while building a lead draft, inside the same session that
        later persists it. It never adds, flushes or commits the draft; the
        only write it issues is the cursor advance.
    """

    def __init__(self, db: AsyncSession, notifier: Optional[AssignmentNotifier] = None):
        self.db = db
        self.notifier = notifier

    async def assign_if_needed(
        self,
        draft: Lead,
        policy: Optional[AssignmentPolicy] = None,
    ) -> AssignmentResult:
        """
        Auto-assign `draft` when the policy asks for it.

        Returns `AssignmentResult(assigned=False)` for manual mode, for drafts
        that already have an owner and when nobody is eligible. The last case
        is a normal outcome: the lead simply stays unassigned.
        """
        if policy is None:
            policy = await crud_policy.get_or_create_policy(self.db)

        if policy.mode != "auto":
            return AssignmentResult(assigned=False)
        if draft.assigned_to is not None:
            return AssignmentResult(assigned=False)

        chosen = await self.find_best_agent(policy)
        if chosen is None:
            logger.info("No eligible sales agent for lead %s (strategy=%s)", draft.lead_id, policy.strategy)
            return AssignmentResult(assigned=False)

        draft.assigned_to = chosen.agent_id
        draft.assignment_mode = "auto"
        draft.assigned_by = None
        # Display name is copied after selection so the list view needs no join
        draft.sales_rep_name = chosen.full_name

        logger.info(
            "Lead %s auto-assigned to %s (%s) via %s",
            draft.lead_id, chosen.agent_id, chosen.full_name, policy.strategy,
        )
        return AssignmentResult(assigned=True, agent=chosen)

    async def assign_or_leave_unassigned(self, draft: Lead) -> AssignmentResult:
        """Public intake variant: a misconfigured policy must not lose the lead."""
        try:
            return await self.assign_if_needed(draft)
        except ValueError:
            logger.exception("Auto-assignment failed for lead %s; creating it unassigned", draft.lead_id)
            return AssignmentResult(assigned=False)

    async def find_best_agent(self, policy: AssignmentPolicy) -> Optional[Agent]:
        if policy.strategy not in ASSIGNMENT_STRATEGIES:
            raise ValueError(f"Unknown assignment strategy '{policy.strategy}'")

        candidates = await eligible_agents(self.db, policy)
        if not candidates:
            return None

        if policy.strategy == ROTATING:
            # The cursor advances once per pick, so its pre-advance value is ours alone
            cursor = await crud_policy.increment_and_get(self.db) - 1
            return pick_rotating(candidates, cursor)

        open_counts = await crud_lead.count_open_leads_by_agent(
            self.db, [agent.agent_id for agent in candidates]
        )
        return pick_load_aware(candidates, open_counts, policy.capacity_ceiling)

    async def record_auto_assignment(self, lead: Lead) -> None:
        """Log the auto-assignment once the lead row exists in the session."""
        await crud_lead.record_assignment(
            self.db,
            lead_id=lead.lead_id,
            agent_id=lead.assigned_to,
            action="auto",
            assignment_mode="auto",
            reason="auto-assignment on creation",
        )

    def notify_assignment(
        self,
        agent: Agent,
        lead: Lead,
        assigned_by: Optional[Agent] = None,
        mode: str = "auto",
    ) -> None:
        if self.notifier is None:
            return
        self.notifier.notify(agent, lead, assigned_by=assigned_by, mode=mode)
