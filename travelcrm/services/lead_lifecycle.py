from typing import Any, Dict, Optional
from uuid import UUID
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from travelcrm.auth import Actor
from travelcrm.models.agent import Agent
from travelcrm.models.lead import Lead, LEAD_STATUSES
from travelcrm.crud import agent as crud_agent
from travelcrm.crud import lead as crud_lead
from travelcrm.services.notifications import AssignmentNotifier

logger = logging.getLogger(__name__)

_UNSET = object()


def can_transition(actor: Actor, lead: Lead, changes: Dict[str, Any]) -> bool:
    """
    Whether `actor` may apply `changes` to `lead`.

    Administrators may change anything. A sales rep may change leads they
    own, and may claim an unassigned lead for themselves. A sales rep may not
    unassign, hand a lead to someone else, or take a lead another agent owns.
    """
    if actor.is_admin:
        return True
    if actor.role != "sales_rep":
        return False

    owner = lead.assigned_to
    if "assigned_to" in changes:
        target = changes["assigned_to"]
        if target != actor.actor_id:
            return False
        return owner is None or owner == actor.actor_id

    return owner == actor.actor_id


class LeadLifecycle:
    """
    Status and ownership transitions of a lead.

    Every mutation is authorised through `can_transition` first. Status
    changes append to the lead's history; existing history rows are never
    touched. Each public method commits its own changes, then fires the
    assignment notification if the owner changed.
    """

    def __init__(self, db: AsyncSession, notifier: Optional[AssignmentNotifier] = None):
        self.db = db
        self.notifier = notifier

    # --- public transitions ---

    async def change_status(self, actor: Actor, lead: Lead, status: str, note: Optional[str] = None) -> bool:
        self._authorize(actor, lead, {"status": status})
        changed = await self._apply_status(actor, lead, status, note)
        await self.db.commit()
        return changed

    async def assign(self, actor: Actor, lead: Lead, agent_id: UUID, reason: Optional[str] = None) -> Agent:
        """Manual override. Notifies only when the owner actually changes."""
        self._authorize(actor, lead, {"assigned_to": agent_id})
        agent, changed = await self._apply_assignment(actor, lead, agent_id, "assign", reason)
        await self.db.commit()
        if changed:
            await self._notify(actor, agent, lead)
        return agent

    async def claim(self, actor: Actor, lead: Lead) -> Agent:
        if lead.assigned_to is not None and lead.assigned_to != actor.actor_id:
            raise PermissionError("Lead is already assigned to another agent")
        self._authorize(actor, lead, {"assigned_to": actor.actor_id})
        agent, changed = await self._apply_assignment(actor, lead, actor.actor_id, "claim", "claimed by agent")
        await self.db.commit()
        if changed:
            await self._notify(actor, agent, lead)
        return agent

    async def unassign(self, actor: Actor, lead: Lead, reason: Optional[str] = None) -> Lead:
        self._authorize(actor, lead, {"assigned_to": None})
        await self._apply_assignment(actor, lead, None, "unassign", reason)
        await self.db.commit()
        return lead

    async def update_lead(
        self,
        actor: Actor,
        lead: Lead,
        changes: Dict[str, Any],
        note: Optional[str] = None,
    ) -> Lead:
        """
        Apply a combined update (`status`, `priority`, `assigned_to`).
        `assigned_to` present with None unassigns; absent keeps the owner.
        """
        self._authorize(actor, lead, changes)

        new_owner = changes.get("assigned_to", _UNSET)
        agent, owner_changed = None, False
        if new_owner is not _UNSET:
            action = "claim" if not actor.is_admin else ("unassign" if new_owner is None else "assign")
            agent, owner_changed = await self._apply_assignment(actor, lead, new_owner, action, None)

        if changes.get("status") is not None:
            await self._apply_status(actor, lead, changes["status"], note)
        if changes.get("priority") is not None:
            lead.priority = changes["priority"]
            lead.updated_at = datetime.utcnow()

        await self.db.commit()
        if owner_changed and agent is not None:
            await self._notify(actor, agent, lead)
        return lead

    # --- internals ---

    def _authorize(self, actor: Actor, lead: Lead, changes: Dict[str, Any]) -> None:
        if not can_transition(actor, lead, changes):
            logger.warning(
                "Rejected change %s on lead %s by %s (%s)",
                sorted(changes), lead.lead_id, actor.actor_id, actor.role,
            )
            raise PermissionError("Not allowed to update this lead")

    async def _apply_status(self, actor: Actor, lead: Lead, status: str, note: Optional[str]) -> bool:
        if status not in LEAD_STATUSES:
            raise ValueError(f"Unknown lead status '{status}'")
        if status == lead.status:
            return False

        await crud_lead.append_status_history(
            self.db,
            lead_id=lead.lead_id,
            status=status,
            previous_status=lead.status,
            changed_by=actor.actor_id,
            notes=note or "Status updated",
        )
        lead.status = status
        lead.updated_at = datetime.utcnow()
        return True

    async def _apply_assignment(
        self,
        actor: Actor,
        lead: Lead,
        agent_id: Optional[UUID],
        action: str,
        reason: Optional[str],
    ):
        agent = None
        if agent_id is not None:
            agent = await crud_agent.get_agent_by_id(self.db, agent_id)
            if agent is None:
                raise LookupError(f"Agent {agent_id} not found")

        previous = lead.assigned_to
        lead.assigned_to = agent_id
        lead.assignment_mode = "manual"
        lead.assigned_by = actor.actor_id
        lead.sales_rep_name = agent.full_name if agent else None
        lead.updated_at = datetime.utcnow()

        changed = previous != agent_id
        if changed:
            await crud_lead.record_assignment(
                self.db,
                lead_id=lead.lead_id,
                agent_id=agent_id,
                previous_agent_id=previous,
                assigned_by=actor.actor_id,
                assignment_mode="manual",
                action=action,
                reason=reason,
            )
            logger.info("Lead %s %s: %s -> %s by %s", lead.lead_id, action, previous, agent_id, actor.actor_id)
        return agent, changed

    async def _notify(self, actor: Actor, agent: Agent, lead: Lead) -> None:
        if self.notifier is None:
            return
        assigned_by = await crud_agent.get_agent_by_id(self.db, actor.actor_id)
        self.notifier.notify(agent, lead, assigned_by=assigned_by, mode="manual")
