from typing import Optional
from uuid import UUID, uuid4
from sqlalchemy.ext.asyncio import AsyncSession
from redis.exceptions import RedisError
from datetime import datetime
import json
import logging
import os

from travelcrm.auth import Actor
from travelcrm.models import Lead
from travelcrm.crud import agent as crud_agent
from travelcrm.crud import assignment_policy as crud_policy
from travelcrm.crud import booking as crud_booking
from travelcrm.crud import lead as crud_lead
from travelcrm.schemas.lead import (
    AssignedAgent,
    InquiryRequest,
    LeadCaptureResponse,
    LeadCreateRequest,
)
from travelcrm.schemas.lead_update import LeadUpdateRequest
from travelcrm.services.lead_assignment import LeadAssignmentManager
from travelcrm.services.lead_lifecycle import LeadLifecycle
from travelcrm.services.notifications import AssignmentNotifier

logger = logging.getLogger(__name__)

# Window during which a repeated contact-form submission is treated as a duplicate
INQUIRY_DEDUP_SECONDS = int(os.getenv("INQUIRY_DEDUP_SECONDS", "3600"))


def _capture_response(lead: Lead, agent=None) -> LeadCaptureResponse:
    return LeadCaptureResponse(
        success=True,
        lead_id=lead.lead_id,
        status=lead.status,
        assignment_mode=lead.assignment_mode,
        assigned_agent=AssignedAgent(
            agent_id=agent.agent_id, name=agent.full_name, email=agent.email
        ) if agent else None,
    )


class LeadServices:

    @staticmethod
    async def capture_inquiry_service(
        request: InquiryRequest,
        db: AsyncSession,
        redis,
        notifier: Optional[AssignmentNotifier] = None,
    ) -> LeadCaptureResponse:
        """
        Turn a public contact-form submission into a lead.

        Workflow:
        1. Reject a repeat of the same phone/email seen in Redis within
        INQUIRY_DEDUP_SECONDS.
        2. Build the lead draft (source `website`, status `new`).
        3. Run auto-assignment on the draft.
        4. Persist the lead with its seed history entry and commit.
        5. Notify the assignee, then remember the phone/email in Redis.
        Redis errors on either side of the commit are logged, not raised.

        Raises:
            ValueError: duplicate submission.
        """
        cache_keys = [f"inquiry:phone:{request.phone}"]
        if request.email:
            cache_keys.append(f"inquiry:email:{str(request.email).lower()}")

        # 1. --- Check Redis for duplicates ---
        for key in cache_keys:
            try:
                seen = await redis.get(key)
            except RedisError as e:
                # Cache down counts as a miss
                logger.warning("Inquiry duplicate check skipped for %s: %s", key, e)
                continue
            if seen:
                raise ValueError("Duplicate inquiry detected")

        # 2. --- Draft ---
        lead = Lead(
            lead_id=uuid4(),
            name=request.name,
            email=str(request.email).lower() if request.email else None,
            phone=request.phone,
            city=request.city,
            source="website",
            platform="Website Form",
            destination=request.destination,
            travel_date=request.travel_date,
            number_of_travelers=request.number_of_travelers,
            budget=request.budget,
            message=request.message,
            tags=["website-inquiry"],
            status="new",
            assignment_mode="manual",
        )

        # 3. --- Assign ---
        manager = LeadAssignmentManager(db, notifier)
        try:
            result = await manager.assign_or_leave_unassigned(lead)

            # 4. --- Persist ---
            await crud_lead.create_lead(db, lead)
            await crud_lead.append_status_history(db, lead.lead_id, "new", notes="Initial status")
            if result.assigned:
                await manager.record_auto_assignment(lead)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        # 5. --- Notify + cache ---
        if result.assigned:
            manager.notify_assignment(result.agent, lead, mode="auto")
        try:
            for key in cache_keys:
                await redis.set(key, json.dumps({"lead_id": str(lead.lead_id)}), ex=INQUIRY_DEDUP_SECONDS)
        except RedisError:
            logger.exception("Could not cache inquiry keys for lead %s", lead.lead_id)

        return _capture_response(lead, result.agent)

    @staticmethod
    async def create_lead_service(
        request: LeadCreateRequest,
        actor: Actor,
        db: AsyncSession,
        notifier: Optional[AssignmentNotifier] = None,
    ) -> LeadCaptureResponse:
        """
        Manual CRM entry.

        A sales rep creating a lead becomes its manual owner. Otherwise an
        explicit `assigned_to` is stamped as a manual assignment by the actor,
        and without one the auto-assignment policy decides.

        Raises:
            PermissionError: a sales rep names another agent as owner.
            LookupError: `assigned_to` names an unknown agent.
            ValueError: end date before travel date.
        """
        if request.travel_date and request.end_date and request.end_date < request.travel_date:
            raise ValueError("End date must be greater than or equal to travel date")

        assigned_to = request.assigned_to
        if actor.role == "sales_rep":
            if assigned_to is not None and assigned_to != actor.actor_id:
                raise PermissionError("Sales representatives cannot assign leads to other agents")
            assigned_to = actor.actor_id

        policy = await crud_policy.get_or_create_policy(db)

        lead = Lead(
            lead_id=uuid4(),
            **request.model_dump(exclude={"assigned_to"}),
            assignment_mode="manual",
            created_by=actor.actor_id,
        )

        agent = None
        if assigned_to is not None:
            agent = await crud_agent.get_agent_by_id(db, assigned_to)
            if agent is None:
                raise LookupError(f"Agent {assigned_to} not found")
            lead.assigned_to = agent.agent_id
            lead.assigned_by = actor.actor_id
            lead.assignment_mode = "manual"
            lead.sales_rep_name = agent.full_name

        manager = LeadAssignmentManager(db, notifier)
        try:
            result = await manager.assign_if_needed(lead, policy)
            if result.assigned:
                agent = result.agent

            await crud_lead.create_lead(db, lead)
            await crud_lead.append_status_history(
                db, lead.lead_id, lead.status, changed_by=actor.actor_id, notes="Initial status"
            )
            if result.assigned:
                await manager.record_auto_assignment(lead)
            elif agent is not None:
                await crud_lead.record_assignment(
                    db,
                    lead_id=lead.lead_id,
                    agent_id=agent.agent_id,
                    action="claim" if agent.agent_id == actor.actor_id else "assign",
                    assignment_mode="manual",
                    assigned_by=actor.actor_id,
                    reason="assigned on creation",
                )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        if agent is not None:
            assigned_by = None
            if lead.assignment_mode == "manual":
                assigned_by = await crud_agent.get_agent_by_id(db, actor.actor_id)
            manager.notify_assignment(agent, lead, assigned_by=assigned_by, mode=lead.assignment_mode)

        return _capture_response(lead, agent)

    @staticmethod
    async def get_lead_service(lead_id: UUID, actor: Actor, db: AsyncSession) -> Lead:
        lead = await crud_lead.get_lead_by_id(db, lead_id)
        if not lead:
            raise LookupError("Lead not found")
        if not actor.is_admin and lead.assigned_to != actor.actor_id:
            raise PermissionError("Not allowed to view this lead")
        return lead

    @staticmethod
    async def get_history_service(lead_id: UUID, actor: Actor, db: AsyncSession):
        await LeadServices.get_lead_service(lead_id, actor, db)
        return await crud_lead.get_status_history(db, lead_id)

    @staticmethod
    async def get_assignments_service(lead_id: UUID, actor: Actor, db: AsyncSession):
        """Ownership log of a lead, oldest first. Same visibility as the lead."""
        await LeadServices.get_lead_service(lead_id, actor, db)
        return await crud_lead.get_assignments_by_lead(db, lead_id)

    @staticmethod
    async def get_bookings_service(lead_id: UUID, actor: Actor, db: AsyncSession):
        await LeadServices.get_lead_service(lead_id, actor, db)
        return await crud_booking.get_bookings_by_lead(db, lead_id)

    @staticmethod
    async def update_lead_service(
        lead_id: UUID,
        request: LeadUpdateRequest,
        actor: Actor,
        db: AsyncSession,
        notifier: Optional[AssignmentNotifier] = None,
    ) -> Lead:
        lead = await crud_lead.get_lead_by_id(db, lead_id, for_update=True)
        if not lead:
            raise LookupError("Lead not found")

        changes = request.model_dump(exclude_unset=True, exclude={"status_change_notes"})
        if not changes:
            return lead
        return await LeadLifecycle(db, notifier).update_lead(
            actor, lead, changes, note=request.status_change_notes
        )

    @staticmethod
    async def assign_lead_service(
        lead_id: UUID,
        agent_id: UUID,
        actor: Actor,
        db: AsyncSession,
        notifier: Optional[AssignmentNotifier] = None,
        reason: Optional[str] = None,
    ) -> Lead:
        lead = await crud_lead.get_lead_by_id(db, lead_id, for_update=True)
        if not lead:
            raise LookupError("Lead not found")
        await LeadLifecycle(db, notifier).assign(actor, lead, agent_id, reason=reason)
        return lead

    @staticmethod
    async def claim_lead_service(
        lead_id: UUID,
        actor: Actor,
        db: AsyncSession,
        notifier: Optional[AssignmentNotifier] = None,
    ) -> Lead:
        lead = await crud_lead.get_lead_by_id(db, lead_id, for_update=True)
        if not lead:
            raise LookupError("Lead not found")
        await LeadLifecycle(db, notifier).claim(actor, lead)
        return lead

    @staticmethod
    async def unassign_lead_service(lead_id: UUID, actor: Actor, db: AsyncSession) -> Lead:
        lead = await crud_lead.get_lead_by_id(db, lead_id, for_update=True)
        if not lead:
            raise LookupError("Lead not found")
        await LeadLifecycle(db).unassign(actor, lead)
        return lead
