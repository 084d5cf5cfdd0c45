from typing import Optional
from uuid import uuid4
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from travelcrm.models import Booking, Lead
from travelcrm.crud import booking as crud_booking
from travelcrm.crud import lead as crud_lead
from travelcrm.schemas.booking import WebsiteBookingRequest, WebsiteBookingResponse
from travelcrm.services.lead_assignment import LeadAssignmentManager
from travelcrm.services.notifications import AssignmentNotifier

logger = logging.getLogger(__name__)


class BookingServices:

    @staticmethod
    async def create_website_booking_service(
        request: WebsiteBookingRequest,
        db: AsyncSession,
        notifier: Optional[AssignmentNotifier] = None,
    ) -> WebsiteBookingResponse:
        """
        Create a booking request and its companion lead from the public site.

        Workflow:
        1. Build the lead draft and run auto-assignment on it.
        2. Insert the lead, its seed history entry and the booking, which
        inherits the lead's owner.
        3. Commit once. Any failure rolls back all of it, so a booking never
        exists without its lead.
        4. Notify the assignee after the commit.
        """
        message = request.message.strip() if request.message else None

        # 1. --- Draft + assignment ---
        lead = Lead(
            lead_id=uuid4(),
            name=request.name,
            email=str(request.email).lower(),
            phone=request.phone or None,
            source="booking",
            platform="Website Form",
            destination=request.destination,
            package_name=request.package_name,
            travel_date=request.travel_date,
            number_of_travelers=request.number_of_travelers,
            budget=str(request.package_price) if request.package_price else None,
            message=message,
            tags=["website-booking"],
            status="new",
            assignment_mode="manual",
        )

        manager = LeadAssignmentManager(db, notifier)
        try:
            result = await manager.assign_or_leave_unassigned(lead)

            # 2. --- Lead + booking ---
            await crud_lead.create_lead(db, lead)
            await crud_lead.append_status_history(db, lead.lead_id, "new", notes="Initial status")
            if result.assigned:
                await manager.record_auto_assignment(lead)

            booking = Booking(
                booking_id=uuid4(),
                lead_id=lead.lead_id,
                customer_name=request.name,
                customer_email=str(request.email).lower(),
                customer_phone=request.phone or None,
                package_name=request.package_name,
                travel_date=request.travel_date,
                number_of_travelers=request.number_of_travelers,
                total_amount=request.package_price,
                special_requests=message,
                assigned_to=lead.assigned_to,
                assignment_mode=lead.assignment_mode,
            )
            await crud_booking.create_booking(db, booking)

            # 3. --- Commit together ---
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Website booking %s created for %s (lead %s)", booking.booking_id, lead.email, lead.lead_id)

        # 4. --- Notify ---
        if result.assigned:
            manager.notify_assignment(result.agent, lead, mode="auto")

        return WebsiteBookingResponse(
            success=True,
            booking_id=booking.booking_id,
            lead_id=lead.lead_id,
            sales_rep_id=lead.assigned_to,
        )
