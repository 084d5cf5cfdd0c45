from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import traceback

from travelcrm.schemas.lead import InquiryRequest, LeadCaptureResponse
from travelcrm.schemas.booking import WebsiteBookingRequest, WebsiteBookingResponse
from travelcrm.db.session import get_db
from travelcrm.db.redis_client import get_redis
from travelcrm.services.lead_services import LeadServices
from travelcrm.services.booking_services import BookingServices
from travelcrm.services.notifications import AssignmentNotifier, get_notifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Public"])


@router.post(
    "/inquiries",
    response_model=LeadCaptureResponse,
    status_code=201,
    summary="Submit the website contact form",
    description="Creates a website lead and, when auto-assignment is on, hands it to a sales agent."
)
async def submit_inquiry(
    request: InquiryRequest,
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
    notifier: AssignmentNotifier = Depends(get_notifier),
):
    try:
        return await LeadServices.capture_inquiry_service(request, db, redis, notifier)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Error in submit_inquiry: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.post(
    "/bookings/website",
    response_model=WebsiteBookingResponse,
    status_code=201,
    summary="Submit a package booking request",
    description="Creates the booking and its companion lead together; neither is kept if either fails."
)
async def create_website_booking(
    request: WebsiteBookingRequest,
    db: AsyncSession = Depends(get_db),
    notifier: AssignmentNotifier = Depends(get_notifier),
):
    try:
        return await BookingServices.create_website_booking_service(request, db, notifier)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Error in create_website_booking: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")
