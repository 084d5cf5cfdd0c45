from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from uuid import UUID
import logging
import traceback

from travelcrm.auth import Actor, get_current_actor, require_admin
from travelcrm.schemas.lead import LeadCaptureResponse, LeadCreateRequest, LeadResponse
from travelcrm.schemas.lead_update import AssignmentLogItem, LeadAssignRequest, LeadUpdateRequest, StatusHistoryItem
from travelcrm.schemas.booking import BookingRead
from travelcrm.db.session import get_db
from travelcrm.services.lead_services import LeadServices
from travelcrm.services.notifications import AssignmentNotifier, get_notifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/leads", tags=["Leads"])


@router.post(
    "",
    response_model=LeadCaptureResponse,
    status_code=201,
    summary="Create a lead from the CRM",
    description="Manual entry. Sales reps own what they create; otherwise the assignment policy may pick an agent."
)
async def create_lead(
    request: LeadCreateRequest,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    notifier: AssignmentNotifier = Depends(get_notifier),
):
    try:
        return await LeadServices.create_lead_service(request, actor, db, notifier)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Error in create_lead: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/{lead_id}", response_model=LeadResponse)
async def get_lead(
    lead_id: UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await LeadServices.get_lead_service(lead_id, actor, db)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Error in get_lead: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/{lead_id}/history", response_model=List[StatusHistoryItem])
async def get_lead_history(
    lead_id: UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await LeadServices.get_history_service(lead_id, actor, db)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Error in get_lead_history: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/{lead_id}/assignments", response_model=List[AssignmentLogItem])
async def get_lead_assignments(
    lead_id: UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await LeadServices.get_assignments_service(lead_id, actor, db)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Error in get_lead_assignments: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/{lead_id}/bookings", response_model=List[BookingRead])
async def get_lead_bookings(
    lead_id: UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await LeadServices.get_bookings_service(lead_id, actor, db)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Error in get_lead_bookings: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.patch(
    "/{lead_id}",
    response_model=LeadResponse,
    summary="Update lead status or owner",
    description="Status changes are appended to the lead's history. Sales reps may only update their own leads or claim unassigned ones."
)
async def update_lead(
    lead_id: UUID,
    request: LeadUpdateRequest,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    notifier: AssignmentNotifier = Depends(get_notifier),
):
    try:
        return await LeadServices.update_lead_service(lead_id, request, actor, db, notifier)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Error in update_lead: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.patch("/{lead_id}/assign", response_model=LeadResponse)
async def assign_lead(
    lead_id: UUID,
    request: LeadAssignRequest,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    notifier: AssignmentNotifier = Depends(get_notifier),
):
    try:
        return await LeadServices.assign_lead_service(
            lead_id, request.assigned_to, actor, db, notifier, reason=request.reason
        )
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Error in assign_lead: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.patch("/{lead_id}/claim", response_model=LeadResponse)
async def claim_lead(
    lead_id: UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    notifier: AssignmentNotifier = Depends(get_notifier),
):
    try:
        return await LeadServices.claim_lead_service(lead_id, actor, db, notifier)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Error in claim_lead: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.patch("/{lead_id}/unassign", response_model=LeadResponse)
async def unassign_lead(
    lead_id: UUID,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await LeadServices.unassign_lead_service(lead_id, actor, db)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Error in unassign_lead: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")
