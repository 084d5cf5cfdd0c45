from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import traceback

from travelcrm.auth import Actor, require_admin
from travelcrm.schemas.assignment_policy import AssignmentPolicyRead, AssignmentPolicyUpdate
from travelcrm.db.session import get_db
from travelcrm.services.assignment_policy import AssignmentPolicyServices

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/settings", tags=["Settings"])


@router.get("/assignment", response_model=AssignmentPolicyRead)
async def get_assignment_settings(
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await AssignmentPolicyServices.get_policy_service(db)
    except Exception as e:
        logger.error("Error in get_assignment_settings: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.put("/assignment", response_model=AssignmentPolicyRead)
async def update_assignment_settings(
    request: AssignmentPolicyUpdate,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await AssignmentPolicyServices.update_policy_service(request, actor, db)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except Exception as e:
        logger.error("Error in update_assignment_settings: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")
