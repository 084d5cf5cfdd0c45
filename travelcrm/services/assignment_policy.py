from typing import Any, Dict
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from travelcrm.auth import Actor
from travelcrm.crud import assignment_policy as crud_policy
from travelcrm.models.assignment_policy import AssignmentPolicy, ASSIGNMENT_MODES, ASSIGNMENT_STRATEGIES
from travelcrm.schemas.assignment_policy import AssignmentPolicyUpdate

logger = logging.getLogger(__name__)


class AssignmentPolicyServices:

    @staticmethod
    async def get_policy_service(db: AsyncSession) -> AssignmentPolicy:
        policy = await crud_policy.get_or_create_policy(db)
        await db.commit()
        return policy

    @staticmethod
    async def update_policy_service(
        request: AssignmentPolicyUpdate,
        actor: Actor,
        db: AsyncSession,
    ) -> AssignmentPolicy:
        """
        Apply an administrator's partial update to the assignment policy.

        Only type/enum checks are made; combinations such as auto mode with an
        allow-list naming inactive agents are accepted as given.

        Raises:
            PermissionError: actor is not an administrator.
            ValueError: an enum field carries an unknown value.
        """
        if not actor.is_admin:
            raise PermissionError("Only administrators can change assignment settings")

        changes: Dict[str, Any] = request.model_dump(exclude_unset=True)
        for field in [f for f, v in changes.items() if v is None]:
            # An explicit null on a non-nullable setting means "leave it"
            changes.pop(field)
        if "mode" in changes and changes["mode"] not in ASSIGNMENT_MODES:
            raise ValueError(f"Unknown assignment mode '{changes['mode']}'")
        if "strategy" in changes and changes["strategy"] not in ASSIGNMENT_STRATEGIES:
            raise ValueError(f"Unknown assignment strategy '{changes['strategy']}'")

        policy = await crud_policy.get_or_create_policy(db)
        await crud_policy.update_policy(db, policy, changes, updated_by=actor.actor_id)
        await db.commit()

        logger.info("Assignment policy updated by %s: %s", actor.actor_id, sorted(changes))
        return policy
