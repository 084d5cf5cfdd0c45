# crud/assignment_policy.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import update
from typing import Any, Dict, Optional
from uuid import UUID
from datetime import datetime

from travelcrm.models.assignment_policy import AssignmentPolicy, POLICY_ID, POLICY_DEFAULTS


# ---------------- GET OR CREATE ----------------
async def get_or_create_policy(db: AsyncSession) -> AssignmentPolicy:
    """
    Return the singleton policy row, inserting it with the defaults if absent.

    Call before any other write in the session: losing the insert race rolls
    the session back and re-reads the winner's row.
    """
    policy = await db.get(AssignmentPolicy, POLICY_ID)
    if policy is not None:
        return policy

    policy = AssignmentPolicy(policy_id=POLICY_ID, **{**POLICY_DEFAULTS, "allow_list": []})
    db.add(policy)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        policy = await db.get(AssignmentPolicy, POLICY_ID, populate_existing=True)
    return policy


# ---------------- CURSOR ----------------
async def increment_and_get(db: AsyncSession) -> int:
    """
    Atomically advance the rotation cursor and return the advanced value.

    A single UPDATE ... RETURNING, so concurrent callers never observe the
    same value. The in-session policy object is not refreshed.
    """
    result = await db.execute(
        update(AssignmentPolicy)
        .where(AssignmentPolicy.policy_id == POLICY_ID)
        .values(rotation_cursor=AssignmentPolicy.rotation_cursor + 1)
        .returning(AssignmentPolicy.rotation_cursor)
        .execution_options(synchronize_session=False)
    )
    return result.scalar_one()


# ---------------- UPDATE ----------------
async def update_policy(
    db: AsyncSession,
    policy: AssignmentPolicy,
    changes: Dict[str, Any],
    updated_by: Optional[UUID] = None,
) -> AssignmentPolicy:
    for field, value in changes.items():
        if field == "allow_list":
            value = [str(agent_id) for agent_id in value]
        setattr(policy, field, value)
    if updated_by is not None:
        policy.updated_by = updated_by
    policy.updated_at = datetime.utcnow()
    await db.flush()
    return policy
