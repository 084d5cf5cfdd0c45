# travelcrm/auth.py
from typing import Literal, Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException
from pydantic import BaseModel, ValidationError

from travelcrm.models.agent import ADMIN_ROLES


class Actor(BaseModel):
    """
    The authenticated user behind a request.

    Identity is established upstream by the auth gateway, which forwards it
    in the `X-Actor-Id` / `X-Actor-Role` headers. Nothing here checks
    credentials.
    """

    actor_id: UUID
    role: Literal["admin", "superadmin", "sales_rep"]

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


async def get_current_actor(
    x_actor_id: Optional[str] = Header(None),
    x_actor_role: Optional[str] = Header(None),
) -> Actor:
    if not x_actor_id or not x_actor_role:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        return Actor(actor_id=x_actor_id, role=x_actor_role)
    except ValidationError:
        raise HTTPException(status_code=401, detail="Invalid actor context")


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    if not actor.is_admin:
        raise HTTPException(status_code=403, detail="Administrator role required")
    return actor
