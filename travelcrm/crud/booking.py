# crud/booking.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List
from uuid import UUID

from travelcrm.models.booking import Booking


async def create_booking(db: AsyncSession, booking: Booking) -> Booking:
    db.add(booking)
    await db.flush()
    return booking


async def get_bookings_by_lead(db: AsyncSession, lead_id: UUID) -> List[Booking]:
    result = await db.execute(select(Booking).where(Booking.lead_id == lead_id))
    return list(result.scalars().all())
