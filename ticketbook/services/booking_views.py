"""
Read-side composition of booking responses.

Ledger records carry ids only. This attaches event and user summaries for
display with two batched lookups, outside any reservation transaction.
"""

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ticketbook.ledger.records import BookingRecord
from ticketbook.models.event import Event
from ticketbook.models.user import User
from ticketbook.schemas.booking import BookingResponse
from ticketbook.schemas.event import EventSummary
from ticketbook.schemas.user import UserSummary


async def compose_booking_views(
    db: AsyncSession,
    records: Iterable[BookingRecord],
    *,
    include_user: bool = True,
) -> list[BookingResponse]:
    records = list(records)
    if not records:
        return []

    event_ids = {r.event_id for r in records}
    events_result = await db.execute(select(Event).where(Event.id.in_(event_ids)))
    events = {e.id: EventSummary.model_validate(e) for e in events_result.scalars().all()}

    users: dict[int, UserSummary] = {}
    if include_user:
        user_ids = {r.user_id for r in records}
        users_result = await db.execute(select(User).where(User.id.in_(user_ids)))
        users = {u.id: UserSummary.model_validate(u) for u in users_result.scalars().all()}

    return [
        BookingResponse(
            id=r.id,
            user_id=r.user_id,
            event_id=r.event_id,
            number_of_tickets=r.number_of_tickets,
            total_price=r.total_price,
            status=r.status,
            booking_date=r.booking_date,
            created_at=r.created_at,
            updated_at=r.updated_at,
            event=events.get(r.event_id),
            user=users.get(r.user_id),
        )
        for r in records
    ]


async def compose_booking_view(db: AsyncSession, record: BookingRecord) -> BookingResponse:
    views = await compose_booking_views(db, [record])
    return views[0]
