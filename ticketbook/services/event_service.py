"""
Event service handling CRUD operations.

Ticket availability is read here but never written: only the booking
ledger changes `tickets_available` and `version`.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import Select, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ticketbook.core.logging import get_logger
from ticketbook.ledger.records import BookingStatus
from ticketbook.models.booking import Booking
from ticketbook.models.event import Event
from ticketbook.schemas.event import EventCreate, EventUpdate
from ticketbook.services.category_service import get_category

logger = get_logger(__name__)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _event_query() -> Select:
    return select(Event).options(selectinload(Event.category)).execution_options(populate_existing=True)


async def create_event(db: AsyncSession, event_data: EventCreate, organizer_id: int) -> Event:
    """Create a new event with every ticket available."""
    if _as_utc(event_data.date) <= datetime.now(timezone.utc):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Event date must be in the future",
        )
    if event_data.category_id is not None:
        await get_category(db, event_data.category_id)

    event = Event(
        title=event_data.title,
        description=event_data.description,
        date=event_data.date,
        location=event_data.location,
        image=event_data.image,
        price=event_data.price,
        capacity=event_data.capacity,
        tickets_available=event_data.capacity,
        category_id=event_data.category_id,
        organizer_id=organizer_id,
    )
    db.add(event)
    await db.flush()

    logger.info("event_created", event_id=event.id, title=event.title, capacity=event.capacity)
    return await get_event(db, event.id)


async def get_event(db: AsyncSession, event_id: int) -> Event:
    """Get a single event by ID."""
    result = await db.execute(_event_query().where(Event.id == event_id))
    event = result.scalar_one_or_none()

    if not event:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Event {event_id} not found",
        )
    return event


async def list_events(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    upcoming_only: bool = True,
    category_id: Optional[int] = None,
    search: Optional[str] = None,
) -> tuple[list[Event], int]:
    """
    List events with pagination and optional filters.
    Uses the ix_events_date index for date filtering and ordering.
    """
    query = _event_query()

    if upcoming_only:
        query = query.where(Event.date >= datetime.now(timezone.utc))
    if category_id is not None:
        query = query.where(Event.category_id == category_id)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(
            or_(func.lower(Event.title).like(pattern), func.lower(Event.description).like(pattern))
        )

    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar()

    events_query = (
        query
        .order_by(Event.date.asc(), Event.id.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await db.execute(events_query)
    events = list(result.scalars().all())

    return events, total


async def list_events_by_category(db: AsyncSession, category_id: int) -> list[Event]:
    await get_category(db, category_id)
    result = await db.execute(
        _event_query().where(Event.category_id == category_id).order_by(Event.date.asc())
    )
    return list(result.scalars().all())


async def _get_owned_event(db: AsyncSession, event_id: int, user_id: int) -> Event:
    event = await get_event(db, event_id)
    if event.organizer_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the organizer can modify this event",
        )
    return event


async def update_event(db: AsyncSession, event_id: int, event_data: EventUpdate, user_id: int) -> Event:
    """Update descriptive fields and price. Existing bookings keep the price they paid."""
    event = await _get_owned_event(db, event_id, user_id)
    changes = event_data.model_dump(exclude_unset=True)

    if changes.get("date") is not None and _as_utc(changes["date"]) <= datetime.now(timezone.utc):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Event date must be in the future",
        )
    if changes.get("category_id") is not None:
        await get_category(db, changes["category_id"])

    for field, value in changes.items():
        setattr(event, field, value)
    await db.flush()

    logger.info("event_updated", event_id=event.id, fields=sorted(changes))
    return await get_event(db, event.id)


async def delete_event(db: AsyncSession, event_id: int, user_id: int) -> None:
    event = await _get_owned_event(db, event_id, user_id)

    await db.execute(
        delete(Booking).where(
            Booking.event_id == event.id,
            Booking.status == BookingStatus.CANCELLED.value,
        )
    )
    # Every ticket back in stock means no confirmed booking references the event
    result = await db.execute(
        delete(Event).where(Event.id == event.id, Event.tickets_available == Event.capacity)
    )
    if result.rowcount == 0:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Event has confirmed bookings and cannot be deleted",
        )
    logger.info("event_deleted", event_id=event_id)
