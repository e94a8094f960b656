"""
Booking endpoints backed by the booking ledger.

The ledger commits in its own transaction; the request session is only used
afterwards to attach event/user summaries to the response.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticketbook.core.security import get_current_user_id
from ticketbook.db.session import get_db
from ticketbook.ledger import BookingLedger, get_ledger
from ticketbook.schemas.booking import BookingCreate, BookingResponse
from ticketbook.services.booking_views import compose_booking_view, compose_booking_views
from ticketbook.services.cache_service import invalidate_event_cache

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    user_id: int = Depends(get_current_user_id),
    ledger: BookingLedger = Depends(get_ledger),
    db: AsyncSession = Depends(get_db),
):
    """
    Book tickets for an event.

    409 INSUFFICIENT_CAPACITY when too few tickets remain, 404 when the event
    does not exist, 503 with Retry-After when the booking should be retried.
    """
    booking = await ledger.create_booking(user_id, booking_data.event_id, booking_data.number_of_tickets)
    await invalidate_event_cache()
    return await compose_booking_view(db, booking)


@router.get("/user/my-bookings", response_model=list[BookingResponse])
async def list_my_bookings(
    user_id: int = Depends(get_current_user_id),
    ledger: BookingLedger = Depends(get_ledger),
    db: AsyncSession = Depends(get_db),
):
    """All bookings of the authenticated user, newest first."""
    bookings = await ledger.get_user_bookings(user_id)
    return await compose_booking_views(db, bookings)


@router.get("/event/{event_id}", response_model=list[BookingResponse])
async def list_event_bookings(
    event_id: int,
    ledger: BookingLedger = Depends(get_ledger),
    db: AsyncSession = Depends(get_db),
):
    bookings = await ledger.get_event_bookings(event_id)
    return await compose_booking_views(db, bookings)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    ledger: BookingLedger = Depends(get_ledger),
    db: AsyncSession = Depends(get_db),
):
    booking = await ledger.get_booking(booking_id)
    return await compose_booking_view(db, booking)


@router.put("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: int,
    user_id: int = Depends(get_current_user_id),
    ledger: BookingLedger = Depends(get_ledger),
    db: AsyncSession = Depends(get_db),
):
    """Cancel one of your bookings and release its tickets."""
    booking = await ledger.cancel_booking(booking_id, user_id=user_id)
    await invalidate_event_cache()
    return await compose_booking_view(db, booking)
