"""
Pydantic schemas for booking-related request/response validation.

Ticket counts are checked by the booking ledger, not here, so every
out-of-range count surfaces as the ledger's INVALID_REQUEST error.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from ticketbook.ledger.records import BookingStatus
from ticketbook.schemas.event import EventSummary
from ticketbook.schemas.user import UserSummary


class BookingCreate(BaseModel):
    event_id: int
    number_of_tickets: int


class BookingResponse(BaseModel):
    id: int
    user_id: int
    event_id: int
    number_of_tickets: int
    total_price: Decimal
    status: BookingStatus
    booking_date: datetime
    created_at: datetime
    updated_at: datetime
    event: Optional[EventSummary] = None
    user: Optional[UserSummary] = None
