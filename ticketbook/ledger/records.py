"""Plain records exchanged between the ledger and its stores.

These carry no ORM state, so they are safe to hand across transactions.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class EventSnapshot:
    """Capacity-relevant view of an event at one point in time."""

    id: int
    capacity: int
    tickets_available: int
    price: Decimal
    version: int


@dataclass(frozen=True)
class NewBooking:
    user_id: int
    event_id: int
    number_of_tickets: int
    total_price: Decimal


@dataclass(frozen=True)
class BookingRecord:
    id: int
    user_id: int
    event_id: int
    number_of_tickets: int
    total_price: Decimal
    status: BookingStatus
    booking_date: datetime
    created_at: datetime
    updated_at: datetime

    @property
    def is_cancelled(self) -> bool:
        return self.status is BookingStatus.CANCELLED
