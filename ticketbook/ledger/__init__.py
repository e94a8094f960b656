"""
Booking ledger: atomic create/cancel of bookings against event capacity.
"""

from ticketbook.ledger.errors import (
    AlreadyCancelledError,
    BookingNotFoundError,
    ConflictExhaustedError,
    ErrorCode,
    EventNotFoundError,
    InsufficientCapacityError,
    InvalidRequestError,
    LedgerError,
    StoreUnavailableError,
    UserNotFoundError,
)
from ticketbook.ledger.factory import build_ledger, get_ledger
from ticketbook.ledger.ledger import BookingLedger
from ticketbook.ledger.records import BookingRecord, BookingStatus, EventSnapshot

__all__ = [
    "BookingLedger",
    "BookingRecord",
    "BookingStatus",
    "EventSnapshot",
    "build_ledger",
    "get_ledger",
    "ErrorCode",
    "LedgerError",
    "InvalidRequestError",
    "EventNotFoundError",
    "BookingNotFoundError",
    "InsufficientCapacityError",
    "AlreadyCancelledError",
    "ConflictExhaustedError",
    "StoreUnavailableError",
    "UserNotFoundError",
]
