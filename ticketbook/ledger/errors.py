"""Error taxonomy for the booking ledger.

Business failures are terminal for the call and map to 4xx responses.
`ConflictExhaustedError` and `StoreUnavailableError` are transient and map to
5xx; the caller may retry them.
"""

from enum import Enum


class ErrorCode(Enum):
    """Stable error codes returned to API clients."""

    INVALID_REQUEST = "INVALID_REQUEST"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    INSUFFICIENT_CAPACITY = "INSUFFICIENT_CAPACITY"
    ALREADY_CANCELLED = "ALREADY_CANCELLED"
    VERSION_CONFLICT = "VERSION_CONFLICT"
    CONFLICT_EXHAUSTED = "CONFLICT_EXHAUSTED"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


class LedgerError(Exception):
    """Base ledger error with code and user-safe message."""

    code: ErrorCode
    transient = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class InvalidRequestError(LedgerError):
    """Raised when an operation's input is malformed or out of range."""

    code = ErrorCode.INVALID_REQUEST


class EventNotFoundError(LedgerError):
    """Raised when an event does not exist."""

    code = ErrorCode.EVENT_NOT_FOUND

    def __init__(self, event_id: int) -> None:
        super().__init__(f"Event {event_id} not found")
        self.event_id = event_id


class BookingNotFoundError(LedgerError):
    """Raised when a booking does not exist (or is not visible to the caller)."""

    code = ErrorCode.BOOKING_NOT_FOUND

    def __init__(self, booking_id: int) -> None:
        super().__init__(f"Booking {booking_id} not found")
        self.booking_id = booking_id


class UserNotFoundError(LedgerError):
    """Raised when a booking references a user that does not exist."""

    code = ErrorCode.USER_NOT_FOUND

    def __init__(self, user_id: int) -> None:
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class InsufficientCapacityError(LedgerError):
    """Raised when an event cannot cover the requested tickets."""

    code = ErrorCode.INSUFFICIENT_CAPACITY

    def __init__(self, event_id: int, requested: int, available: int) -> None:
        super().__init__(
            f"Not enough tickets available. Requested: {requested}, Available: {available}"
        )
        self.event_id = event_id
        self.requested = requested
        self.available = available


class AlreadyCancelledError(LedgerError):
    """Raised when cancelling a booking that is already cancelled."""

    code = ErrorCode.ALREADY_CANCELLED

    def __init__(self, booking_id: int) -> None:
        super().__init__(f"Booking {booking_id} is already cancelled")
        self.booking_id = booking_id


class VersionConflictError(LedgerError):
    """Raised by a store when a versioned update lost a race. Internal to the ledger."""

    code = ErrorCode.VERSION_CONFLICT
    transient = True

    def __init__(self, event_id: int, expected_version: int) -> None:
        super().__init__(f"Event {event_id} changed since version {expected_version}")
        self.event_id = event_id
        self.expected_version = expected_version


class ConflictExhaustedError(LedgerError):
    """Raised when optimistic retries ran out under contention."""

    code = ErrorCode.CONFLICT_EXHAUSTED
    transient = True

    def __init__(self, event_id: int, attempts: int) -> None:
        super().__init__("Booking failed due to high demand. Please try again.")
        self.event_id = event_id
        self.attempts = attempts


class StoreUnavailableError(LedgerError):
    """Raised when the store kept failing transiently after bounded retries."""

    code = ErrorCode.STORE_UNAVAILABLE
    transient = True

    def __init__(self, operation: str, attempts: int) -> None:
        super().__init__("Booking storage is temporarily unavailable. Please try again.")
        self.operation = operation
        self.attempts = attempts
