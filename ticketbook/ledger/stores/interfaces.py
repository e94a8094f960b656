"""Store interfaces consumed by the booking ledger.

Stores must be swappable and return ledger records, never ORM objects.
An EventStore and a BookingStore handed to a `LedgerStore.run` callback share
one transaction: everything the callback does commits together or not at all.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, TypeVar

from ticketbook.ledger.records import BookingRecord, BookingStatus, EventSnapshot, NewBooking

T = TypeVar("T")


class EventStore(ABC):
    """Capacity operations on events."""

    @abstractmethod
    async def get_by_id(self, event_id: int, *, for_update: bool = False) -> EventSnapshot:
        """Return the event's capacity snapshot.

        With `for_update`, the row stays locked until the transaction ends.

        Raises:
            EventNotFoundError: If the event does not exist.
        """
        ...

    @abstractmethod
    async def try_reserve(
        self, event_id: int, count: int, *, expected_version: Optional[int] = None
    ) -> None:
        """Atomically decrement availability by `count` if enough tickets remain.

        When `expected_version` is given, the decrement also requires the event
        to still be at that version.

        Raises:
            EventNotFoundError: If the event does not exist.
            InsufficientCapacityError: If fewer than `count` tickets remain.
            VersionConflictError: If the version moved on but capacity was sufficient.
        """
        ...

    @abstractmethod
    async def release(self, event_id: int, count: int) -> None:
        """Atomically increment availability by `count`, never above capacity.

        Raises:
            EventNotFoundError: If the event does not exist.
        """
        ...


class BookingStore(ABC):
    """Persistence for booking records."""

    @abstractmethod
    async def user_exists(self, user_id: int) -> bool:
        """Whether `user_id` refers to an existing user."""
        ...

    @abstractmethod
    async def insert(self, booking: NewBooking) -> BookingRecord:
        """Persist a new confirmed booking and return it.

        Raises:
            UserNotFoundError: If the database rejects the user reference.
        """
        ...

    @abstractmethod
    async def update_status(
        self,
        booking_id: int,
        new_status: BookingStatus,
        *,
        expected_status: Optional[BookingStatus] = None,
    ) -> Optional[BookingRecord]:
        """Set a booking's status, optionally only if it currently has `expected_status`.

        Returns the updated record, or None when the guard did not match.

        Raises:
            BookingNotFoundError: If the booking does not exist.
        """
        ...

    @abstractmethod
    async def find_by_id(self, booking_id: int) -> Optional[BookingRecord]:
        ...

    @abstractmethod
    async def find_by_user(self, user_id: int) -> list[BookingRecord]:
        """Return a user's bookings, newest first."""
        ...

    @abstractmethod
    async def find_by_event(self, event_id: int) -> list[BookingRecord]:
        """Return an event's bookings, newest first."""
        ...


Work = Callable[[EventStore, BookingStore], Awaitable[T]]


class LedgerStore(ABC):
    """Transaction boundary around the event and booking stores."""

    @abstractmethod
    async def run(self, work: Work[T], *, name: str) -> T:
        """Run `work` inside one atomic transaction and return its result.

        Transient infrastructure failures are retried with bounded backoff;
        exhaustion surfaces as StoreUnavailableError. Ledger errors raised by
        `work` roll the transaction back and propagate unchanged.
        """
        ...
