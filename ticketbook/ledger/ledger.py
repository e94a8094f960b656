"""
Booking ledger: the only code that moves tickets between events and bookings.

INVARIANT
=========
For every event, at every quiescent point:

    capacity - tickets_available == sum(number_of_tickets of its confirmed bookings)

How it holds:
  - Creating a booking decrements availability and inserts the booking in one
    transaction. Both commit or neither does.
  - Cancelling flips confirmed -> cancelled with a guarded UPDATE (only a
    confirmed booking matches) and restores availability in the same
    transaction. A second cancel matches nothing and restores nothing.
  - Capacity-changing operations on one event go through the configured
    ReservationStrategy, which admits one writer per event at a time.

Business failures (not found, sold out, already cancelled, bad input) are
raised on the first attempt and never retried here. Transient storage faults
are retried by the store adapter, below this layer.
"""

import asyncio
import random
import time
from contextlib import asynccontextmanager
from functools import partial
from typing import AsyncIterator, Optional

from ticketbook.core.logging import get_logger
from ticketbook.core.metrics import booking_latency, record_booking_outcome, record_conflict_retry
from ticketbook.ledger.errors import (
    AlreadyCancelledError,
    BookingNotFoundError,
    ConflictExhaustedError,
    InsufficientCapacityError,
    InvalidRequestError,
    LedgerError,
    UserNotFoundError,
    VersionConflictError,
)
from ticketbook.ledger.records import BookingRecord, BookingStatus, NewBooking
from ticketbook.ledger.stores.interfaces import BookingStore, EventStore, LedgerStore
from ticketbook.ledger.strategies import ReservationStrategy

logger = get_logger(__name__)

MAX_CONFLICT_DELAY = 0.1  # seconds


@asynccontextmanager
async def _instrumented(operation: str) -> AsyncIterator[None]:
    start = time.perf_counter()
    try:
        yield
    except LedgerError as exc:
        record_booking_outcome(operation, exc.code.value.lower())
        raise
    else:
        record_booking_outcome(operation, "success")
    finally:
        booking_latency.labels(operation=operation).observe(time.perf_counter() - start)


async def _find_booking(booking_id: int, events: EventStore, bookings: BookingStore) -> Optional[BookingRecord]:
    return await bookings.find_by_id(booking_id)


async def _find_user_bookings(user_id: int, events: EventStore, bookings: BookingStore) -> list[BookingRecord]:
    return await bookings.find_by_user(user_id)


async def _find_event_bookings(event_id: int, events: EventStore, bookings: BookingStore) -> list[BookingRecord]:
    return await bookings.find_by_event(event_id)


class BookingLedger:
    def __init__(
        self,
        store: LedgerStore,
        strategy: ReservationStrategy,
        *,
        max_tickets_per_booking: int = 10,
        conflict_backoff: float = 0.005,
    ) -> None:
        self._store = store
        self._strategy = strategy
        self._max_tickets = max_tickets_per_booking
        self._conflict_backoff = conflict_backoff

    @property
    def strategy(self) -> ReservationStrategy:
        return self._strategy

    async def create_booking(self, user_id: int, event_id: int, requested_tickets: int) -> BookingRecord:
        """
        Reserve `requested_tickets` for `user_id` and record a confirmed booking.

        Raises:
            InvalidRequestError: ticket count not a positive integer within the per-booking limit.
            UserNotFoundError: unknown user.
            EventNotFoundError: unknown event.
            InsufficientCapacityError: not enough tickets left; nothing is reserved.
            ConflictExhaustedError: optimistic retries ran out under contention.
            StoreUnavailableError: storage kept failing transiently.
        """
        async with _instrumented("create"):
            self._check_ticket_count(requested_tickets)
            return await self._create(user_id, event_id, requested_tickets)

    async def cancel_booking(self, booking_id: int, *, user_id: Optional[int] = None) -> BookingRecord:
        """
        Cancel a confirmed booking and give its tickets back to the event.

        With `user_id`, bookings owned by someone else are reported as not found.

        Raises:
            BookingNotFoundError: unknown booking (or not the caller's).
            AlreadyCancelledError: the booking was cancelled before; nothing changes.
            StoreUnavailableError: storage kept failing transiently.
        """
        async with _instrumented("cancel"):
            existing = await self._store.run(partial(_find_booking, booking_id), name="find_booking")
            if existing is None or (user_id is not None and existing.user_id != user_id):
                raise BookingNotFoundError(booking_id)
            if existing.is_cancelled:
                raise AlreadyCancelledError(booking_id)

            # event_id is immutable, so the boundary can be chosen before the transaction
            async with self._strategy.serialize(existing.event_id):
                booking = await self._store.run(
                    partial(self._cancel_and_release, booking_id),
                    name="cancel_booking",
                )

            logger.info(
                "booking_cancelled",
                booking_id=booking.id,
                user_id=booking.user_id,
                event_id=booking.event_id,
                tickets_restored=booking.number_of_tickets,
            )
            return booking

    async def get_booking(self, booking_id: int) -> BookingRecord:
        booking = await self._store.run(partial(_find_booking, booking_id), name="get_booking")
        if booking is None:
            raise BookingNotFoundError(booking_id)
        return booking

    async def get_user_bookings(self, user_id: int) -> list[BookingRecord]:
        return await self._store.run(partial(_find_user_bookings, user_id), name="get_user_bookings")

    async def get_event_bookings(self, event_id: int) -> list[BookingRecord]:
        """Bookings for an event, newest first. Unknown events simply have none."""
        return await self._store.run(partial(_find_event_bookings, event_id), name="get_event_bookings")

    def _check_ticket_count(self, requested: int) -> None:
        if isinstance(requested, bool) or not isinstance(requested, int):
            raise InvalidRequestError("number_of_tickets must be an integer")
        if requested < 1:
            raise InvalidRequestError("number_of_tickets must be at least 1")
        if requested > self._max_tickets:
            raise InvalidRequestError(f"number_of_tickets cannot exceed {self._max_tickets}")

    async def _create(self, user_id: int, event_id: int, count: int) -> BookingRecord:
        max_attempts = self._strategy.max_attempts

        async with self._strategy.serialize(event_id):
            for attempt in range(1, max_attempts + 1):
                try:
                    booking = await self._store.run(
                        partial(self._reserve_and_record, user_id, event_id, count),
                        name="create_booking",
                    )
                except VersionConflictError:
                    record_conflict_retry()
                    logger.info(
                        "booking_conflict_retry",
                        event_id=event_id,
                        attempt=attempt,
                        max_attempts=max_attempts,
                    )
                    if attempt < max_attempts:
                        await asyncio.sleep(self._conflict_delay(attempt))
                    continue
                except InsufficientCapacityError as exc:
                    logger.warning(
                        "booking_rejected_insufficient_capacity",
                        event_id=event_id,
                        requested=exc.requested,
                        available=exc.available,
                    )
                    raise

                logger.info(
                    "booking_created",
                    booking_id=booking.id,
                    user_id=user_id,
                    event_id=event_id,
                    tickets=count,
                    total_price=str(booking.total_price),
                    attempt=attempt,
                    strategy=self._strategy.name,
                )
                return booking

        logger.warning("booking_conflict_exhausted", event_id=event_id, attempts=max_attempts)
        raise ConflictExhaustedError(event_id, max_attempts)

    async def _reserve_and_record(
        self,
        user_id: int,
        event_id: int,
        count: int,
        events: EventStore,
        bookings: BookingStore,
    ) -> BookingRecord:
        if not await bookings.user_exists(user_id):
            raise UserNotFoundError(user_id)
        event = await self._strategy.reserve(events, event_id, count)
        return await bookings.insert(
            NewBooking(
                user_id=user_id,
                event_id=event_id,
                number_of_tickets=count,
                total_price=event.price * count,
            )
        )

    async def _cancel_and_release(
        self, booking_id: int, events: EventStore, bookings: BookingStore
    ) -> BookingRecord:
        cancelled = await bookings.update_status(
            booking_id,
            BookingStatus.CANCELLED,
            expected_status=BookingStatus.CONFIRMED,
        )
        if cancelled is None:
            # Lost the race to a concurrent cancel
            raise AlreadyCancelledError(booking_id)

        await events.release(cancelled.event_id, cancelled.number_of_tickets)
        return cancelled

    def _conflict_delay(self, attempt: int) -> float:
        delay = min(self._conflict_backoff * (2 ** (attempt - 1)), MAX_CONFLICT_DELAY)
        return delay * random.uniform(0.5, 1.5)
