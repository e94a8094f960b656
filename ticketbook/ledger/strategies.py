"""
Reservation strategies: how the ledger keeps one writer per event.

OPTIMISTIC (default)
  Read the event and its version, then decrement only if the version is
  unchanged. A concurrent writer bumps the version, the losing UPDATE matches
  no row, and the ledger re-reads and tries again. No locks are held between
  the read and the write, so uncontended bookings never wait.

  Every conflict means another writer committed, so a caller can lose at most
  as many races as there are successful writers before it either wins or sees
  the event sold out.

PESSIMISTIC
  Serialize per event: an in-process asyncio.Lock keyed by event id, plus
  SELECT ... FOR UPDATE on the event row for writers in other processes.
  Conflicts cannot happen, at the cost of queueing every booking for a hot
  event behind the one in front of it.

Either way contention is scoped to one event id; bookings for different
events never wait on each other.
"""

import asyncio
import weakref
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager, nullcontext
from typing import AsyncContextManager, AsyncIterator

from ticketbook.core.config import Settings
from ticketbook.ledger.errors import InsufficientCapacityError
from ticketbook.ledger.records import EventSnapshot
from ticketbook.ledger.stores.interfaces import EventStore


class EventLocks:
    """Per-event asyncio locks, dropped once no task holds or waits on them."""

    def __init__(self) -> None:
        self._locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = weakref.WeakValueDictionary()

    @asynccontextmanager
    async def hold(self, event_id: int) -> AsyncIterator[None]:
        lock = self._locks.get(event_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[event_id] = lock
        async with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)


class ReservationStrategy(ABC):
    """
    Interface for capacity reservation strategies.

    Implementations:
    - OptimisticReservation: versioned conditional update, retried on conflict
    - PessimisticReservation: per-event lock around a row-locked read
    """

    name: str
    max_attempts: int = 1
    lock_row: bool = False
    check_version: bool = False

    @abstractmethod
    def serialize(self, event_id: int) -> AsyncContextManager[None]:
        """Boundary held around each capacity-changing operation on `event_id`."""
        ...

    async def reserve(self, events: EventStore, event_id: int, count: int) -> EventSnapshot:
        """
        Take `count` tickets from the event inside the caller's transaction.

        Returns the snapshot read before the decrement (its price prices the booking).
        """
        event = await events.get_by_id(event_id, for_update=self.lock_row)
        if event.tickets_available < count:
            raise InsufficientCapacityError(event_id, count, event.tickets_available)

        await events.try_reserve(
            event_id,
            count,
            expected_version=event.version if self.check_version else None,
        )
        return event


class OptimisticReservation(ReservationStrategy):
    name = "optimistic"
    check_version = True

    def __init__(self, max_attempts: int) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts

    def serialize(self, event_id: int) -> AsyncContextManager[None]:
        return nullcontext()


class PessimisticReservation(ReservationStrategy):
    name = "pessimistic"
    lock_row = True

    def __init__(self) -> None:
        self._locks = EventLocks()

    def serialize(self, event_id: int) -> AsyncContextManager[None]:
        return self._locks.hold(event_id)


def build_strategy(settings: Settings) -> ReservationStrategy:
    strategy = settings.LEDGER_STRATEGY.lower()
    if strategy == "optimistic":
        return OptimisticReservation(max_attempts=settings.LEDGER_MAX_ATTEMPTS)
    if strategy == "pessimistic":
        return PessimisticReservation()
    raise ValueError(f"Unknown LEDGER_STRATEGY: {settings.LEDGER_STRATEGY!r}")
