"""
SQLAlchemy implementation of the ledger stores.

Availability changes are single conditional UPDATE statements, so the check
and the write happen in one round trip and the database decides the race:

    UPDATE events
       SET tickets_available = tickets_available - :n, version = version + 1
     WHERE id = :id AND tickets_available >= :n [AND version = :v]

rowcount == 0 means the event is gone, short on tickets, or (with a version
guard) changed since it was read. A follow-up read tells those apart.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import case, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ticketbook.core.config import get_settings
from ticketbook.ledger.errors import (
    BookingNotFoundError,
    EventNotFoundError,
    InsufficientCapacityError,
    UserNotFoundError,
    VersionConflictError,
)
from ticketbook.ledger.records import BookingRecord, BookingStatus, EventSnapshot, NewBooking
from ticketbook.ledger.stores.interfaces import BookingStore, EventStore, LedgerStore, T, Work
from ticketbook.ledger.stores.retry import call_with_retry
from ticketbook.models.booking import Booking
from ticketbook.models.event import Event
from ticketbook.models.user import User


def to_booking_record(booking: Booking) -> BookingRecord:
    return BookingRecord(
        id=booking.id,
        user_id=booking.user_id,
        event_id=booking.event_id,
        number_of_tickets=booking.number_of_tickets,
        total_price=Decimal(booking.total_price),
        status=BookingStatus(booking.status),
        booking_date=booking.booking_date,
        created_at=booking.created_at,
        updated_at=booking.updated_at,
    )


class SqlAlchemyEventStore(EventStore):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, event_id: int, *, for_update: bool = False) -> EventSnapshot:
        # Column select, not an entity: never served from a stale identity map
        query = select(
            Event.id, Event.capacity, Event.tickets_available, Event.price, Event.version
        ).where(Event.id == event_id)
        if for_update:
            query = query.with_for_update()

        row = (await self._session.execute(query)).one_or_none()
        if row is None:
            raise EventNotFoundError(event_id)

        return EventSnapshot(
            id=row.id,
            capacity=row.capacity,
            tickets_available=row.tickets_available,
            price=Decimal(row.price),
            version=row.version,
        )

    async def try_reserve(
        self, event_id: int, count: int, *, expected_version: Optional[int] = None
    ) -> None:
        conditions = [Event.id == event_id, Event.tickets_available >= count]
        if expected_version is not None:
            conditions.append(Event.version == expected_version)

        result = await self._session.execute(
            update(Event)
            .where(*conditions)
            .values(
                tickets_available=Event.tickets_available - count,
                version=Event.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            return

        current = await self.get_by_id(event_id)
        if current.tickets_available < count:
            raise InsufficientCapacityError(event_id, count, current.tickets_available)
        raise VersionConflictError(
            event_id, expected_version if expected_version is not None else current.version
        )

    async def release(self, event_id: int, count: int) -> None:
        restored = Event.tickets_available + count
        result = await self._session.execute(
            update(Event)
            .where(Event.id == event_id)
            .values(
                tickets_available=case((restored > Event.capacity, Event.capacity), else_=restored),
                version=Event.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise EventNotFoundError(event_id)


class SqlAlchemyBookingStore(BookingStore):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def user_exists(self, user_id: int) -> bool:
        result = await self._session.execute(select(User.id).where(User.id == user_id))
        return result.first() is not None

    async def insert(self, booking: NewBooking) -> BookingRecord:
        row = Booking(
            user_id=booking.user_id,
            event_id=booking.event_id,
            number_of_tickets=booking.number_of_tickets,
            total_price=booking.total_price,
            status=BookingStatus.CONFIRMED.value,
        )
        self._session.add(row)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            # User deleted between the existence check and the insert
            raise UserNotFoundError(booking.user_id) from exc
        await self._session.refresh(row)
        return to_booking_record(row)

    async def update_status(
        self,
        booking_id: int,
        new_status: BookingStatus,
        *,
        expected_status: Optional[BookingStatus] = None,
    ) -> Optional[BookingRecord]:
        conditions = [Booking.id == booking_id]
        if expected_status is not None:
            conditions.append(Booking.status == expected_status.value)

        result = await self._session.execute(
            update(Booking)
            .where(*conditions)
            .values(status=new_status.value)
            .execution_options(synchronize_session=False)
        )

        record = await self.find_by_id(booking_id)
        if record is None:
            raise BookingNotFoundError(booking_id)
        if result.rowcount == 0:
            return None
        return record

    async def find_by_id(self, booking_id: int) -> Optional[BookingRecord]:
        result = await self._session.execute(
            select(Booking)
            .where(Booking.id == booking_id)
            .execution_options(populate_existing=True)
        )
        booking = result.scalar_one_or_none()
        return to_booking_record(booking) if booking else None

    async def find_by_user(self, user_id: int) -> list[BookingRecord]:
        result = await self._session.execute(
            select(Booking)
            .where(Booking.user_id == user_id)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
        )
        return [to_booking_record(b) for b in result.scalars().all()]

    async def find_by_event(self, event_id: int) -> list[BookingRecord]:
        result = await self._session.execute(
            select(Booking)
            .where(Booking.event_id == event_id)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
        )
        return [to_booking_record(b) for b in result.scalars().all()]


class SqlAlchemyLedgerStore(LedgerStore):
    """
    One session and one transaction per `run` call.

    The whole transaction is the unit of retry: a transient failure anywhere
    inside it rolls everything back, then the callback runs again from scratch.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        attempts: Optional[int] = None,
        timeout: Optional[float] = None,
        backoff: Optional[float] = None,
    ) -> None:
        settings = get_settings()
        self._session_factory = session_factory
        self._attempts = attempts if attempts is not None else settings.STORE_RETRY_ATTEMPTS
        self._timeout = timeout if timeout is not None else settings.STORE_TIMEOUT_SECONDS
        self._backoff = backoff if backoff is not None else settings.STORE_RETRY_BACKOFF

    async def run(self, work: Work[T], *, name: str) -> T:
        async def transaction() -> T:
            async with self._session_factory() as session:
                async with session.begin():
                    return await work(
                        SqlAlchemyEventStore(session), SqlAlchemyBookingStore(session)
                    )

        return await call_with_retry(
            transaction,
            name=name,
            attempts=self._attempts,
            timeout=self._timeout,
            backoff=self._backoff,
        )
