"""
Booking ledger factory.
Wires the configured reservation strategy to the SQLAlchemy store adapter.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ticketbook.core.config import Settings, get_settings
from ticketbook.ledger.ledger import BookingLedger
from ticketbook.ledger.stores.sqlalchemy_store import SqlAlchemyLedgerStore
from ticketbook.ledger.strategies import build_strategy


def build_ledger(
    session_factory: async_sessionmaker[AsyncSession],
    settings: Optional[Settings] = None,
) -> BookingLedger:
    settings = settings or get_settings()
    store = SqlAlchemyLedgerStore(
        session_factory,
        attempts=settings.STORE_RETRY_ATTEMPTS,
        timeout=settings.STORE_TIMEOUT_SECONDS,
        backoff=settings.STORE_RETRY_BACKOFF,
    )
    return BookingLedger(
        store,
        build_strategy(settings),
        max_tickets_per_booking=settings.MAX_TICKETS_PER_BOOKING,
        conflict_backoff=settings.LEDGER_CONFLICT_BACKOFF,
    )


# Singleton instance; per-event locks of the pessimistic strategy live on it
_ledger: Optional[BookingLedger] = None


def get_ledger() -> BookingLedger:
    """FastAPI dependency returning the process-wide ledger."""
    global _ledger
    if _ledger is None:
        from ticketbook.db.session import AsyncSessionLocal

        _ledger = build_ledger(AsyncSessionLocal)
    return _ledger
