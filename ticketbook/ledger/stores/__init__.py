from ticketbook.ledger.stores.interfaces import BookingStore, EventStore, LedgerStore
from ticketbook.ledger.stores.sqlalchemy_store import SqlAlchemyLedgerStore

__all__ = ["EventStore", "BookingStore", "LedgerStore", "SqlAlchemyLedgerStore"]
