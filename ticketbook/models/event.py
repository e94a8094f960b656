"""
Event model with ticket inventory tracking.

Key design decisions:
- `tickets_available` is denormalized (avoids a SUM over bookings on every read)
  and is only ever changed by the booking ledger
- `capacity` is fixed at creation; CHECK constraints pin availability to [0, capacity]
- `version` is bumped on every availability change and drives optimistic locking
"""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import relationship

from ticketbook.db.base import Base, TimestampMixin


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(String(2000), nullable=False, default="")
    date = Column(DateTime(timezone=True), nullable=False)
    location = Column(String(255), nullable=False)
    image = Column(String(500), nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    capacity = Column(Integer, nullable=False)
    tickets_available = Column(Integer, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)
    organizer_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Optimistic locking version counter
    version = Column(Integer, nullable=False, default=1)

    organizer = relationship("User", back_populates="events")
    category = relationship("Category", back_populates="events")
    bookings = relationship("Booking", back_populates="event")

    __table_args__ = (
        CheckConstraint("tickets_available >= 0", name="check_tickets_available_non_negative"),
        CheckConstraint("capacity > 0", name="check_capacity_positive"),
        CheckConstraint("tickets_available <= capacity", name="check_available_lte_capacity"),
        CheckConstraint("price >= 0", name="check_price_non_negative"),
        Index("ix_events_date", "date"),
        Index("ix_events_available_date", "tickets_available", "date"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title}, available={self.tickets_available}/{self.capacity})>"
