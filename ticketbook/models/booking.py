"""
Booking model: one user's reservation of tickets for an event.

- Status moves confirmed -> cancelled once; rows are never deleted
- total_price is frozen at creation so later price edits do not rewrite history
"""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Numeric, String, func
from sqlalchemy.orm import relationship

from ticketbook.db.base import Base, TimestampMixin


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    number_of_tickets = Column(Integer, nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), nullable=False, default="confirmed")
    booking_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    user = relationship("User", back_populates="bookings")
    event = relationship("Event", back_populates="bookings")

    __table_args__ = (
        CheckConstraint("number_of_tickets > 0", name="check_booking_tickets_positive"),
        CheckConstraint("total_price >= 0", name="check_booking_total_non_negative"),
        CheckConstraint("status IN ('confirmed', 'cancelled')", name="check_booking_status"),
        Index("ix_bookings_event_status", "event_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, user={self.user_id}, event={self.event_id}, status={self.status})>"
