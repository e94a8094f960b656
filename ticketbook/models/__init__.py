from ticketbook.models.booking import Booking
from ticketbook.models.category import Category
from ticketbook.models.event import Event
from ticketbook.models.user import User

__all__ = ["User", "Category", "Event", "Booking"]
