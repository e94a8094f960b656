from ticketbook.schemas.booking import BookingCreate, BookingResponse
from ticketbook.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from ticketbook.schemas.event import EventCreate, EventListResponse, EventResponse, EventSummary, EventUpdate
from ticketbook.schemas.user import Token, UserCreate, UserLogin, UserResponse, UserSummary

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "UserSummary", "Token",
    "CategoryCreate", "CategoryUpdate", "CategoryResponse",
    "EventCreate", "EventUpdate", "EventResponse", "EventSummary", "EventListResponse",
    "BookingCreate", "BookingResponse",
]
