"""
Pydantic schemas for event-related request/response validation.

Capacity is set once on create. Availability is never client-writable; only
the booking ledger moves it.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from ticketbook.schemas.category import CategoryResponse


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field("", max_length=2000)
    date: datetime
    location: str = Field(..., min_length=1, max_length=255)
    image: Optional[str] = Field(None, max_length=500)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    capacity: int = Field(..., gt=0, le=100000)
    category_id: Optional[int] = None


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    date: Optional[datetime] = None
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    image: Optional[str] = Field(None, max_length=500)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    category_id: Optional[int] = None


class EventResponse(BaseModel):
    id: int
    title: str
    description: str
    date: datetime
    location: str
    image: Optional[str]
    price: Decimal
    capacity: int
    tickets_available: int
    category_id: Optional[int]
    category: Optional[CategoryResponse] = None
    organizer_id: int
    created_at: datetime

    model_config = {"from_attributes": True}


class EventSummary(BaseModel):
    id: int
    title: str
    date: datetime
    location: str
    price: Decimal
    image: Optional[str]

    model_config = {"from_attributes": True}


class EventListResponse(BaseModel):
    events: list[EventResponse]
    total: int
    page: int
    page_size: int
    cached: bool = False
