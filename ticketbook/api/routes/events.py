"""
Event endpoints with Redis caching on list operations.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticketbook.core.logging import get_logger
from ticketbook.core.security import get_current_user_id
from ticketbook.db.session import get_db
from ticketbook.schemas.event import EventCreate, EventListResponse, EventResponse, EventUpdate
from ticketbook.services import event_service
from ticketbook.services.cache_service import (
    get_cached_events,
    invalidate_event_cache,
    make_event_list_key,
    set_cached_events,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Create a new event. Requires authentication."""
    event = await event_service.create_event(db, event_data, user_id)
    await invalidate_event_cache()
    return event


@router.get("/", response_model=EventListResponse)
async def list_events_endpoint(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    upcoming_only: bool = Query(True),
    category_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
):
    """
    List events with pagination and filters.
    Results are cached in Redis and invalidated whenever availability changes.
    """
    key = make_event_list_key(page, page_size, upcoming_only, category_id, search)
    cached = await get_cached_events(key)
    if cached:
        logger.info("events_list_cache_hit", page=page)
        cached["cached"] = True
        return EventListResponse(**cached)

    events, total = await event_service.list_events(
        db, page, page_size, upcoming_only, category_id=category_id, search=search
    )

    response_data = {
        "events": [EventResponse.model_validate(e).model_dump() for e in events],
        "total": total,
        "page": page,
        "page_size": page_size,
        "cached": False,
    }
    await set_cached_events(key, response_data)

    return EventListResponse(**response_data)


@router.get("/category/{category_id}", response_model=list[EventResponse])
async def list_events_by_category_endpoint(category_id: int, db: AsyncSession = Depends(get_db)):
    return await event_service.list_events_by_category(db, category_id)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(event_id: int, db: AsyncSession = Depends(get_db)):
    """Get a single event by ID. Not cached (needs real-time availability)."""
    return await event_service.get_event(db, event_id)


@router.put("/{event_id}", response_model=EventResponse)
async def update_event_endpoint(
    event_id: int,
    event_data: EventUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Update an event. Organizer only."""
    event = await event_service.update_event(db, event_id, event_data, user_id)
    await invalidate_event_cache()
    return event


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event_endpoint(
    event_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Delete an event with no confirmed bookings. Organizer only."""
    await event_service.delete_event(db, event_id, user_id)
    await invalidate_event_cache()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
