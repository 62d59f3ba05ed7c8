"""
Booking endpoints: view, create, and change the room of the caller's booking.

NotFoundError and ForbiddenError raised by the allocator are turned into
404/403 by the exception handlers in main.py.
"""

from fastapi import APIRouter, Body, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.core.config import Settings, get_settings
from hotel_booking.core.security import get_current_user_id
from hotel_booking.db.session import get_db
from hotel_booking.infrastructure.sql_store import SqlAlchemyBookingStore
from hotel_booking.schemas.booking import BookingIdResponse, BookingRoomRequest, BookingWithRoomResponse
from hotel_booking.services.booking_service import BookingAllocator
from hotel_booking.services.cache_service import (
    current_booking_key,
    get_cached_booking,
    invalidate_booking_cache,
    set_cached_booking,
)

router = APIRouter(prefix="/booking", tags=["Booking"])


def get_booking_allocator(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> BookingAllocator:
    return BookingAllocator(
        SqlAlchemyBookingStore(db),
        exempt_current_room=settings.BOOKING_EXEMPT_CURRENT_ROOM,
        max_retry_attempts=settings.BOOKING_MAX_RETRY_ATTEMPTS,
    )


@router.get("", response_model=BookingWithRoomResponse)
async def get_user_booking(
    user_id: int = Depends(get_current_user_id),
    allocator: BookingAllocator = Depends(get_booking_allocator),
):
    """Get the caller's booking with its room. Cached per user."""
    # Resolve the key before the database read; see cache_service
    cache_key = await current_booking_key(user_id)
    cached = await get_cached_booking(cache_key)
    if cached:
        return cached

    booking = await allocator.get_booking(user_id)
    response = BookingWithRoomResponse.model_validate(booking)
    await set_cached_booking(cache_key, response.model_dump(mode="json", by_alias=True))
    return response


@router.post("", response_model=BookingIdResponse)
async def create_user_booking(
    payload: BookingRoomRequest,
    user_id: int = Depends(get_current_user_id),
    allocator: BookingAllocator = Depends(get_booking_allocator),
):
    """
    Book a room for the caller.

    Requires an enrollment with a paid, in-person, hotel-inclusive ticket,
    no existing booking, and a free slot in the room.
    """
    booking = await allocator.create_booking(user_id, payload.room_id)
    await invalidate_booking_cache(user_id)
    return BookingIdResponse(booking_id=booking.id)


@router.put("/{booking_id}", response_model=BookingIdResponse)
async def change_user_booking_room(
    booking_id: int = Path(..., ge=0),
    payload: BookingRoomRequest = Body(...),
    user_id: int = Depends(get_current_user_id),
    allocator: BookingAllocator = Depends(get_booking_allocator),
):
    """Move the caller's booking to another room with a free slot."""
    booking = await allocator.change_booking_room(user_id, payload.room_id, booking_id)
    await invalidate_booking_cache(user_id)
    return BookingIdResponse(booking_id=booking.id)
