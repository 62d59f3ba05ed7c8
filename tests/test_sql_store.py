"""
Tests for the SQLAlchemy booking store: row mapping, occupancy counting and
the one-booking-per-user constraint.
"""

import pytest

from hotel_booking.core.errors import ForbiddenError, ForbiddenReason, StoreConflictError
from hotel_booking.domain import entities
from hotel_booking.domain.entities import TicketStatus
from hotel_booking.infrastructure.sql_store import SqlAlchemyBookingStore
from hotel_booking.services.booking_service import BookingAllocator


@pytest.fixture
def store(db_session) -> SqlAlchemyBookingStore:
    return SqlAlchemyBookingStore(db_session)


@pytest.mark.asyncio
async def test_enrollment_and_ticket_map_to_domain_types(store, factory):
    """Rows come back as domain entities with the ticket type attached."""
    user = await factory.create_user()
    enrollment = await factory.create_enrollment(user)
    ticket_type = await factory.create_ticket_type(is_remote=False, includes_hotel=True)
    await factory.create_ticket(enrollment, ticket_type, status=TicketStatus.RESERVED)

    found_enrollment = await store.enrollments.find_by_user_id(user.id)
    found_ticket = await store.tickets.find_by_enrollment_id(enrollment.id)

    assert isinstance(found_enrollment, entities.Enrollment)
    assert found_enrollment.id == enrollment.id
    assert found_ticket.status is TicketStatus.RESERVED
    assert found_ticket.ticket_type.includes_hotel is True
    assert found_ticket.ineligibility_reason() is ForbiddenReason.TICKET_NOT_PAID


@pytest.mark.asyncio
async def test_missing_rows_map_to_none(store):
    """Lookups for missing rows return None."""
    assert await store.enrollments.find_by_user_id(1) is None
    assert await store.tickets.find_by_enrollment_id(1) is None
    assert await store.rooms.find_by_id(1, for_update=True) is None
    assert await store.bookings.find_by_user_id(1) is None
    assert await store.bookings.find_by_id(1) is None


@pytest.mark.asyncio
async def test_user_booking_comes_with_its_room(store, factory, room):
    """A user's booking is loaded with its room."""
    user = await factory.create_user()
    booking = await factory.create_booking(user, room)

    found = await store.bookings.find_by_user_id(user.id)

    assert found.id == booking.id
    assert found.room_id == room.id
    assert found.room.id == room.id
    assert found.room.capacity == room.capacity


@pytest.mark.asyncio
async def test_count_by_room_id_counts_only_that_room(store, factory, hotel):
    """Occupancy counts bookings of one room only."""
    room = await factory.create_room(hotel, capacity=5)
    other_room = await factory.create_room(hotel, capacity=5)
    for _ in range(3):
        await factory.create_booking(await factory.create_user(), room)
    await factory.create_booking(await factory.create_user(), other_room)

    assert await store.bookings.count_by_room_id(room.id) == 3
    assert await store.bookings.count_by_room_id(other_room.id) == 1


@pytest.mark.asyncio
async def test_second_booking_for_user_raises_conflict_and_rolls_back(store, factory, room):
    """The unique user constraint surfaces as StoreConflictError and rolls back."""
    user = await factory.create_user()
    await factory.create_booking(user, room)
    # Rollback expires ORM instances; keep plain ids
    user_id, room_id = user.id, room.id

    with pytest.raises(StoreConflictError):
        async with store.transaction():
            await store.bookings.create(user_id, room_id)

    assert await store.bookings.count_by_room_id(room_id) == 1


@pytest.mark.asyncio
async def test_update_room_changes_only_room(store, factory, hotel, room):
    """update_room moves the booking and the loaded room follows."""
    user = await factory.create_user()
    booking = await factory.create_booking(user, room)
    new_room = await factory.create_room(hotel, capacity=2)

    async with store.transaction():
        updated = await store.bookings.update_room(booking.id, new_room.id)

    assert updated.id == booking.id
    assert updated.user_id == user.id
    assert updated.room_id == new_room.id
    assert (await store.bookings.find_by_user_id(user.id)).room.id == new_room.id


@pytest.mark.asyncio
async def test_allocator_over_sql_store(store, factory, hotel):
    """The allocator enforces capacity over the SQL store."""
    allocator = BookingAllocator(store)
    room_id = (await factory.create_room(hotel, capacity=1)).id
    user_id = (await factory.create_eligible_user()).id
    other_id = (await factory.create_eligible_user()).id

    booking = await allocator.create_booking(user_id, room_id)
    assert booking.room_id == room_id

    with pytest.raises(ForbiddenError) as exc_info:
        await allocator.create_booking(other_id, room_id)
    assert exc_info.value.reason is ForbiddenReason.ROOM_FULL

    found = await allocator.get_booking(user_id)
    assert found.id == booking.id
    assert found.room.id == room_id
