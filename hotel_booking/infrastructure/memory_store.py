"""
In-memory booking store.

Used for isolated tests of the allocator. It mirrors the guarantees of the
SQL store: transactions are serialized by an asyncio.Lock, state is restored
when a transaction fails, and a second booking for the same user raises
StoreConflictError like the unique constraint does.
"""

import asyncio
import copy
import itertools
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import AsyncIterator, Dict, Optional

from hotel_booking.core.errors import StoreConflictError
from hotel_booking.domain.entities import Booking, Enrollment, Room, Ticket
from hotel_booking.services.interfaces.repositories import (
    BookingRepository,
    BookingStore,
    EnrollmentRepository,
    RoomRepository,
    TicketRepository,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class _State:
    def __init__(self):
        self.enrollments: Dict[int, Enrollment] = {}
        self.tickets: Dict[int, Ticket] = {}
        self.rooms: Dict[int, Room] = {}
        self.bookings: Dict[int, Booking] = {}


class InMemoryEnrollmentRepository(EnrollmentRepository):
    def __init__(self, store: "InMemoryBookingStore"):
        self._store = store

    async def find_by_user_id(self, user_id: int) -> Optional[Enrollment]:
        await asyncio.sleep(0)
        return next(
            (e for e in self._store.state.enrollments.values() if e.user_id == user_id),
            None,
        )


class InMemoryTicketRepository(TicketRepository):
    def __init__(self, store: "InMemoryBookingStore"):
        self._store = store

    async def find_by_enrollment_id(self, enrollment_id: int) -> Optional[Ticket]:
        await asyncio.sleep(0)
        return next(
            (t for t in self._store.state.tickets.values() if t.enrollment_id == enrollment_id),
            None,
        )


class InMemoryRoomRepository(RoomRepository):
    def __init__(self, store: "InMemoryBookingStore"):
        self._store = store

    async def find_by_id(self, room_id: int, for_update: bool = False) -> Optional[Room]:
        # The transaction lock already serializes writers
        await asyncio.sleep(0)
        return self._store.state.rooms.get(room_id)


class InMemoryBookingRepository(BookingRepository):
    def __init__(self, store: "InMemoryBookingStore"):
        self._store = store

    def _with_room(self, booking: Booking) -> Booking:
        return replace(booking, room=self._store.state.rooms.get(booking.room_id))

    async def find_by_user_id(self, user_id: int) -> Optional[Booking]:
        await asyncio.sleep(0)
        for booking in self._store.state.bookings.values():
            if booking.user_id == user_id:
                return self._with_room(booking)
        return None

    async def find_by_id(self, booking_id: int) -> Optional[Booking]:
        await asyncio.sleep(0)
        booking = self._store.state.bookings.get(booking_id)
        return self._with_room(booking) if booking is not None else None

    async def count_by_room_id(self, room_id: int) -> int:
        await asyncio.sleep(0)
        return sum(1 for b in self._store.state.bookings.values() if b.room_id == room_id)

    async def create(self, user_id: int, room_id: int) -> Booking:
        await asyncio.sleep(0)
        return self._store.insert_booking(user_id, room_id)

    async def update_room(self, booking_id: int, room_id: int) -> Booking:
        await asyncio.sleep(0)
        booking = self._store.state.bookings.get(booking_id)
        if booking is None:
            raise StoreConflictError(f"booking {booking_id} disappeared during update")
        updated = replace(booking, room_id=room_id, updated_at=_now())
        self._store.state.bookings[booking_id] = updated
        return replace(updated)


class InMemoryBookingStore(BookingStore):
    """Dict-backed store. Seed it with the add_* helpers."""

    def __init__(self):
        self.state = _State()
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()
        self.enrollments = InMemoryEnrollmentRepository(self)
        self.tickets = InMemoryTicketRepository(self)
        self.rooms = InMemoryRoomRepository(self)
        self.bookings = InMemoryBookingRepository(self)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["InMemoryBookingStore"]:
        async with self._lock:
            snapshot = copy.deepcopy(self.state)
            try:
                yield self
            except Exception:
                self.state = snapshot
                raise

    def next_id(self) -> int:
        return next(self._ids)

    def add_enrollment(self, enrollment: Enrollment) -> Enrollment:
        self.state.enrollments[enrollment.id] = enrollment
        return enrollment

    def add_ticket(self, ticket: Ticket) -> Ticket:
        self.state.tickets[ticket.id] = ticket
        return ticket

    def add_room(self, room: Room) -> Room:
        self.state.rooms[room.id] = room
        return room

    def insert_booking(self, user_id: int, room_id: int) -> Booking:
        if any(b.user_id == user_id for b in self.state.bookings.values()):
            raise StoreConflictError(f"user {user_id} already has a booking")
        now = _now()
        booking = Booking(
            id=self.next_id(),
            user_id=user_id,
            room_id=room_id,
            created_at=now,
            updated_at=now,
        )
        self.state.bookings[booking.id] = booking
        return replace(booking)
