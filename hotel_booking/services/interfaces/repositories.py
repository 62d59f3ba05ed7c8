"""
Store interfaces consumed by the booking allocator.
Allows swapping the SQLAlchemy store for an in-memory one without touching
business logic.
"""

from abc import ABC, abstractmethod
from typing import AsyncContextManager, Optional

from hotel_booking.domain.entities import Booking, Enrollment, Room, Ticket


class EnrollmentRepository(ABC):

    @abstractmethod
    async def find_by_user_id(self, user_id: int) -> Optional[Enrollment]:
        pass


class TicketRepository(ABC):

    @abstractmethod
    async def find_by_enrollment_id(self, enrollment_id: int) -> Optional[Ticket]:
        pass


class RoomRepository(ABC):

    @abstractmethod
    async def find_by_id(self, room_id: int, for_update: bool = False) -> Optional[Room]:
        """
        Look up a room.

        Args:
            room_id: Room to read
            for_update: Lock the room row until the surrounding transaction
                ends, so concurrent writers into the same room serialize.
        """
        pass


class BookingRepository(ABC):

    @abstractmethod
    async def find_by_user_id(self, user_id: int) -> Optional[Booking]:
        """Booking owned by the user, with its room attached."""
        pass

    @abstractmethod
    async def find_by_id(self, booking_id: int) -> Optional[Booking]:
        pass

    @abstractmethod
    async def count_by_room_id(self, room_id: int) -> int:
        """Occupancy: number of bookings currently referencing the room."""
        pass

    @abstractmethod
    async def create(self, user_id: int, room_id: int) -> Booking:
        pass

    @abstractmethod
    async def update_room(self, booking_id: int, room_id: int) -> Booking:
        pass


class BookingStore(ABC):
    """
    Unit of work over the four repositories.

    `transaction()` commits when its block exits normally and rolls back on
    any exception. Lost races (unique violations, serialization failures)
    are re-raised as StoreConflictError so callers can retry.
    """

    enrollments: EnrollmentRepository
    tickets: TicketRepository
    rooms: RoomRepository
    bookings: BookingRepository

    @abstractmethod
    def transaction(self) -> AsyncContextManager["BookingStore"]:
        pass
