"""
SQLAlchemy implementation of the booking store.

Rows are mapped onto domain entities at the repository edge so the allocator
never touches ORM objects. The room lookup can take a row lock
(SELECT ... FOR UPDATE); dialects without row locks (SQLite) simply omit it.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.core.errors import StoreConflictError
from hotel_booking.core.logging import get_logger
from hotel_booking.domain import entities
from hotel_booking.models.booking import Booking
from hotel_booking.models.enrollment import Enrollment
from hotel_booking.models.hotel import Room
from hotel_booking.models.ticket import Ticket
from hotel_booking.services.interfaces.repositories import (
    BookingRepository,
    BookingStore,
    EnrollmentRepository,
    RoomRepository,
    TicketRepository,
)

logger = get_logger(__name__)

# serialization_failure, deadlock_detected
RETRYABLE_SQLSTATES = {"40001", "40P01"}


def _sqlstate(error: DBAPIError) -> Optional[str]:
    orig = getattr(error, "orig", None)
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _to_room(row: Room) -> entities.Room:
    return entities.Room(
        id=row.id,
        name=row.name,
        capacity=row.capacity,
        hotel_id=row.hotel_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_booking(row: Booking, with_room: bool = True) -> entities.Booking:
    return entities.Booking(
        id=row.id,
        user_id=row.user_id,
        room_id=row.room_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        room=_to_room(row.room) if with_room and row.room is not None else None,
    )


class SqlEnrollmentRepository(EnrollmentRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_user_id(self, user_id: int) -> Optional[entities.Enrollment]:
        result = await self.session.execute(
            select(Enrollment).where(Enrollment.user_id == user_id)
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        return entities.Enrollment(
            id=row.id,
            user_id=row.user_id,
            name=row.name,
            cpf=row.cpf,
            birthday=row.birthday,
            phone=row.phone,
        )


class SqlTicketRepository(TicketRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_enrollment_id(self, enrollment_id: int) -> Optional[entities.Ticket]:
        result = await self.session.execute(
            select(Ticket).where(Ticket.enrollment_id == enrollment_id)
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        ticket_type = row.ticket_type
        return entities.Ticket(
            id=row.id,
            enrollment_id=row.enrollment_id,
            status=entities.TicketStatus(row.status),
            ticket_type=entities.TicketType(
                id=ticket_type.id,
                name=ticket_type.name,
                price=ticket_type.price,
                is_remote=ticket_type.is_remote,
                includes_hotel=ticket_type.includes_hotel,
            ),
        )


class SqlRoomRepository(RoomRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_id(self, room_id: int, for_update: bool = False) -> Optional[entities.Room]:
        query = select(Room).where(Room.id == room_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        row = result.scalar_one_or_none()
        return _to_room(row) if row is not None else None


class SqlBookingRepository(BookingRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_user_id(self, user_id: int) -> Optional[entities.Booking]:
        result = await self.session.execute(
            select(Booking).where(Booking.user_id == user_id)
        )
        row = result.scalar_one_or_none()
        return _to_booking(row) if row is not None else None

    async def find_by_id(self, booking_id: int) -> Optional[entities.Booking]:
        result = await self.session.execute(
            select(Booking).where(Booking.id == booking_id)
        )
        row = result.scalar_one_or_none()
        return _to_booking(row) if row is not None else None

    async def count_by_room_id(self, room_id: int) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(Booking).where(Booking.room_id == room_id)
        )
        return result.scalar_one()

    async def create(self, user_id: int, room_id: int) -> entities.Booking:
        row = Booking(user_id=user_id, room_id=room_id)
        self.session.add(row)
        await self.session.flush()
        await self.session.refresh(row)
        return _to_booking(row, with_room=False)

    async def update_room(self, booking_id: int, room_id: int) -> entities.Booking:
        row = await self.session.get(Booking, booking_id)
        room = await self.session.get(Room, room_id)
        if row is None or room is None:
            # Deleted between the allocator's read and this write
            raise StoreConflictError(f"booking {booking_id} or room {room_id} disappeared during update")
        # Assign the relationship so the loaded room stays in step with room_id
        row.room = room
        await self.session.flush()
        await self.session.refresh(row)
        return _to_booking(row, with_room=False)


class SqlAlchemyBookingStore(BookingStore):
    """Booking store bound to one request's AsyncSession."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.enrollments = SqlEnrollmentRepository(session)
        self.tickets = SqlTicketRepository(session)
        self.rooms = SqlRoomRepository(session)
        self.bookings = SqlBookingRepository(session)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["SqlAlchemyBookingStore"]:
        try:
            yield self
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.info("store_integrity_conflict", error=str(e.orig))
            raise StoreConflictError(f"integrity violation: {e.orig}") from e
        except DBAPIError as e:
            await self.session.rollback()
            if _sqlstate(e) in RETRYABLE_SQLSTATES:
                raise StoreConflictError(f"transaction aborted ({_sqlstate(e)})") from e
            raise
        except Exception:
            await self.session.rollback()
            raise
