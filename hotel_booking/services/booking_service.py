"""
Booking allocator: decides whether a user may hold a given hotel room.

CONCURRENCY STRATEGY: Transactional read-check-write with retry
================================================================

Problem:
  Creating a booking is a sequence of reads followed by a write:
  "does the user already have a booking?", "is the room below capacity?",
  then INSERT. Two requests for the last slot of a room can both read
  occupancy=capacity-1 and both insert. Two requests from the same user can
  both see "no booking yet" and both insert.

Solution:
  Every operation runs inside one store transaction, and the store closes
  both windows:

  1. The target room row is read FOR UPDATE before occupancy is counted.
     Any other writer into the same room blocks on that row until we commit,
     then re-counts and sees our booking.
  2. bookings.user_id is UNIQUE. A second insert for the same user fails
     with an integrity error, which the store reports as StoreConflictError.
  3. On StoreConflictError (unique violation, serialization failure,
     deadlock) the whole operation is retried from the first read, up to
     max_retry_attempts. On the retry the checks see the committed state and
     reject with the proper reason (e.g. BOOKING_EXISTS).

Room-change policy:
  By default the booking being moved is counted in the target room's
  occupancy even if it already sits there, so "moving" into one's own full
  room is rejected. `exempt_current_room=True` excludes it from the count.
"""

import functools
import time
from typing import Awaitable, Callable, TypeVar

from hotel_booking.core.errors import (
    ForbiddenError,
    ForbiddenReason,
    NotFoundError,
    StoreConflictError,
)
from hotel_booking.core.logging import get_logger
from hotel_booking.core.metrics import booking_latency, record_booking_attempt, record_store_retry
from hotel_booking.domain.entities import Booking, Room
from hotel_booking.services.interfaces.repositories import BookingStore

logger = get_logger(__name__)

MAX_RETRY_ATTEMPTS = 3

T = TypeVar("T")


class BookingAllocator:
    """Get, create and re-room a user's single hotel booking."""

    def __init__(
        self,
        store: BookingStore,
        exempt_current_room: bool = False,
        max_retry_attempts: int = MAX_RETRY_ATTEMPTS,
    ):
        if max_retry_attempts < 1:
            raise ValueError("max_retry_attempts must be at least 1")
        self.store = store
        self.exempt_current_room = exempt_current_room
        self.max_retry_attempts = max_retry_attempts

    async def get_booking(self, user_id: int) -> Booking:
        """Return the user's booking with its room attached."""
        return await self._run(
            "get",
            functools.partial(self._find_user_booking, user_id),
            user_id=user_id,
        )

    async def create_booking(self, user_id: int, room_id: int) -> Booking:
        """
        Book `room_id` for `user_id`.

        Raises ForbiddenError when the user has no enrollment, no ticket, an
        ineligible ticket, an existing booking, or the room is full.
        Raises NotFoundError when the room does not exist.
        """
        booking = await self._run(
            "create",
            functools.partial(self._create_booking, user_id, room_id),
            user_id=user_id,
            room_id=room_id,
        )
        logger.info(
            "booking_created",
            booking_id=booking.id,
            user_id=user_id,
            room_id=room_id,
        )
        return booking

    async def change_booking_room(self, user_id: int, room_id: int, booking_id: int) -> Booking:
        """
        Move an existing booking to another room.

        Ticket eligibility is not re-checked: owning the booking already
        proves it. Only room_id changes; id and user_id stay the same.
        """
        booking = await self._run(
            "change_room",
            functools.partial(self._change_booking_room, user_id, room_id, booking_id),
            user_id=user_id,
            room_id=room_id,
            booking_id=booking_id,
        )
        logger.info(
            "booking_room_changed",
            booking_id=booking.id,
            user_id=user_id,
            room_id=room_id,
        )
        return booking

    async def _find_user_booking(self, user_id: int) -> Booking:
        booking = await self.store.bookings.find_by_user_id(user_id)
        if booking is None:
            raise NotFoundError("booking", user_id)
        return booking

    async def _create_booking(self, user_id: int, room_id: int) -> Booking:
        enrollment = await self.store.enrollments.find_by_user_id(user_id)
        if enrollment is None:
            raise ForbiddenError(ForbiddenReason.NO_ENROLLMENT)

        ticket = await self.store.tickets.find_by_enrollment_id(enrollment.id)
        if ticket is None:
            raise ForbiddenError(ForbiddenReason.NO_TICKET)

        reason = ticket.ineligibility_reason()
        if reason is not None:
            raise ForbiddenError(reason)

        if await self.store.bookings.find_by_user_id(user_id) is not None:
            raise ForbiddenError(ForbiddenReason.BOOKING_EXISTS)

        room = await self._lock_room_with_vacancy(room_id)
        return await self.store.bookings.create(user_id, room.id)

    async def _change_booking_room(self, user_id: int, room_id: int, booking_id: int) -> Booking:
        booking = await self.store.bookings.find_by_id(booking_id)
        if booking is None:
            raise NotFoundError("booking", booking_id)
        if booking.user_id != user_id:
            raise ForbiddenError(ForbiddenReason.NOT_BOOKING_OWNER)

        already_inside = self.exempt_current_room and booking.room_id == room_id
        room = await self._lock_room_with_vacancy(room_id, already_inside=already_inside)
        return await self.store.bookings.update_room(booking.id, room.id)

    async def _lock_room_with_vacancy(self, room_id: int, already_inside: bool = False) -> Room:
        room = await self.store.rooms.find_by_id(room_id, for_update=True)
        if room is None:
            raise NotFoundError("room", room_id)

        occupancy = await self.store.bookings.count_by_room_id(room_id)
        if already_inside:
            occupancy -= 1

        if occupancy >= room.capacity:
            logger.info(
                "room_at_capacity",
                room_id=room_id,
                occupancy=occupancy,
                capacity=room.capacity,
            )
            raise ForbiddenError(ForbiddenReason.ROOM_FULL)
        return room

    async def _run(self, operation: str, step: Callable[[], Awaitable[T]], **context) -> T:
        """Run one operation with retries, logging and metrics."""
        start_time = time.perf_counter()
        try:
            result = await self._with_retry(operation, step, context)
        except NotFoundError as e:
            record_booking_attempt(operation, "not_found")
            logger.info(
                "booking_not_found",
                operation=operation,
                resource=e.resource,
                identifier=e.identifier,
                **context,
            )
            raise
        except ForbiddenError as e:
            record_booking_attempt(operation, e.reason.value)
            logger.warning(
                "booking_rejected",
                operation=operation,
                reason=e.reason.value,
                **context,
            )
            raise
        except Exception as e:
            record_booking_attempt(operation, "error")
            logger.error(
                "booking_failed",
                operation=operation,
                error=str(e),
                **context,
            )
            raise
        finally:
            booking_latency.labels(operation=operation).observe(time.perf_counter() - start_time)

        record_booking_attempt(operation, "success")
        return result

    async def _with_retry(self, operation: str, step: Callable[[], Awaitable[T]], context: dict) -> T:
        attempt = 1
        while True:
            try:
                async with self.store.transaction():
                    return await step()
            except StoreConflictError as e:
                if attempt == self.max_retry_attempts:
                    raise
                record_store_retry(operation)
                logger.info(
                    "booking_retry",
                    operation=operation,
                    attempt=attempt,
                    reason=str(e),
                    **context,
                )
                attempt += 1
