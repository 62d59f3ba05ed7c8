"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .repositories import (
    BookingRepository,
    BookingStore,
    EnrollmentRepository,
    RoomRepository,
    TicketRepository,
)

__all__ = [
    'BookingRepository',
    'BookingStore',
    'EnrollmentRepository',
    'RoomRepository',
    'TicketRepository',
]
