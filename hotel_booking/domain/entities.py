"""
Domain entities seen by the booking allocator.

Stores map their own rows onto these types, so the allocator never deals with
loosely shaped records. Everything except Booking is read-only here.
"""

import enum
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from hotel_booking.core.errors import ForbiddenReason


class TicketStatus(str, enum.Enum):
    RESERVED = "RESERVED"
    PAID = "PAID"


@dataclass(frozen=True)
class TicketType:
    id: int
    name: str
    price: Decimal
    is_remote: bool
    includes_hotel: bool


@dataclass(frozen=True)
class Ticket:
    id: int
    enrollment_id: int
    status: TicketStatus
    ticket_type: TicketType

    def ineligibility_reason(self) -> Optional[ForbiddenReason]:
        """Why this ticket cannot book a hotel room, or None if it can."""
        if self.ticket_type.is_remote:
            return ForbiddenReason.TICKET_REMOTE
        if not self.ticket_type.includes_hotel:
            return ForbiddenReason.TICKET_WITHOUT_HOTEL
        if self.status is not TicketStatus.PAID:
            return ForbiddenReason.TICKET_NOT_PAID
        return None


@dataclass(frozen=True)
class Enrollment:
    id: int
    user_id: int
    name: str
    cpf: str
    birthday: date
    phone: str


@dataclass(frozen=True)
class Room:
    id: int
    name: str
    capacity: int
    hotel_id: int
    created_at: datetime
    updated_at: datetime


@dataclass
class Booking:
    id: int
    user_id: int
    room_id: int
    created_at: datetime
    updated_at: datetime
    room: Optional[Room] = None
