from hotel_booking.domain.entities import (
    Booking,
    Enrollment,
    Room,
    Ticket,
    TicketStatus,
    TicketType,
)

__all__ = ["Booking", "Enrollment", "Room", "Ticket", "TicketStatus", "TicketType"]
