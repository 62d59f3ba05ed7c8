"""
Tickets and ticket types.

Only a non-remote, hotel-inclusive, PAID ticket entitles its holder to a
hotel room.
"""

from sqlalchemy import Boolean, Column, Enum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from hotel_booking.db.base import Base, TimestampMixin
from hotel_booking.domain.entities import TicketStatus


class TicketType(Base, TimestampMixin):
    __tablename__ = "ticket_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    is_remote = Column(Boolean, nullable=False)
    includes_hotel = Column(Boolean, nullable=False)

    def __repr__(self) -> str:
        return f"<TicketType(id={self.id}, remote={self.is_remote}, hotel={self.includes_hotel})>"


class Ticket(Base, TimestampMixin):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, index=True)
    ticket_type_id = Column(Integer, ForeignKey("ticket_types.id"), nullable=False)
    enrollment_id = Column(Integer, ForeignKey("enrollments.id"), unique=True, nullable=False)
    status = Column(
        Enum(TicketStatus, name="ticket_status"),
        nullable=False,
        default=TicketStatus.RESERVED,
    )

    ticket_type = relationship("TicketType", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Ticket(id={self.id}, enrollment={self.enrollment_id}, status={self.status})>"
