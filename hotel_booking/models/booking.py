"""
Booking model: one user assigned to one hotel room.

Key design decisions:
- Unique constraint on user_id: a user holds at most one booking, enforced by
  the database so concurrent creates cannot both succeed
- room_id is indexed because occupancy is a COUNT over it on every write
- room_id is mutated in place when a booking changes room; rows are never deleted here
"""

from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from hotel_booking.db.base import Base, TimestampMixin


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)

    room = relationship("Room", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("user_id", name="uq_booking_user"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, user={self.user_id}, room={self.room_id})>"
