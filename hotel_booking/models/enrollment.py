"""
Event enrollment: a user's profile for the event, plus their address.
"""

from sqlalchemy import Column, Date, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from hotel_booking.db.base import Base, TimestampMixin


class Enrollment(Base, TimestampMixin):
    __tablename__ = "enrollments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    cpf = Column(String(11), unique=True, nullable=False)
    birthday = Column(Date, nullable=False)
    phone = Column(String(20), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    address = relationship("Address", back_populates="enrollment", uselist=False, lazy="selectin")

    def __repr__(self) -> str:
        return f"<Enrollment(id={self.id}, user={self.user_id})>"


class Address(Base, TimestampMixin):
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True, index=True)
    cep = Column(String(8), nullable=False)
    street = Column(String(255), nullable=False)
    city = Column(String(255), nullable=False)
    state = Column(String(2), nullable=False)
    number = Column(String(20), nullable=False)
    neighborhood = Column(String(255), nullable=False)
    address_detail = Column(String(255), nullable=True)
    enrollment_id = Column(Integer, ForeignKey("enrollments.id"), unique=True, nullable=False)

    enrollment = relationship("Enrollment", back_populates="address")
