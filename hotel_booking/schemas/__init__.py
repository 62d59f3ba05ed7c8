from hotel_booking.schemas.user import UserCreate, UserResponse, UserLogin, Token
from hotel_booking.schemas.booking import (
    BookingRoomRequest,
    BookingIdResponse,
    BookingWithRoomResponse,
    RoomResponse,
)

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "Token",
    "BookingRoomRequest", "BookingIdResponse", "BookingWithRoomResponse", "RoomResponse",
]
