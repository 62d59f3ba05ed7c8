"""
Pydantic schemas for booking request/response validation.

The wire format is camelCase (roomId, bookingId, createdAt, ...) with the
room nested under "Room"; Python code uses snake_case field names.
"""

from datetime import datetime
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class BookingRoomRequest(BaseModel):
    room_id: int = Field(..., ge=0, alias="roomId")


class BookingIdResponse(BaseModel):
    booking_id: int = Field(..., alias="bookingId")

    model_config = {"populate_by_name": True}


class RoomResponse(BaseModel):
    id: int
    name: str
    capacity: int
    hotel_id: int
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class BookingWithRoomResponse(BaseModel):
    id: int
    user_id: int
    room_id: int
    created_at: datetime
    updated_at: datetime
    room: RoomResponse = Field(..., alias="Room")

    model_config = {
        "from_attributes": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }
