"""
Booking error types.

The allocator only raises two classified kinds:

- NotFoundError: a referenced Booking or Room does not exist (HTTP 404).
- ForbiddenError: the request is valid but a business rule disallows it
  (HTTP 403). The concrete cause travels as a ForbiddenReason so logs,
  metrics and tests can tell causes apart while the HTTP response stays coarse.

StoreConflictError is internal: stores raise it when a transaction loses a
race, and the allocator retries the whole operation.
"""

import enum


class ForbiddenReason(str, enum.Enum):
    NO_ENROLLMENT = "no_enrollment"
    NO_TICKET = "no_ticket"
    TICKET_REMOTE = "ticket_remote"
    TICKET_WITHOUT_HOTEL = "ticket_without_hotel"
    TICKET_NOT_PAID = "ticket_not_paid"
    BOOKING_EXISTS = "booking_exists"
    ROOM_FULL = "room_full"
    NOT_BOOKING_OWNER = "not_booking_owner"


class BookingError(Exception):
    """Base class for classified booking failures."""


class NotFoundError(BookingError):
    def __init__(self, resource: str, identifier: int):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} {identifier} not found")


class ForbiddenError(BookingError):
    def __init__(self, reason: ForbiddenReason):
        self.reason = reason
        super().__init__(f"forbidden: {reason.value}")


class StoreConflictError(Exception):
    """A store transaction lost a race with a concurrent writer."""
