"""
Booking status machine and availability rules.

A booking carries two independent state axes: the primary lifecycle status and
the cancellation-review status. Both are plain enums; the allowed moves on each
axis are listed in the transition tables below and every mutation in
``booking_crud`` goes through them.

Primary lifecycle::

    BOOKED -> RESERVED -> SERVICESTARTED -> SERVICEPROVIDED -> SERVICEFINISHED
       \\________\\______________________________________________> CANCELED

Cancellation review::

    NONE -> PENDING -> APPROVED | REJECTED
    REJECTED -> PENDING            (client may ask again)
    NONE -> APPROVED               (agent cancels without a client request)
"""
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional


class BookingStatus(str, Enum):
    BOOKED = "BOOKED"
    RESERVED = "RESERVED"
    SERVICESTARTED = "SERVICESTARTED"
    SERVICEPROVIDED = "SERVICEPROVIDED"
    SERVICEFINISHED = "SERVICEFINISHED"
    CANCELED = "CANCELED"


class CancelRequestStatus(str, Enum):
    NONE = "NONE"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class AvailabilityStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    RESERVED = "RESERVED"


# Bookings in these states no longer hold their window
NON_BLOCKING_STATUSES = frozenset(
    {BookingStatus.CANCELED, BookingStatus.SERVICEPROVIDED, BookingStatus.SERVICEFINISHED}
)

CLIENT_CANCELABLE_STATUSES = frozenset({BookingStatus.BOOKED, BookingStatus.RESERVED})

EDITABLE_STATUSES = frozenset({BookingStatus.RESERVED})

SUPPORT_SETTABLE_STATUSES = frozenset(
    {
        BookingStatus.RESERVED,
        BookingStatus.SERVICESTARTED,
        BookingStatus.SERVICEPROVIDED,
        BookingStatus.CANCELED,
    }
)

# Moves a support agent may make. Forward skips along the service
# progression are allowed; nothing leaves CANCELED or the service-done states.
SUPPORT_TRANSITIONS = {
    BookingStatus.BOOKED: frozenset(
        {
            BookingStatus.RESERVED,
            BookingStatus.SERVICESTARTED,
            BookingStatus.SERVICEPROVIDED,
            BookingStatus.CANCELED,
        }
    ),
    BookingStatus.RESERVED: frozenset(
        {BookingStatus.SERVICESTARTED, BookingStatus.SERVICEPROVIDED, BookingStatus.CANCELED}
    ),
    BookingStatus.SERVICESTARTED: frozenset({BookingStatus.SERVICEPROVIDED}),
    BookingStatus.SERVICEPROVIDED: frozenset(),
    BookingStatus.SERVICEFINISHED: frozenset(),
    BookingStatus.CANCELED: frozenset(),
}

# Feedback is the only way into SERVICEFINISHED
FEEDBACK_TRANSITIONS = {
    BookingStatus.SERVICEPROVIDED: frozenset({BookingStatus.SERVICEFINISHED}),
}

CANCEL_REVIEW_TRANSITIONS = {
    CancelRequestStatus.NONE: frozenset({CancelRequestStatus.PENDING, CancelRequestStatus.APPROVED}),
    CancelRequestStatus.PENDING: frozenset(
        {CancelRequestStatus.PENDING, CancelRequestStatus.APPROVED, CancelRequestStatus.REJECTED}
    ),
    CancelRequestStatus.REJECTED: frozenset({CancelRequestStatus.PENDING, CancelRequestStatus.APPROVED}),
    CancelRequestStatus.APPROVED: frozenset(),
}


def can_support_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return BookingStatus(target) in SUPPORT_TRANSITIONS[BookingStatus(current)]


def can_review_transition(current: Optional[CancelRequestStatus], target: CancelRequestStatus) -> bool:
    current = CancelRequestStatus(current or CancelRequestStatus.NONE)
    return CancelRequestStatus(target) in CANCEL_REVIEW_TRANSITIONS[current]


def is_blocking(status) -> bool:
    return BookingStatus(status) not in NON_BLOCKING_STATUSES


def windows_overlap(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    """Half-open interval test: [a1, a2) and [b1, b2) share an instant"""
    return start_a < end_b and end_a > start_b


def classify_availability(bookings: Iterable, start: datetime, end: datetime) -> AvailabilityStatus:
    """Classify a window against a car's bookings.

    ``bookings`` is any iterable of objects exposing ``status``,
    ``pickup_datetime`` and ``dropoff_datetime``.
    """
    for booking in bookings:
        if not is_blocking(booking.status):
            continue
        if windows_overlap(start, end, booking.pickup_datetime, booking.dropoff_datetime):
            return AvailabilityStatus.RESERVED
    return AvailabilityStatus.AVAILABLE


def format_booking_number(number: int, width: int) -> str:
    return str(number).zfill(width)
