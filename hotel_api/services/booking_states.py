"""Booking status vocabulary and the allowed transitions between statuses.

    pending -> confirmed | cancelled
    confirmed -> checked_in | cancelled
    checked_in -> checked_out

``cancelled`` and ``checked_out`` are terminal and nothing goes back to
``pending``.
"""
from hotel_api.core.errors import InvalidTransition, ValidationError

PENDING = "pending"
CONFIRMED = "confirmed"
CHECKED_IN = "checked_in"
CHECKED_OUT = "checked_out"
CANCELLED = "cancelled"

BOOKING_STATUSES = (PENDING, CONFIRMED, CHECKED_IN, CHECKED_OUT, CANCELLED)
PAYMENT_STATUSES = ("pending", "paid", "cancelled", "refunded")

# Bookings that still hold their room for their dates
ACTIVE_STATUSES = (PENDING, CONFIRMED, CHECKED_IN)

TRANSITIONS: dict[str, frozenset[str]] = {
    PENDING: frozenset({CONFIRMED, CANCELLED}),
    CONFIRMED: frozenset({CHECKED_IN, CANCELLED}),
    CHECKED_IN: frozenset({CHECKED_OUT}),
    CHECKED_OUT: frozenset(),
    CANCELLED: frozenset(),
}

# Older clients send these spellings
_ALIASES = {
    "success": CONFIRMED,
    "completed": CHECKED_OUT,
    "checked-in": CHECKED_IN,
    "checked-out": CHECKED_OUT,
    "canceled": CANCELLED,
}


def normalize_status(value: str) -> str:
    v = (value or "").strip().lower()
    v = _ALIASES.get(v, v)
    if v not in BOOKING_STATUSES:
        raise ValidationError(f"unknown booking status: {value!r}")
    return v


def normalize_payment_status(value: str) -> str:
    v = (value or "").strip().lower()
    if v not in PAYMENT_STATUSES:
        raise ValidationError(f"unknown payment status: {value!r}")
    return v


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def ensure_transition(current: str, target: str) -> None:
    if not can_transition(current, target):
        raise InvalidTransition(f"cannot move booking from {current} to {target}")
