import logging
import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from hotel_api.core.errors import (
    Conflict,
    Forbidden,
    InvalidRange,
    InvalidTransition,
    RoomUnavailable,
    ValidationError,
)
from hotel_api.core.security import is_staff
from hotel_api.models.booking import Booking
from hotel_api.models.room import Room
from hotel_api.models.user import User
from hotel_api.services.audit_service import log_audit
from hotel_api.services.availability_service import is_available
from hotel_api.services.booking_states import (
    CANCELLED,
    CHECKED_IN,
    CHECKED_OUT,
    CONFIRMED,
    PENDING,
    ensure_transition,
    normalize_payment_status,
    normalize_status,
)
from hotel_api.services.guards import committing, ensure_staff, load_booking
from hotel_api.services.payment_service import remove_payment_rows, to_money
from hotel_api.services.room_service import lock_room, sync_room_status

logger = logging.getLogger(__name__)


def nights_between(check_in: date, check_out: date) -> int:
    return (check_out - check_in).days


def quote_total(price_per_night: Decimal, check_in: date, check_out: date) -> Decimal:
    return to_money(Decimal(nights_between(check_in, check_out)) * to_money(price_per_night))


def create_booking(db: Session, user: User, room_id: str, check_in: date, check_out: date,
                   guests: int = 1, expected_total=None) -> Booking:
    if check_out <= check_in:
        raise InvalidRange("check_out_date must be after check_in_date")
    if guests < 1:
        raise ValidationError("guests must be >= 1")

    with committing(db, "create booking"):
        # the room lock makes the overlap check and the insert one step
        room = lock_room(db, room_id)
        if guests > room.capacity:
            raise ValidationError(f"Room {room.room_number} sleeps at most {room.capacity}")

        total = quote_total(room.price_per_night, check_in, check_out)
        if expected_total is not None and to_money(expected_total) != total:
            raise ValidationError(f"totalPrice {to_money(expected_total)} does not match quoted total {total}")

        if not is_available(db, room.id, check_in, check_out):
            logger.warning("room %s unavailable for %s..%s (user %s)", room.room_number, check_in, check_out, user.id)
            raise RoomUnavailable("Room is not available for the selected dates")

        booking = Booking(
            id=str(uuid.uuid4()),
            user_id=user.id,
            room_id=room.id,
            check_in_date=check_in,
            check_out_date=check_out,
            guests=guests,
            total_price=total,
            status=PENDING,
            payment_status="pending",
        )
        db.add(booking)
        log_audit(db, user.id, "booking.create", "booking", booking.id, {
            "room_number": room.room_number, "check_in": check_in, "check_out": check_out, "total": str(total),
        })

    logger.info("booking %s created for room %s %s..%s", booking.id, room_id, check_in, check_out)
    db.refresh(booking)
    return booking


def confirm_booking(db: Session, booking_id: str, actor: User) -> Booking:
    """Staff confirmation without an online payment (e.g. pay at the desk)."""
    ensure_staff(actor)
    with committing(db, "confirm booking"):
        b = load_booking(db, booking_id, actor, for_update=True)
        lock_room(db, b.room_id)
        ensure_transition(b.status, CONFIRMED)
        b.status = CONFIRMED
        sync_room_status(db, b.room_id)
        log_audit(db, actor.id, "booking.confirm", "booking", b.id)
    db.refresh(b)
    return b


def check_in(db: Session, booking_id: str, actor: User) -> Booking:
    ensure_staff(actor)
    with committing(db, "check in"):
        b = load_booking(db, booking_id, actor, for_update=True)
        # held until commit, so two check-ins of one room cannot both pass the occupant check
        lock_room(db, b.room_id)
        if b.status != CONFIRMED or b.payment_status != "paid":
            raise InvalidTransition(
                f"Check-in requires a confirmed, paid booking (status={b.status}, payment={b.payment_status})"
            )
        occupant = db.query(Booking.id).filter(
            Booking.room_id == b.room_id, Booking.status == CHECKED_IN, Booking.id != b.id,
        ).first()
        if occupant:
            raise Conflict("Room is still occupied by another guest")
        b.status = CHECKED_IN
        sync_room_status(db, b.room_id)
        log_audit(db, actor.id, "booking.check_in", "booking", b.id)
    logger.info("booking %s checked in by %s", booking_id, actor.username)
    db.refresh(b)
    return b


def check_out(db: Session, booking_id: str, actor: User) -> Booking:
    ensure_staff(actor)
    with committing(db, "check out"):
        b = load_booking(db, booking_id, actor, for_update=True)
        lock_room(db, b.room_id)
        if b.status != CHECKED_IN:
            raise InvalidTransition(f"Check-out requires a checked-in booking (status={b.status})")
        ensure_transition(b.status, CHECKED_OUT)
        b.status = CHECKED_OUT
        sync_room_status(db, b.room_id)
        log_audit(db, actor.id, "booking.check_out", "booking", b.id)
    logger.info("booking %s checked out by %s", booking_id, actor.username)
    db.refresh(b)
    return b


def cancel_booking(db: Session, booking_id: str, actor: User) -> Booking:
    with committing(db, "cancel booking"):
        b = load_booking(db, booking_id, actor, for_update=True)
        lock_room(db, b.room_id)
        if b.status == CANCELLED:
            raise InvalidTransition("Booking is already cancelled")
        ensure_transition(b.status, CANCELLED)
        # a paid booking gives its payment back before it is cancelled
        removed = remove_payment_rows(db, b.id)
        b.status = CANCELLED
        b.payment_status = "cancelled"
        sync_room_status(db, b.room_id)
        log_audit(db, actor.id, "booking.cancel", "booking", b.id, {"removed_payments": removed})
    logger.info("booking %s cancelled by %s", booking_id, actor.username)
    db.refresh(b)
    return b


def _record_refund(db: Session, booking_id: str, payment_status: str, actor: User) -> Booking:
    ensure_staff(actor)
    with committing(db, "update payment status"):
        b = load_booking(db, booking_id, actor, for_update=True)
        if payment_status == b.payment_status:
            return b
        if not (b.status == CANCELLED and b.payment_status == "cancelled" and payment_status == "refunded"):
            raise ValidationError("payment_status only changes through payments, except refunds of cancelled bookings")
        b.payment_status = "refunded"
        log_audit(db, actor.id, "booking.refund", "booking", b.id)
    db.refresh(b)
    return b


def transition(db: Session, booking_id: str, new_status: str, actor: User, payment_status: str | None = None) -> Booking:
    """Move a booking along one edge of the state machine.

    Each target goes through the operation that keeps booking, payment and
    room status in step. Guests may only cancel; staff may take any edge.
    """
    target = normalize_status(new_status)
    b = load_booking(db, booking_id, actor)
    current = b.status

    if payment_status is not None:
        ps = normalize_payment_status(payment_status)
        if target == current:
            return _record_refund(db, booking_id, ps, actor)
        if ps != b.payment_status:
            raise ValidationError("payment_status cannot change together with status")

    if not is_staff(actor.role) and target != CANCELLED:
        raise Forbidden("Guests may only cancel their bookings")
    ensure_transition(current, target)

    if target == CONFIRMED:
        return confirm_booking(db, booking_id, actor)
    if target == CHECKED_IN:
        return check_in(db, booking_id, actor)
    if target == CHECKED_OUT:
        return check_out(db, booking_id, actor)
    return cancel_booking(db, booking_id, actor)


def delete_booking(db: Session, booking_id: str, requester: User) -> None:
    """Owner removes an abandoned, unpaid booking and anything hanging off it."""
    with committing(db, "delete booking"):
        b = load_booking(db, booking_id, requester, for_update=True, owner_only=True)
        if b.status != PENDING or b.payment_status == "paid":
            raise InvalidTransition(f"Only unpaid pending bookings can be deleted (status={b.status}, payment={b.payment_status})")
        remove_payment_rows(db, b.id)
        db.delete(b)
        log_audit(db, requester.id, "booking.delete", "booking", booking_id)
    logger.info("booking %s deleted by owner %s", booking_id, requester.username)


def list_bookings(db: Session, status: str = "", payment_status: str = "", room_id: str = "", user_id: str = "", limit: int = 200):
    q = db.query(Booking, Room, User).join(Room, Room.id == Booking.room_id).outerjoin(User, User.id == Booking.user_id)
    if status:
        q = q.filter(Booking.status == normalize_status(status))
    if payment_status:
        q = q.filter(Booking.payment_status == normalize_payment_status(payment_status))
    if room_id:
        q = q.filter(Booking.room_id == room_id)
    if user_id:
        q = q.filter(Booking.user_id == user_id)
    return q.order_by(Booking.created_at.desc()).limit(min(max(limit, 1), 1000)).all()
