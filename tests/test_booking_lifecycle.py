import pytest
from sqlalchemy.exc import OperationalError

from conftest import CARD, JUNE_1, JUNE_3, JUNE_5
from hotel_api.core.errors import (
    BookingNotFound,
    Conflict,
    Forbidden,
    InvalidTransition,
    PersistenceError,
    ValidationError,
)
from hotel_api.models.audit_log import AuditLog
from hotel_api.models.booking import Booking
from hotel_api.models.payment import CardPayment, Payment
from hotel_api.models.room import Room
from hotel_api.services import booking_service
from hotel_api.services.booking_service import (
    cancel_booking,
    check_in,
    check_out,
    create_booking,
    delete_booking,
    transition,
)
from hotel_api.services.payment_service import pay


def _room_status(db, room_id):
    db.expire_all()
    return db.get(Room, room_id).status


def _paid_booking(db, guest, room, check_in_date=JUNE_1, check_out_date=JUNE_3):
    b = create_booking(db, guest, room.id, check_in_date, check_out_date)
    pay(db, b.id, b.total_price, "card", CARD, guest)
    db.refresh(b)
    return b


def test_round_trip(db, guest, receptionist, room):
    b = create_booking(db, guest, room.id, JUNE_1, JUNE_3)
    assert (b.status, b.payment_status) == ("pending", "pending")
    assert _room_status(db, room.id) == "available"

    pay(db, b.id, "200.00", "card", CARD, guest)
    db.refresh(b)
    assert (b.status, b.payment_status) == ("confirmed", "paid")
    assert _room_status(db, room.id) == "reserved"

    b = check_in(db, b.id, receptionist)
    assert b.status == "checked_in"
    assert _room_status(db, room.id) == "occupied"

    b = check_out(db, b.id, receptionist)
    assert b.status == "checked_out"
    assert _room_status(db, room.id) == "available"

    actions = [a.action for a in db.query(AuditLog).filter(AuditLog.entity_id == b.id).order_by(AuditLog.created_at)]
    assert actions == ["booking.create", "payment.create", "booking.check_in", "booking.check_out"]


def test_check_in_requires_payment(db, guest, receptionist, room):
    b = create_booking(db, guest, room.id, JUNE_1, JUNE_3)
    with pytest.raises(InvalidTransition):
        check_in(db, b.id, receptionist)

    # confirmed at the desk but not paid yet
    transition(db, b.id, "confirmed", receptionist)
    with pytest.raises(Conflict):
        check_in(db, b.id, receptionist)
    db.expire_all()
    assert db.get(Booking, b.id).status == "confirmed"


def test_check_out_requires_checked_in(db, guest, receptionist, room):
    b = _paid_booking(db, guest, room)
    with pytest.raises(InvalidTransition):
        check_out(db, b.id, receptionist)


def test_no_skipped_or_reversed_steps(db, guest, receptionist, room):
    b = create_booking(db, guest, room.id, JUNE_1, JUNE_3)
    with pytest.raises(InvalidTransition):
        transition(db, b.id, "checked_out", receptionist)
    with pytest.raises(InvalidTransition):
        transition(db, b.id, "checked_in", receptionist)

    pay(db, b.id, "200", "card", CARD, guest)
    check_in(db, b.id, receptionist)
    with pytest.raises(InvalidTransition):
        transition(db, b.id, "cancelled", receptionist)
    with pytest.raises(InvalidTransition):
        transition(db, b.id, "pending", receptionist)

    check_out(db, b.id, receptionist)
    with pytest.raises(InvalidTransition):
        transition(db, b.id, "checked_in", receptionist)


def test_transition_aliases_and_dispatch(db, guest, receptionist, room):
    b = _paid_booking(db, guest, room)
    b = transition(db, b.id, "checked-in", receptionist)
    assert b.status == "checked_in"
    assert _room_status(db, room.id) == "occupied"
    b = transition(db, b.id, "completed", receptionist)
    assert b.status == "checked_out"
    assert _room_status(db, room.id) == "available"


def test_guest_may_only_cancel(db, guest, room):
    b = create_booking(db, guest, room.id, JUNE_1, JUNE_3)
    with pytest.raises(Forbidden):
        transition(db, b.id, "confirmed", guest)
    b = transition(db, b.id, "cancelled", guest)
    assert b.status == "cancelled"


def test_other_guests_are_forbidden(db, guest, make_user, room):
    b = create_booking(db, guest, room.id, JUNE_1, JUNE_3)
    mallory = make_user("guest", "mallory")
    with pytest.raises(Forbidden):
        cancel_booking(db, b.id, mallory)
    with pytest.raises(Forbidden):
        pay(db, b.id, "200", "card", CARD, mallory)


def test_guest_cannot_check_in(db, guest, room):
    b = _paid_booking(db, guest, room)
    with pytest.raises(Forbidden):
        check_in(db, b.id, guest)


def test_cancel_paid_booking_reverses_payment(db, guest, room):
    b = _paid_booking(db, guest, room)
    payment_id = db.query(Payment.id).filter(Payment.booking_id == b.id).scalar()
    assert _room_status(db, room.id) == "reserved"

    b = cancel_booking(db, b.id, guest)
    assert (b.status, b.payment_status) == ("cancelled", "cancelled")
    assert db.query(Payment).filter(Payment.booking_id == b.id).count() == 0
    assert db.get(CardPayment, payment_id) is None
    assert _room_status(db, room.id) == "available"

    with pytest.raises(InvalidTransition):
        cancel_booking(db, b.id, guest)


def test_staff_records_refund_after_cancellation(db, guest, receptionist, room):
    b = _paid_booking(db, guest, room)
    cancel_booking(db, b.id, receptionist)
    b = transition(db, b.id, "cancelled", receptionist, payment_status="refunded")
    assert b.payment_status == "refunded"

    other = create_booking(db, guest, room.id, JUNE_3, JUNE_5)
    with pytest.raises(ValidationError):
        transition(db, other.id, "pending", receptionist, payment_status="paid")


def test_room_stays_reserved_while_another_booking_is_confirmed(db, guest, receptionist, room):
    first = _paid_booking(db, guest, room, JUNE_1, JUNE_3)
    second = _paid_booking(db, guest, room, JUNE_3, JUNE_5)
    check_in(db, first.id, receptionist)
    assert _room_status(db, room.id) == "occupied"
    with pytest.raises(Conflict):
        check_in(db, second.id, receptionist)
    check_out(db, first.id, receptionist)
    assert _room_status(db, room.id) == "reserved"


def test_check_in_rolls_back_on_store_failure(db, guest, receptionist, room, monkeypatch):
    b = _paid_booking(db, guest, room)

    def boom(*args, **kwargs):
        raise OperationalError("UPDATE rooms", {}, Exception("disk full"))

    monkeypatch.setattr(booking_service, "sync_room_status", boom)
    with pytest.raises(PersistenceError):
        check_in(db, b.id, receptionist)

    db.expire_all()
    assert db.get(Booking, b.id).status == "confirmed"
    assert db.get(Room, room.id).status == "reserved"


def test_delete_pending_booking_owner_only(db, guest, receptionist, room):
    b = create_booking(db, guest, room.id, JUNE_1, JUNE_3)
    with pytest.raises(Forbidden):
        delete_booking(db, b.id, receptionist)
    delete_booking(db, b.id, guest)
    assert db.get(Booking, b.id) is None
    with pytest.raises(BookingNotFound):
        delete_booking(db, b.id, guest)


def test_paid_booking_cannot_be_deleted(db, guest, room):
    b = _paid_booking(db, guest, room)
    with pytest.raises(InvalidTransition):
        delete_booking(db, b.id, guest)
    assert db.query(Payment).filter(Payment.booking_id == b.id).count() == 1
