from decimal import Decimal

import pytest
from sqlalchemy.dialects import postgresql

from conftest import CARD, JUNE_1, JUNE_3, JUNE_5
from hotel_api.core.errors import DuplicateRoomNumber
from hotel_api.models.room import Room
from hotel_api.services import booking_service, payment_service, room_service
from hotel_api.services.booking_service import cancel_booking, check_in, check_out, confirm_booking, create_booking
from hotel_api.services.payment_service import pay


def test_room_lock_is_a_row_lock():
    sql = str(room_service.room_lock_statement("r-1").compile(dialect=postgresql.dialect()))
    assert "FOR UPDATE" in sql
    assert "rooms" in sql


@pytest.fixture
def locked_rooms(monkeypatch):
    calls = []
    real = room_service.lock_room

    def spy(db, room_id):
        calls.append(room_id)
        return real(db, room_id)

    monkeypatch.setattr(booking_service, "lock_room", spy)
    monkeypatch.setattr(payment_service, "lock_room", spy)
    return calls


def test_lifecycle_operations_lock_the_room(db, guest, receptionist, room, make_room, locked_rooms):
    b = create_booking(db, guest, room.id, JUNE_1, JUNE_3)
    assert locked_rooms == [room.id]

    pay(db, b.id, 200, "card", CARD, guest)
    check_in(db, b.id, receptionist)
    check_out(db, b.id, receptionist)
    assert locked_rooms == [room.id] * 4

    other_room = make_room("102")
    other = create_booking(db, guest, other_room.id, JUNE_1, JUNE_3)
    confirm_booking(db, other.id, receptionist)
    cancel_booking(db, other.id, receptionist)
    assert locked_rooms[4:] == [other_room.id] * 3


def test_room_status_follows_interleaved_checkout_and_cancel(db, guest, receptionist, room):
    staying = create_booking(db, guest, room.id, JUNE_1, JUNE_3)
    pay(db, staying.id, 200, "card", CARD, guest)
    check_in(db, staying.id, receptionist)
    next_guest = create_booking(db, guest, room.id, JUNE_3, JUNE_5)
    pay(db, next_guest.id, 200, "card", CARD, guest)

    check_out(db, staying.id, receptionist)
    db.expire_all()
    assert db.get(Room, room.id).status == "reserved"
    cancel_booking(db, next_guest.id, receptionist)
    db.expire_all()
    assert db.get(Room, room.id).status == "available"


def test_create_and_update_room(db, admin):
    r = room_service.create_room(db, admin, " 501 ", "suite", 4, Decimal("250.00"), "Corner suite")
    assert (r.room_number, r.status) == ("501", "available")
    with pytest.raises(DuplicateRoomNumber):
        room_service.create_room(db, admin, "501", "standard", 2, Decimal("90.00"))

    r = room_service.update_room(db, r.id, admin, {"price_per_night": Decimal("275.50"), "room_number": None})
    assert r.price_per_night == Decimal("275.50")
    assert r.room_number == "501"


def test_duplicate_number_caught_by_unique_index(db, admin, room, monkeypatch):
    # another request inserted the same number after our existence check
    monkeypatch.setattr(room_service, "_number_taken", lambda *args, **kwargs: False)
    with pytest.raises(DuplicateRoomNumber):
        room_service.create_room(db, admin, "101", "standard", 2, Decimal("90.00"))
    assert db.query(Room).filter(Room.room_number == "101").count() == 1

    spare = room_service.create_room(db, admin, "102", "standard", 2, Decimal("90.00"))
    with pytest.raises(DuplicateRoomNumber):
        room_service.update_room(db, spare.id, admin, {"room_number": "101"})
    db.expire_all()
    assert db.get(Room, spare.id).room_number == "102"
