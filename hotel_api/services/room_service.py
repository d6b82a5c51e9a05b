import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hotel_api.core.errors import Conflict, DuplicateRoomNumber, RoomNotFound
from hotel_api.models.booking import Booking
from hotel_api.models.room import Room
from hotel_api.models.user import User
from hotel_api.services.audit_service import log_audit
from hotel_api.services.booking_states import ACTIVE_STATUSES, CHECKED_IN, CONFIRMED
from hotel_api.services.guards import committing

logger = logging.getLogger(__name__)


def get_room(db: Session, room_id: str) -> Room:
    room = db.get(Room, room_id)
    if not room:
        raise RoomNotFound("Room not found")
    return room


def room_lock_statement(room_id: str):
    return select(Room).where(Room.id == room_id).with_for_update()


def lock_room(db: Session, room_id: str) -> Room:
    """Load the room with a row lock held until the caller commits.

    Every write that reads or changes a room's bookings takes this lock first,
    so occupancy checks and the derived status see the other writers' results.
    """
    room = db.execute(room_lock_statement(room_id)).scalar_one_or_none()
    if not room:
        raise RoomNotFound("Room not found")
    return room


def derive_room_status(booking_statuses: set[str]) -> str:
    if CHECKED_IN in booking_statuses:
        return "occupied"
    if CONFIRMED in booking_statuses:
        return "reserved"
    return "available"


def sync_room_status(db: Session, room_id: str) -> str:
    """Recompute Room.status from the room's bookings. Caller commits."""
    room = lock_room(db, room_id)
    db.flush()
    statuses = {
        s for (s,) in db.query(Booking.status)
        .filter(Booking.room_id == room_id, Booking.status.in_([CHECKED_IN, CONFIRMED]))
        .distinct()
        .all()
    }
    new_status = derive_room_status(statuses)
    if room.status != new_status:
        logger.info("room %s status %s -> %s", room.room_number, room.status, new_status)
        room.status = new_status
    return new_status


def _number_taken(db: Session, number: str, exclude_room_id: str | None = None) -> bool:
    q = db.query(Room.id).filter(Room.room_number == number)
    if exclude_room_id:
        q = q.filter(Room.id != exclude_room_id)
    return q.first() is not None


def _flush_room(db: Session, number: str) -> None:
    # a concurrent insert of the same number only shows up on the unique index
    try:
        db.flush()
    except IntegrityError as e:
        raise DuplicateRoomNumber(f"Room number {number} already exists") from e


def create_room(db: Session, actor: User, number: str, room_type: str, capacity: int, price_per_night,
                description: str = "") -> Room:
    number = number.strip()
    with committing(db, "create room"):
        if _number_taken(db, number):
            raise DuplicateRoomNumber(f"Room number {number} already exists")
        room = Room(
            id=str(uuid.uuid4()),
            room_number=number,
            room_type=room_type,
            capacity=capacity,
            price_per_night=price_per_night,
            description=description,
            status="available",
        )
        db.add(room)
        _flush_room(db, number)
        log_audit(db, actor.id, "room.create", "room", room.id, {"room_number": number})
    logger.info("room %s created by %s", number, actor.username)
    db.refresh(room)
    return room


def update_room(db: Session, room_id: str, actor: User, changes: dict) -> Room:
    """Apply the given fields; status is derived and never taken from ``changes``."""
    with committing(db, "update room"):
        room = lock_room(db, room_id)
        number = (changes.get("room_number") or "").strip()
        if number and number != room.room_number:
            if _number_taken(db, number, exclude_room_id=room.id):
                raise DuplicateRoomNumber(f"Room number {number} already exists")
            room.room_number = number
        # existing bookings keep the total quoted when they were made
        for field in ("room_type", "capacity", "price_per_night", "description"):
            if changes.get(field) is not None:
                setattr(room, field, changes[field])
        _flush_room(db, room.room_number)
        log_audit(db, actor.id, "room.update", "room", room.id, {k: v for k, v in changes.items() if v is not None})
    db.refresh(room)
    return room


def delete_room(db: Session, room_id: str, actor: User) -> None:
    with committing(db, "delete room"):
        room = lock_room(db, room_id)
        number = room.room_number
        active = db.query(Booking).filter(Booking.room_id == room.id, Booking.status.in_(ACTIVE_STATUSES)).count()
        if active:
            raise Conflict(f"Room {number} still has {active} active booking(s)")
        # bookings.room_id is a foreign key; past stays pin the room too
        if db.query(Booking).filter(Booking.room_id == room.id).count():
            raise Conflict(f"Room {number} has booking history and cannot be deleted")
        db.delete(room)
        log_audit(db, actor.id, "room.delete", "room", room.id, {"room_number": number})
    logger.info("room %s deleted by %s", number, actor.username)
