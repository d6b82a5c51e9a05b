import logging
from datetime import date

from sqlalchemy import and_, exists, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hotel_api.models.booking import Booking
from hotel_api.models.room import Room
from hotel_api.services.booking_states import CANCELLED

logger = logging.getLogger(__name__)


def _overlaps(check_in: date, check_out: date):
    # half-open [check_in, check_out): a stay ending the day another starts is fine
    return and_(
        Booking.status != CANCELLED,
        Booking.check_in_date < check_out,
        Booking.check_out_date > check_in,
    )


def overlapping_bookings(db: Session, room_id: str, check_in: date, check_out: date) -> list[Booking]:
    return db.query(Booking).filter(Booking.room_id == room_id, _overlaps(check_in, check_out)).all()


def is_available(db: Session, room_id: str, check_in: date, check_out: date) -> bool:
    """True when no non-cancelled booking of the room overlaps the range.

    Any database failure answers False: a check that could not run must not
    let a double booking through.
    """
    try:
        return not overlapping_bookings(db, room_id, check_in, check_out)
    except SQLAlchemyError:
        logger.exception("availability check failed for room %s %s..%s", room_id, check_in, check_out)
        return False


def available_rooms(db: Session, check_in: date, check_out: date, room_type: str | None = None, guests: int | None = None) -> list[Room]:
    taken = exists(select(Booking.id).where(Booking.room_id == Room.id, _overlaps(check_in, check_out)))
    q = db.query(Room).filter(~taken)
    if room_type:
        q = q.filter(Room.room_type == room_type)
    if guests:
        q = q.filter(Room.capacity >= guests)
    return q.order_by(Room.room_number.asc()).all()
