import logging
from contextlib import contextmanager

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hotel_api.core.errors import BookingNotFound, Forbidden, PersistenceError, ServiceError
from hotel_api.core.security import is_staff
from hotel_api.models.booking import Booking
from hotel_api.models.user import User

logger = logging.getLogger(__name__)


@contextmanager
def committing(db: Session, what: str):
    """Run the block as one transaction: commit at the end, roll back everything on any error."""
    try:
        yield
        db.commit()
    except ServiceError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("%s failed; rolled back", what)
        raise PersistenceError(f"could not {what}") from e


def ensure_staff(actor: User) -> None:
    if not is_staff(actor.role):
        raise Forbidden("requires receptionist or admin role")


def load_booking(db: Session, booking_id: str, actor: User, *, for_update: bool = False, owner_only: bool = False) -> Booking:
    stmt = select(Booking).where(Booking.id == booking_id)
    if for_update:
        stmt = stmt.with_for_update()
    b = db.execute(stmt).scalar_one_or_none()
    if not b:
        raise BookingNotFound("Booking not found")
    if b.user_id == actor.id:
        return b
    if owner_only or not is_staff(actor.role):
        raise Forbidden("Not authorized to act on this booking")
    return b
