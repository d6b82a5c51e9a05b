import logging
import uuid
from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError

from hotel_api.db.session import SessionLocal
from hotel_api.core.config import settings
from hotel_api.models.room import Room
from hotel_api.models.user import User
from hotel_api.services.user_service import create_user

logger = logging.getLogger(__name__)

ROOMS = [
    ("101", "standard", 2, Decimal("100.00"), "Queen bed, garden view"),
    ("102", "standard", 2, Decimal("100.00"), "Twin beds, garden view"),
    ("201", "deluxe", 3, Decimal("160.00"), "King bed, balcony"),
    ("202", "deluxe", 3, Decimal("160.00"), "King bed, city view"),
    ("301", "suite", 4, Decimal("280.00"), "Separate living room"),
    ("401", "executive", 2, Decimal("350.00"), "Top floor, lounge access"),
]


def ensure_user(db: Session, username: str, password: str, role: str, first_name: str):
    if db.query(User).filter(User.username == username).first():
        return
    create_user(db, username, password, role, {"first_name": first_name})


def ensure_room(db: Session, number: str, room_type: str, capacity: int, price: Decimal, description: str):
    if db.query(Room).filter(Room.room_number == number).first():
        return
    db.add(Room(
        id=str(uuid.uuid4()),
        room_number=number,
        room_type=room_type,
        capacity=capacity,
        price_per_night=price,
        description=description,
        status="available",
    ))
    db.commit()


def run(db=None):
    if db is None:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM users LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            logger.warning("users table not found yet; skipping seed (run alembic upgrade head)")
            return

        ensure_user(db, "admin", settings.SEED_ADMIN_PASSWORD, "admin", "Admin")
        ensure_user(db, "reception", settings.SEED_RECEPTIONIST_PASSWORD, "receptionist", "Front Desk")
        for row in ROOMS:
            ensure_room(db, *row)
        logger.info("seed complete")
    finally:
        db.close()


if __name__ == "__main__":
    from hotel_api.core.logging import configure_logging
    configure_logging(settings.LOG_LEVEL)
    run()
