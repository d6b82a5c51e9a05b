from decimal import Decimal
from sqlalchemy import String, Integer, DateTime, Numeric, Text, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from hotel_api.db.session import Base

class Room(Base):
    __tablename__ = "rooms"
    __table_args__ = (
        CheckConstraint("capacity >= 1", name="ck_rooms_capacity"),
        CheckConstraint("price_per_night > 0", name="ck_rooms_price"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    room_number: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    room_type: Mapped[str] = mapped_column(String(20), default="standard")  # standard, deluxe, suite, executive
    capacity: Mapped[int] = mapped_column(Integer, default=1)
    price_per_night: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    description: Mapped[str] = mapped_column(Text, default="")
    # Derived from bookings, see booking_service.sync_room_status
    status: Mapped[str] = mapped_column(String(20), default="available")  # available, reserved, occupied
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
