from decimal import Decimal
from sqlalchemy import String, Integer, DateTime, Date, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import date, datetime, timezone
from hotel_api.db.session import Base

class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (CheckConstraint("check_out_date > check_in_date", name="ck_bookings_range"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), index=True)  # owner
    room_id: Mapped[str] = mapped_column(String(36), ForeignKey("rooms.id"), index=True)

    check_in_date: Mapped[date] = mapped_column(Date, index=True)
    check_out_date: Mapped[date] = mapped_column(Date, index=True)
    guests: Mapped[int] = mapped_column(Integer, default=1)

    # nights * price_per_night at creation time
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))

    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)  # pending, confirmed, checked_in, checked_out, cancelled
    payment_status: Mapped[str] = mapped_column(String(20), default="pending")  # pending, paid, cancelled, refunded

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
