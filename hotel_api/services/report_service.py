from calendar import month_name
from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from hotel_api.models.booking import Booking
from hotel_api.models.payment import Payment
from hotel_api.services.booking_states import CANCELLED


def monthly_income(db: Session, year: int) -> list[dict]:
    """Completed payments bucketed by calendar month; all twelve months present."""
    start = datetime(year, 1, 1, tzinfo=timezone.utc)
    end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    rows = (
        db.query(Payment.created_at, Payment.amount)
        .filter(Payment.status == "completed", Payment.created_at >= start, Payment.created_at < end)
        .all()
    )
    totals: dict[int, Decimal] = defaultdict(Decimal)
    for created_at, amount in rows:
        totals[created_at.month] += Decimal(amount or 0)
    return [{
        "month": f"{year}-{m:02d}",
        "label": f"{month_name[m]} {year}",
        "total": float(totals[m]),
    } for m in range(1, 13)]


def sales_report(db: Session, start_date: date, end_date: date) -> list[dict]:
    """Per booking-creation day: bookings, revenue from non-cancelled bookings, cancellations. Newest first."""
    start = datetime.combine(start_date, time.min, tzinfo=timezone.utc)
    end = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=timezone.utc)
    rows = (
        db.query(Booking.created_at, Booking.total_price, Booking.status)
        .filter(Booking.created_at >= start, Booking.created_at < end)
        .all()
    )
    days: dict[date, dict] = {}
    for created_at, total_price, status in rows:
        d = created_at.date()
        bucket = days.setdefault(d, {"total_bookings": 0, "total_revenue": Decimal("0"), "cancelled_bookings": 0})
        bucket["total_bookings"] += 1
        if status == CANCELLED:
            bucket["cancelled_bookings"] += 1
        else:
            bucket["total_revenue"] += Decimal(total_price or 0)
    return [{
        "date": d.isoformat(),
        "total_bookings": v["total_bookings"],
        "total_revenue": float(v["total_revenue"]),
        "cancelled_bookings": v["cancelled_bookings"],
    } for d, v in sorted(days.items(), reverse=True)]
