from __future__ import annotations

import io
from datetime import date, datetime, timezone
from decimal import Decimal

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas
from sqlalchemy.orm import Session

from hotel_api.core.config import settings
from hotel_api.core.errors import Conflict
from hotel_api.models.room import Room
from hotel_api.models.user import User
from hotel_api.services.guards import load_booking
from hotel_api.services.payment_service import get_payment


def render_receipt_pdf_bytes(*, booking_id: str, guest_name: str, room_number: str, room_type: str,
                             check_in: date, check_out: date, nights: int, price_per_night: Decimal,
                             total: Decimal, payment_method: str, payment_ref: str, paid_at: datetime | None,
                             currency: str = "USD") -> bytes:
    """Return an A4 PDF receipt. Pure function."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    _, h = A4

    c.setFont("Helvetica-Bold", 18)
    c.drawString(40, h - 60, f"{settings.HOTEL_NAME} Receipt")
    c.setFont("Helvetica", 11)
    c.drawString(40, h - 80, f"Booking: {booking_id}")

    c.setFont("Helvetica-Bold", 12)
    c.drawString(40, h - 115, "Guest")
    c.setFont("Helvetica", 11)
    c.drawString(40, h - 133, guest_name or "(Not provided)")

    c.setFont("Helvetica-Bold", 12)
    c.drawString(40, h - 170, "Stay")
    c.setFont("Helvetica", 11)
    c.drawString(40, h - 188, f"Room:      {room_number} ({room_type})")
    c.drawString(40, h - 204, f"Check-in:  {check_in.isoformat()}")
    c.drawString(40, h - 220, f"Check-out: {check_out.isoformat()}")
    c.drawString(40, h - 236, f"Nights:    {nights} x {price_per_night} {currency}")

    c.setFont("Helvetica-Bold", 12)
    c.drawString(40, h - 273, "Payment")
    c.setFont("Helvetica", 11)
    c.drawString(40, h - 291, f"Total:     {total} {currency}")
    c.drawString(40, h - 307, f"Method:    {payment_method}")
    c.drawString(40, h - 323, f"Reference: {payment_ref}")
    if paid_at:
        c.drawString(40, h - 339, f"Paid at:   {paid_at.isoformat()}")

    c.setFont("Helvetica", 9)
    c.drawString(40, 40, "Thank you for staying with us.")
    c.drawString(40, 26, f"Generated: {datetime.now(timezone.utc).isoformat()}")

    c.showPage()
    c.save()
    return buf.getvalue()


def booking_receipt_pdf(db: Session, booking_id: str, actor: User, guest_name: str = "") -> bytes:
    b = load_booking(db, booking_id, actor)
    if b.payment_status != "paid":
        raise Conflict("Receipt is only available after payment")
    payment, details = get_payment(db, b.id, actor)
    room = db.get(Room, b.room_id)
    method = payment.payment_method
    if method == "card" and details is not None:
        method = f"card **** {details.card_last4}"
    elif details is not None:
        method = f"{details.wallet_type} e-wallet"
    return render_receipt_pdf_bytes(
        booking_id=b.id,
        guest_name=guest_name,
        room_number=room.room_number if room else "-",
        room_type=room.room_type if room else "-",
        check_in=b.check_in_date,
        check_out=b.check_out_date,
        nights=(b.check_out_date - b.check_in_date).days,
        price_per_night=room.price_per_night if room else Decimal("0"),
        total=payment.amount,
        payment_method=method,
        payment_ref=payment.id,
        paid_at=payment.created_at,
        currency=settings.CURRENCY,
    )
