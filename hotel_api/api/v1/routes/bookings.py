from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from hotel_api.db.session import get_db
from hotel_api.api.deps import get_current_user, require_staff
from hotel_api.models.booking import Booking
from hotel_api.models.room import Room
from hotel_api.models.user import User
from hotel_api.schemas.booking import BookingCreate, BookingStatusUpdate
from hotel_api.services import booking_service
from hotel_api.services.audit_service import entity_history
from hotel_api.services.guards import load_booking
from hotel_api.services.receipt_service import booking_receipt_pdf
from hotel_api.services.user_service import get_profile

router = APIRouter(tags=["bookings"])


def booking_to_dict(b: Booking, room: Room | None = None, user: User | None = None) -> dict:
    out = {
        "id": b.id,
        "userId": b.user_id,
        "roomId": b.room_id,
        "checkInDate": b.check_in_date.isoformat(),
        "checkOutDate": b.check_out_date.isoformat(),
        "nights": (b.check_out_date - b.check_in_date).days,
        "guests": b.guests,
        "totalPrice": float(b.total_price),
        "status": b.status,
        "paymentStatus": b.payment_status,
        "createdAt": b.created_at.isoformat() if b.created_at else None,
    }
    if room:
        out["roomNumber"] = room.room_number
        out["roomType"] = room.room_type
        out["roomStatus"] = room.status
    if user:
        out["username"] = user.username
    return out


def _full(db: Session, b: Booking) -> dict:
    return booking_to_dict(b, db.get(Room, b.room_id), db.get(User, b.user_id))


@router.get("/bookings")
def list_bookings(status: str = "", payment_status: str = "", room_id: str = "", limit: int = 200,
                  db: Session = Depends(get_db), me: User = Depends(require_staff)):
    rows = booking_service.list_bookings(db, status=status, payment_status=payment_status, room_id=room_id, limit=limit)
    return [booking_to_dict(b, room, user) for b, room, user in rows]


@router.get("/bookings/my-bookings")
def my_bookings(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    rows = booking_service.list_bookings(db, user_id=me.id)
    return [booking_to_dict(b, room) for b, room, _ in rows]


@router.post("/bookings", status_code=201)
def create_booking(body: BookingCreate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    b = booking_service.create_booking(
        db, me, body.room_id, body.check_in_date, body.check_out_date,
        guests=body.guests, expected_total=body.totalPrice,
    )
    return {"message": "Booking created successfully", **_full(db, b)}


@router.get("/bookings/{booking_id}")
def booking_detail(booking_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    b = load_booking(db, booking_id, me)
    out = _full(db, b)
    out["history"] = [{
        "at": a.created_at.isoformat(),
        "action": a.action,
        "actor": a.actor_user_id,
    } for a in entity_history(db, "booking", b.id)]
    return out


@router.put("/bookings/{booking_id}/status")
def update_status(booking_id: str, body: BookingStatusUpdate,
                  db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    b = booking_service.transition(db, booking_id, body.status, me, payment_status=body.payment_status)
    return _full(db, b)


@router.put("/bookings/{booking_id}/cancel")
def cancel_booking(booking_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    b = booking_service.cancel_booking(db, booking_id, me)
    return {"message": "Booking cancelled successfully", **_full(db, b)}


@router.post("/bookings/{booking_id}/check-in")
def check_in(booking_id: str, db: Session = Depends(get_db), me: User = Depends(require_staff)):
    return _full(db, booking_service.check_in(db, booking_id, me))


@router.post("/bookings/{booking_id}/check-out")
def check_out(booking_id: str, db: Session = Depends(get_db), me: User = Depends(require_staff)):
    return _full(db, booking_service.check_out(db, booking_id, me))


@router.delete("/bookings/{booking_id}")
def delete_booking(booking_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    booking_service.delete_booking(db, booking_id, me)
    return {"ok": True}


@router.get("/bookings/{booking_id}/receipt")
def receipt(booking_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    b = load_booking(db, booking_id, me)
    owner = db.get(User, b.user_id)
    profile = get_profile(db, owner) if owner else None
    name = f"{profile.first_name} {profile.last_name}".strip() if profile else ""
    pdf = booking_receipt_pdf(db, b.id, me, guest_name=name or (owner.username if owner else ""))
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="receipt-{b.id}.pdf"'},
    )
