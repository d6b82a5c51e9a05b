from datetime import date
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hotel_api.db.session import get_db
from hotel_api.api.deps import require_admin
from hotel_api.core.errors import InvalidRange
from hotel_api.models.room import Room
from hotel_api.models.user import User
from hotel_api.schemas.room import RoomIn, RoomPatch
from hotel_api.services.availability_service import available_rooms
from hotel_api.services import room_service

router = APIRouter(tags=["rooms"])


def room_to_dict(r: Room) -> dict:
    return {
        "id": r.id,
        "roomNumber": r.room_number,
        "roomType": r.room_type,
        "capacity": r.capacity,
        "pricePerNight": float(r.price_per_night),
        "description": r.description or "",
        "status": r.status,
    }


@router.get("/rooms")
def list_rooms(roomType: str = "", status: str = "", db: Session = Depends(get_db)):
    q = db.query(Room)
    if roomType:
        q = q.filter(Room.room_type == roomType)
    if status:
        q = q.filter(Room.status == status)
    return [room_to_dict(r) for r in q.order_by(Room.room_number.asc()).all()]


@router.get("/rooms/available")
def list_available_rooms(checkIn: date, checkOut: date, roomType: str = "", guests: int = 0,
                         db: Session = Depends(get_db)):
    if checkOut <= checkIn:
        raise InvalidRange("checkOut must be after checkIn")
    return [room_to_dict(r) for r in available_rooms(db, checkIn, checkOut, roomType or None, guests or None)]


@router.get("/rooms/{room_id}")
def room_detail(room_id: str, db: Session = Depends(get_db)):
    return room_to_dict(room_service.get_room(db, room_id))


@router.post("/rooms", status_code=201)
def create_room(body: RoomIn, db: Session = Depends(get_db), me: User = Depends(require_admin)):
    r = room_service.create_room(db, me, body.roomNumber, body.roomType, body.capacity, body.pricePerNight, body.description)
    return room_to_dict(r)


@router.put("/rooms/{room_id}")
def update_room(room_id: str, body: RoomPatch, db: Session = Depends(get_db), me: User = Depends(require_admin)):
    r = room_service.update_room(db, room_id, me, {
        "room_number": body.roomNumber,
        "room_type": body.roomType,
        "capacity": body.capacity,
        "price_per_night": body.pricePerNight,
        "description": body.description,
    })
    return room_to_dict(r)


@router.delete("/rooms/{room_id}")
def remove_room(room_id: str, db: Session = Depends(get_db), me: User = Depends(require_admin)):
    room_service.delete_room(db, room_id, me)
    return {"ok": True}
