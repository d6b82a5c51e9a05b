from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

class BookingCreate(BaseModel):
    room_id: str
    check_in_date: date
    check_out_date: date
    guests: int = 1
    # Client-side quote; rejected when it disagrees with the server's nights * price
    totalPrice: Optional[Decimal] = None

class BookingStatusUpdate(BaseModel):
    status: str
    payment_status: Optional[str] = None

