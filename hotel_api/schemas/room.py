from decimal import Decimal
from typing import Literal, Optional
from pydantic import BaseModel, Field

RoomType = Literal["standard", "deluxe", "suite", "executive"]

class RoomIn(BaseModel):
    roomNumber: str = Field(min_length=1, max_length=20)
    roomType: RoomType = "standard"
    capacity: int = Field(default=1, ge=1)
    pricePerNight: Decimal = Field(gt=0)
    description: str = ""

class RoomPatch(BaseModel):
    # status is derived from bookings and not writable here
    roomNumber: Optional[str] = Field(default=None, min_length=1, max_length=20)
    roomType: Optional[RoomType] = None
    capacity: Optional[int] = Field(default=None, ge=1)
    pricePerNight: Optional[Decimal] = Field(default=None, gt=0)
    description: Optional[str] = None
