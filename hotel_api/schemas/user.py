from typing import Literal, Optional
from pydantic import BaseModel

class StaffCreate(BaseModel):
    username: str
    password: str
    role: Literal["receptionist", "admin"] = "receptionist"
    email: str = ""
    firstName: str = ""
    lastName: str = ""
    phone: str = ""

class UserUpdate(BaseModel):
    username: Optional[str] = None
    role: Optional[Literal["guest", "receptionist", "admin"]] = None
    isActive: Optional[bool] = None
    email: Optional[str] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    phone: Optional[str] = None

    def profile(self) -> dict:
        return {
            "email": self.email,
            "first_name": self.firstName,
            "last_name": self.lastName,
            "phone": self.phone,
        }
