from typing import Optional
from pydantic import BaseModel

class LoginRequest(BaseModel):
    username: str
    password: str

class RegisterRequest(BaseModel):
    username: str
    password: str
    email: str = ""  # plain str to allow .local and other dev domains
    firstName: str = ""
    lastName: str = ""
    phone: str = ""

class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: Optional[dict] = None

class ChangePasswordRequest(BaseModel):
    oldPassword: str
    newPassword: str
