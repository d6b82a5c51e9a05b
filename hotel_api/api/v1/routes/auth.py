from fastapi import APIRouter, Depends, HTTPException
from jose import JWTError
from sqlalchemy.orm import Session
from hotel_api.db.session import get_db
from hotel_api.schemas.auth import LoginRequest, RegisterRequest, TokenPair, ChangePasswordRequest
from hotel_api.models.user import User
from hotel_api.core.security import verify_password, create_access_token, create_refresh_token, decode_token
from hotel_api.api.deps import get_current_user
from hotel_api.services.user_service import change_password as change_user_password, create_user, user_to_dict

router = APIRouter(tags=["auth"])


def _token_pair(db: Session, user: User) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(user.id, user.role),
        refresh_token=create_refresh_token(user.id, user.role),
        user=user_to_dict(db, user),
    )


@router.post("/auth/register", status_code=201)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    # self-registration is always a guest account; staff are created by an admin
    u = create_user(db, body.username, body.password, "guest", {
        "first_name": body.firstName,
        "last_name": body.lastName,
        "email": body.email.strip().lower(),
        "phone": body.phone,
    })
    return {"id": u.id, "username": u.username, "role": u.role}


@router.post("/auth/login", response_model=TokenPair)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.username == body.username.strip()).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Invalid username or password")
    if not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid username or password")
    return _token_pair(db, user)


@router.post("/auth/refresh", response_model=TokenPair)
def refresh(refresh_token: str, db: Session = Depends(get_db)):
    try:
        payload = decode_token(refresh_token)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    if payload.get("type") != "refresh":
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    user = db.get(User, payload.get("sub"))
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return _token_pair(db, user)


@router.get("/auth/me")
def me(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    """Return current user info including role and profile."""
    return user_to_dict(db, me)


@router.post("/auth/change-password")
def change_password(body: ChangePasswordRequest,
                    db: Session = Depends(get_db),
                    me: User = Depends(get_current_user)):
    change_user_password(db, me, body.oldPassword, body.newPassword)
    return {"ok": True}
