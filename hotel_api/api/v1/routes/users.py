from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from hotel_api.db.session import get_db
from hotel_api.api.deps import require_admin
from hotel_api.models.user import User
from hotel_api.schemas.user import StaffCreate, UserUpdate
from hotel_api.services.user_service import create_user, update_user, delete_user, user_to_dict

router = APIRouter(tags=["users"])

@router.get("/users")
def list_users(role: str | None = None, q: str | None = None, limit: int = 50, offset: int = 0,
               db: Session = Depends(get_db),
               me: User = Depends(require_admin)):
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    if q:
        query = query.filter(func.lower(User.username).like(f"%{q.lower()}%"))
    total = query.count()
    users = query.order_by(User.created_at.desc()).limit(min(limit, 200)).offset(max(offset, 0)).all()
    return {"total": total, "items": [user_to_dict(db, u) for u in users]}

@router.post("/users/staff", status_code=201)
def create_staff(body: StaffCreate, db: Session = Depends(get_db), me: User = Depends(require_admin)):
    u = create_user(db, body.username, body.password, body.role, {
        "first_name": body.firstName,
        "last_name": body.lastName,
        "email": body.email.strip().lower(),
        "phone": body.phone,
    }, actor_id=me.id)
    return user_to_dict(db, u)

@router.put("/users/{user_id}")
def edit_user(user_id: str, body: UserUpdate, db: Session = Depends(get_db), me: User = Depends(require_admin)):
    u = update_user(db, user_id, me, role=body.role, is_active=body.isActive,
                    username=body.username, profile=body.profile())
    return user_to_dict(db, u)

@router.delete("/users/{user_id}")
def remove_user(user_id: str, db: Session = Depends(get_db), me: User = Depends(require_admin)):
    delete_user(db, user_id, me)
    return {"ok": True}
