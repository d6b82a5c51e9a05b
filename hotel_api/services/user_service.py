import logging
import uuid

from sqlalchemy.orm import Session

from hotel_api.core.errors import Conflict, UserNotFound, ValidationError
from hotel_api.core.security import hash_password, is_staff, verify_password
from hotel_api.models.booking import Booking
from hotel_api.models.user import Employee, Guest, User
from hotel_api.services.audit_service import log_audit
from hotel_api.services.guards import committing

logger = logging.getLogger(__name__)

ROLES = ("guest", "receptionist", "admin")
PROFILE_FIELDS = ("first_name", "last_name", "email", "phone")


def profile_model_for(role: str):
    return Employee if is_staff(role) else Guest


def get_profile(db: Session, user: User):
    return db.get(profile_model_for(user.role), user.id)


def create_user(db: Session, username: str, password: str, role: str, profile: dict, actor_id: str | None = None) -> User:
    if role not in ROLES:
        raise ValidationError("invalid role")
    username = (username or "").strip()
    if not username:
        raise ValidationError("username required")
    if len(password or "") < 8:
        raise ValidationError("Password too short")

    with committing(db, "create user"):
        if db.query(User).filter(User.username == username).first():
            raise Conflict("username already exists")
        u = User(id=str(uuid.uuid4()), username=username, role=role, password_hash=hash_password(password), is_active=True)
        db.add(u)
        db.flush()
        fields = {k: (profile.get(k) or "") for k in PROFILE_FIELDS}
        if is_staff(role):
            db.add(Employee(user_id=u.id, position=role, **fields))
        else:
            db.add(Guest(user_id=u.id, **fields))
        log_audit(db, actor_id or u.id, "user.create", "user", u.id, {"username": username, "role": role})

    logger.info("user %s created with role %s", username, role)
    db.refresh(u)
    return u


def update_user(db: Session, user_id: str, actor: User, role: str | None = None, is_active: bool | None = None,
                username: str | None = None, profile: dict | None = None) -> User:
    with committing(db, "update user"):
        u = db.get(User, user_id)
        if not u:
            raise UserNotFound("User not found")
        if username is not None and username.strip() and username.strip() != u.username:
            if db.query(User).filter(User.username == username.strip()).first():
                raise Conflict("username already exists")
            u.username = username.strip()

        current = get_profile(db, u)
        if role is not None and role != u.role:
            if role not in ROLES:
                raise ValidationError("invalid role")
            # crossing guest <-> staff moves the profile row to the other table
            if profile_model_for(role) is not profile_model_for(u.role):
                fields = {k: getattr(current, k, "") or "" for k in PROFILE_FIELDS}
                if current is not None:
                    db.delete(current)
                    db.flush()
                current = Employee(user_id=u.id, position=role, **fields) if is_staff(role) else Guest(user_id=u.id, **fields)
                db.add(current)
            elif isinstance(current, Employee):
                current.position = role
            u.role = role

        if profile:
            if current is None:
                current = profile_model_for(u.role)(user_id=u.id)
                db.add(current)
            for k in PROFILE_FIELDS:
                if profile.get(k) is not None:
                    setattr(current, k, profile[k])
        if is_active is not None:
            u.is_active = bool(is_active)
        log_audit(db, actor.id, "user.update", "user", u.id, {"role": u.role, "is_active": u.is_active})

    db.refresh(u)
    return u


def change_password(db: Session, user: User, old_password: str, new_password: str) -> None:
    if not verify_password(old_password, user.password_hash):
        raise ValidationError("Old password incorrect")
    if len(new_password or "") < 8:
        raise ValidationError("Password too short")
    with committing(db, "change password"):
        user.password_hash = hash_password(new_password)
        log_audit(db, user.id, "user.change_password", "user", user.id)
    logger.info("user %s changed their password", user.username)


def delete_user(db: Session, user_id: str, actor: User) -> None:
    with committing(db, "delete user"):
        u = db.get(User, user_id)
        if not u:
            raise UserNotFound("User not found")
        if u.id == actor.id:
            raise Conflict("Admins cannot delete their own account")
        if db.query(Booking.id).filter(Booking.user_id == u.id).first():
            raise Conflict("User has bookings; deactivate the account instead")
        profile = get_profile(db, u)
        if profile is not None:
            db.delete(profile)
            db.flush()
        db.delete(u)
        log_audit(db, actor.id, "user.delete", "user", user_id, {"username": u.username})
    logger.info("user %s deleted by %s", user_id, actor.username)


def user_to_dict(db: Session, u: User) -> dict:
    p = get_profile(db, u)
    return {
        "id": u.id,
        "username": u.username,
        "role": u.role,
        "isActive": u.is_active,
        "firstName": p.first_name if p else "",
        "lastName": p.last_name if p else "",
        "email": p.email if p else "",
        "phone": p.phone if p else "",
        "createdAt": u.created_at.isoformat() if u.created_at else None,
    }
