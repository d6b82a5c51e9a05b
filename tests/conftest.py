import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"

from datetime import date
from decimal import Decimal
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hotel_api.core.security import create_access_token
from hotel_api.db.session import Base, get_db
from hotel_api.main import app
from hotel_api.models.audit_log import AuditLog  # noqa: F401
from hotel_api.models.booking import Booking  # noqa: F401
from hotel_api.models.payment import Payment, CardPayment, EWalletPayment  # noqa: F401
from hotel_api.models.room import Room
from hotel_api.models.user import User, Guest, Employee  # noqa: F401
from hotel_api.services.user_service import create_user


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(role: str = "guest", username: str | None = None, password: str = "password123") -> User:
        name = username or f"{role}-{uuid.uuid4().hex[:8]}"
        return create_user(db, name, password, role, {"first_name": name.title(), "email": f"{name}@example.com"})
    return _make


@pytest.fixture
def make_room(db):
    def _make(number: str = "101", price: str = "100.00", capacity: int = 2, room_type: str = "standard") -> Room:
        room = Room(
            id=str(uuid.uuid4()),
            room_number=number,
            room_type=room_type,
            capacity=capacity,
            price_per_night=Decimal(price),
            description="",
            status="available",
        )
        db.add(room)
        db.commit()
        db.refresh(room)
        return room
    return _make


@pytest.fixture
def guest(make_user):
    return make_user("guest", "alice")


@pytest.fixture
def receptionist(make_user):
    return make_user("receptionist", "frontdesk")


@pytest.fixture
def admin(make_user):
    return make_user("admin", "boss")


@pytest.fixture
def room(make_room):
    return make_room("101", "100.00")


def auth(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


CARD = {"cardNumber": "4111 1111 1111 1234", "expiryDate": "12/29", "cvv": "123", "cardholderName": "Alice Guest"}
WALLET = {"walletType": "PayPal", "accountNumber": "alice@example.com"}

JUNE_1, JUNE_2, JUNE_3, JUNE_4, JUNE_5 = (date(2024, 6, d) for d in range(1, 6))
