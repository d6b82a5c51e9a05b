from decimal import Decimal
from sqlalchemy import String, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from hotel_api.db.session import Base

class Payment(Base):
    __tablename__ = "payments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    booking_id: Mapped[str] = mapped_column(String(36), ForeignKey("bookings.id"), unique=True, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    payment_method: Mapped[str] = mapped_column(String(20))  # card, e-wallet
    status: Mapped[str] = mapped_column(String(20), default="completed")  # completed, cancelled
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class CardPayment(Base):
    __tablename__ = "card_payments"

    payment_id: Mapped[str] = mapped_column(String(36), ForeignKey("payments.id"), primary_key=True)
    card_last4: Mapped[str] = mapped_column(String(4))
    expiry_date: Mapped[str] = mapped_column(String(7))  # MM/YY or MM/YYYY
    cardholder_name: Mapped[str] = mapped_column(String(200))


class EWalletPayment(Base):
    __tablename__ = "e_wallet_payments"

    payment_id: Mapped[str] = mapped_column(String(36), ForeignKey("payments.id"), primary_key=True)
    wallet_type: Mapped[str] = mapped_column(String(40))
    account_number: Mapped[str] = mapped_column(String(80))
