"""Payment reconciliation: record or reverse a payment together with the
booking and room state it implies, in one transaction."""
import logging
import uuid
from decimal import Decimal, InvalidOperation

from pydantic import ValidationError as SchemaError
from sqlalchemy.orm import Session

from hotel_api.core.errors import InvalidTransition, MissingPaymentDetails, NotFound, ValidationError
from hotel_api.models.booking import Booking
from hotel_api.models.payment import CardPayment, EWalletPayment, Payment
from hotel_api.models.user import User
from hotel_api.schemas.payments import CardDetails, EWalletDetails, PaymentDetails
from hotel_api.services.audit_service import log_audit
from hotel_api.services.booking_states import CONFIRMED, PENDING, ensure_transition
from hotel_api.services.guards import committing, load_booking
from hotel_api.services.room_service import lock_room, sync_room_status

logger = logging.getLogger(__name__)

PAYMENT_METHODS: dict[str, type[CardDetails] | type[EWalletDetails]] = {
    "card": CardDetails,
    "e-wallet": EWalletDetails,
}

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    try:
        return Decimal(str(value)).quantize(CENT)
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"invalid amount: {value!r}") from e


def parse_payment_details(method: str, raw: dict | None) -> PaymentDetails:
    model = PAYMENT_METHODS.get(method)
    if model is None:
        raise ValidationError(f"Invalid payment method: {method!r}")
    try:
        return model.model_validate({k: v for k, v in (raw or {}).items() if k != "method"})
    except SchemaError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
        raise MissingPaymentDetails(f"Missing required {method} payment details: {', '.join(fields)}") from e


def _detail_row(payment_id: str, details: PaymentDetails):
    if isinstance(details, CardDetails):
        return CardPayment(
            payment_id=payment_id,
            card_last4=details.last4,
            expiry_date=details.expiry_date,
            cardholder_name=details.cardholder_name,
        )
    if isinstance(details, EWalletDetails):
        return EWalletPayment(
            payment_id=payment_id,
            wallet_type=details.wallet_type,
            account_number=details.account_number,
        )
    raise ValidationError(f"unsupported payment details: {type(details).__name__}")


def remove_payment_rows(db: Session, booking_id: str) -> int:
    """Delete a booking's payments, detail rows first. Caller commits."""
    payment_ids = [pid for (pid,) in db.query(Payment.id).filter(Payment.booking_id == booking_id).all()]
    if not payment_ids:
        return 0
    db.query(CardPayment).filter(CardPayment.payment_id.in_(payment_ids)).delete(synchronize_session=False)
    db.query(EWalletPayment).filter(EWalletPayment.payment_id.in_(payment_ids)).delete(synchronize_session=False)
    db.query(Payment).filter(Payment.id.in_(payment_ids)).delete(synchronize_session=False)
    return len(payment_ids)


def pay(db: Session, booking_id: str, amount, method: str, details: dict | None, actor: User) -> Payment:
    parsed = parse_payment_details(method, details)
    amount = to_money(amount)

    with committing(db, "record payment"):
        b = load_booking(db, booking_id, actor, for_update=True)
        lock_room(db, b.room_id)
        if b.status not in (PENDING, CONFIRMED):
            raise InvalidTransition(f"Cannot pay for a {b.status} booking")
        if b.payment_status == "paid":
            raise InvalidTransition("Booking is already paid")
        if amount != to_money(b.total_price):
            raise ValidationError(f"Payment amount {amount} does not match booking total {to_money(b.total_price)}")

        payment = Payment(
            id=str(uuid.uuid4()),
            booking_id=b.id,
            amount=amount,
            payment_method=method,
            status="completed",
        )
        db.add(payment)
        db.flush()
        db.add(_detail_row(payment.id, parsed))

        b.payment_status = "paid"
        if b.status == PENDING:
            ensure_transition(b.status, CONFIRMED)
            b.status = CONFIRMED
        sync_room_status(db, b.room_id)
        log_audit(db, actor.id, "payment.create", "booking", b.id, {"payment_id": payment.id, "amount": str(amount), "method": method})

    logger.info("booking %s paid %s by %s", b.id, amount, method)
    db.refresh(payment)
    return payment


def cancel_payment(db: Session, booking_id: str, actor: User) -> Booking:
    """Abandoned payment step on a still-pending booking."""
    with committing(db, "cancel payment"):
        b = load_booking(db, booking_id, actor, for_update=True)
        if b.status != PENDING:
            raise InvalidTransition(f"Payment of a {b.status} booking is reversed by cancelling the booking")
        removed = remove_payment_rows(db, b.id)
        b.payment_status = "cancelled"
        log_audit(db, actor.id, "payment.cancel", "booking", b.id, {"removed_payments": removed})

    logger.info("payment for booking %s cancelled (%d rows removed)", b.id, removed)
    db.refresh(b)
    return b


def get_payment(db: Session, booking_id: str, actor: User) -> tuple[Payment, CardPayment | EWalletPayment | None]:
    b = load_booking(db, booking_id, actor)
    payment = db.query(Payment).filter(Payment.booking_id == b.id).first()
    if not payment:
        raise NotFound("Payment not found")
    model = CardPayment if payment.payment_method == "card" else EWalletPayment
    return payment, db.get(model, payment.id)
