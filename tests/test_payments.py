from decimal import Decimal

import pytest

from conftest import CARD, WALLET, JUNE_1, JUNE_3
from hotel_api.core.errors import BookingNotFound, InvalidTransition, MissingPaymentDetails, NotFound, ValidationError
from hotel_api.models.booking import Booking
from hotel_api.models.payment import CardPayment, EWalletPayment, Payment
from hotel_api.services.booking_service import create_booking
from hotel_api.services.payment_service import cancel_payment, get_payment, parse_payment_details, pay
from hotel_api.schemas.payments import CardDetails, EWalletDetails


def test_parse_card_and_wallet_variants():
    card = parse_payment_details("card", CARD)
    assert isinstance(card, CardDetails)
    assert card.last4 == "1234"
    wallet = parse_payment_details("e-wallet", {"wallet_type": "GCash", "account_number": "0917"})
    assert isinstance(wallet, EWalletDetails)
    assert wallet.wallet_type == "GCash"


@pytest.mark.parametrize("method,details", [
    ("card", None),
    ("card", {"cardNumber": "4111111111111111", "expiryDate": "12/29", "cvv": "123"}),
    ("card", {**CARD, "cardholderName": "   "}),
    ("e-wallet", {"walletType": "PayPal"}),
    ("e-wallet", CARD),
])
def test_missing_details(method, details):
    with pytest.raises(MissingPaymentDetails):
        parse_payment_details(method, details)


def test_unknown_method():
    with pytest.raises(ValidationError):
        parse_payment_details("cash", {})


def test_card_payment_stores_masked_number(db, guest, room):
    b = create_booking(db, guest, room.id, JUNE_1, JUNE_3)
    p = pay(db, b.id, Decimal("200.00"), "card", CARD, guest)
    assert p.status == "completed"
    assert p.amount == Decimal("200.00")

    payment, details = get_payment(db, b.id, guest)
    assert payment.id == p.id
    assert isinstance(details, CardPayment)
    assert details.card_last4 == "1234"
    assert details.cardholder_name == "Alice Guest"
    assert not hasattr(details, "cvv")


def test_wallet_payment(db, guest, room):
    b = create_booking(db, guest, room.id, JUNE_1, JUNE_3)
    pay(db, b.id, 200, "e-wallet", WALLET, guest)
    _, details = get_payment(db, b.id, guest)
    assert isinstance(details, EWalletPayment)
    assert details.wallet_type == "PayPal"


def test_failed_payment_writes_nothing(db, guest, room):
    b = create_booking(db, guest, room.id, JUNE_1, JUNE_3)
    with pytest.raises(MissingPaymentDetails):
        pay(db, b.id, 200, "card", {"cardNumber": "4111"}, guest)
    with pytest.raises(ValidationError):
        pay(db, b.id, "199.99", "card", CARD, guest)
    assert db.query(Payment).count() == 0
    db.expire_all()
    assert db.get(Booking, b.id).payment_status == "pending"


def test_pay_unknown_booking(db, guest):
    with pytest.raises(BookingNotFound):
        pay(db, "missing", 200, "card", CARD, guest)


def test_double_payment_rejected(db, guest, room):
    b = create_booking(db, guest, room.id, JUNE_1, JUNE_3)
    pay(db, b.id, 200, "card", CARD, guest)
    with pytest.raises(InvalidTransition):
        pay(db, b.id, 200, "e-wallet", WALLET, guest)
    assert db.query(Payment).filter(Payment.booking_id == b.id).count() == 1


def test_payment_existence_matches_paid_status(db, guest, room, make_room):
    other_room = make_room("102")
    paid = create_booking(db, guest, room.id, JUNE_1, JUNE_3)
    unpaid = create_booking(db, guest, other_room.id, JUNE_1, JUNE_3)
    pay(db, paid.id, 200, "card", CARD, guest)
    db.expire_all()
    for b in db.query(Booking).all():
        has_payment = db.query(Payment).filter(Payment.booking_id == b.id).count() > 0
        assert has_payment == (b.payment_status == "paid")
    assert db.get(Booking, unpaid.id).payment_status == "pending"


def test_cancel_payment_on_pending_booking(db, guest, room):
    b = create_booking(db, guest, room.id, JUNE_1, JUNE_3)
    b = cancel_payment(db, b.id, guest)
    assert (b.status, b.payment_status) == ("pending", "cancelled")
    with pytest.raises(NotFound):
        get_payment(db, b.id, guest)

    # the guest can still come back and pay
    pay(db, b.id, 200, "card", CARD, guest)
    db.refresh(b)
    assert (b.status, b.payment_status) == ("confirmed", "paid")


def test_cancel_payment_of_confirmed_booking_goes_through_cancellation(db, guest, room):
    b = create_booking(db, guest, room.id, JUNE_1, JUNE_3)
    pay(db, b.id, 200, "card", CARD, guest)
    with pytest.raises(InvalidTransition):
        cancel_payment(db, b.id, guest)
    assert db.query(CardPayment).count() == 1
