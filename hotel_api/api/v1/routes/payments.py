from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hotel_api.db.session import get_db
from hotel_api.api.deps import get_current_user
from hotel_api.models.payment import CardPayment, EWalletPayment, Payment
from hotel_api.models.user import User
from hotel_api.schemas.payments import PaymentCreate
from hotel_api.services import payment_service

router = APIRouter(tags=["payments"])


def payment_to_dict(p: Payment, details: CardPayment | EWalletPayment | None) -> dict:
    out = {
        "id": p.id,
        "bookingId": p.booking_id,
        "amount": float(p.amount),
        "paymentMethod": p.payment_method,
        "status": p.status,
        "createdAt": p.created_at.isoformat() if p.created_at else None,
        "paymentDetails": None,
    }
    if isinstance(details, CardPayment):
        out["paymentDetails"] = {
            "cardNumber": f"**** **** **** {details.card_last4}",
            "expiryDate": details.expiry_date,
            "cardholderName": details.cardholder_name,
        }
    elif isinstance(details, EWalletPayment):
        out["paymentDetails"] = {
            "walletType": details.wallet_type,
            "accountNumber": details.account_number,
        }
    return out


@router.post("/payments", status_code=201)
def create_payment(body: PaymentCreate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    p = payment_service.pay(db, body.booking_id, body.amount, body.payment_method, body.payment_details, me)
    _, details = payment_service.get_payment(db, p.booking_id, me)
    return {"message": "Payment processed successfully", "id": p.id, "payment": payment_to_dict(p, details)}


@router.get("/payments/booking/{booking_id}")
def payment_for_booking(booking_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    p, details = payment_service.get_payment(db, booking_id, me)
    return payment_to_dict(p, details)


@router.put("/payments/{booking_id}/cancel")
def cancel_payment(booking_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    b = payment_service.cancel_payment(db, booking_id, me)
    return {"message": "Payment cancelled", "bookingId": b.id, "paymentStatus": b.payment_status}
