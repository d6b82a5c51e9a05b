from decimal import Decimal
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class _Details(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, extra="ignore")


class CardDetails(_Details):
    # Raw card input is only used to derive the masked number; the CVV is never stored.
    method: Literal["card"] = "card"
    card_number: str = Field(alias="cardNumber", min_length=4)
    expiry_date: str = Field(alias="expiryDate", min_length=1)
    cvv: str = Field(min_length=1)
    cardholder_name: str = Field(alias="cardholderName", min_length=1)

    @property
    def last4(self) -> str:
        digits = "".join(ch for ch in self.card_number if ch.isdigit())
        return (digits or self.card_number)[-4:]


class EWalletDetails(_Details):
    method: Literal["e-wallet"] = "e-wallet"
    wallet_type: str = Field(alias="walletType", min_length=1)
    account_number: str = Field(alias="accountNumber", min_length=1)


PaymentDetails = Union[CardDetails, EWalletDetails]


class PaymentCreate(BaseModel):
    booking_id: str
    amount: Decimal
    payment_method: str
    # Loosely shaped on the wire; parsed into CardDetails / EWalletDetails by the service
    payment_details: Optional[dict[str, Any]] = None
