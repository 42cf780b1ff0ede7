from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CreditCardIn(BaseModel):
    holder_name: str | None = Field(default=None, max_length=255)
    number: str = Field(pattern=r"^\d{13,19}$")
    expiry_month: str = Field(pattern=r"^(0[1-9]|1[0-2])$")
    expiry_year: str = Field(pattern=r"^\d{4}$")
    ccv: str = Field(pattern=r"^\d{3,4}$")


class CardHolderIn(BaseModel):
    name: str = Field(min_length=3, max_length=255)
    cpf_cnpj: str = Field(min_length=11, max_length=18)


class CheckoutRequest(BaseModel):
    plan: str
    billing_interval: str
    payment_method: Literal["CREDIT_CARD", "PIX", "BOLETO", "UNDEFINED"] = "PIX"
    coupon_code: str | None = Field(default=None, max_length=50)
    credit_card: CreditCardIn | None = None
    card_holder: CardHolderIn | None = None

    @model_validator(mode="after")
    def check_card(self) -> "CheckoutRequest":
        if self.payment_method == "CREDIT_CARD" and self.credit_card is None:
            raise ValueError("Dados do cartão de crédito são obrigatórios")
        return self


class CheckoutResponse(BaseModel):
    success: bool = True
    subscription_id: str
    status: str
    payment_method: str
    payment_id: str | None = None
    checkout_url: str | None = None
    pix_qr_code: dict[str, Any] | None = None
    trial_days: int | None = None
    trial_end_date: datetime | None = None
    discount_amount: float = 0.0
    final_amount: float
    message: str


class PaymentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    subscription_id: str | None = None
    amount: float
    status: str
    payment_method: str | None = None
    payment_gateway: str
    external_payment_id: str | None = None
    external_invoice_url: str | None = None
    description: str | None = None
    due_date: datetime | None = None
    paid_at: datetime | None = None
    refunded_at: datetime | None = None
    created_at: datetime


class RefundRequest(BaseModel):
    value: float | None = Field(default=None, gt=0)
    reason: str | None = Field(default=None, max_length=500)


class PendingOperationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    status: str
    subscription_id: str | None = None
    payment_id: str | None = None
    external_id: str | None = None
    attempts: int
    max_attempts: int
    last_attempt_at: datetime | None = None
    last_error: str | None = None
    completed_at: datetime | None = None
    created_at: datetime
