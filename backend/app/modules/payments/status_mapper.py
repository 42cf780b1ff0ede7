"""Translate Asaas status vocabularies into our own."""

from __future__ import annotations

from app.modules.subscriptions.models import SubscriptionStatus
from .models import PaymentMethod, PaymentStatus


ASAAS_PAYMENT_STATUS = {
    "PENDING": PaymentStatus.PENDING,
    "RECEIVED": PaymentStatus.PAID,
    "CONFIRMED": PaymentStatus.PAID,
    "RECEIVED_IN_CASH": PaymentStatus.PAID,
    "OVERDUE": PaymentStatus.OVERDUE,
    "REFUNDED": PaymentStatus.REFUNDED,
    "REFUND_REQUESTED": PaymentStatus.PROCESSING,
    "REFUND_IN_PROGRESS": PaymentStatus.PROCESSING,
    "CHARGEBACK_REQUESTED": PaymentStatus.CHARGEBACK,
    "CHARGEBACK_DISPUTE": PaymentStatus.CHARGEBACK,
    "AWAITING_CHARGEBACK_REVERSAL": PaymentStatus.CHARGEBACK,
    "DUNNING_REQUESTED": PaymentStatus.OVERDUE,
    "DUNNING_RECEIVED": PaymentStatus.PAID,
    "AWAITING_RISK_ANALYSIS": PaymentStatus.AWAITING_RISK_ANALYSIS,
}

ASAAS_BILLING_TYPE = {
    "CREDIT_CARD": PaymentMethod.CREDIT_CARD,
    "DEBIT_CARD": PaymentMethod.DEBIT_CARD,
    "PIX": PaymentMethod.PIX,
    "BOLETO": PaymentMethod.BOLETO,
    "TRANSFER": PaymentMethod.BANK_TRANSFER,
    "DEPOSIT": PaymentMethod.BANK_TRANSFER,
}


def to_payment_status(asaas_status: str | None) -> str:
    return ASAAS_PAYMENT_STATUS.get((asaas_status or "").upper(), PaymentStatus.PENDING)


def to_payment_method(billing_type: str | None) -> str | None:
    if not billing_type:
        return None
    return ASAAS_BILLING_TYPE.get(billing_type.upper())


def to_subscription_status(asaas_status: str | None) -> str:
    value = (asaas_status or "").upper()
    if value in ("INACTIVE", "EXPIRED"):
        return SubscriptionStatus.CANCELED
    if value == "OVERDUE":
        return SubscriptionStatus.PAST_DUE
    return SubscriptionStatus.ACTIVE
