from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class GatewayResult:
    success: bool
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @classmethod
    def ok(cls, data: dict[str, Any] | None = None) -> "GatewayResult":
        return cls(success=True, data=data or {})

    @classmethod
    def fail(cls, error: str) -> "GatewayResult":
        return cls(success=False, error=error)


@dataclass
class CustomerInput:
    user_id: str
    name: str
    email: str
    user_type: str  # "family" | "nanny"
    cpf_cnpj: str | None = None
    phone: str | None = None


@dataclass
class CreditCard:
    holder_name: str
    number: str
    expiry_month: str
    expiry_year: str
    ccv: str


@dataclass
class CreditCardHolder:
    name: str
    email: str
    cpf_cnpj: str
    postal_code: str
    address_number: str
    phone: str
    mobile_phone: str
    address_complement: str | None = None


class PaymentGateway(ABC):
    """Operations the billing flows need from a payment provider.

    Implementations never raise on provider failures; they return a
    ``GatewayResult`` with ``success=False`` and a readable ``error``.
    """

    name: str

    @abstractmethod
    def create_customer(self, customer: CustomerInput) -> GatewayResult:
        raise NotImplementedError

    @abstractmethod
    def create_subscription(
        self,
        *,
        customer_id: str,
        plan: str,
        billing_interval: str,
        billing_type: str,
        value: float | None = None,
    ) -> GatewayResult:
        raise NotImplementedError

    @abstractmethod
    def create_payment_link(self, subscription_id: str) -> GatewayResult:
        raise NotImplementedError

    @abstractmethod
    def create_subscription_with_card(
        self,
        *,
        customer_id: str,
        billing_interval: str,
        value: float,
        card: CreditCard,
        holder: CreditCardHolder,
        description: str,
        next_due_date: str | None = None,
    ) -> GatewayResult:
        raise NotImplementedError

    @abstractmethod
    def create_pix_subscription(
        self, *, customer_id: str, billing_interval: str, value: float, description: str
    ) -> GatewayResult:
        raise NotImplementedError

    @abstractmethod
    def cancel_subscription(self, subscription_id: str) -> GatewayResult:
        raise NotImplementedError

    @abstractmethod
    def get_subscription(self, subscription_id: str) -> GatewayResult:
        raise NotImplementedError

    @abstractmethod
    def get_subscription_payments(self, subscription_id: str) -> GatewayResult:
        raise NotImplementedError

    @abstractmethod
    def get_payment(self, payment_id: str) -> GatewayResult:
        raise NotImplementedError

    @abstractmethod
    def refund_payment(self, payment_id: str, value: float | None = None) -> GatewayResult:
        raise NotImplementedError

    @abstractmethod
    def cancel_invoice(self, invoice_id: str) -> GatewayResult:
        raise NotImplementedError

    @abstractmethod
    def get_invoice(self, invoice_id: str) -> GatewayResult:
        raise NotImplementedError

    @abstractmethod
    def list_payment_invoices(self, payment_id: str) -> GatewayResult:
        raise NotImplementedError
