from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any

import requests
from requests import RequestException

from app.core.config import settings
from app.modules.subscriptions.pricing import get_plan_price
from .base import CreditCard, CreditCardHolder, CustomerInput, GatewayResult, PaymentGateway


logger = logging.getLogger(__name__)

CUSTOMER_GROUPS = {"family": "Famílias", "nanny": "Profissionais"}

BILLING_CYCLES = {"MONTH": "MONTHLY", "QUARTER": "QUARTERLY", "YEAR": "YEARLY"}

CONNECTION_ERROR = "Erro de conexão com o gateway"


def billing_cycle(interval: str | None) -> str:
    return BILLING_CYCLES.get(interval or "", "MONTHLY")


def _first_error(data: Any, default: str) -> str:
    if isinstance(data, dict):
        errors = data.get("errors") or []
        if errors and isinstance(errors[0], dict) and errors[0].get("description"):
            return errors[0]["description"]
    return default


class AsaasGateway(PaymentGateway):
    """Asaas REST v3 client."""

    name = "ASAAS"

    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: int | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else (settings.ASAAS_API_KEY or "")
        self.base_url = (base_url or settings.asaas_base_url).rstrip("/")
        self.timeout = timeout or settings.ASAAS_TIMEOUT_SECONDS
        self.session = session or requests.Session()
        self.session.headers.update({"access_token": self.api_key, "Content-Type": "application/json"})

    # ---- HTTP ----
    def _request(self, method: str, path: str, default_error: str, **kwargs: Any) -> GatewayResult:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except RequestException as exc:
            logger.warning("Asaas %s %s failed: %s", method, path, exc)
            return GatewayResult.fail(CONNECTION_ERROR)

        try:
            data = response.json() if response.content else {}
        except ValueError:
            data = {}

        if not response.ok:
            error = _first_error(data, default_error)
            logger.warning("Asaas %s %s returned %s: %s", method, path, response.status_code, error)
            return GatewayResult.fail(error)
        return GatewayResult.ok(data if isinstance(data, dict) else {"data": data})

    # ---- Customers ----
    def create_customer(self, customer: CustomerInput) -> GatewayResult:
        payload = {
            "name": customer.name,
            "email": customer.email,
            "cpfCnpj": customer.cpf_cnpj,
            "phone": customer.phone,
            "groupName": CUSTOMER_GROUPS.get(customer.user_type, CUSTOMER_GROUPS["nanny"]),
            "externalReference": customer.user_id,
            "notificationDisabled": True,
        }
        result = self._request("POST", "/customers", "Erro ao criar cliente", json=payload)
        if not result.success:
            return result
        return GatewayResult.ok({"externalCustomerId": result.data.get("id")})

    # ---- Subscriptions ----
    def create_subscription(
        self,
        *,
        customer_id: str,
        plan: str,
        billing_interval: str,
        billing_type: str,
        value: float | None = None,
    ) -> GatewayResult:
        next_due = (date.today() + timedelta(days=7)).isoformat()
        payload = {
            "customer": customer_id,
            "billingType": billing_type,
            "cycle": billing_cycle(billing_interval),
            "value": value if value is not None else get_plan_price(plan, billing_interval),
            "nextDueDate": next_due,
            "invoice": {"effectiveDate": next_due},
        }
        result = self._request("POST", "/subscriptions", "Erro ao criar assinatura", json=payload)
        if not result.success:
            return result
        return GatewayResult.ok({"externalSubscriptionId": result.data.get("id")})

    def create_payment_link(self, subscription_id: str) -> GatewayResult:
        root = self.base_url.replace("/v3", "")
        return GatewayResult.ok({"checkoutUrl": f"{root}/checkout/{subscription_id}"})

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
        due = next_due_date or date.today().isoformat()
        payload = {
            "customer": customer_id,
            "billingType": "CREDIT_CARD",
            "cycle": billing_cycle(billing_interval),
            "value": value,
            "nextDueDate": due,
            "description": description,
            "creditCard": {
                "holderName": card.holder_name,
                "number": card.number,
                "expiryMonth": card.expiry_month,
                "expiryYear": card.expiry_year,
                "ccv": card.ccv,
            },
            "creditCardHolderInfo": {
                "name": holder.name,
                "email": holder.email,
                "cpfCnpj": holder.cpf_cnpj,
                "postalCode": holder.postal_code,
                "addressNumber": holder.address_number,
                "addressComplement": holder.address_complement,
                "phone": holder.phone,
                "mobilePhone": holder.mobile_phone,
            },
            "invoice": {"effectiveDate": due},
        }
        result = self._request(
            "POST", "/subscriptions", "Erro ao processar pagamento com cartão", json=payload
        )
        if not result.success:
            return result
        return GatewayResult.ok(
            {"externalSubscriptionId": result.data.get("id"), "status": result.data.get("status")}
        )

    def create_pix_subscription(
        self, *, customer_id: str, billing_interval: str, value: float, description: str
    ) -> GatewayResult:
        due = date.today().isoformat()
        payload = {
            "customer": customer_id,
            "billingType": "PIX",
            "cycle": billing_cycle(billing_interval),
            "value": value,
            "nextDueDate": due,
            "description": description,
            "invoice": {"effectiveDate": due},
        }
        created = self._request("POST", "/subscriptions", "Erro ao criar assinatura PIX", json=payload)
        if not created.success:
            return created
        subscription_id = created.data.get("id")

        payments = self.get_subscription_payments(subscription_id)
        items = (payments.data.get("data") or []) if payments.success else []
        if not items:
            return GatewayResult.fail("Erro ao buscar cobrança da assinatura")
        first_payment_id = items[0].get("id")

        qr_code = self.get_pix_qr_code(first_payment_id)
        if not qr_code.success:
            return GatewayResult.fail("Erro ao gerar QR Code PIX")

        return GatewayResult.ok(
            {
                "externalSubscriptionId": subscription_id,
                "externalPaymentId": first_payment_id,
                "status": created.data.get("status"),
                "pixQrCode": qr_code.data,
            }
        )

    def cancel_subscription(self, subscription_id: str) -> GatewayResult:
        return self._request("DELETE", f"/subscriptions/{subscription_id}", "Erro ao cancelar assinatura")

    def get_subscription(self, subscription_id: str) -> GatewayResult:
        result = self._request("GET", f"/subscriptions/{subscription_id}", "Assinatura não encontrada")
        return result if result.success else GatewayResult.fail("Assinatura não encontrada")

    def get_subscription_payments(self, subscription_id: str) -> GatewayResult:
        result = self._request(
            "GET", f"/subscriptions/{subscription_id}/payments", "Erro ao buscar pagamentos da assinatura"
        )
        if not result.success:
            return GatewayResult.fail("Erro ao buscar pagamentos da assinatura")
        return GatewayResult.ok({"data": result.data.get("data") or []})

    # ---- Payments ----
    def get_payment(self, payment_id: str) -> GatewayResult:
        result = self._request("GET", f"/payments/{payment_id}", "Pagamento não encontrado")
        return result if result.success else GatewayResult.fail("Pagamento não encontrado")

    def get_pix_qr_code(self, payment_id: str) -> GatewayResult:
        result = self._request("GET", f"/payments/{payment_id}/pixQrCode", "Erro ao buscar QR Code PIX")
        if not result.success:
            return GatewayResult.fail("Erro ao buscar QR Code PIX")
        return GatewayResult.ok(
            {
                "encodedImage": result.data.get("encodedImage"),
                "payload": result.data.get("payload"),
                "expirationDate": result.data.get("expirationDate"),
            }
        )

    def refund_payment(self, payment_id: str, value: float | None = None) -> GatewayResult:
        payload = {"value": value} if value is not None else {}
        return self._request("POST", f"/payments/{payment_id}/refund", "Erro ao estornar pagamento", json=payload)

    # ---- Invoices ----
    def cancel_invoice(self, invoice_id: str) -> GatewayResult:
        return self._request("DELETE", f"/invoices/{invoice_id}", "Erro ao cancelar NF")

    def get_invoice(self, invoice_id: str) -> GatewayResult:
        result = self._request("GET", f"/invoices/{invoice_id}", "NF não encontrada")
        if not result.success:
            return GatewayResult.fail("NF não encontrada")
        data = result.data
        return GatewayResult.ok(
            {
                "id": data.get("id"),
                "status": data.get("status"),
                "externalInvoiceUrl": data.get("pdfUrl") or data.get("xmlUrl"),
                "paymentId": data.get("payment"),
            }
        )

    def list_payment_invoices(self, payment_id: str) -> GatewayResult:
        result = self._request("GET", "/invoices", "Erro ao buscar NFs", params={"payment": payment_id})
        if not result.success:
            return result
        return GatewayResult.ok({"data": result.data.get("data") or []})
