from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import requests

from app.core.database import utcnow
from app.modules.notifications.email import EmailClient, EmailContent
from app.modules.payments import status_mapper
from app.modules.payments.gateway.asaas import CONNECTION_ERROR, AsaasGateway
from app.modules.payments.gateway.base import CustomerInput, GatewayResult
from app.modules.payments.models import (
    OperationStatus,
    OperationType,
    PaymentMethod,
    PaymentStatus,
    PendingPaymentOperation,
)
from app.modules.payments.operations import MISSING_REFERENCE, PaymentOperationsRetrier, queue_operation
from app.modules.payments.repository import PaymentsRepository
from app.modules.payments.webhook import AsaasWebhookProcessor, parse_gateway_date
from app.modules.subscriptions.models import PaymentGatewayName, SubscriptionStatus
from app.modules.subscriptions.plans import BillingInterval, SubscriptionPlan
from app.modules.subscriptions.service import SubscriptionService
from factories import make_family


class RecordingSender:
    def __init__(self) -> None:
        self.sent: list[tuple[str, EmailContent]] = []

    def __call__(self, to: str, content: EmailContent) -> bool:
        self.sent.append((to, content))
        return True


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.content = json.dumps(payload).encode() if payload is not None else b""

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        return self._payload

    def raise_for_status(self) -> None:
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    def __init__(self, responses: list) -> None:
        self.headers: dict[str, str] = {}
        self.responses = list(responses)
        self.calls: list[tuple[str, str, dict]] = []

    def request(self, method: str, url: str, **kwargs):
        self.calls.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def post(self, url: str, **kwargs):
        return self.request("POST", url, **kwargs)


class FakeGateway:
    def __init__(self, result: GatewayResult) -> None:
        self.result = result
        self.calls: list[tuple[str, str]] = []

    def cancel_subscription(self, subscription_id: str) -> GatewayResult:
        self.calls.append(("cancel_subscription", subscription_id))
        return self.result

    def cancel_invoice(self, invoice_id: str) -> GatewayResult:
        self.calls.append(("cancel_invoice", invoice_id))
        return self.result

    def create_subscription(self, **kwargs) -> GatewayResult:
        self.calls.append(("create_subscription", kwargs["customer_id"]))
        return self.result


def _paid_subscription(db, status: str = SubscriptionStatus.INCOMPLETE):
    family = make_family(db, plan=SubscriptionPlan.FAMILY_PLUS)
    sub = SubscriptionService(db).get_subscription(family_id=family.id)
    sub.status = status
    sub.billing_interval = BillingInterval.MONTH
    sub.payment_gateway = PaymentGatewayName.ASAAS
    sub.external_customer_id = "cus_001"
    sub.external_subscription_id = "sub_001"
    db.commit()
    return sub


def _payment_event(event: str = "PAYMENT_CONFIRMED", **payment) -> dict:
    data = {
        "id": "pay_001",
        "subscription": "sub_001",
        "value": 47.0,
        "status": "CONFIRMED",
        "billingType": "PIX",
        "confirmedDate": "2026-03-10",
    }
    data.update(payment)
    return {"event": event, "payment": data}


# ---- Status mapping ----

def test_status_mapper() -> None:
    assert status_mapper.to_payment_status("CONFIRMED") == PaymentStatus.PAID
    assert status_mapper.to_payment_status("received") == PaymentStatus.PAID
    assert status_mapper.to_payment_status("SOMETHING_NEW") == PaymentStatus.PENDING
    assert status_mapper.to_payment_method("TRANSFER") == PaymentMethod.BANK_TRANSFER
    assert status_mapper.to_payment_method(None) is None
    assert status_mapper.to_subscription_status("EXPIRED") == SubscriptionStatus.CANCELED
    assert status_mapper.to_subscription_status("OVERDUE") == SubscriptionStatus.PAST_DUE
    assert status_mapper.to_subscription_status("ACTIVE") == SubscriptionStatus.ACTIVE


def test_parse_gateway_date() -> None:
    assert parse_gateway_date("2026-03-10") == datetime(2026, 3, 10, tzinfo=timezone.utc)
    assert parse_gateway_date("10/03/2026") is None
    assert parse_gateway_date(None) is None


# ---- Webhook ----

def test_first_payment_activates_subscription(db) -> None:
    sub = _paid_subscription(db)
    sender = RecordingSender()

    result = AsaasWebhookProcessor(db, email_sender=sender).process(_payment_event())

    assert result == {"received": True}
    db.refresh(sub)
    assert sub.status == SubscriptionStatus.ACTIVE
    assert sub.current_period_start == datetime(2026, 3, 10, tzinfo=timezone.utc)
    assert sub.current_period_end == datetime(2026, 4, 10, tzinfo=timezone.utc)

    payments = PaymentsRepository(db).list_for_subscription(sub.id)
    assert len(payments) == 1
    assert payments[0].status == PaymentStatus.PAID
    assert payments[0].payment_method == PaymentMethod.PIX
    assert payments[0].amount == 47.0

    subjects = [content.subject for _, content in sender.sent]
    assert subjects[0] == "Bem-vinda ao Familia Plus!"
    assert len(subjects) == 2


def test_redelivered_payment_is_not_duplicated(db) -> None:
    sub = _paid_subscription(db)
    processor = AsaasWebhookProcessor(db, email_sender=RecordingSender())
    processor.process(_payment_event())
    processor.process(_payment_event("PAYMENT_RECEIVED", status="RECEIVED"))

    assert len(PaymentsRepository(db).list_for_subscription(sub.id)) == 1


def test_renewal_sends_renewal_email(db) -> None:
    _paid_subscription(db, status=SubscriptionStatus.ACTIVE)
    sender = RecordingSender()
    AsaasWebhookProcessor(db, email_sender=sender).process(_payment_event(id="pay_002"))

    assert sender.sent[0][1].subject == "Assinatura renovada - Familia Plus"


def test_payment_for_unknown_subscription_is_acknowledged(db) -> None:
    sender = RecordingSender()
    result = AsaasWebhookProcessor(db, email_sender=sender).process(_payment_event(subscription="sub_unknown"))
    assert result == {"received": True}
    assert sender.sent == []


def test_overdue_marks_past_due(db) -> None:
    sub = _paid_subscription(db, status=SubscriptionStatus.ACTIVE)
    sender = RecordingSender()
    AsaasWebhookProcessor(db, email_sender=sender).process(_payment_event("PAYMENT_OVERDUE", status="OVERDUE"))

    db.refresh(sub)
    assert sub.status == SubscriptionStatus.PAST_DUE
    assert len(sender.sent) == 1


def test_refund_updates_payment(db) -> None:
    _paid_subscription(db)
    processor = AsaasWebhookProcessor(db, email_sender=RecordingSender())
    processor.process(_payment_event())
    processor.process({"event": "PAYMENT_REFUNDED", "payment": {"id": "pay_001"}})

    payment = PaymentsRepository(db).get_by_external_id("pay_001")
    assert payment.status == PaymentStatus.REFUNDED
    assert payment.refunded_at is not None


def test_subscription_deleted_closes_pending_cancel(db) -> None:
    sub = _paid_subscription(db, status=SubscriptionStatus.ACTIVE)
    operation = queue_operation(
        db,
        operation_type=OperationType.CANCEL_SUBSCRIPTION,
        subscription_id=sub.id,
        external_id="sub_001",
        error="timeout",
    )
    db.commit()

    AsaasWebhookProcessor(db, email_sender=RecordingSender()).process(
        {"event": "SUBSCRIPTION_DELETED", "subscription": {"id": "sub_001"}}
    )

    db.refresh(sub)
    db.refresh(operation)
    assert sub.status == SubscriptionStatus.CANCELED
    assert sub.canceled_at is not None
    assert operation.status == OperationStatus.COMPLETED


def test_authorized_invoice_skips_cancellation(db) -> None:
    sub = _paid_subscription(db, status=SubscriptionStatus.ACTIVE)
    operation = queue_operation(
        db,
        operation_type=OperationType.CANCEL_INVOICE,
        subscription_id=sub.id,
        external_id="inv_001",
    )
    db.commit()

    AsaasWebhookProcessor(db, email_sender=RecordingSender()).process(
        {"event": "INVOICE_AUTHORIZED", "invoice": {"id": "inv_001"}}
    )

    db.refresh(operation)
    assert operation.status == OperationStatus.SKIPPED
    assert "SEFAZ" in operation.last_error


def test_unhandled_event_is_ignored(db) -> None:
    assert AsaasWebhookProcessor(db, email_sender=RecordingSender()).process({"event": "PAYMENT_CREATED"}) == {
        "received": True
    }


# ---- Pending operations ----

def test_retry_waits_for_backoff(db) -> None:
    sub = _paid_subscription(db, status=SubscriptionStatus.CANCELED)
    operation = queue_operation(
        db,
        operation_type=OperationType.CANCEL_SUBSCRIPTION,
        subscription_id=sub.id,
        external_id="sub_001",
        error="timeout",
    )
    db.commit()
    gateway = FakeGateway(GatewayResult.ok())
    retrier = PaymentOperationsRetrier(db, gateway_factory=lambda name: gateway)

    early = retrier.retry_pending()
    assert early["stats"]["skipped"] == 1
    assert gateway.calls == []

    later = retrier.retry_pending(now=utcnow() + timedelta(hours=2))
    assert later["stats"]["completed"] == 1
    assert gateway.calls == [("cancel_subscription", "sub_001")]
    db.refresh(operation)
    assert operation.status == OperationStatus.COMPLETED
    assert operation.attempts == 2


def test_retry_gives_up_after_max_attempts(db) -> None:
    sub = _paid_subscription(db, status=SubscriptionStatus.CANCELED)
    operation = PendingPaymentOperation(
        type=OperationType.CANCEL_INVOICE,
        subscription_id=sub.id,
        external_id="inv_009",
        attempts=4,
    )
    db.add(operation)
    db.commit()
    gateway = FakeGateway(GatewayResult.fail("NF já autorizada"))

    result = PaymentOperationsRetrier(db, gateway_factory=lambda name: gateway).retry_pending()

    assert result["stats"]["failed"] == 1
    db.refresh(operation)
    assert operation.status == OperationStatus.FAILED
    assert operation.last_error == "NF já autorizada"


def test_retry_without_reference_is_retried_later(db) -> None:
    operation = PendingPaymentOperation(type=OperationType.CANCEL_SUBSCRIPTION, external_id="sub_404")
    db.add(operation)
    db.commit()

    result = PaymentOperationsRetrier(db, gateway_factory=lambda name: FakeGateway(GatewayResult.ok())).retry_pending()

    assert result["results"][0]["action"] == "retried"
    assert result["results"][0]["error"] == MISSING_REFERENCE


def test_recreate_subscription(db) -> None:
    sub = _paid_subscription(db, status=SubscriptionStatus.ACTIVE)
    sub.external_subscription_id = None
    db.add(
        PendingPaymentOperation(
            type=OperationType.RECREATE_SUBSCRIPTION,
            subscription_id=sub.id,
            operation_data={"billingType": "PIX"},
        )
    )
    db.commit()
    gateway = FakeGateway(GatewayResult.ok({"externalSubscriptionId": "sub_new"}))

    PaymentOperationsRetrier(db, gateway_factory=lambda name: gateway).retry_pending()

    db.refresh(sub)
    assert sub.external_subscription_id == "sub_new"
    assert gateway.calls == [("create_subscription", "cus_001")]


# ---- Asaas client ----

def test_asaas_create_customer() -> None:
    session = FakeSession([FakeResponse(200, {"id": "cus_123"})])
    gateway = AsaasGateway(api_key="key", base_url="https://asaas.test/v3", session=session)

    result = gateway.create_customer(
        CustomerInput(user_id="u1", name="Ana", email="ana@example.com", user_type="family")
    )

    assert result.success
    assert result.data == {"externalCustomerId": "cus_123"}
    method, url, kwargs = session.calls[0]
    assert (method, url) == ("POST", "https://asaas.test/v3/customers")
    assert kwargs["json"]["groupName"] == "Famílias"
    assert session.headers["access_token"] == "key"


def test_asaas_error_description_is_returned() -> None:
    session = FakeSession([FakeResponse(400, {"errors": [{"description": "CPF inválido"}]})])
    gateway = AsaasGateway(api_key="key", base_url="https://asaas.test/v3", session=session)

    result = gateway.create_subscription(
        customer_id="cus_1", plan=SubscriptionPlan.NANNY_PRO, billing_interval="YEAR", billing_type="PIX"
    )

    assert not result.success
    assert result.error == "CPF inválido"
    payload = session.calls[0][2]["json"]
    assert payload["cycle"] == "YEARLY"
    assert payload["value"] == 119.0


def test_asaas_connection_error() -> None:
    session = FakeSession([requests.ConnectionError("boom")])
    gateway = AsaasGateway(api_key="key", base_url="https://asaas.test/v3", session=session)
    assert gateway.cancel_subscription("sub_1").error == CONNECTION_ERROR


def test_asaas_payment_link() -> None:
    gateway = AsaasGateway(api_key="key", base_url="https://asaas.test/v3", session=FakeSession([]))
    assert gateway.create_payment_link("sub_9").data == {"checkoutUrl": "https://asaas.test/checkout/sub_9"}


# ---- E-mail ----

def test_email_client_without_key_does_not_send() -> None:
    session = FakeSession([])
    client = EmailClient(api_key="", session=session)
    assert client.send("ana@example.com", EmailContent("Oi", "<p>Oi</p>", "Oi")) is False
    assert session.calls == []


def test_email_client_posts_to_api() -> None:
    session = FakeSession([FakeResponse(200, {"id": "email_1"})])
    client = EmailClient(api_key="re_key", api_url="https://mail.test/emails", sender="Cuidly <oi@cuidly.com>", session=session)

    assert client.send("ana@example.com", EmailContent("Oi", "<p>Oi</p>", "Oi"))
    method, url, kwargs = session.calls[0]
    assert url == "https://mail.test/emails"
    assert kwargs["json"]["to"] == ["ana@example.com"]
    assert kwargs["headers"]["Authorization"] == "Bearer re_key"


def test_email_client_reports_failures() -> None:
    session = FakeSession([FakeResponse(500, {"message": "down"})])
    client = EmailClient(api_key="re_key", api_url="https://mail.test/emails", session=session)
    assert client.send(["ana@example.com"], EmailContent("Oi", "<p>Oi</p>", "Oi")) is False
