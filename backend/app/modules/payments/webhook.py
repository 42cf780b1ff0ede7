"""Asaas webhook event processing.

Each event updates the local subscription, payment or pending-operation rows.
Events are acknowledged even when the referenced subscription is unknown so
that the gateway does not keep re-delivering them.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from sqlalchemy.orm import Session

from app.core.database import utcnow
from app.core.formatting import PAYMENT_METHOD_LABELS, get_label
from app.modules.notifications import templates
from app.modules.notifications.email import EmailContent, send_email
from app.modules.subscriptions.models import PaymentGatewayName, Subscription, SubscriptionStatus
from app.modules.subscriptions.plans import calculate_period_end, get_plan_display_name
from app.modules.subscriptions.repository import SubscriptionsRepository
from . import status_mapper
from .models import OperationStatus, OperationType, Payment, PaymentStatus
from .repository import PaymentsRepository


logger = logging.getLogger(__name__)

INVOICE_AUTHORIZED_NOTE = "NF autorizada pela SEFAZ - não pode mais ser cancelada"

EmailSender = Callable[[str, EmailContent], bool]


def parse_gateway_date(value: str | None) -> datetime | None:
    """Asaas sends dates as ``YYYY-MM-DD`` (sometimes with a time part)."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        logger.warning("Unparseable gateway date %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class AsaasWebhookProcessor:
    def __init__(self, db: Session, email_sender: EmailSender = send_email):
        self.db = db
        self.subscriptions = SubscriptionsRepository(db)
        self.payments = PaymentsRepository(db)
        self.send_email = email_sender
        self.handlers: dict[str, Callable[[dict[str, Any]], None]] = {
            "PAYMENT_CONFIRMED": self.handle_payment_success,
            "PAYMENT_RECEIVED": self.handle_payment_success,
            "PAYMENT_OVERDUE": self.handle_payment_overdue,
            "PAYMENT_REFUNDED": self.handle_payment_refunded,
            "PAYMENT_DELETED": self.handle_payment_deleted,
            "PAYMENT_REFUND_DENIED": self.handle_payment_refund_denied,
            "SUBSCRIPTION_CREATED": self.handle_subscription_created,
            "SUBSCRIPTION_UPDATED": self.handle_subscription_updated,
            "SUBSCRIPTION_DELETED": self.handle_subscription_canceled,
            "SUBSCRIPTION_INACTIVATED": self.handle_subscription_canceled,
            "INVOICE_CANCELLED": self.handle_invoice_cancelled,
            "INVOICE_AUTHORIZED": self.handle_invoice_authorized,
        }

    def process(self, payload: dict[str, Any]) -> dict[str, Any]:
        event = payload.get("event")
        logger.info("Asaas webhook received: %s", event)
        handler = self.handlers.get(event or "")
        if handler is None:
            logger.info("Ignoring unhandled Asaas event %s", event)
            return {"received": True}
        handler(payload)
        self.db.commit()
        return {"received": True}

    # ---- Helpers ----
    def _notify(self, subscription: Subscription, build: Callable[[str], EmailContent]) -> None:
        user, name = self.subscriptions.get_owner(subscription)
        if not user or not name:
            return
        self.send_email(user.email, build(templates.first_name(name)))

    def _set_payment_status(self, external_payment_id: str | None, status: str) -> None:
        if not external_payment_id:
            return
        payment = self.payments.get_by_external_id(external_payment_id)
        if payment is None:
            logger.info("Payment %s not found for status %s", external_payment_id, status)
            return
        payment.status = status
        if status == PaymentStatus.REFUNDED:
            payment.refunded_at = utcnow()

    def _close_operations(
        self, operation_type: str, external_id: str | None, status: str, note: str | None = None
    ) -> int:
        if not external_id:
            return 0
        operations = self.payments.open_operations_for(operation_type=operation_type, external_id=external_id)
        now = utcnow()
        for operation in operations:
            operation.status = status
            operation.completed_at = now
            if note:
                operation.last_error = note
        if operations:
            logger.info("Marked %s %s operations as %s", len(operations), operation_type, status)
        return len(operations)

    # ---- Payment events ----
    def handle_payment_success(self, payload: dict[str, Any]) -> None:
        data = payload.get("payment") or {}
        external_payment_id = data.get("id")
        external_subscription_id = data.get("subscription")
        amount = float(data.get("value") or 0)

        subscription = (
            self.subscriptions.get_by_external_subscription_id(external_subscription_id)
            if external_subscription_id
            else None
        )
        if subscription is None:
            logger.error("Subscription not found for payment %s (%s)", external_payment_id, external_subscription_id)
            return

        was_incomplete = subscription.status == SubscriptionStatus.INCOMPLETE
        was_active = subscription.status == SubscriptionStatus.ACTIVE

        paid_at = (
            parse_gateway_date(data.get("confirmedDate"))
            or parse_gateway_date(data.get("paymentDate"))
            or utcnow()
        )
        period_end = calculate_period_end(paid_at, subscription.billing_interval)
        subscription.status = SubscriptionStatus.ACTIVE
        subscription.current_period_start = paid_at
        subscription.current_period_end = period_end

        status = status_mapper.to_payment_status(data.get("status"))
        method = status_mapper.to_payment_method(data.get("billingType"))
        invoice_url = data.get("invoiceUrl")

        existing = self.payments.get_by_external_id(external_payment_id) if external_payment_id else None
        if existing is not None:
            existing.status = status
            existing.external_invoice_url = invoice_url
            existing.paid_at = paid_at
        else:
            self.payments.add(
                Payment(
                    subscription_id=subscription.id,
                    amount=amount,
                    status=status,
                    payment_method=method,
                    payment_gateway=PaymentGatewayName.ASAAS,
                    external_payment_id=external_payment_id,
                    external_invoice_url=invoice_url,
                    description=data.get("description"),
                    due_date=parse_gateway_date(data.get("dueDate")),
                    paid_at=paid_at,
                )
            )
        if invoice_url:
            logger.info("Invoice issued for payment %s: %s", external_payment_id, invoice_url)

        plan_name = get_plan_display_name(subscription.plan)
        if was_incomplete:
            self._notify(
                subscription,
                lambda name: templates.welcome_subscription_email(name, plan_name, period_end),
            )
        elif was_active and existing is None:
            self._notify(
                subscription,
                lambda name: templates.renewal_email(name, plan_name, amount, period_end),
            )
        method_label = get_label(PAYMENT_METHOD_LABELS, method) if method else None
        self._notify(
            subscription,
            lambda name: templates.payment_receipt_email(
                name, plan_name, amount, paid_at, method_label, invoice_url
            ),
        )

    def handle_payment_overdue(self, payload: dict[str, Any]) -> None:
        data = payload.get("payment") or {}
        external_subscription_id = data.get("subscription")
        subscription = (
            self.subscriptions.get_by_external_subscription_id(external_subscription_id)
            if external_subscription_id
            else None
        )
        if subscription is None:
            logger.error("Subscription not found for PAYMENT_OVERDUE: %s", external_subscription_id)
            return
        subscription.status = SubscriptionStatus.PAST_DUE
        amount = float(data.get("value") or 0)
        plan_name = get_plan_display_name(subscription.plan)
        self._notify(
            subscription,
            lambda name: templates.payment_failed_email(name, plan_name, amount, data.get("invoiceUrl")),
        )

    def handle_payment_refunded(self, payload: dict[str, Any]) -> None:
        self._set_payment_status((payload.get("payment") or {}).get("id"), PaymentStatus.REFUNDED)

    def handle_payment_deleted(self, payload: dict[str, Any]) -> None:
        self._set_payment_status((payload.get("payment") or {}).get("id"), PaymentStatus.CANCELED)

    def handle_payment_refund_denied(self, payload: dict[str, Any]) -> None:
        self._set_payment_status((payload.get("payment") or {}).get("id"), PaymentStatus.PAID)

    # ---- Subscription events ----
    def handle_subscription_created(self, payload: dict[str, Any]) -> None:
        data = payload.get("subscription") or {}
        customer_id = data.get("customer")
        subscription = self.subscriptions.get_by_external_customer_id(customer_id) if customer_id else None
        if subscription is None:
            logger.info("No local subscription for Asaas customer %s", customer_id)
            return
        subscription.external_subscription_id = data.get("id")

    def handle_subscription_updated(self, payload: dict[str, Any]) -> None:
        data = payload.get("subscription") or {}
        subscription = self.subscriptions.get_by_external_subscription_id(data.get("id") or "")
        if subscription is None:
            return
        subscription.status = status_mapper.to_subscription_status(data.get("status"))
        logger.info("Subscription %s updated to %s", subscription.id, subscription.status)

    def handle_subscription_canceled(self, payload: dict[str, Any]) -> None:
        external_id = (payload.get("subscription") or {}).get("id")
        subscription = self.subscriptions.get_by_external_subscription_id(external_id or "")
        if subscription is not None:
            subscription.status = SubscriptionStatus.CANCELED
            subscription.canceled_at = utcnow()
        self._close_operations(OperationType.CANCEL_SUBSCRIPTION, external_id, OperationStatus.COMPLETED)

    # ---- Invoice events ----
    def handle_invoice_cancelled(self, payload: dict[str, Any]) -> None:
        data = payload.get("invoice") or {}
        self._close_operations(OperationType.CANCEL_INVOICE, data.get("id"), OperationStatus.COMPLETED)

        payment = self.payments.get_by_external_id(data.get("payment") or "")
        if payment is not None:
            payment.payment_metadata = {
                **(payment.payment_metadata or {}),
                "invoiceCancelled": True,
                "invoiceCancelledAt": utcnow().isoformat(),
            }

    def handle_invoice_authorized(self, payload: dict[str, Any]) -> None:
        data = payload.get("invoice") or {}
        self._close_operations(
            OperationType.CANCEL_INVOICE, data.get("id"), OperationStatus.SKIPPED, INVOICE_AUTHORIZED_NOTE
        )
