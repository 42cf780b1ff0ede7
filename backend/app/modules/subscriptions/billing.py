"""Cancellation, reversal and admin plan changes for paid subscriptions.

Gateway calls that fail here never fail the request: they are queued as
pending operations and replayed by the retry cron.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.database import utcnow
from app.modules.audit.service import AuditService
from app.modules.notifications import templates
from app.modules.notifications.email import EmailContent, send_email
from app.modules.payments.gateway import PaymentGateway, get_payment_gateway
from app.modules.payments.models import OperationType, Payment, PaymentStatus
from app.modules.payments.operations import queue_operation
from .models import PaymentGatewayName, Subscription, SubscriptionStatus
from .plans import get_plan_display_name, is_free_plan, is_family_plan
from .repository import SubscriptionsRepository
from .service import SubscriptionService


logger = logging.getLogger(__name__)

INVOICE_STATUSES = (
    PaymentStatus.PENDING,
    PaymentStatus.PROCESSING,
    PaymentStatus.CONFIRMED,
    PaymentStatus.PAID,
)

# Gateway errors meaning the invoice already went to SEFAZ and cannot be cancelled
SEFAZ_MARKERS = ("sefaz", "enviada", "autorizada")


def subscription_snapshot(sub: Subscription) -> dict[str, Any]:
    return {
        "plan": sub.plan,
        "status": sub.status,
        "billingInterval": sub.billing_interval,
        "currentPeriodEnd": sub.current_period_end,
        "cancelAtPeriodEnd": sub.cancel_at_period_end,
        "canceledAt": sub.canceled_at,
        "externalSubscriptionId": sub.external_subscription_id,
    }


class SubscriptionBillingService:
    def __init__(
        self,
        db: Session,
        audit: AuditService | None = None,
        gateway_factory: Callable[[str], PaymentGateway] = get_payment_gateway,
        email_sender: Callable[[str, EmailContent], bool] = send_email,
    ):
        self.db = db
        self.repo = SubscriptionsRepository(db)
        self.audit = audit
        self.gateway_factory = gateway_factory
        self.send_email = email_sender

    def _uses_gateway(self, sub: Subscription) -> bool:
        return bool(sub.external_subscription_id) and sub.payment_gateway != PaymentGatewayName.MANUAL

    def _cancel_at_gateway(self, sub: Subscription, data: dict[str, Any] | None = None) -> bool:
        gateway = self.gateway_factory(sub.payment_gateway)
        result = gateway.cancel_subscription(sub.external_subscription_id)
        if result.success:
            logger.info("Gateway subscription %s cancelled", sub.external_subscription_id)
            return True
        queue_operation(
            self.db,
            operation_type=OperationType.CANCEL_SUBSCRIPTION,
            subscription_id=sub.id,
            external_id=sub.external_subscription_id,
            gateway=sub.payment_gateway,
            error=result.error,
            data=data,
        )
        return False

    def _cancel_invoices(self, sub: Subscription) -> None:
        stmt = select(Payment).where(
            Payment.subscription_id == sub.id,
            Payment.external_invoice_url.is_not(None),
            Payment.status.in_(INVOICE_STATUSES),
        )
        payments = list(self.db.scalars(stmt))
        logger.info("Found %s payments with invoices to cancel for %s", len(payments), sub.id)
        gateway = self.gateway_factory(sub.payment_gateway)
        for payment in payments:
            if not payment.external_payment_id:
                continue
            result = gateway.cancel_invoice(payment.external_payment_id)
            if result.success:
                continue
            error = (result.error or "").lower()
            if any(marker in error for marker in SEFAZ_MARKERS):
                logger.info("Invoice %s already sent to SEFAZ; not retrying", payment.external_payment_id)
                continue
            queue_operation(
                self.db,
                operation_type=OperationType.CANCEL_INVOICE,
                subscription_id=sub.id,
                payment_id=payment.id,
                external_id=payment.external_payment_id,
                gateway=sub.payment_gateway,
                error=result.error,
            )

    # ---- Consumer ----
    def cancel(self, sub: Subscription | None, reason: str, feedback: str | None = None) -> Subscription:
        if sub is None:
            raise LookupError("Você não possui uma assinatura")
        if is_free_plan(sub.plan):
            raise ValueError("Você não possui um plano pago")
        if sub.cancel_at_period_end:
            raise ValueError("Sua assinatura já está agendada para cancelamento")

        if self._uses_gateway(sub):
            self._cancel_at_gateway(sub, {"reason": reason, "feedback": feedback})
            self._cancel_invoices(sub)

        sub.cancel_at_period_end = True
        sub.canceled_at = utcnow()
        sub.cancellation_reason = reason
        sub.cancellation_feedback = (feedback or "").strip() or None
        sub = self.repo.save(sub)

        user, name = self.repo.get_owner(sub)
        if user:
            self.send_email(
                user.email,
                templates.cancellation_email(
                    templates.first_name(name or "Usuário"),
                    get_plan_display_name(sub.plan),
                    sub.current_period_end,
                ),
            )
        return sub

    def revert_cancellation(self, sub: Subscription | None) -> tuple[Subscription, str | None]:
        """Undo a scheduled cancellation.

        Returns the subscription and a warning when the gateway side is gone
        and has to be recreated by the retry job.
        """
        if sub is None:
            raise LookupError("Você não possui uma assinatura")
        if not sub.cancel_at_period_end:
            raise ValueError("Sua assinatura não está agendada para cancelamento")
        if is_free_plan(sub.plan):
            raise ValueError("Você não possui um plano pago")
        if sub.current_period_end <= utcnow():
            raise ValueError("O período da assinatura já terminou")

        warning = None
        if self._uses_gateway(sub):
            gateway = self.gateway_factory(sub.payment_gateway)
            check = gateway.get_subscription(sub.external_subscription_id)
            if not check.success or check.data.get("deleted"):
                queue_operation(
                    self.db,
                    operation_type=OperationType.RECREATE_SUBSCRIPTION,
                    subscription_id=sub.id,
                    external_id=sub.external_subscription_id,
                    gateway=sub.payment_gateway,
                    data={"plan": sub.plan, "billingInterval": sub.billing_interval},
                )
                warning = "A assinatura foi removida no gateway de pagamento e será recriada automaticamente."

        sub.cancel_at_period_end = False
        sub.canceled_at = None
        sub.cancellation_reason = None
        sub.cancellation_feedback = None
        return self.repo.save(sub), warning

    # ---- Admin ----
    def cancel_now(self, subscription_id: str, reason: str | None = None) -> Subscription:
        sub = self.repo.get(subscription_id)
        if sub is None:
            raise LookupError("Assinatura não encontrada")
        if is_free_plan(sub.plan):
            raise ValueError("Assinatura gratuita não pode ser cancelada")
        before = subscription_snapshot(sub)
        if self._uses_gateway(sub):
            self._cancel_at_gateway(sub, {"reason": reason, "admin": True})

        SubscriptionService(self.db).downgrade_to_free(sub)
        sub.canceled_at = utcnow()
        sub.cancellation_reason = reason
        if self.audit:
            self.audit.log_subscription_cancel(sub.id, before, reason)
        return self.repo.save(sub)

    def change_plan(self, subscription_id: str, plan: str, billing_interval: str | None = None) -> Subscription:
        sub = self.repo.get(subscription_id)
        if sub is None:
            raise LookupError("Assinatura não encontrada")
        if is_family_plan(plan) != bool(sub.family_id):
            raise ValueError("Plano incompatível com o tipo de usuário")
        before = {"plan": sub.plan, "billingInterval": sub.billing_interval}
        sub.plan = plan
        sub.billing_interval = None if is_free_plan(plan) else (billing_interval or sub.billing_interval)
        if sub.status not in (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING):
            sub.status = SubscriptionStatus.ACTIVE
        if self.audit:
            self.audit.log_plan_change(
                sub.id,
                sub.family_id or sub.nanny_id,
                before,
                {"plan": sub.plan, "billingInterval": sub.billing_interval},
            )
        return self.repo.save(sub)
