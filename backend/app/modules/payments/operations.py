"""Retry of gateway calls that failed during a user-facing flow.

Cancellation and recreation calls are queued as ``PendingPaymentOperation``
rows instead of failing the request. The cron endpoint replays them with an
increasing delay after each failed attempt.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Any, Callable

import requests
from sqlalchemy.orm import Session

from app.core.database import utcnow
from app.modules.subscriptions.models import Subscription
from .gateway import GatewayResult, PaymentGateway, get_payment_gateway
from .models import OperationStatus, OperationType, PendingPaymentOperation
from .repository import PaymentsRepository


logger = logging.getLogger(__name__)

RETRY_DELAYS = (
    timedelta(minutes=15),
    timedelta(hours=1),
    timedelta(hours=6),
    timedelta(hours=24),
    timedelta(hours=72),
)

MISSING_REFERENCE = "Missing externalId or subscription"
NOT_IMPLEMENTED = "Not yet implemented"


@dataclass
class RetryResult:
    operation_id: str
    type: str
    action: str  # completed | retried | failed | skipped
    error: str | None = None


def next_retry_at(operation: PendingPaymentOperation) -> datetime | None:
    if operation.last_attempt_at is None:
        return None
    index = min(operation.attempts, len(RETRY_DELAYS) - 1)
    return operation.last_attempt_at + RETRY_DELAYS[index]


def queue_operation(
    db: Session,
    *,
    operation_type: str,
    subscription_id: str | None,
    external_id: str | None,
    error: str | None = None,
    payment_id: str | None = None,
    data: dict[str, Any] | None = None,
    gateway: str | None = None,
) -> PendingPaymentOperation:
    """Record a failed gateway call so the retry job picks it up.

    The first attempt already happened inline, so the row starts with one
    attempt and the failure message. ``gateway`` pins the retry to the
    gateway that owns ``external_id``, whatever the subscription uses later.
    """
    operation_data = dict(data or {})
    if gateway:
        operation_data["gateway"] = gateway
    operation = PendingPaymentOperation(
        type=operation_type,
        status=OperationStatus.PENDING,
        subscription_id=subscription_id,
        payment_id=payment_id,
        external_id=external_id,
        operation_data=operation_data,
        attempts=1 if error else 0,
        last_attempt_at=utcnow() if error else None,
        last_error=error,
    )
    PaymentsRepository(db).add_operation(operation)
    logger.warning("Queued %s for %s: %s", operation_type, external_id, error)
    return operation


class PaymentOperationsRetrier:
    def __init__(self, db: Session, gateway_factory: Callable[[str], PaymentGateway] = get_payment_gateway):
        self.db = db
        self.repo = PaymentsRepository(db)
        self.gateway_factory = gateway_factory

    def _subscription(self, operation: PendingPaymentOperation) -> Subscription | None:
        if not operation.subscription_id:
            return None
        return self.db.get(Subscription, operation.subscription_id)

    def _gateway(self, operation: PendingPaymentOperation, subscription: Subscription) -> PaymentGateway:
        name = (operation.operation_data or {}).get("gateway") or subscription.payment_gateway
        return self.gateway_factory(name)

    def _execute(self, operation: PendingPaymentOperation) -> GatewayResult:
        subscription = self._subscription(operation)

        if operation.type in (OperationType.CANCEL_SUBSCRIPTION, OperationType.CANCEL_INVOICE):
            if not operation.external_id or subscription is None:
                return GatewayResult.fail(MISSING_REFERENCE)
            gateway = self._gateway(operation, subscription)
            if operation.type == OperationType.CANCEL_SUBSCRIPTION:
                return gateway.cancel_subscription(operation.external_id)
            return gateway.cancel_invoice(operation.external_id)

        if operation.type == OperationType.RECREATE_SUBSCRIPTION:
            if subscription is None or not subscription.external_customer_id:
                return GatewayResult.fail(MISSING_REFERENCE)
            gateway = self._gateway(operation, subscription)
            result = gateway.create_subscription(
                customer_id=subscription.external_customer_id,
                plan=subscription.plan,
                billing_interval=subscription.billing_interval or "MONTH",
                billing_type=(operation.operation_data or {}).get("billingType", "UNDEFINED"),
            )
            if result.success:
                subscription.external_subscription_id = result.data.get("externalSubscriptionId")
            return result

        if operation.type == OperationType.UPDATE_SUBSCRIPTION:
            logger.info("UPDATE_SUBSCRIPTION not implemented for operation %s", operation.id)
            return GatewayResult.fail(NOT_IMPLEMENTED)

        return GatewayResult.fail(f"Unknown operation type: {operation.type}")

    def retry_pending(self, now: datetime | None = None) -> dict[str, Any]:
        now = now or utcnow()
        operations = self.repo.list_retryable_operations()
        logger.info("Found %s pending payment operations", len(operations))
        results: list[RetryResult] = []

        for operation in operations:
            due = next_retry_at(operation)
            if due is not None and now < due:
                results.append(RetryResult(operation.id, operation.type, "skipped", "Not yet time for retry"))
                continue

            logger.info("Retrying %s %s (attempt %s)", operation.type, operation.external_id, operation.attempts + 1)
            try:
                result = self._execute(operation)
            except (ValueError, requests.RequestException) as exc:
                logger.exception("Operation %s (%s) raised", operation.id, operation.type)
                result = GatewayResult.fail(str(exc))
            operation.attempts += 1
            operation.last_attempt_at = now

            if result.success:
                operation.status = OperationStatus.COMPLETED
                operation.completed_at = now
                results.append(RetryResult(operation.id, operation.type, "completed"))
                continue

            operation.last_error = result.error
            if operation.attempts >= operation.max_attempts:
                operation.status = OperationStatus.FAILED
                logger.error("Operation %s (%s) failed permanently: %s", operation.id, operation.type, result.error)
                results.append(RetryResult(operation.id, operation.type, "failed", result.error))
            else:
                operation.status = OperationStatus.RETRYING
                results.append(RetryResult(operation.id, operation.type, "retried", result.error))

        self.db.commit()
        stats = {
            "totalOperations": len(operations),
            "completed": sum(1 for r in results if r.action == "completed"),
            "retried": sum(1 for r in results if r.action == "retried"),
            "failed": sum(1 for r in results if r.action == "failed"),
            "skipped": sum(1 for r in results if r.action == "skipped"),
        }
        logger.info("Payment operations retry complete: %s", stats)
        return {"success": True, "stats": stats, "results": [asdict(r) for r in results]}
