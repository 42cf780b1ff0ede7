from __future__ import annotations

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import OperationStatus, Payment, PendingPaymentOperation


OPEN_OPERATION_STATUSES = (OperationStatus.PENDING, OperationStatus.RETRYING)


class PaymentsRepository:
    def __init__(self, db: Session):
        self.db = db

    # ---- Payments ----
    def get(self, payment_id: str) -> Optional[Payment]:
        return self.db.get(Payment, payment_id)

    def get_by_external_id(self, external_payment_id: str) -> Optional[Payment]:
        stmt = select(Payment).where(Payment.external_payment_id == external_payment_id)
        return self.db.scalar(stmt)

    def list(
        self,
        *,
        subscription_id: str | None = None,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Payment], int]:
        stmt = select(Payment)
        if subscription_id:
            stmt = stmt.where(Payment.subscription_id == subscription_id)
        if status:
            stmt = stmt.where(Payment.status == status)
        total = self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        rows = self.db.scalars(stmt.order_by(Payment.created_at.desc()).limit(limit).offset(offset))
        return list(rows), total

    def list_for_subscription(self, subscription_id: str) -> list[Payment]:
        stmt = (
            select(Payment)
            .where(Payment.subscription_id == subscription_id)
            .order_by(Payment.created_at.desc())
        )
        return list(self.db.scalars(stmt))

    def add(self, payment: Payment) -> Payment:
        self.db.add(payment)
        self.db.flush()
        return payment

    # ---- Pending operations ----
    def get_operation(self, operation_id: str) -> Optional[PendingPaymentOperation]:
        return self.db.get(PendingPaymentOperation, operation_id)

    def add_operation(self, operation: PendingPaymentOperation) -> PendingPaymentOperation:
        self.db.add(operation)
        self.db.flush()
        return operation

    def list_operations(
        self, *, status: str | None = None, limit: int = 50, offset: int = 0
    ) -> tuple[list[PendingPaymentOperation], int]:
        stmt = select(PendingPaymentOperation)
        if status:
            stmt = stmt.where(PendingPaymentOperation.status == status)
        total = self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        rows = self.db.scalars(
            stmt.order_by(PendingPaymentOperation.created_at.desc()).limit(limit).offset(offset)
        )
        return list(rows), total

    def list_retryable_operations(self) -> list[PendingPaymentOperation]:
        stmt = (
            select(PendingPaymentOperation)
            .where(
                PendingPaymentOperation.status.in_(OPEN_OPERATION_STATUSES),
                PendingPaymentOperation.attempts < PendingPaymentOperation.max_attempts,
            )
            .order_by(PendingPaymentOperation.created_at.asc())
        )
        return list(self.db.scalars(stmt))

    def open_operations_for(
        self, *, operation_type: str, external_id: str
    ) -> list[PendingPaymentOperation]:
        stmt = select(PendingPaymentOperation).where(
            PendingPaymentOperation.type == operation_type,
            PendingPaymentOperation.external_id == external_id,
            PendingPaymentOperation.status.in_(OPEN_OPERATION_STATUSES),
        )
        return list(self.db.scalars(stmt))
