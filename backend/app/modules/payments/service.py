from __future__ import annotations

import logging
from typing import Callable

from sqlalchemy.orm import Session

from app.core.database import utcnow
from app.modules.audit.service import AuditService
from .gateway import PaymentGateway, get_payment_gateway
from .models import Payment, PaymentStatus
from .repository import PaymentsRepository


logger = logging.getLogger(__name__)

REFUNDABLE_STATUSES = (PaymentStatus.CONFIRMED, PaymentStatus.PAID)


class PaymentsAdminService:
    def __init__(
        self,
        db: Session,
        audit: AuditService | None = None,
        gateway_factory: Callable[[str], PaymentGateway] = get_payment_gateway,
    ):
        self.db = db
        self.repo = PaymentsRepository(db)
        self.audit = audit
        self.gateway_factory = gateway_factory

    def refund(self, payment_id: str, value: float | None = None, reason: str | None = None) -> Payment:
        payment = self.repo.get(payment_id)
        if payment is None:
            raise LookupError("Pagamento não encontrado")
        if payment.status not in REFUNDABLE_STATUSES:
            raise ValueError("Apenas pagamentos confirmados podem ser reembolsados")
        if not payment.external_payment_id:
            raise ValueError("Pagamento sem referência no gateway")
        if value is not None and value > payment.amount:
            raise ValueError("Valor do reembolso maior que o valor pago")

        result = self.gateway_factory(payment.payment_gateway).refund_payment(payment.external_payment_id, value)
        if not result.success:
            logger.warning("Refund failed for payment %s: %s", payment.id, result.error)
            raise ValueError(result.error or "Falha ao solicitar reembolso")

        partial = value is not None and value < payment.amount
        payment.status = PaymentStatus.PARTIALLY_REFUNDED if partial else PaymentStatus.REFUNDED
        payment.refunded_at = utcnow()
        payment.payment_metadata = {
            **(payment.payment_metadata or {}),
            "refund": {"value": value if value is not None else payment.amount, "reason": reason},
        }
        self.db.commit()
        self.db.refresh(payment)

        if self.audit:
            self.audit.log_refund(
                payment.id,
                {"amount": payment.amount, "refunded": value if value is not None else payment.amount,
                 "external_payment_id": payment.external_payment_id},
                reason,
            )
        return payment
