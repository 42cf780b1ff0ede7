from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Header, HTTPException, Query, Request, status

from app.api.deps import DbDep, audit_for, require_permission
from app.core.config import settings
from app.core.security import secrets_match
from app.modules.admin.models import AdminUser
from app.modules.admin.permissions import AdminPermission
from .repository import PaymentsRepository
from .schemas import PaymentRead, PendingOperationRead, RefundRequest
from .service import PaymentsAdminService
from .webhook import AsaasWebhookProcessor


logger = logging.getLogger(__name__)

SUPPORTED_GATEWAYS = ("ASAAS", "STRIPE")

router = APIRouter(tags=["payments"])
webhook_router = APIRouter(prefix="/webhooks")
admin_router = APIRouter(prefix="/admin/payments")

PaymentsAdmin = Annotated[AdminUser, Depends(require_permission(AdminPermission.SUBSCRIPTIONS))]


@webhook_router.post("/payment")
def payment_webhook(
    db: DbDep,
    payload: Annotated[dict[str, Any], Body()],
    gateway: str | None = None,
    asaas_access_token: Annotated[str | None, Header(alias="asaas-access-token")] = None,
):
    if not gateway:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Gateway não identificado")
    gateway = gateway.upper()
    if gateway not in SUPPORTED_GATEWAYS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Gateway não suportado")

    if gateway == "STRIPE":
        logger.info("Stripe webhook received, ignoring")
        return {"received": True}

    if settings.ASAAS_ACCESS_TOKEN:
        if not secrets_match(asaas_access_token, settings.ASAAS_ACCESS_TOKEN):
            logger.warning("Rejected Asaas webhook with invalid access token")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token inválido")
    else:
        logger.warning("ASAAS_ACCESS_TOKEN not configured; webhook authenticity not verified")

    return AsaasWebhookProcessor(db).process(payload)


@admin_router.get("")
def list_payments(
    db: DbDep,
    _: PaymentsAdmin,
    subscription_id: str | None = None,
    status_filter: str | None = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    items, total = PaymentsRepository(db).list(
        subscription_id=subscription_id, status=status_filter, limit=limit, offset=offset
    )
    return {"items": [PaymentRead.model_validate(p) for p in items], "total": total}


@admin_router.get("/operations")
def list_pending_operations(
    db: DbDep,
    _: PaymentsAdmin,
    status_filter: str | None = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    items, total = PaymentsRepository(db).list_operations(status=status_filter, limit=limit, offset=offset)
    return {"items": [PendingOperationRead.model_validate(op) for op in items], "total": total}


@admin_router.get("/{payment_id}", response_model=PaymentRead)
def get_payment(payment_id: str, db: DbDep, _: PaymentsAdmin):
    payment = PaymentsRepository(db).get(payment_id)
    if payment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pagamento não encontrado")
    return payment


@admin_router.post("/{payment_id}/refund", response_model=PaymentRead)
def refund_payment(
    payment_id: str, data: RefundRequest, db: DbDep, admin: PaymentsAdmin, request: Request
):
    svc = PaymentsAdminService(db, audit_for(admin, db, request))
    try:
        return svc.refund(payment_id, data.value, data.reason)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


router.include_router(webhook_router)
router.include_router(admin_router)
