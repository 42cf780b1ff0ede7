from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.api.deps import CurrentUser, DbDep, ProfileIds, audit_for, require_permission
from app.modules.admin.models import AdminUser
from app.modules.admin.permissions import AdminPermission
from app.modules.payments.checkout import CheckoutService
from app.modules.payments.schemas import CheckoutRequest, CheckoutResponse
from . import plans, pricing
from .billing import SubscriptionBillingService
from .schemas import (
    AdminCancelRequest,
    AdminChangePlanRequest,
    BoostRequest,
    CancelSubscriptionRequest,
    SubscriptionRead,
)
from .service import SubscriptionService


logger = logging.getLogger(__name__)

router = APIRouter(tags=["subscriptions"])
public_router = APIRouter(prefix="/subscriptions")
admin_router = APIRouter(prefix="/admin/subscriptions")

SubscriptionsAdmin = Annotated[AdminUser, Depends(require_permission(AdminPermission.SUBSCRIPTIONS))]


@public_router.get("/plans")
def list_plans():
    result = []
    for plan in plans.SubscriptionPlan.ALL:
        intervals = pricing.get_available_billing_intervals(plan)
        result.append(
            {
                "plan": plan,
                "name": plans.get_plan_display_name(plan),
                "features": plans.get_plan_features(plan),
                "prices": [
                    {
                        "billingInterval": interval,
                        "label": plans.get_billing_interval_display_name(interval),
                        "price": pricing.get_plan_price(plan, interval),
                        "formatted": pricing.format_price_with_period(plan, interval),
                        "discountDisplay": pricing.format_price_display(plan, interval),
                        "monthlyEquivalent": pricing.get_monthly_equivalent_price(plan, interval),
                    }
                    for interval in intervals
                ],
            }
        )
    return result


@public_router.get("/me")
def get_my_subscription(db: DbDep, owner: ProfileIds):
    svc = SubscriptionService(db)
    sub = svc.get_subscription(**owner)
    if sub is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Você não possui uma assinatura")
    return {
        "subscription": SubscriptionRead.model_validate(sub),
        "planName": plans.get_plan_display_name(sub.plan),
        "isActive": svc.is_subscription_active(**owner),
        "features": svc.get_plan_features(**owner) or {},
    }


@public_router.get("/usage")
def get_usage(db: DbDep, owner: ProfileIds):
    svc = SubscriptionService(db)
    usage: dict = {}
    if "family_id" in owner:
        family_id = owner["family_id"]
        usage["profileViews"] = asdict(svc.get_profile_view_usage(family_id))
        usage["jobLimit"] = svc.get_user_job_limit(family_id=family_id)
        usage["reviewLimit"] = svc.get_user_review_limit(family_id=family_id)
        usage["canContactNanny"] = svc.can_contact_nanny(family_id=family_id)
    else:
        nanny_id = owner["nanny_id"]
        usage["unlimitedMessaging"] = svc.has_unlimited_messaging(nanny_id=nanny_id)
        usage["canApplyToJobs"] = svc.can_apply_to_jobs(nanny_id=nanny_id)
    usage["boost"] = asdict(svc.can_use_boost(**owner))
    usage["hasMatching"] = svc.has_matching(**owner)
    return usage


@public_router.post("/checkout", response_model=CheckoutResponse)
def checkout(data: CheckoutRequest, db: DbDep, user: CurrentUser):
    try:
        return CheckoutService(db).checkout(user, data)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@public_router.post("/cancel")
def cancel_subscription(data: CancelSubscriptionRequest, db: DbDep, owner: ProfileIds):
    billing = SubscriptionBillingService(db)
    try:
        sub = billing.cancel(billing.repo.get_for(**owner), data.reason, data.feedback)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return {
        "success": True,
        "message": "Assinatura cancelada. Você terá acesso até o fim do período atual.",
        "subscription": SubscriptionRead.model_validate(sub),
    }


@public_router.post("/revert-cancel")
def revert_cancellation(db: DbDep, owner: ProfileIds):
    billing = SubscriptionBillingService(db)
    try:
        sub, warning = billing.revert_cancellation(billing.repo.get_for(**owner))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return {
        "success": True,
        "message": "Cancelamento revertido com sucesso! Seu plano continua ativo.",
        "warning": warning,
        "subscription": SubscriptionRead.model_validate(sub),
    }


@public_router.get("/boost")
def get_boost_status(db: DbDep, owner: ProfileIds):
    return asdict(SubscriptionService(db).can_use_boost(**owner))


@public_router.post("/boost", status_code=status.HTTP_201_CREATED)
def activate_boost(data: BoostRequest, db: DbDep, owner: ProfileIds):
    try:
        boost = SubscriptionService(db).activate_boost(**owner, job_id=data.job_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return {
        "id": boost.id,
        "type": boost.type,
        "jobId": boost.job_id,
        "nannyId": boost.nanny_id,
        "startDate": boost.start_date,
        "endDate": boost.end_date,
    }


@admin_router.get("")
def list_subscriptions(
    db: DbDep,
    _: SubscriptionsAdmin,
    status_filter: str | None = Query(default=None, alias="status"),
    plan: str | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    items, total = SubscriptionService(db).repo.list(status=status_filter, plan=plan, limit=limit, offset=offset)
    return {"items": [SubscriptionRead.model_validate(s) for s in items], "total": total}


@admin_router.get("/{subscription_id}", response_model=SubscriptionRead)
def get_subscription(subscription_id: str, db: DbDep, _: SubscriptionsAdmin):
    sub = SubscriptionService(db).repo.get(subscription_id)
    if sub is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assinatura não encontrada")
    return sub


@admin_router.post("/{subscription_id}/cancel", response_model=SubscriptionRead)
def admin_cancel_subscription(
    subscription_id: str, data: AdminCancelRequest, db: DbDep, admin: SubscriptionsAdmin, request: Request
):
    billing = SubscriptionBillingService(db, audit_for(admin, db, request))
    try:
        return billing.cancel_now(subscription_id, data.reason)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@admin_router.post("/{subscription_id}/change-plan", response_model=SubscriptionRead)
def admin_change_plan(
    subscription_id: str, data: AdminChangePlanRequest, db: DbDep, admin: SubscriptionsAdmin, request: Request
):
    billing = SubscriptionBillingService(db, audit_for(admin, db, request))
    try:
        return billing.change_plan(subscription_id, data.plan, data.billing_interval)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


router.include_router(public_router)
router.include_router(admin_router)
