from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.api.deps import CurrentUser, DbDep, audit_for, require_permission
from app.modules.admin.models import AdminUser
from app.modules.admin.permissions import AdminPermission
from .schemas import CouponCreate, CouponRead, CouponUpdate, CouponValidateRequest, CouponValidationRead
from .service import CouponsService, validation_to_dict


router = APIRouter(tags=["coupons"])
public_router = APIRouter(prefix="/coupons")
admin_router = APIRouter(prefix="/admin/coupons")

CouponAdmin = Annotated[AdminUser, Depends(require_permission(AdminPermission.COUPONS))]


@public_router.post("/validate", response_model=CouponValidationRead)
def validate_coupon(data: CouponValidateRequest, db: DbDep, user: CurrentUser):
    result = CouponsService(db).validate(
        data.code,
        plan=data.plan,
        billing_interval=data.billing_interval,
        user_role=user.role,
        user_email=user.email,
    )
    return validation_to_dict(result)


@admin_router.get("")
def list_coupons(
    db: DbDep,
    _: CouponAdmin,
    search: str | None = None,
    is_active: bool | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    items, total = CouponsService(db).repo.list(search=search, is_active=is_active, limit=limit, offset=offset)
    return {"items": [CouponRead.model_validate(c) for c in items], "total": total}


@admin_router.get("/{coupon_id}", response_model=CouponRead)
def get_coupon(coupon_id: str, db: DbDep, _: CouponAdmin):
    coupon = CouponsService(db).repo.get(coupon_id)
    if coupon is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cupom não encontrado")
    return coupon


@admin_router.post("", response_model=CouponRead, status_code=status.HTTP_201_CREATED)
def create_coupon(data: CouponCreate, db: DbDep, admin: CouponAdmin, request: Request):
    svc = CouponsService(db, audit_for(admin, db, request))
    try:
        return svc.create(data, created_by_id=admin.id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@admin_router.patch("/{coupon_id}", response_model=CouponRead)
def update_coupon(coupon_id: str, data: CouponUpdate, db: DbDep, admin: CouponAdmin, request: Request):
    svc = CouponsService(db, audit_for(admin, db, request))
    try:
        return svc.update(coupon_id, data)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@admin_router.delete("/{coupon_id}", response_model=CouponRead)
def delete_coupon(coupon_id: str, db: DbDep, admin: CouponAdmin, request: Request):
    svc = CouponsService(db, audit_for(admin, db, request))
    try:
        return svc.delete(coupon_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@admin_router.get("/{coupon_id}/usages")
def list_coupon_usages(coupon_id: str, db: DbDep, _: CouponAdmin):
    svc = CouponsService(db)
    if svc.repo.get(coupon_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cupom não encontrado")
    return [
        {
            "id": u.id,
            "userId": u.user_id,
            "email": u.email,
            "plan": u.plan,
            "billingInterval": u.billing_interval,
            "originalAmount": u.original_amount,
            "discountAmount": u.discount_amount,
            "finalAmount": u.final_amount,
            "subscriptionId": u.subscription_id,
            "createdAt": u.created_at,
        }
        for u in svc.repo.list_usages(coupon_id)
    ]


router.include_router(public_router)
router.include_router(admin_router)
