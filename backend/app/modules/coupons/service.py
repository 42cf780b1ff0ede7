"""Discount coupon validation and bookkeeping."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from app.core.database import as_utc, utcnow
from app.modules.audit.service import AuditService
from app.modules.subscriptions.plans import is_family_plan, is_nanny_plan
from app.modules.subscriptions.pricing import get_plan_price
from .models import Coupon, CouponApplicability, CouponUsage, DiscountType
from .repository import CouponsRepository
from .schemas import CouponCreate, CouponUpdate


logger = logging.getLogger(__name__)


class CouponError:
    NOT_FOUND = "COUPON_NOT_FOUND"
    INACTIVE = "COUPON_INACTIVE"
    EXPIRED = "COUPON_EXPIRED"
    NOT_STARTED = "COUPON_NOT_STARTED"
    USAGE_LIMIT = "COUPON_USAGE_LIMIT"
    NOT_APPLICABLE = "COUPON_NOT_APPLICABLE"
    MIN_PURCHASE = "COUPON_MIN_PURCHASE"
    USER_NOT_ALLOWED = "COUPON_USER_NOT_ALLOWED"


ERROR_MESSAGES = {
    CouponError.NOT_FOUND: "Cupom não encontrado",
    CouponError.INACTIVE: "Este cupom está inativo",
    CouponError.EXPIRED: "Este cupom expirou",
    CouponError.NOT_STARTED: "Este cupom ainda não está válido",
    CouponError.USAGE_LIMIT: "Limite de uso deste cupom foi atingido",
    CouponError.NOT_APPLICABLE: "Este cupom não é válido para este plano",
    CouponError.MIN_PURCHASE: "Valor mínimo de compra não atingido",
    CouponError.USER_NOT_ALLOWED: "Este cupom não está disponível para sua conta",
}


@dataclass
class CouponValidation:
    is_valid: bool
    coupon_id: str | None = None
    code: str | None = None
    discount_type: str | None = None
    original_amount: float | None = None
    discount_amount: float | None = None
    final_amount: float | None = None
    trial_days: int | None = None
    is_free_trial: bool = False
    error_code: str | None = None
    message: str | None = None

    @classmethod
    def invalid(cls, error_code: str, message: str | None = None) -> "CouponValidation":
        return cls(is_valid=False, error_code=error_code, message=message or ERROR_MESSAGES[error_code])


def calculate_discount(
    discount_type: str, discount_value: float, amount: float, max_discount: float | None = None
) -> float:
    if discount_type == DiscountType.PERCENTAGE:
        discount = amount * discount_value / 100
        if max_discount is not None and discount > max_discount:
            discount = max_discount
    elif discount_type == DiscountType.FIXED:
        discount = discount_value
    else:
        discount = amount
    return round(min(discount, amount), 2)


def is_coupon_applicable(coupon: Coupon, plan: str, user_role: str | None = None) -> bool:
    applies_to = coupon.applies_to
    if applies_to == CouponApplicability.ALL:
        return True
    if applies_to == CouponApplicability.FAMILIES:
        return user_role == "FAMILY" or is_family_plan(plan)
    if applies_to == CouponApplicability.NANNIES:
        return user_role == "NANNY" or is_nanny_plan(plan)
    if applies_to == CouponApplicability.SPECIFIC_PLAN:
        return plan in (coupon.applicable_plans or [])
    return False


def coupon_snapshot(coupon: Coupon) -> dict[str, Any]:
    return {
        "code": coupon.code,
        "description": coupon.description,
        "discountType": coupon.discount_type,
        "discountValue": coupon.discount_value,
        "maxDiscount": coupon.max_discount,
        "minPurchaseAmount": coupon.min_purchase_amount,
        "usageLimit": coupon.usage_limit,
        "appliesTo": coupon.applies_to,
        "applicablePlans": list(coupon.applicable_plans or []),
        "hasUserRestriction": coupon.has_user_restriction,
        "allowedEmails": list(coupon.allowed_emails or []),
        "startDate": coupon.start_date,
        "endDate": coupon.end_date,
        "isActive": coupon.is_active,
    }


class CouponsService:
    def __init__(self, db: Session, audit: AuditService | None = None):
        self.db = db
        self.repo = CouponsRepository(db)
        self.audit = audit

    def validate(
        self,
        code: str,
        *,
        plan: str,
        billing_interval: str | None,
        user_role: str | None = None,
        user_email: str | None = None,
        amount: float | None = None,
        now: datetime | None = None,
    ) -> CouponValidation:
        """Check a coupon against the purchase, in a fixed order.

        The first failing rule decides the error code the user sees.
        """
        now = now or utcnow()
        coupon = self.repo.get_by_code(code)
        if coupon is None:
            return CouponValidation.invalid(CouponError.NOT_FOUND)
        if not coupon.is_active:
            return CouponValidation.invalid(CouponError.INACTIVE)
        if coupon.start_date > now:
            return CouponValidation.invalid(CouponError.NOT_STARTED)
        if coupon.end_date < now:
            return CouponValidation.invalid(CouponError.EXPIRED)
        if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
            return CouponValidation.invalid(CouponError.USAGE_LIMIT)
        if not is_coupon_applicable(coupon, plan, user_role):
            return CouponValidation.invalid(CouponError.NOT_APPLICABLE)
        if coupon.has_user_restriction and user_email:
            if user_email.strip().lower() not in (coupon.allowed_emails or []):
                return CouponValidation.invalid(CouponError.USER_NOT_ALLOWED)

        original = amount if amount is not None else (get_plan_price(plan, billing_interval or "") or 0.0)
        if coupon.min_purchase_amount is not None and original < coupon.min_purchase_amount:
            return CouponValidation.invalid(
                CouponError.MIN_PURCHASE,
                f"{ERROR_MESSAGES[CouponError.MIN_PURCHASE]}. Mínimo: R$ {coupon.min_purchase_amount:.2f}",
            )

        if coupon.discount_type == DiscountType.FREE_TRIAL_DAYS:
            return CouponValidation(
                is_valid=True,
                coupon_id=coupon.id,
                code=coupon.code,
                discount_type=coupon.discount_type,
                original_amount=original,
                discount_amount=original,
                final_amount=0.0,
                trial_days=int(coupon.discount_value),
                is_free_trial=True,
            )

        discount = calculate_discount(coupon.discount_type, coupon.discount_value, original, coupon.max_discount)
        return CouponValidation(
            is_valid=True,
            coupon_id=coupon.id,
            code=coupon.code,
            discount_type=coupon.discount_type,
            original_amount=original,
            discount_amount=discount,
            final_amount=round(max(0.0, original - discount), 2),
        )

    def apply(
        self,
        validation: CouponValidation,
        *,
        user_id: str | None,
        email: str | None,
        plan: str,
        billing_interval: str | None,
        subscription_id: str | None,
    ) -> CouponUsage:
        """Record a redemption and bump the coupon counter. Caller commits."""
        if not validation.is_valid or not validation.coupon_id:
            raise ValueError(validation.message or ERROR_MESSAGES[CouponError.NOT_FOUND])
        coupon = self.repo.get(validation.coupon_id)
        if coupon is None:
            raise LookupError(ERROR_MESSAGES[CouponError.NOT_FOUND])
        coupon.usage_count = (coupon.usage_count or 0) + 1
        usage = CouponUsage(
            coupon_id=coupon.id,
            user_id=user_id,
            email=email,
            plan=plan,
            billing_interval=billing_interval,
            original_amount=validation.original_amount or 0.0,
            discount_amount=validation.discount_amount or 0.0,
            final_amount=validation.final_amount or 0.0,
            subscription_id=subscription_id,
        )
        self.repo.add_usage(usage)
        logger.info("Coupon %s applied for user %s", coupon.code, user_id)
        return usage

    # ---- Admin ----
    def create(self, data: CouponCreate, created_by_id: str | None = None) -> Coupon:
        if self.repo.code_exists(data.code):
            raise ValueError("Já existe um cupom com este código")
        coupon = Coupon(**data.model_dump(), created_by_id=created_by_id)
        self.db.add(coupon)
        self.db.flush()
        if self.audit:
            self.audit.log_coupon_create(coupon.id, coupon_snapshot(coupon))
        return self.repo.save(coupon)

    def update(self, coupon_id: str, data: CouponUpdate) -> Coupon:
        coupon = self.repo.get(coupon_id)
        if coupon is None:
            raise LookupError(ERROR_MESSAGES[CouponError.NOT_FOUND])
        changes = data.model_dump(exclude_unset=True)
        if "code" in changes and self.repo.code_exists(changes["code"], exclude_id=coupon.id):
            raise ValueError("Já existe um cupom com este código")

        before = coupon_snapshot(coupon)
        for key, value in changes.items():
            setattr(coupon, key, value)
        if as_utc(coupon.end_date) <= as_utc(coupon.start_date):
            raise ValueError("Data de término deve ser após a data de início")
        if self.audit:
            self.audit.log_coupon_update(coupon.id, before, coupon_snapshot(coupon))
        return self.repo.save(coupon)

    def delete(self, coupon_id: str) -> Coupon:
        coupon = self.repo.get(coupon_id)
        if coupon is None:
            raise LookupError(ERROR_MESSAGES[CouponError.NOT_FOUND])
        coupon.deleted_at = utcnow()
        coupon.is_active = False
        if self.audit:
            self.audit.log_coupon_delete(coupon.id, coupon_snapshot(coupon))
        return self.repo.save(coupon)


def validation_to_dict(validation: CouponValidation) -> dict[str, Any]:
    return asdict(validation)
