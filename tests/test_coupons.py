from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import ValidationError

from app.core.database import utcnow
from app.modules.coupons.models import DiscountType
from app.modules.coupons.schemas import CouponCreate
from app.modules.coupons.service import CouponError, CouponsService, calculate_discount
from app.modules.subscriptions.plans import BillingInterval, SubscriptionPlan


def _create(db, **fields):
    now = utcnow()
    data = dict(
        code="bemvinda",
        discount_type="PERCENTAGE",
        discount_value=10,
        start_date=now - timedelta(days=1),
        end_date=now + timedelta(days=30),
    )
    data.update(fields)
    return CouponsService(db).create(CouponCreate(**data))


def _validate(db, code="BEMVINDA", plan=SubscriptionPlan.FAMILY_PLUS, **kwargs):
    return CouponsService(db).validate(code, plan=plan, billing_interval=BillingInterval.MONTH, **kwargs)


def test_calculate_discount() -> None:
    assert calculate_discount(DiscountType.PERCENTAGE, 10, 47.0) == 4.7
    assert calculate_discount(DiscountType.PERCENTAGE, 50, 94.0, max_discount=20) == 20
    assert calculate_discount(DiscountType.FIXED, 100, 47.0) == 47.0
    assert calculate_discount(DiscountType.FREE_TRIAL_DAYS, 7, 19.0) == 19.0


def test_code_is_normalized(db) -> None:
    coupon = _create(db, code="  bemvinda ")
    assert coupon.code == "BEMVINDA"

    result = _validate(db, code="bemvinda")
    assert result.is_valid
    assert result.original_amount == 47.0
    assert result.discount_amount == 4.7
    assert result.final_amount == 42.3


def test_unknown_coupon(db) -> None:
    result = _validate(db, code="NAOEXISTE")
    assert not result.is_valid
    assert result.error_code == CouponError.NOT_FOUND
    assert result.message == "Cupom não encontrado"


def test_inactive_and_dated_coupons(db) -> None:
    now = utcnow()
    _create(db, code="PAUSADO", is_active=False)
    _create(db, code="FUTURO", start_date=now + timedelta(days=1), end_date=now + timedelta(days=5))
    _create(db, code="PASSADO", start_date=now - timedelta(days=10), end_date=now - timedelta(days=1))

    assert _validate(db, code="PAUSADO").error_code == CouponError.INACTIVE
    assert _validate(db, code="FUTURO").error_code == CouponError.NOT_STARTED
    assert _validate(db, code="PASSADO").error_code == CouponError.EXPIRED


def test_usage_limit(db) -> None:
    svc = CouponsService(db)
    _create(db, usage_limit=1)
    validation = _validate(db)
    svc.apply(
        validation,
        user_id=None,
        email="ana@example.com",
        plan=SubscriptionPlan.FAMILY_PLUS,
        billing_interval=BillingInterval.MONTH,
        subscription_id=None,
    )
    db.commit()

    assert _validate(db).error_code == CouponError.USAGE_LIMIT


def test_applicability(db) -> None:
    _create(db, code="BABAS", applies_to="NANNIES")
    _create(db, code="SOPLUS", applies_to="SPECIFIC_PLAN", applicable_plans=[SubscriptionPlan.FAMILY_PLUS])

    assert _validate(db, code="BABAS").error_code == CouponError.NOT_APPLICABLE
    assert _validate(db, code="BABAS", plan=SubscriptionPlan.NANNY_PRO).is_valid
    assert _validate(db, code="SOPLUS").is_valid
    assert _validate(db, code="SOPLUS", plan=SubscriptionPlan.NANNY_PRO).error_code == CouponError.NOT_APPLICABLE


def test_user_restriction(db) -> None:
    _create(db, code="VIP", has_user_restriction=True, allowed_emails=["Ana@Example.com"])

    assert _validate(db, code="VIP", user_email="ana@example.com").is_valid
    assert _validate(db, code="VIP", user_email="outra@example.com").error_code == CouponError.USER_NOT_ALLOWED


def test_minimum_purchase(db) -> None:
    _create(db, code="MINIMO", min_purchase_amount=50)
    result = _validate(db, code="MINIMO")
    assert result.error_code == CouponError.MIN_PURCHASE
    assert result.message.endswith("Mínimo: R$ 50.00")


def test_free_trial_coupon(db) -> None:
    _create(db, code="TESTE7", discount_type="FREE_TRIAL_DAYS", discount_value=7)
    result = _validate(db, code="TESTE7")
    assert result.is_free_trial
    assert result.trial_days == 7
    assert result.final_amount == 0.0


def test_duplicate_code(db) -> None:
    _create(db)
    with pytest.raises(ValueError, match="Já existe"):
        _create(db, code="BemVinda")


def test_schema_rules() -> None:
    now = utcnow()
    with pytest.raises(ValidationError):
        CouponCreate(
            code="ALTO", discount_type="PERCENTAGE", discount_value=150,
            start_date=now, end_date=now + timedelta(days=1),
        )
    with pytest.raises(ValidationError):
        CouponCreate(
            code="AB", discount_type="FIXED", discount_value=10,
            start_date=now, end_date=now + timedelta(days=1),
        )
    with pytest.raises(ValidationError):
        CouponCreate(
            code="DATAS", discount_type="FIXED", discount_value=10,
            start_date=now, end_date=now - timedelta(days=1),
        )
