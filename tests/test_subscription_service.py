from __future__ import annotations

from datetime import timedelta

import pytest

from app.core.database import utcnow
from app.modules.subscriptions.models import SubscriptionStatus
from app.modules.subscriptions.plans import SubscriptionPlan, UNLIMITED
from app.modules.subscriptions.service import EntitlementCode, SubscriptionService, compute_job_expiration
from factories import make_family, make_nanny


def test_free_family_entitlements(db) -> None:
    family = make_family(db)
    svc = SubscriptionService(db)

    assert svc.is_subscription_active(family_id=family.id)
    assert not svc.has_active_subscription(family_id=family.id)
    assert svc.can_create_job(family_id=family.id)
    assert svc.get_user_job_limit(family_id=family.id) == 1
    assert svc.get_user_review_limit(family_id=family.id) == 1
    assert not svc.has_matching(family_id=family.id)
    assert not svc.can_contact_nanny(family_id=family.id)


def test_plus_family_entitlements(db) -> None:
    family = make_family(db, plan=SubscriptionPlan.FAMILY_PLUS)
    svc = SubscriptionService(db)

    assert svc.has_active_subscription(family_id=family.id)
    assert svc.has_matching(family_id=family.id)
    assert svc.can_contact_nanny(family_id=family.id)
    assert svc.get_user_review_limit(family_id=family.id) == UNLIMITED


def test_canceled_subscription_grants_nothing(db) -> None:
    family = make_family(db, plan=SubscriptionPlan.FAMILY_PLUS)
    svc = SubscriptionService(db)
    sub = svc.get_subscription(family_id=family.id)
    sub.status = SubscriptionStatus.CANCELED
    db.commit()

    assert svc.get_plan_features(family_id=family.id) is None
    assert not svc.can_create_job(family_id=family.id)
    assert svc.get_user_job_limit(family_id=family.id) == 0


def test_family_without_subscription(db) -> None:
    family = make_family(db, plan=None)
    svc = SubscriptionService(db)
    check = svc.can_start_conversation(family.id, "any-nanny")
    assert not check.can_start
    assert check.code == EntitlementCode.NO_SUBSCRIPTION


def test_nanny_entitlements(db) -> None:
    free = make_nanny(db)
    pro = make_nanny(db, plan=SubscriptionPlan.NANNY_PRO)
    svc = SubscriptionService(db)

    assert svc.can_apply_to_jobs(nanny_id=free.id)
    assert not svc.has_nanny_premium(nanny_id=free.id)
    assert not svc.has_unlimited_messaging(nanny_id=free.id)
    assert svc.has_nanny_premium(nanny_id=pro.id)
    assert svc.has_unlimited_messaging(nanny_id=pro.id)


def test_profile_views_are_unlimited_for_families(db) -> None:
    family = make_family(db)
    nanny = make_nanny(db)
    svc = SubscriptionService(db)

    check = svc.can_view_profile(family.id, nanny.id)
    assert check.can_view
    assert check.view_limit == UNLIMITED

    assert svc.register_profile_view(family.id, nanny.id)
    assert not svc.register_profile_view(family.id, nanny.id)
    usage = svc.get_profile_view_usage(family.id)
    assert usage.views_used == 1
    assert usage.is_unlimited


def test_nanny_pro_weekly_boost(db) -> None:
    nanny = make_nanny(db, plan=SubscriptionPlan.NANNY_PRO)
    svc = SubscriptionService(db)

    assert svc.can_use_boost(nanny_id=nanny.id).can_use
    boost = svc.activate_boost(nanny_id=nanny.id)
    assert boost.end_date - boost.start_date == timedelta(hours=24)

    check = svc.can_use_boost(nanny_id=nanny.id)
    assert not check.can_use
    assert check.reason == "Você já usou seu boost esta semana"
    with pytest.raises(ValueError):
        svc.activate_boost(nanny_id=nanny.id)


def test_free_plans_have_no_boost(db) -> None:
    family = make_family(db)
    nanny = make_nanny(db)
    svc = SubscriptionService(db)

    assert svc.can_use_boost(family_id=family.id).reason == "Seu plano não inclui boosts"
    assert svc.can_use_boost(nanny_id=nanny.id).reason == "Seu plano não inclui boosts"


def test_compute_job_expiration() -> None:
    now = utcnow()
    fresh = compute_job_expiration(now - timedelta(days=2), 7, now)
    assert fresh.expires
    assert not fresh.is_expired
    assert fresh.days_remaining == 5

    old = compute_job_expiration(now - timedelta(days=8), 7, now)
    assert old.is_expired
    assert old.days_remaining == 0
    assert "7 dias" in old.reason

    never = compute_job_expiration(now, UNLIMITED, now)
    assert not never.expires


def test_expire_trials_downgrades_to_free(db) -> None:
    family = make_family(db, plan=SubscriptionPlan.FAMILY_PLUS)
    svc = SubscriptionService(db)
    sub = svc.get_subscription(family_id=family.id)
    sub.status = SubscriptionStatus.TRIALING
    sub.current_period_end = utcnow() - timedelta(hours=1)
    db.commit()

    result = svc.expire_trials()

    assert result == {"expired": 1, "subscriptionIds": [sub.id]}
    db.refresh(sub)
    assert sub.plan == SubscriptionPlan.FAMILY_FREE
    assert sub.status == SubscriptionStatus.ACTIVE


def test_create_free_subscription(db) -> None:
    nanny = make_nanny(db, plan=None)
    sub = SubscriptionService(db).create_free_subscription(nanny_id=nanny.id)
    assert sub.plan == SubscriptionPlan.NANNY_FREE
    assert sub.status == SubscriptionStatus.ACTIVE
