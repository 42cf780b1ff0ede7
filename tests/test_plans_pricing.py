from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.core.formatting import HOURLY_RATE_LABELS, format_brl, get_label, get_labels
from app.modules.subscriptions.plans import (
    UNLIMITED,
    BillingInterval,
    SubscriptionPlan,
    add_months,
    calculate_period_end,
    get_free_plan_for,
    get_job_expiration_days,
    get_job_limit,
    get_max_conversations,
    get_plan_display_name,
    get_review_limit,
    has_matching_feature,
    is_family_plan,
    is_free_plan,
    is_nanny_plan,
)
from app.modules.subscriptions.pricing import (
    format_price_display,
    format_price_with_period,
    get_available_billing_intervals,
    get_monthly_equivalent_price,
    get_plan_price,
    get_plan_price_strict,
    is_valid_billing_interval,
)


def test_family_plan_limits() -> None:
    assert get_job_limit(SubscriptionPlan.FAMILY_FREE) == 1
    assert get_job_limit(SubscriptionPlan.FAMILY_PLUS) == 3
    assert get_review_limit(SubscriptionPlan.FAMILY_FREE) == 1
    assert get_review_limit(SubscriptionPlan.FAMILY_PLUS) == UNLIMITED
    assert get_max_conversations(SubscriptionPlan.FAMILY_FREE) == 1
    assert get_max_conversations(SubscriptionPlan.FAMILY_PLUS) == UNLIMITED
    assert get_job_expiration_days(SubscriptionPlan.FAMILY_FREE) == 7
    assert get_job_expiration_days(SubscriptionPlan.FAMILY_PLUS) == 30


def test_matching_feature_by_plan() -> None:
    assert not has_matching_feature(SubscriptionPlan.FAMILY_FREE)
    assert has_matching_feature(SubscriptionPlan.FAMILY_PLUS)
    assert has_matching_feature(SubscriptionPlan.NANNY_PRO)
    assert not has_matching_feature(SubscriptionPlan.NANNY_FREE)
    assert not has_matching_feature(None)


def test_plan_classification() -> None:
    assert is_family_plan(SubscriptionPlan.FAMILY_PLUS)
    assert not is_family_plan(SubscriptionPlan.NANNY_PRO)
    assert is_nanny_plan(SubscriptionPlan.NANNY_FREE)
    assert is_free_plan(SubscriptionPlan.NANNY_FREE)
    assert not is_free_plan(SubscriptionPlan.FAMILY_PLUS)
    assert get_free_plan_for("NANNY") == SubscriptionPlan.NANNY_FREE
    assert get_free_plan_for("FAMILY") == SubscriptionPlan.FAMILY_FREE
    assert get_plan_display_name(SubscriptionPlan.FAMILY_PLUS) == "Familia Plus"
    assert get_plan_display_name("UNKNOWN") == "UNKNOWN"


def test_unknown_plan_has_no_features() -> None:
    assert get_job_limit("UNKNOWN") == 0
    assert get_review_limit(None) == 0


def test_plan_prices() -> None:
    assert get_plan_price(SubscriptionPlan.FAMILY_PLUS, BillingInterval.MONTH) == 47.0
    assert get_plan_price(SubscriptionPlan.FAMILY_PLUS, BillingInterval.QUARTER) == 94.0
    assert get_plan_price(SubscriptionPlan.NANNY_PRO, BillingInterval.MONTH) == 19.0
    assert get_plan_price(SubscriptionPlan.NANNY_PRO, BillingInterval.YEAR) == 119.0
    assert get_plan_price(SubscriptionPlan.FAMILY_FREE, None) == 0.0
    assert get_plan_price(SubscriptionPlan.FAMILY_PLUS, BillingInterval.YEAR) is None


def test_price_strict_rejects_unsupported_interval() -> None:
    with pytest.raises(ValueError):
        get_plan_price_strict(SubscriptionPlan.NANNY_PRO, BillingInterval.QUARTER)


def test_billing_intervals_per_plan() -> None:
    assert get_available_billing_intervals(SubscriptionPlan.FAMILY_PLUS) == ["MONTH", "QUARTER"]
    assert get_available_billing_intervals(SubscriptionPlan.NANNY_PRO) == ["MONTH", "YEAR"]
    assert is_valid_billing_interval(SubscriptionPlan.FAMILY_PLUS, BillingInterval.QUARTER)
    assert not is_valid_billing_interval(SubscriptionPlan.FAMILY_PLUS, BillingInterval.YEAR)


def test_price_display() -> None:
    assert format_price_display(SubscriptionPlan.FAMILY_PLUS, BillingInterval.MONTH) == "De R$ 59,00 por R$ 47,00"
    assert format_price_display(SubscriptionPlan.NANNY_PRO, BillingInterval.MONTH) == "R$ 19,00"
    assert format_price_with_period(SubscriptionPlan.FAMILY_PLUS, BillingInterval.QUARTER) == "R$ 94,00/trimestre"
    assert format_price_with_period(SubscriptionPlan.FAMILY_PLUS, BillingInterval.YEAR) is None
    assert get_monthly_equivalent_price(SubscriptionPlan.FAMILY_PLUS, BillingInterval.QUARTER) == pytest.approx(94 / 3)


def test_format_brl() -> None:
    assert format_brl(1234.56) == "R$ 1.234,56"
    assert format_brl(0) == "R$ 0,00"
    assert format_brl(1000000) == "R$ 1.000.000,00"


def test_labels() -> None:
    assert get_label(HOURLY_RATE_LABELS, "OVER_80") == "Acima de R$ 80/h"
    assert get_label(HOURLY_RATE_LABELS, "LEGACY") == "LEGACY"
    assert get_label(HOURLY_RATE_LABELS, None) == ""
    assert get_labels(HOURLY_RATE_LABELS, None) == []


def test_add_months_clamps_day() -> None:
    start = datetime(2026, 1, 31, 10, 0, tzinfo=timezone.utc)
    assert add_months(start, 1) == datetime(2026, 2, 28, 10, 0, tzinfo=timezone.utc)
    assert add_months(start, 12) == datetime(2027, 1, 31, 10, 0, tzinfo=timezone.utc)
    assert add_months(datetime(2026, 11, 15), 3) == datetime(2027, 2, 15)


def test_period_end_by_interval() -> None:
    start = datetime(2026, 3, 10)
    assert calculate_period_end(start, BillingInterval.MONTH) == datetime(2026, 4, 10)
    assert calculate_period_end(start, BillingInterval.QUARTER) == datetime(2026, 6, 10)
    assert calculate_period_end(start, BillingInterval.YEAR) == datetime(2027, 3, 10)
    assert calculate_period_end(start, None) == datetime(2026, 4, 10)
