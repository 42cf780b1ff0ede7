"""Plan catalogue and the feature table each plan tier unlocks.

Features depend on the plan tier only; a family on a quarterly Plus gets the
same features as a monthly one. Numeric limits use ``-1`` for unlimited.
"""

from __future__ import annotations

import calendar
from datetime import datetime
from typing import Any


class SubscriptionPlan:
    FAMILY_FREE = "FAMILY_FREE"
    FAMILY_PLUS = "FAMILY_PLUS"
    NANNY_FREE = "NANNY_FREE"
    NANNY_PRO = "NANNY_PRO"

    ALL = (FAMILY_FREE, FAMILY_PLUS, NANNY_FREE, NANNY_PRO)


class BillingInterval:
    MONTH = "MONTH"
    QUARTER = "QUARTER"
    YEAR = "YEAR"

    ALL = (MONTH, QUARTER, YEAR)


UNLIMITED = -1

PLAN_FEATURES: dict[str, dict[str, Any]] = {
    SubscriptionPlan.FAMILY_FREE: {
        "viewProfiles": UNLIMITED,
        "createJobs": 1,
        "seeReviews": 1,
        "favorite": True,
        "seeVerificationSeals": True,
        "unlimitedContact": False,
        "maxConversationsPerJob": 1,
        "jobExpirationDays": 7,
        "matching": False,
        "rateNannies": True,
    },
    SubscriptionPlan.FAMILY_PLUS: {
        "viewProfiles": UNLIMITED,
        "createJobs": 3,
        "seeReviews": UNLIMITED,
        "favorite": True,
        "seeVerificationSeals": True,
        "unlimitedContact": True,
        "maxConversationsPerJob": UNLIMITED,
        "jobExpirationDays": 30,
        "matching": True,
        "rateNannies": True,
        "jobHighlight": True,
        "boostPerCycle": 1,
    },
    SubscriptionPlan.NANNY_FREE: {
        "viewJobs": True,
        "applyToJobs": True,
        "profileComplete": True,
        "unlimitedMessaging": False,
        "rateFamilies": True,
    },
    SubscriptionPlan.NANNY_PRO: {
        "viewJobs": True,
        "applyToJobs": True,
        "profileComplete": True,
        "unlimitedMessaging": True,
        "rateFamilies": True,
        "profileHighlight": True,
        "priorityMatching": True,
        "weeklyBoost": 1,
    },
}

PLAN_DISPLAY_NAMES = {
    SubscriptionPlan.FAMILY_FREE: "Familia Grátis",
    SubscriptionPlan.FAMILY_PLUS: "Familia Plus",
    SubscriptionPlan.NANNY_FREE: "Baba Grátis",
    SubscriptionPlan.NANNY_PRO: "Baba Pro",
}

BILLING_INTERVAL_DISPLAY_NAMES = {
    BillingInterval.MONTH: "Mensal",
    BillingInterval.QUARTER: "Trimestral",
    BillingInterval.YEAR: "Anual",
}

# Months covered by one billing cycle
BILLING_INTERVAL_MONTHS = {
    BillingInterval.MONTH: 1,
    BillingInterval.QUARTER: 3,
    BillingInterval.YEAR: 12,
}


def get_plan_features(plan: str | None) -> dict[str, Any]:
    if plan is None:
        return {}
    return PLAN_FEATURES.get(plan, {})


def is_family_plan(plan: str | None) -> bool:
    return plan in (SubscriptionPlan.FAMILY_FREE, SubscriptionPlan.FAMILY_PLUS)


def is_nanny_plan(plan: str | None) -> bool:
    return plan in (SubscriptionPlan.NANNY_FREE, SubscriptionPlan.NANNY_PRO)


def is_free_plan(plan: str | None) -> bool:
    return plan in (SubscriptionPlan.FAMILY_FREE, SubscriptionPlan.NANNY_FREE)


def get_plan_tier(plan: str) -> str:
    return "free" if is_free_plan(plan) else "paid"


def get_free_plan_for(role: str) -> str:
    return SubscriptionPlan.NANNY_FREE if role == "NANNY" else SubscriptionPlan.FAMILY_FREE


def get_review_limit(plan: str | None) -> int:
    return get_plan_features(plan).get("seeReviews", 0)


def get_job_limit(plan: str | None) -> int:
    return get_plan_features(plan).get("createJobs", 0)


def get_max_conversations(plan: str | None) -> int:
    """Total conversations a family may open; -1 is unlimited."""
    return get_plan_features(plan).get("maxConversationsPerJob", 0)


def get_job_expiration_days(plan: str | None) -> int:
    return get_plan_features(plan).get("jobExpirationDays", UNLIMITED)


def has_matching_feature(plan: str | None) -> bool:
    features = get_plan_features(plan)
    return features.get("matching") is True or features.get("priorityMatching") is True


def get_plan_display_name(plan: str) -> str:
    return PLAN_DISPLAY_NAMES.get(plan, plan)


def get_billing_interval_display_name(interval: str | None) -> str:
    if not interval:
        return ""
    return BILLING_INTERVAL_DISPLAY_NAMES.get(interval, interval)


def add_months(value: datetime, months: int) -> datetime:
    """Calendar month arithmetic, clamping the day to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def calculate_period_end(start: datetime, interval: str | None) -> datetime:
    return add_months(start, BILLING_INTERVAL_MONTHS.get(interval or "", 1))
