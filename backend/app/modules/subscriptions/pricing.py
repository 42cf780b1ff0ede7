from __future__ import annotations

from dataclasses import dataclass

from app.core.formatting import format_brl

from .plans import BillingInterval, SubscriptionPlan, is_free_plan


@dataclass(frozen=True)
class PriceInfo:
    original: float
    price: float
    discount: int


PLAN_PRICES: dict[str, dict[str, PriceInfo]] = {
    SubscriptionPlan.FAMILY_PLUS: {
        BillingInterval.MONTH: PriceInfo(original=59.0, price=47.0, discount=20),
        BillingInterval.QUARTER: PriceInfo(original=119.0, price=94.0, discount=46),
    },
    SubscriptionPlan.NANNY_PRO: {
        BillingInterval.MONTH: PriceInfo(original=19.0, price=19.0, discount=0),
        BillingInterval.YEAR: PriceInfo(original=119.0, price=119.0, discount=47),
    },
}

FREE_PLAN_PRICE = PriceInfo(original=0.0, price=0.0, discount=0)

BILLING_INTERVAL_PERIOD_LABELS = {
    BillingInterval.MONTH: "mês",
    BillingInterval.QUARTER: "trimestre",
    BillingInterval.YEAR: "ano",
}

_MONTHS_PER_INTERVAL = {
    BillingInterval.MONTH: 1,
    BillingInterval.QUARTER: 3,
    BillingInterval.YEAR: 12,
}


def get_plan_pricing(plan: str, billing_interval: str | None) -> PriceInfo | None:
    if is_free_plan(plan):
        return FREE_PLAN_PRICE
    return PLAN_PRICES.get(plan, {}).get(billing_interval or "")


def get_plan_price(plan: str, billing_interval: str | None) -> float | None:
    pricing = get_plan_pricing(plan, billing_interval)
    return pricing.price if pricing else None


def get_plan_price_strict(plan: str, billing_interval: str | None) -> float:
    price = get_plan_price(plan, billing_interval)
    if price is None:
        raise ValueError(f"Invalid plan/billing interval combination: {plan}/{billing_interval}")
    return price


def is_valid_billing_interval(plan: str, billing_interval: str | None) -> bool:
    return get_plan_pricing(plan, billing_interval) is not None


def get_available_billing_intervals(plan: str) -> list[str]:
    return list(PLAN_PRICES.get(plan, {}).keys())


def get_discount_percentage(plan: str, billing_interval: str) -> int | None:
    pricing = get_plan_pricing(plan, billing_interval)
    return pricing.discount if pricing else None


def get_monthly_equivalent_price(plan: str, billing_interval: str) -> float | None:
    pricing = get_plan_pricing(plan, billing_interval)
    months = _MONTHS_PER_INTERVAL.get(billing_interval)
    if pricing is None or months is None:
        return None
    return pricing.price / months


def format_price(price: float) -> str:
    return format_brl(price)


def get_billing_interval_period_label(billing_interval: str) -> str:
    return BILLING_INTERVAL_PERIOD_LABELS.get(billing_interval, billing_interval.lower())


def format_price_with_period(plan: str, billing_interval: str) -> str | None:
    pricing = get_plan_pricing(plan, billing_interval)
    if pricing is None:
        return None
    return f"{format_price(pricing.price)}/{get_billing_interval_period_label(billing_interval)}"


def format_price_display(plan: str, billing_interval: str) -> str | None:
    """``De R$ 59,00 por R$ 47,00`` when discounted, the bare price otherwise."""
    pricing = get_plan_pricing(plan, billing_interval)
    if pricing is None:
        return None
    if pricing.discount == 0:
        return format_price(pricing.price)
    return f"De {format_price(pricing.original)} por {format_price(pricing.price)}"
