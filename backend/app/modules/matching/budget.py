from __future__ import annotations

from dataclasses import dataclass


class BudgetStatus:
    WITHIN_BUDGET = "within_budget"
    BELOW_BUDGET = "below_budget"
    NO_MATCH = "no_match"
    NO_RATE = "no_rate"
    NO_BUDGET = "no_budget"


@dataclass(frozen=True)
class RateRange:
    min: float
    max: float


# Hourly rate options shared by family and nanny profiles, plus legacy values.
HOURLY_RATE_RANGES = {
    "UP_TO_25": RateRange(0, 25),
    "FROM_26_TO_35": RateRange(26, 35),
    "FROM_36_TO_45": RateRange(36, 45),
    "FROM_46_TO_60": RateRange(46, 60),
    "FROM_61_TO_80": RateRange(61, 80),
    "OVER_80": RateRange(81, 200),
    "UP_TO_20": RateRange(0, 20),
    "FROM_21_TO_30": RateRange(21, 30),
    "FROM_31_TO_40": RateRange(31, 40),
    "FROM_41_TO_50": RateRange(41, 50),
    "FROM_51_TO_70": RateRange(51, 70),
    "FROM_71_TO_100": RateRange(71, 100),
    "OVER_100": RateRange(101, 200),
    "20_TO_30": RateRange(20, 30),
    "30_TO_40": RateRange(30, 40),
    "40_TO_50": RateRange(40, 50),
    "ABOVE_50": RateRange(51, 200),
}


@dataclass
class BudgetOverlap:
    overlap_percentage: int
    is_within_budget: bool
    difference: float | None
    difference_percentage: int | None
    status: str


def get_rate_range(value: str | None) -> RateRange | None:
    return HOURLY_RATE_RANGES.get(value or "")


def ranges_overlap(a: RateRange, b: RateRange) -> bool:
    return a.max >= b.min and b.max >= a.min


def calculate_budget_overlap(
    budget_min: float | None, budget_max: float | None, rate: float | None
) -> BudgetOverlap:
    """Compare a nanny's rate with a job budget.

    A rate below or inside the budget counts as a full overlap, above the
    maximum as none. A missing rate or budget imposes no constraint.
    """
    if not rate:
        return BudgetOverlap(100, True, None, None, BudgetStatus.NO_RATE)
    if budget_min is None and budget_max is None:
        return BudgetOverlap(100, True, None, None, BudgetStatus.NO_BUDGET)

    low = budget_min or 0
    high = budget_max if budget_max is not None else float("inf")
    if rate < low:
        pct = round((rate - low) / low * 100) if low > 0 else 0
        return BudgetOverlap(100, True, rate - low, pct, BudgetStatus.BELOW_BUDGET)
    if rate <= high:
        return BudgetOverlap(100, True, 0, 0, BudgetStatus.WITHIN_BUDGET)

    difference = rate - high
    pct = round(difference / high * 100) if high > 0 else 100
    return BudgetOverlap(0, False, difference, pct, BudgetStatus.NO_MATCH)


def is_budget_compatible(
    budget_min: float | None, budget_max: float | None, rate: float | None, threshold: int = 50
) -> bool:
    return calculate_budget_overlap(budget_min, budget_max, rate).overlap_percentage >= threshold


def format_budget_summary(result: BudgetOverlap, rate_type: str = "mensal") -> str:
    if result.status == BudgetStatus.WITHIN_BUDGET:
        return "Valor dentro do orçamento"
    if result.status == BudgetStatus.BELOW_BUDGET:
        return "Valor abaixo do orçamento"
    if result.status == BudgetStatus.NO_MATCH:
        return f"Valor {result.difference_percentage}% acima do orçamento"
    if result.status == BudgetStatus.NO_RATE:
        return f"Valor {rate_type} não informado"
    return "Orçamento não definido"
