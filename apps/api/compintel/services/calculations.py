"""
Small numeric helpers shared by the aggregation services.
"""
import math
from typing import Optional

# Trend band: changes within +/-5% are "stable"
TREND_THRESHOLD_PCT = 5.0

# Opportunity scoring
OPPORTUNITY_COMPETITOR_WEIGHT = 0.5
OPPORTUNITY_CAPACITY_WEIGHT = 0.25
OPPORTUNITY_COVERAGE_WEIGHT = 0.25
OPPORTUNITY_CAPACITY_UNITS = 100  # Own-chain quantity at which capacity saturates
OWN_CHAIN_STORE_COUNT = 68


def calculate_depletion_rate(start_quantity: float, end_quantity: float) -> float:
    """
    Percent change from start to end.

    A start of zero has no meaningful ratio: any restock counts as +100%,
    and zero-to-zero is no change.
    """
    if start_quantity == 0:
        return 100.0 if end_quantity > 0 else 0.0

    return ((end_quantity - start_quantity) / start_quantity) * 100


def get_trend(percent_change: float) -> str:
    """Map a percent change to "up", "down" or "stable"."""
    if percent_change > TREND_THRESHOLD_PCT:
        return "up"
    if percent_change < -TREND_THRESHOLD_PCT:
        return "down"
    return "stable"


def calculate_average_daily_depletion(start_quantity: float, end_quantity: float, days: int) -> float:
    """Units lost per day over the period; negative when stock grew."""
    if days <= 0:
        return 0.0

    return (start_quantity - end_quantity) / days


def calculate_days_until_stock_out(current_quantity: float, daily_depletion_rate: float) -> Optional[int]:
    """
    Days until stock runs out at the current depletion rate.

    Returns:
        None when stock is not depleting, 0 when already out.
    """
    if daily_depletion_rate <= 0:
        return None

    if current_quantity <= 0:
        return 0

    return math.ceil(current_quantity / daily_depletion_rate)


def calculate_stock_coverage(stores_with_stock: int, total_stores: int) -> float:
    """Percentage of stores carrying stock."""
    if total_stores == 0:
        return 0.0
    return (stores_with_stock / total_stores) * 100


def score_opportunity(
    competitor_stores_out: int,
    total_competitor_stores: int,
    own_quantity: float,
    own_stores_with_stock: int,
) -> float:
    """
    Score a competitor stock-out we could capture (higher is better, 0..1).

    Blends how much of the competitor's footprint is out (50%), how much
    stock we hold capped at 100 units (25%), and how many of our 68 stores
    carry it (25%).
    """
    competitor_impact = competitor_stores_out / total_competitor_stores if total_competitor_stores else 0.0
    own_capacity = min(own_quantity / OPPORTUNITY_CAPACITY_UNITS, 1)
    own_coverage = own_stores_with_stock / OWN_CHAIN_STORE_COUNT

    return (
        competitor_impact * OPPORTUNITY_COMPETITOR_WEIGHT
        + own_capacity * OPPORTUNITY_CAPACITY_WEIGHT
        + own_coverage * OPPORTUNITY_COVERAGE_WEIGHT
    )


def round_pct(value: float) -> float:
    """Round a percentage to one decimal place, halves toward +inf (2.25 -> 2.3, -2.25 -> -2.2)."""
    return math.floor(value * 10 + 0.5) / 10
