"""
Category depletion between two daily snapshots.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from compintel.core.dispensaries import Dispensary, UNKNOWN_CATEGORY
from compintel.core.errors import UpstreamFetchError
from compintel.core.snapshot_day import get_period_bounds
from compintel.services.calculations import (
    calculate_average_daily_depletion,
    calculate_days_until_stock_out,
    calculate_depletion_rate,
    get_trend,
    round_pct,
)
from compintel.services.inventory_repository import InventoryRepository, SnapshotRow

logger = logging.getLogger(__name__)


@dataclass
class CategoryDepletion:
    category: str
    start_quantity: int
    end_quantity: int
    quantity_change: int
    percent_change: float
    trend: str  # "up", "down", "stable"
    average_daily_depletion: float = 0.0
    days_until_stock_out: Optional[int] = None


@dataclass
class DepletionSummary:
    dispensary_id: str
    dispensary_name: str
    period_days: int
    start_date: date
    end_date: date
    categories: List[CategoryDepletion] = field(default_factory=list)
    overall_change: float = 0.0


def total_by_category(rows: Iterable[SnapshotRow]) -> Dict[str, int]:
    """Sum snapshot quantities per category; missing quantities count as zero."""
    totals: Dict[str, int] = {}
    for row in rows:
        category = row.category or UNKNOWN_CATEGORY
        totals[category] = totals.get(category, 0) + (row.available_quantity or 0)
    return totals


def compute_depletion(
    start_totals: Dict[str, int],
    end_totals: Dict[str, int],
    days: int = 0,
) -> Tuple[List[CategoryDepletion], float]:
    """
    Compare two category snapshots.

    A category seen on only one side is compared against zero. The trend is
    taken from the unrounded percentage; the output percentage is rounded to
    one decimal. Categories are sorted most-depleted first.

    With `days`, each category also gets its units lost per day and the
    days left at that pace (None when stock is not falling).

    Returns:
        (per-category depletion, overall percent change on summed totals)
    """
    categories: List[CategoryDepletion] = []

    all_categories = list(start_totals)
    all_categories.extend(c for c in end_totals if c not in start_totals)

    overall_start = 0
    overall_end = 0

    for category in all_categories:
        start_qty = start_totals.get(category, 0)
        end_qty = end_totals.get(category, 0)
        percent_change = calculate_depletion_rate(start_qty, end_qty)
        daily = calculate_average_daily_depletion(start_qty, end_qty, days)

        overall_start += start_qty
        overall_end += end_qty

        categories.append(CategoryDepletion(
            category=category,
            start_quantity=start_qty,
            end_quantity=end_qty,
            quantity_change=end_qty - start_qty,
            percent_change=round_pct(percent_change),
            trend=get_trend(percent_change),
            average_daily_depletion=round(daily, 2),
            days_until_stock_out=calculate_days_until_stock_out(end_qty, daily),
        ))

    categories.sort(key=lambda c: c.percent_change)

    # Overall is a ratio of sums, not a mean of category percentages
    overall_change = round_pct(calculate_depletion_rate(overall_start, overall_end))

    return categories, overall_change


class DepletionService:
    """Computes period-over-period depletion from stored snapshots."""

    def __init__(self, db: Session):
        self.db = db
        self.repository = InventoryRepository(db)

    def get_depletion(self, dispensary: Dispensary, days: int, end_date: date) -> DepletionSummary:
        """
        Depletion for one dispensary over `days` days ending on `end_date`.

        Raises:
            UpstreamFetchError: If either snapshot cannot be fetched.
        """
        start_date, end_date = get_period_bounds(days, end_date)

        start_rows = self.repository.fetch_snapshot_rows(dispensary.id, start_date)
        end_rows = self.repository.fetch_snapshot_rows(dispensary.id, end_date)

        categories, overall_change = compute_depletion(
            total_by_category(start_rows),
            total_by_category(end_rows),
            days,
        )

        return DepletionSummary(
            dispensary_id=dispensary.id,
            dispensary_name=dispensary.name,
            period_days=days,
            start_date=start_date,
            end_date=end_date,
            categories=categories,
            overall_change=overall_change,
        )

    def get_depletion_for(self, dispensaries: List[Dispensary], days: int, end_date: date) -> List[DepletionSummary]:
        """Depletion for several dispensaries, skipping any whose snapshots fail to load."""
        results: List[DepletionSummary] = []

        for dispensary in dispensaries:
            try:
                results.append(self.get_depletion(dispensary, days, end_date))
            except UpstreamFetchError as e:
                logger.error(f"[Depletion] Skipping {dispensary.name}: {e.message}")
                continue

        return results
