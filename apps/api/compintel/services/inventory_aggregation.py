"""
Current inventory aggregation by dispensary and category.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set
import logging

from sqlalchemy.orm import Session

from compintel.core.dispensaries import Dispensary, UNKNOWN_CATEGORY
from compintel.core.errors import UpstreamFetchError
from compintel.services.inventory_repository import InventoryRepository, LocationRow
from compintel.services.stock_status import is_out_of_stock, is_low_stock

logger = logging.getLogger(__name__)


@dataclass
class CategoryInventory:
    category: str
    total_quantity: int = 0
    unique_products: int = 0
    out_of_stock_count: int = 0
    low_stock_count: int = 0


@dataclass
class DispensaryInventory:
    dispensary_id: str
    dispensary_name: str
    total_quantity: int
    total_products: int
    out_of_stock_count: int
    low_stock_count: int
    categories: List[CategoryInventory] = field(default_factory=list)
    last_updated: Optional[datetime] = None


def summarize_categories(rows: Iterable[LocationRow], dispensary_id: Optional[str] = None) -> List[CategoryInventory]:
    """
    Sum location rows per category.

    Missing quantities count as zero toward totals. Low stock honors the
    dispensary's display cap. Categories come back sorted by total quantity,
    largest first; ties keep first-seen order.
    """
    categories: Dict[str, CategoryInventory] = {}
    products: Dict[str, Set[str]] = {}

    for row in rows:
        category = row.category or UNKNOWN_CATEGORY

        summary = categories.get(category)
        if summary is None:
            summary = CategoryInventory(category=category)
            categories[category] = summary
            products[category] = set()

        products[category].add(row.product_id)
        summary.total_quantity += row.available_quantity or 0

        if is_out_of_stock(row.available_quantity, row.stock_status, dispensary_id):
            summary.out_of_stock_count += 1
        elif is_low_stock(row.available_quantity, row.stock_status, dispensary_id):
            summary.low_stock_count += 1

    for category, summary in categories.items():
        summary.unique_products = len(products[category])

    return sorted(categories.values(), key=lambda c: c.total_quantity, reverse=True)


def summarize_dispensary(dispensary: Dispensary, rows: List[LocationRow]) -> DispensaryInventory:
    """Roll location rows up into a dispensary summary with per-category detail."""
    categories = summarize_categories(rows, dispensary.id)

    updated = [row.updated_at for row in rows if row.updated_at is not None]

    return DispensaryInventory(
        dispensary_id=dispensary.id,
        dispensary_name=dispensary.name,
        total_quantity=sum(c.total_quantity for c in categories),
        total_products=len({row.product_id for row in rows}),
        out_of_stock_count=sum(c.out_of_stock_count for c in categories),
        low_stock_count=sum(c.low_stock_count for c in categories),
        categories=categories,
        last_updated=max(updated) if updated else None,
    )


class InventoryAggregationService:
    """Builds current inventory summaries from live location rows."""

    def __init__(self, db: Session):
        self.db = db
        self.repository = InventoryRepository(db)

    def get_inventory(self, dispensaries: List[Dispensary]) -> List[DispensaryInventory]:
        """
        Summarize current inventory for each dispensary.

        A dispensary whose rows cannot be fetched is logged and left out;
        the others are still returned.
        """
        results: List[DispensaryInventory] = []

        for dispensary in dispensaries:
            try:
                rows = self.repository.fetch_locations(dispensary.id)
            except UpstreamFetchError as e:
                logger.error(f"[Inventory] Skipping {dispensary.name}: {e.message}")
                continue

            results.append(summarize_dispensary(dispensary, rows))

        return results
