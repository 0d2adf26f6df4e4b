"""
Stock-out and low-stock extraction per product across a dispensary's stores.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from compintel.core.dispensaries import Dispensary, store_count
from compintel.core.errors import UpstreamFetchError
from compintel.services.inventory_repository import InventoryRepository, LocationRow
from compintel.services.stock_status import is_out_of_stock, is_low_stock, quantity_display

logger = logging.getLogger(__name__)

# Number of low-stock store names returned per product
MAX_LOCATION_NAMES = 5


@dataclass
class StockOutItem:
    dispensary_id: str
    product_id: str
    product_name: str
    category: Optional[str]
    brand: Optional[str]
    size_display: Optional[str]
    stores_out: int
    total_stores: int
    current_quantity: int
    regular_price: Optional[Decimal]
    last_seen_date: Optional[datetime]


@dataclass
class LowStockItem:
    dispensary_id: str
    product_id: str
    product_name: str
    category: Optional[str]
    brand: Optional[str]
    size_display: Optional[str]
    available_quantity: int
    stores_affected: int
    quantity_display: str
    location_names: List[str] = field(default_factory=list)


@dataclass
class _ProductTally:
    product_id: str
    product_name: str
    category: Optional[str]
    brand: Optional[str]
    size_display: Optional[str]
    regular_price: Optional[Decimal]
    last_seen: Optional[datetime]
    total_quantity: int = 0
    out_locations: List[str] = field(default_factory=list)
    low_locations: List[str] = field(default_factory=list)


def extract_stock_outs(
    rows: Iterable[LocationRow],
    dispensary_id: str,
) -> Tuple[List[StockOutItem], List[LowStockItem]]:
    """
    Group location rows by product and count affected stores.

    Products keep the order they were first seen in `rows`, so a later stable
    sort breaks ties by fetch order.

    Returns:
        (products out at one or more stores, products low at one or more stores)
    """
    tallies: Dict[str, _ProductTally] = {}

    for row in rows:
        tally = tallies.get(row.product_id)
        if tally is None:
            tally = _ProductTally(
                product_id=row.product_id,
                product_name=row.product_name or "Unknown",
                category=row.category,
                brand=row.brand,
                size_display=row.size_display,
                regular_price=row.regular_price,
                last_seen=row.updated_at,
            )
            tallies[row.product_id] = tally

        tally.total_quantity += row.available_quantity or 0
        if row.updated_at is not None and (tally.last_seen is None or row.updated_at > tally.last_seen):
            tally.last_seen = row.updated_at

        location = row.location_name or row.location_id
        if is_out_of_stock(row.available_quantity, row.stock_status, dispensary_id):
            tally.out_locations.append(location)
        elif is_low_stock(row.available_quantity, row.stock_status, dispensary_id):
            tally.low_locations.append(location)

    total_stores = store_count(dispensary_id)
    stock_outs: List[StockOutItem] = []
    low_stock: List[LowStockItem] = []

    for tally in tallies.values():
        if tally.out_locations:
            stock_outs.append(StockOutItem(
                dispensary_id=dispensary_id,
                product_id=tally.product_id,
                product_name=tally.product_name,
                category=tally.category,
                brand=tally.brand,
                size_display=tally.size_display,
                stores_out=len(tally.out_locations),
                total_stores=total_stores,
                current_quantity=tally.total_quantity,
                regular_price=tally.regular_price,
                last_seen_date=tally.last_seen,
            ))

        if tally.low_locations:
            low_stock.append(LowStockItem(
                dispensary_id=dispensary_id,
                product_id=tally.product_id,
                product_name=tally.product_name,
                category=tally.category,
                brand=tally.brand,
                size_display=tally.size_display,
                available_quantity=tally.total_quantity,
                quantity_display=quantity_display(tally.total_quantity),
                stores_affected=len(tally.low_locations),
                location_names=tally.low_locations[:MAX_LOCATION_NAMES],
            ))

    return stock_outs, low_stock


def rank_stock_outs(items: List[StockOutItem], limit: int) -> List[StockOutItem]:
    """Most stores out first, ties in original order, at most `limit` items."""
    return sorted(items, key=lambda i: i.stores_out, reverse=True)[:limit]


def rank_low_stock(items: List[LowStockItem], limit: int) -> List[LowStockItem]:
    """Most stores affected first, ties in original order, at most `limit` items."""
    return sorted(items, key=lambda i: i.stores_affected, reverse=True)[:limit]


class StockOutService:
    """Finds products that are out or running low at competitor stores."""

    def __init__(self, db: Session):
        self.db = db
        self.repository = InventoryRepository(db)

    def collect(
        self,
        dispensaries: List[Dispensary],
        category: Optional[str] = None,
    ) -> Tuple[List[StockOutItem], List[LowStockItem]]:
        """
        Unranked stock-outs and low-stock items across dispensaries.

        Dispensaries whose rows cannot be fetched are logged and skipped.
        """
        stock_outs: List[StockOutItem] = []
        low_stock: List[LowStockItem] = []

        for dispensary in dispensaries:
            try:
                rows = self.repository.fetch_locations(dispensary.id, category=category, require_product=True)
            except UpstreamFetchError as e:
                logger.error(f"[StockOuts] Skipping {dispensary.name}: {e.message}")
                continue

            outs, lows = extract_stock_outs(rows, dispensary.id)
            stock_outs.extend(outs)
            low_stock.extend(lows)

        return stock_outs, low_stock

    def get_stock_outs(
        self,
        dispensaries: List[Dispensary],
        limit: int,
        category: Optional[str] = None,
    ) -> Tuple[List[StockOutItem], List[LowStockItem]]:
        """Ranked and capped stock-outs and low-stock items."""
        stock_outs, low_stock = self.collect(dispensaries, category)
        return rank_stock_outs(stock_outs, limit), rank_low_stock(low_stock, limit)
