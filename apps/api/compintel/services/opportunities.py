"""
Opportunity detection: competitor stock-outs our own chain can cover.

Products are matched across chains by normalized product name, since each
retailer uses its own product identifiers.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional
import logging
import re

from sqlalchemy.orm import Session

from compintel.core.dispensaries import Dispensary, OWN_CHAIN, dispensary_name
from compintel.core.errors import UpstreamFetchError
from compintel.services.calculations import (
    OWN_CHAIN_STORE_COUNT,
    calculate_stock_coverage,
    round_pct,
    score_opportunity,
)
from compintel.services.inventory_repository import InventoryRepository, LocationRow
from compintel.services.stock_outs import StockOutItem, StockOutService
from compintel.services.stock_status import is_out_of_stock

logger = logging.getLogger(__name__)

HIGH_VALUE_SCORE = 0.5
MEDIUM_VALUE_SCORE = 0.25


@dataclass
class OwnStock:
    quantity: int = 0
    stores_with_stock: int = 0


@dataclass
class Opportunity:
    product_name: str
    category: Optional[str]
    competitor_id: str
    competitor_name: str
    competitor_stores_out: int
    own_quantity: int
    own_stores_with_stock: int
    own_coverage_pct: float
    score: float
    potential_value: str  # "high", "medium", "low"


def normalize_product_name(name: Optional[str]) -> str:
    """Lowercase and collapse whitespace so "Blue Dream  3.5g" matches "blue dream 3.5g"."""
    if not name:
        return ""
    return re.sub(r"\s+", " ", name).strip().lower()


def potential_value(score: float) -> str:
    if score >= HIGH_VALUE_SCORE:
        return "high"
    if score >= MEDIUM_VALUE_SCORE:
        return "medium"
    return "low"


def index_own_stock(rows: List[LocationRow]) -> Dict[str, OwnStock]:
    """Sum our own quantity and in-stock store count per normalized product name."""
    index: Dict[str, OwnStock] = {}

    for row in rows:
        key = normalize_product_name(row.product_name)
        if not key:
            continue

        stock = index.setdefault(key, OwnStock())
        stock.quantity += row.available_quantity or 0
        if not is_out_of_stock(row.available_quantity, row.stock_status, row.dispensary_id) and (row.available_quantity or 0) > 0:
            stock.stores_with_stock += 1

    return index


def match_opportunities(stock_outs: List[StockOutItem], own_stock: Dict[str, OwnStock]) -> List[Opportunity]:
    """
    Pair competitor stock-outs with our stock of the same product.

    Stock-outs we cannot cover (no store of ours has the product) are dropped.
    Results are sorted by score, best first.
    """
    opportunities: List[Opportunity] = []

    for item in stock_outs:
        stock = own_stock.get(normalize_product_name(item.product_name))
        if stock is None or stock.stores_with_stock == 0:
            continue

        score = score_opportunity(
            competitor_stores_out=item.stores_out,
            total_competitor_stores=item.total_stores,
            own_quantity=stock.quantity,
            own_stores_with_stock=stock.stores_with_stock,
        )

        opportunities.append(Opportunity(
            product_name=item.product_name,
            category=item.category,
            competitor_id=item.dispensary_id,
            competitor_name=dispensary_name(item.dispensary_id),
            competitor_stores_out=item.stores_out,
            own_quantity=stock.quantity,
            own_stores_with_stock=stock.stores_with_stock,
            own_coverage_pct=round_pct(calculate_stock_coverage(stock.stores_with_stock, OWN_CHAIN_STORE_COUNT)),
            score=round(score, 4),
            potential_value=potential_value(score),
        ))

    opportunities.sort(key=lambda o: o.score, reverse=True)
    return opportunities


class OpportunityService:
    """Ranks competitor stock-outs by how well our own chain can capture them."""

    def __init__(self, db: Session, own_chain: Dispensary = OWN_CHAIN):
        self.db = db
        self.own_chain = own_chain
        self.repository = InventoryRepository(db)
        self.stock_out_service = StockOutService(db)

    def get_opportunities(self, competitors: List[Dispensary], limit: int) -> List[Opportunity]:
        """
        Raises:
            UpstreamFetchError: If our own chain's inventory cannot be fetched.
                Without it no opportunity can be scored.
        """
        stock_outs, _ = self.stock_out_service.collect(competitors)
        if not stock_outs:
            return []

        try:
            own_rows = self.repository.fetch_locations(self.own_chain.id, require_product=True)
        except UpstreamFetchError:
            logger.error(f"[Opportunities] Could not load {self.own_chain.name} inventory")
            raise

        return match_opportunities(stock_outs, index_own_stock(own_rows))[:limit]
