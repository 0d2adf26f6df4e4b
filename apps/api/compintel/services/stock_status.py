"""
Stock status classification for a single store's displayed quantity.
"""
from enum import Enum
from typing import Optional

from compintel.core.dispensaries import inventory_cap


class StockStatus(str, Enum):
    OUT = "out"
    CRITICAL = "critical"
    LOW = "low"
    NORMAL = "normal"
    UNKNOWN = "unknown"


# Upper bounds (inclusive) for each status
OUT_OF_STOCK_THRESHOLD = 0
CRITICAL_STOCK_THRESHOLD = 5
LOW_STOCK_THRESHOLD = 10

OUT_OF_STOCK_STATUS = "out_of_stock"


def is_at_cap(quantity: Optional[int], dispensary_id: Optional[str]) -> bool:
    """
    True when a quantity equals the retailer's display cap.

    A capped retailer shows "10" for anything from 10 upwards, so the real
    quantity is unknown but at least the cap.
    """
    cap = inventory_cap(dispensary_id)
    return cap is not None and quantity == cap


def classify_stock(quantity: Optional[int], dispensary_id: Optional[str] = None) -> StockStatus:
    """
    Classify a displayed quantity.

    Args:
        quantity: Units shown on the retailer's menu, None if not shown
        dispensary_id: Retailer the quantity came from, used for the cap override

    Returns:
        StockStatus. A value sitting exactly at a retailer's display cap is
        NORMAL, never LOW.
    """
    if quantity is None:
        return StockStatus.UNKNOWN

    if quantity <= OUT_OF_STOCK_THRESHOLD:
        return StockStatus.OUT

    if quantity <= CRITICAL_STOCK_THRESHOLD:
        return StockStatus.CRITICAL

    if quantity <= LOW_STOCK_THRESHOLD:
        if is_at_cap(quantity, dispensary_id):
            return StockStatus.NORMAL
        return StockStatus.LOW

    return StockStatus.NORMAL


def is_out_of_stock(
    quantity: Optional[int],
    stock_status: Optional[str] = None,
    dispensary_id: Optional[str] = None,
) -> bool:
    """Out when the quantity says so or the scraper flagged the row as out_of_stock."""
    if stock_status == OUT_OF_STOCK_STATUS:
        return True
    return classify_stock(quantity, dispensary_id) == StockStatus.OUT


def is_low_stock(
    quantity: Optional[int],
    stock_status: Optional[str] = None,
    dispensary_id: Optional[str] = None,
) -> bool:
    """Low covers both CRITICAL and LOW; rows that are out are never low."""
    if is_out_of_stock(quantity, stock_status, dispensary_id):
        return False
    return classify_stock(quantity, dispensary_id) in (StockStatus.CRITICAL, StockStatus.LOW)


def quantity_display(quantity: Optional[int], dispensary_id: Optional[str] = None) -> str:
    """Format a quantity for display: "Unknown", "10+" at a cap, or "1,234"."""
    if quantity is None:
        return "Unknown"

    if is_at_cap(quantity, dispensary_id):
        return f"{quantity}+"

    return f"{quantity:,}"
