"""
Inventory router: current levels, stock-outs, depletion, opportunities and snapshot capture.
"""
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from compintel.core.config import Settings, get_settings
from compintel.core.dispensaries import ALL_DISPENSARIES, FOCUSED_COMPETITORS, resolve_dispensaries
from compintel.core.errors import InvalidParameterError
from compintel.core.snapshot_day import get_snapshot_date
from compintel.db.session import get_db
from compintel.schemas.inventory import (
    DepletionResponse,
    DepletionSummary,
    DispensaryInventory,
    ErrorResponse,
    InventoryResponse,
    LowStockItem,
    Opportunity,
    OpportunityResponse,
    SnapshotRequest,
    SnapshotResponse,
    StockOutItem,
    StockOutResponse,
)
from compintel.services.depletion import DepletionService
from compintel.services.inventory_aggregation import InventoryAggregationService
from compintel.services.opportunities import OpportunityService
from compintel.services.snapshot import SnapshotService
from compintel.services.stock_outs import StockOutService


router = APIRouter(tags=["inventory"], responses={400: {"model": ErrorResponse}})

NO_INVENTORY_MESSAGE = "No inventory data found for the selected dispensaries."
NO_STOCK_OUTS_MESSAGE = "No stock-outs or low-stock products found."
NO_SNAPSHOT_MESSAGE = (
    "No historical snapshot data available. "
    "Run snapshots after each scrape to enable depletion tracking."
)
NO_OPPORTUNITIES_MESSAGE = "No competitor stock-outs that we currently have in stock."


def _now() -> datetime:
    return datetime.now(timezone.utc)


def resolve_limit(limit: Optional[int], settings: Settings) -> int:
    """Clamp a result limit to the configured maximum; reject values below 1."""
    if limit is None:
        return settings.MAX_STOCK_OUT_RESULTS
    if limit < 1:
        raise InvalidParameterError("Invalid limit. Must be at least 1.")
    return min(limit, settings.MAX_STOCK_OUT_RESULTS)


def resolve_days(days: Optional[int], settings: Settings) -> int:
    if days is None:
        return settings.DEPLETION_DEFAULT_DAYS
    if not 1 <= days <= settings.DEPLETION_MAX_DAYS:
        raise InvalidParameterError(
            f"Invalid days. Must be between 1 and {settings.DEPLETION_MAX_DAYS}."
        )
    return days


@router.get("/inventory", response_model=InventoryResponse)
def get_inventory(
    dispensary: Optional[str] = Query(None, description="muv, trulieve, or all"),
    db: Session = Depends(get_db),
):
    """
    Current inventory levels grouped by dispensary and category.

    Categories are sorted by total quantity, largest first.
    """
    dispensaries = resolve_dispensaries(dispensary, FOCUSED_COMPETITORS)

    summaries = InventoryAggregationService(db).get_inventory(dispensaries)

    has_data = any(s.total_products > 0 for s in summaries)

    return InventoryResponse(
        data=[DispensaryInventory.model_validate(s) for s in summaries],
        message=None if has_data else NO_INVENTORY_MESSAGE,
        timestamp=_now(),
    )


@router.get("/stock-outs", response_model=StockOutResponse)
def get_stock_outs(
    dispensary: Optional[str] = Query(None, description="muv, trulieve, or all"),
    category: Optional[str] = Query(None, description="Only products in this category"),
    limit: Optional[int] = Query(None, description="Max results per list"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Products out of stock or running low at competitor stores.

    Both lists are sorted by number of stores affected, most first. For
    Trulieve a displayed quantity of exactly 10 is its display cap and is
    not reported as low stock.
    """
    dispensaries = resolve_dispensaries(dispensary, FOCUSED_COMPETITORS)
    limit = resolve_limit(limit, settings)

    stock_outs, low_stock = StockOutService(db).get_stock_outs(dispensaries, limit, category)

    return StockOutResponse(
        stock_outs=[StockOutItem.model_validate(i) for i in stock_outs],
        low_stock=[LowStockItem.model_validate(i) for i in low_stock],
        message=None if stock_outs or low_stock else NO_STOCK_OUTS_MESSAGE,
        timestamp=_now(),
    )


@router.get("/depletion", response_model=DepletionResponse)
def get_depletion(
    dispensary: Optional[str] = Query(None, description="muv, trulieve, or all"),
    days: Optional[int] = Query(None, description="Days to analyze (1-30, default 7)"),
    end_date: Optional[date] = Query(None, description="Last day of the period (default: today)"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Depletion rates by category from historical snapshots.

    Compares the snapshot `days` days before `end_date` with the one on
    `end_date`. Categories are sorted most depleted first.
    """
    dispensaries = resolve_dispensaries(dispensary, FOCUSED_COMPETITORS)
    days = resolve_days(days, settings)
    end_date = end_date or get_snapshot_date(timezone=settings.SNAPSHOT_TIMEZONE)

    summaries = DepletionService(db).get_depletion_for(dispensaries, days, end_date)

    has_data = any(s.categories for s in summaries)

    return DepletionResponse(
        data=[DepletionSummary.model_validate(s) for s in summaries],
        period_days=days,
        message=None if has_data else NO_SNAPSHOT_MESSAGE,
        timestamp=_now(),
    )


@router.get("/opportunities", response_model=OpportunityResponse)
def get_opportunities(
    dispensary: Optional[str] = Query(None, description="muv, trulieve, or all"),
    limit: Optional[int] = Query(None, description="Max results"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Competitor stock-outs where our own stores have the same product in stock.

    Sorted by opportunity score, best first.
    """
    competitors = resolve_dispensaries(dispensary, FOCUSED_COMPETITORS)
    limit = resolve_limit(limit, settings)

    opportunities = OpportunityService(db).get_opportunities(competitors, limit)

    return OpportunityResponse(
        data=[Opportunity.model_validate(o) for o in opportunities],
        message=None if opportunities else NO_OPPORTUNITIES_MESSAGE,
        timestamp=_now(),
    )


@router.post(
    "/snapshot",
    response_model=SnapshotResponse,
    status_code=status.HTTP_201_CREATED,
    responses={502: {"model": ErrorResponse}},
)
def create_snapshot(
    request: SnapshotRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Copy current inventory into inventory_snapshots.

    Call after a scrape completes. Existing rows for the same dispensary and
    date are replaced.
    """
    [dispensary] = resolve_dispensaries(request.dispensary, ALL_DISPENSARIES, allow_all=False)
    snapshot_date = request.snapshot_date or get_snapshot_date(timezone=settings.SNAPSHOT_TIMEZONE)

    result = SnapshotService(db).capture(dispensary, snapshot_date)

    if result.records_created == 0:
        message = "No inventory data found for dispensary"
    else:
        message = f"Snapshot created for {dispensary.key}"

    return SnapshotResponse(
        message=message,
        records_created=result.records_created,
        dispensary=dispensary.key,
        snapshot_date=snapshot_date,
        timestamp=_now(),
    )
