"""
Request and response schemas for the inventory endpoints.
"""
from pydantic import BaseModel, ConfigDict, field_validator
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from enum import Enum


class Trend(str, Enum):
    """Direction of a category's quantity over a period."""
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class CategoryInventory(BaseModel):
    category: str
    total_quantity: int
    unique_products: int
    out_of_stock_count: int
    low_stock_count: int

    model_config = ConfigDict(from_attributes=True)


class DispensaryInventory(BaseModel):
    dispensary_id: str
    dispensary_name: str
    total_quantity: int
    total_products: int
    out_of_stock_count: int
    low_stock_count: int
    categories: List[CategoryInventory]
    last_updated: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class InventoryResponse(BaseModel):
    """Current inventory grouped by dispensary and category."""
    success: bool = True
    data: List[DispensaryInventory]
    message: Optional[str] = None
    timestamp: datetime


class StockOutItem(BaseModel):
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

    model_config = ConfigDict(from_attributes=True)


class LowStockItem(BaseModel):
    dispensary_id: str
    product_id: str
    product_name: str
    category: Optional[str]
    brand: Optional[str]
    size_display: Optional[str]
    available_quantity: int
    stores_affected: int
    quantity_display: str
    location_names: List[str]

    model_config = ConfigDict(from_attributes=True)


class StockOutResponse(BaseModel):
    """Products out or running low, most stores affected first."""
    success: bool = True
    stock_outs: List[StockOutItem]
    low_stock: List[LowStockItem]
    message: Optional[str] = None
    timestamp: datetime


class CategoryDepletion(BaseModel):
    category: str
    start_quantity: int
    end_quantity: int
    quantity_change: int
    percent_change: float
    trend: Trend
    average_daily_depletion: float
    days_until_stock_out: Optional[int]

    model_config = ConfigDict(from_attributes=True)


class DepletionSummary(BaseModel):
    dispensary_id: str
    dispensary_name: str
    period_days: int
    start_date: date
    end_date: date
    categories: List[CategoryDepletion]
    overall_change: float

    model_config = ConfigDict(from_attributes=True)


class DepletionResponse(BaseModel):
    """Per-category depletion between two snapshots."""
    success: bool = True
    data: List[DepletionSummary]
    period_days: int
    message: Optional[str] = None
    timestamp: datetime


class Opportunity(BaseModel):
    product_name: str
    category: Optional[str]
    competitor_id: str
    competitor_name: str
    competitor_stores_out: int
    own_quantity: int
    own_stores_with_stock: int
    own_coverage_pct: float
    score: float
    potential_value: str

    model_config = ConfigDict(from_attributes=True)


class OpportunityResponse(BaseModel):
    success: bool = True
    data: List[Opportunity]
    message: Optional[str] = None
    timestamp: datetime


class SnapshotRequest(BaseModel):
    """Trigger a snapshot for one dispensary."""
    dispensary: Optional[str] = None
    snapshot_date: Optional[date] = None

    @field_validator('dispensary')
    @classmethod
    def normalize_key(cls, v):
        if v is None:
            return v
        return v.strip().lower()


class SnapshotResponse(BaseModel):
    success: bool = True
    message: str
    records_created: int
    dispensary: str
    snapshot_date: date
    timestamp: datetime


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
