"""
Read access to scraped competitor inventory and historical snapshots.

Every query error is converted into UpstreamFetchError so callers can decide
whether to skip a dispensary or fail the request. Nothing here retries.
"""
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterator, List, Optional
import logging

from sqlalchemy import select, and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from compintel.core.errors import UpstreamFetchError
from compintel.models.competitor import CompetitorProduct, CompetitorProductLocation
from compintel.models.inventory import InventorySnapshot

logger = logging.getLogger(__name__)


@dataclass
class LocationRow:
    """A store-level inventory row joined with its product metadata."""
    dispensary_id: str
    product_id: str
    location_id: str
    location_name: Optional[str]
    available_quantity: Optional[int]
    stock_status: Optional[str]
    updated_at: Optional[datetime]
    product_name: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    size_display: Optional[str] = None
    regular_price: Optional[Decimal] = None
    current_price: Optional[Decimal] = None


@dataclass
class SnapshotRow:
    category: Optional[str]
    available_quantity: Optional[int]


class InventoryRepository:
    """Query interface over the competitor catalog tables."""

    def __init__(self, db: Session):
        self.db = db

    def _location_query(
        self,
        dispensary_id: str,
        category: Optional[str] = None,
        require_product: bool = False,
    ):
        join_on = and_(
            CompetitorProduct.dispensary_id == CompetitorProductLocation.dispensary_id,
            CompetitorProduct.product_id == CompetitorProductLocation.product_id,
        )

        stmt = select(
            CompetitorProductLocation.dispensary_id,
            CompetitorProductLocation.product_id,
            CompetitorProductLocation.location_id,
            CompetitorProductLocation.location_name,
            CompetitorProductLocation.available_quantity,
            CompetitorProductLocation.stock_status,
            CompetitorProductLocation.updated_at,
            CompetitorProductLocation.regular_price,
            CompetitorProductLocation.current_price,
            CompetitorProduct.product_name,
            CompetitorProduct.category,
            CompetitorProduct.brand,
            CompetitorProduct.size_display,
        )

        # A category filter needs the product row, so it implies an inner join
        if require_product or category is not None:
            stmt = stmt.join(CompetitorProduct, join_on)
        else:
            stmt = stmt.outerjoin(CompetitorProduct, join_on)

        stmt = stmt.where(CompetitorProductLocation.dispensary_id == dispensary_id)

        if category is not None:
            stmt = stmt.where(CompetitorProduct.category == category)

        return stmt.order_by(
            CompetitorProductLocation.product_id,
            CompetitorProductLocation.location_id,
        )

    def fetch_locations(
        self,
        dispensary_id: str,
        category: Optional[str] = None,
        require_product: bool = False,
    ) -> List[LocationRow]:
        """
        Fetch every location row for a dispensary.

        Args:
            dispensary_id: Dispensary UUID string
            category: Only return rows whose product is in this category
            require_product: Drop location rows with no matching product

        Returns:
            Rows ordered by (product_id, location_id). Empty if nothing was scraped.

        Raises:
            UpstreamFetchError: If the query fails.
        """
        stmt = self._location_query(dispensary_id, category, require_product)

        try:
            results = self.db.execute(stmt).all()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching locations for {dispensary_id}: {e}")
            raise UpstreamFetchError(
                f"Failed to fetch inventory for dispensary {dispensary_id}",
                dispensary_id=dispensary_id,
            ) from e

        return [self._to_location_row(row) for row in results]

    def iter_location_pages(self, dispensary_id: str, page_size: int = 1000) -> Iterator[List[LocationRow]]:
        """
        Yield location rows joined with their products one page at a time.

        Stops at the first short page.
        """
        stmt = self._location_query(dispensary_id, require_product=True)
        offset = 0

        while True:
            try:
                results = self.db.execute(stmt.offset(offset).limit(page_size)).all()
            except SQLAlchemyError as e:
                logger.error(f"Error fetching location page at offset {offset} for {dispensary_id}: {e}")
                raise UpstreamFetchError(
                    f"Failed to fetch inventory for dispensary {dispensary_id}",
                    dispensary_id=dispensary_id,
                ) from e

            if not results:
                return

            yield [self._to_location_row(row) for row in results]

            if len(results) < page_size:
                return
            offset += page_size

    def fetch_snapshot_rows(self, dispensary_id: str, snapshot_date: date) -> List[SnapshotRow]:
        """Fetch (category, quantity) pairs from one day's snapshot."""
        stmt = (
            select(InventorySnapshot.category, InventorySnapshot.available_quantity)
            .where(
                InventorySnapshot.dispensary_id == dispensary_id,
                InventorySnapshot.snapshot_date == snapshot_date,
            )
        )

        try:
            results = self.db.execute(stmt).all()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching {snapshot_date} snapshot for {dispensary_id}: {e}")
            raise UpstreamFetchError(
                f"Failed to fetch snapshot data for dispensary {dispensary_id}",
                dispensary_id=dispensary_id,
            ) from e

        return [SnapshotRow(category=row.category, available_quantity=row.available_quantity) for row in results]

    @staticmethod
    def _to_location_row(row) -> LocationRow:
        return LocationRow(
            dispensary_id=row.dispensary_id,
            product_id=row.product_id,
            location_id=row.location_id,
            location_name=row.location_name,
            available_quantity=row.available_quantity,
            stock_status=row.stock_status,
            updated_at=row.updated_at,
            product_name=row.product_name,
            category=row.category,
            brand=row.brand,
            size_display=row.size_display,
            regular_price=row.regular_price,
            current_price=row.current_price,
        )
