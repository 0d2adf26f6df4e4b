"""
Snapshot capture: copy live competitor inventory into inventory_snapshots.

Run after each scrape. Re-running for the same day replaces that day's rows,
so a dispensary never has more than one row per (product, location, date).
"""
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Tuple
import logging

from sqlalchemy import delete, insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from compintel.core.config import get_settings
from compintel.core.dispensaries import Dispensary
from compintel.core.errors import UpstreamFetchError
from compintel.models.inventory import InventorySnapshot
from compintel.services.inventory_repository import InventoryRepository, LocationRow

logger = logging.getLogger(__name__)


@dataclass
class SnapshotResult:
    dispensary: Dispensary
    snapshot_date: date
    records_created: int
    source_rows: int


def to_snapshot_record(row: LocationRow, snapshot_date: date) -> Dict:
    return {
        "dispensary_id": row.dispensary_id,
        "product_id": row.product_id,
        "location_id": row.location_id,
        "snapshot_date": snapshot_date,
        "product_name": row.product_name or "Unknown",
        "category": row.category,
        "brand": row.brand,
        "size_display": row.size_display,
        "available_quantity": row.available_quantity,
        "stock_status": row.stock_status,
        "regular_price": row.regular_price,
        "current_price": row.current_price,
    }


def dedupe_records(records: List[Dict]) -> List[Dict]:
    """Keep one record per (dispensary, product, location, date); the last one wins."""
    unique: Dict[Tuple, Dict] = {}
    for record in records:
        key = (
            record["dispensary_id"],
            record["product_id"],
            record["location_id"],
            record["snapshot_date"],
        )
        unique[key] = record
    return list(unique.values())


class SnapshotService:
    """Writes daily inventory snapshots."""

    def __init__(self, db: Session):
        self.db = db
        self.repository = InventoryRepository(db)
        self.settings = get_settings()

    def capture(self, dispensary: Dispensary, snapshot_date: date) -> SnapshotResult:
        """
        Replace the dispensary's snapshot for `snapshot_date` with current inventory.

        The delete and all insert batches share one transaction: either the
        whole day is replaced or nothing changes.

        Raises:
            UpstreamFetchError: If reading live rows or writing snapshots fails.
        """
        logger.info(f"[Snapshot] Starting snapshot for {dispensary.key} ({dispensary.id}) on {snapshot_date}")

        rows: List[LocationRow] = []
        for page in self.repository.iter_location_pages(dispensary.id, self.settings.SNAPSHOT_PAGE_SIZE):
            rows.extend(page)

        logger.info(f"[Snapshot] Found {len(rows)} location records")

        records = dedupe_records([to_snapshot_record(row, snapshot_date) for row in rows])
        batch_size = self.settings.SNAPSHOT_BATCH_SIZE
        total_inserted = 0

        try:
            # Runs even for an empty source so the day never keeps stale rows
            self.db.execute(
                delete(InventorySnapshot).where(
                    InventorySnapshot.dispensary_id == dispensary.id,
                    InventorySnapshot.snapshot_date == snapshot_date,
                )
            )

            for i in range(0, len(records), batch_size):
                batch = records[i:i + batch_size]
                self.db.execute(insert(InventorySnapshot), batch)
                total_inserted += len(batch)
                logger.debug(f"[Snapshot] Inserted batch {i // batch_size + 1} ({len(batch)} records)")

            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"[Snapshot] Failed writing snapshot for {dispensary.key}: {e}")
            raise UpstreamFetchError(
                f"Database error while writing snapshot for {dispensary.key}",
                dispensary_id=dispensary.id,
            ) from e

        logger.info(f"[Snapshot] Created {total_inserted} snapshot records for {dispensary.key}")

        return SnapshotResult(
            dispensary=dispensary,
            snapshot_date=snapshot_date,
            records_created=total_inserted,
            source_rows=len(rows),
        )
