"""
Inventory snapshot model.
"""
import uuid
from sqlalchemy import Column, String, Integer, Date, Numeric, DateTime, Uuid, func, UniqueConstraint, Index

from compintel.db.base import Base


class InventorySnapshot(Base):
    """
    Daily copy of a competitor's live inventory, one row per product per store.

    Live location rows are overwritten by every scrape, so depletion trends
    can only be computed against these copies. Rows are never updated; a
    re-run for the same day replaces that day's rows wholesale.
    """
    __tablename__ = "inventory_snapshots"
    __table_args__ = (
        UniqueConstraint(
            'dispensary_id', 'product_id', 'location_id', 'snapshot_date',
            name='uq_inventory_snapshot_location_date',
        ),
        Index('ix_inventory_snapshots_dispensary_date', 'dispensary_id', 'snapshot_date'),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    dispensary_id = Column(String(36), nullable=False)
    product_id = Column(String(100), nullable=False)
    location_id = Column(String(100), nullable=False)
    snapshot_date = Column(Date, nullable=False)

    # Denormalized product metadata as of the snapshot
    product_name = Column(String(255), nullable=False)
    category = Column(String(100))
    brand = Column(String(255))
    size_display = Column(String(50))

    available_quantity = Column(Integer, nullable=True)
    stock_status = Column(String(50))
    regular_price = Column(Numeric(10, 2))
    current_price = Column(Numeric(10, 2))

    created_at = Column(DateTime, server_default=func.now())
