"""
SQLAlchemy models for the competitive intelligence API.
"""
# Scraped competitor catalog (read-only)
from compintel.models.competitor import CompetitorProduct, CompetitorProductLocation

# Inventory Snapshots
from compintel.models.inventory import InventorySnapshot


__all__ = [
    # Competitor catalog
    "CompetitorProduct",
    "CompetitorProductLocation",
    # Inventory Snapshots
    "InventorySnapshot",
]
