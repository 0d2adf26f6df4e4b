"""
Competitor catalog models populated by the scraping pipeline.

This service only reads these tables; the scrapers own their contents.
"""
import uuid
from sqlalchemy import Column, String, Text, Integer, Boolean, Numeric, DateTime, Uuid, func, UniqueConstraint, Index

from compintel.db.base import Base


class CompetitorProduct(Base):
    """Static product metadata for one dispensary's menu."""
    __tablename__ = "competitor_products"
    __table_args__ = (
        UniqueConstraint('dispensary_id', 'product_id', name='uq_competitor_product'),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    dispensary_id = Column(String(36), nullable=False, index=True)
    product_id = Column(String(100), nullable=False)  # Retailer's own product identifier
    product_name = Column(String(255), nullable=False)
    category = Column(String(100))
    sub_category = Column(String(100))
    brand = Column(String(255))
    strain_name = Column(String(255))
    size_display = Column(String(50))  # "3.5g", "1g", "100mg"
    regular_price = Column(Numeric(10, 2))
    current_price = Column(Numeric(10, 2))
    is_on_sale = Column(Boolean, default=False)
    promo_text = Column(Text)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class CompetitorProductLocation(Base):
    """
    Per-store availability of a product.

    One row per (product, store). `available_quantity` is whatever the
    retailer's menu displays, so it may be capped (Trulieve shows at most 10)
    or missing entirely.
    """
    __tablename__ = "competitor_product_locations"
    __table_args__ = (
        UniqueConstraint('dispensary_id', 'product_id', 'location_id', name='uq_competitor_product_location'),
        Index('ix_competitor_product_locations_product', 'dispensary_id', 'product_id'),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    dispensary_id = Column(String(36), nullable=False)
    product_id = Column(String(100), nullable=False)
    location_id = Column(String(100), nullable=False)
    location_name = Column(String(255))
    current_price = Column(Numeric(10, 2))
    regular_price = Column(Numeric(10, 2))
    is_on_sale = Column(Boolean, default=False)
    in_stock = Column(Boolean, default=True)
    available_quantity = Column(Integer, nullable=True)
    stock_status = Column(String(50))  # 'in_stock', 'low_stock', 'out_of_stock'
    promo_text = Column(Text)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
