"""
Test configuration and fixtures.
"""
import os
import pytest
from datetime import datetime
from decimal import Decimal
from typing import Generator, Optional
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

# Set test database URL before importing app
os.environ["DATABASE_URL"] = "sqlite://"

from compintel.main import app
from compintel.db.base import Base
from compintel.db.session import get_db
from compintel.models.competitor import CompetitorProduct, CompetitorProductLocation
from compintel.models.inventory import InventorySnapshot


# One in-memory database shared by every connection; schema rebuilt per test
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh schema and a database session for the test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create test client with database session override."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def add_product(db: Session):
    """Insert a competitor product row."""
    def _add(
        dispensary_id: str,
        product_id: str,
        product_name: Optional[str] = None,
        category: Optional[str] = "Flower",
        brand: Optional[str] = "Test Brand",
        size_display: Optional[str] = "3.5g",
    ) -> CompetitorProduct:
        product = CompetitorProduct(
            dispensary_id=dispensary_id,
            product_id=product_id,
            product_name=product_name or f"Product {product_id}",
            category=category,
            brand=brand,
            size_display=size_display,
            regular_price=Decimal("50.00"),
            current_price=Decimal("45.00"),
        )
        db.add(product)
        db.commit()
        return product

    return _add


@pytest.fixture
def add_location(db: Session):
    """Insert a per-store inventory row."""
    def _add(
        dispensary_id: str,
        product_id: str,
        location_id: str,
        available_quantity: Optional[int],
        stock_status: Optional[str] = None,
        updated_at: Optional[datetime] = None,
    ) -> CompetitorProductLocation:
        location = CompetitorProductLocation(
            dispensary_id=dispensary_id,
            product_id=product_id,
            location_id=location_id,
            location_name=f"Store {location_id}",
            available_quantity=available_quantity,
            stock_status=stock_status,
            regular_price=Decimal("50.00"),
            current_price=Decimal("45.00"),
            updated_at=updated_at or datetime(2024, 6, 1, 12, 0, 0),
        )
        db.add(location)
        db.commit()
        return location

    return _add


@pytest.fixture
def add_snapshot(db: Session):
    """Insert a historical snapshot row."""
    def _add(
        dispensary_id: str,
        product_id: str,
        location_id: str,
        snapshot_date,
        available_quantity: Optional[int],
        category: Optional[str] = "Flower",
    ) -> InventorySnapshot:
        snapshot = InventorySnapshot(
            dispensary_id=dispensary_id,
            product_id=product_id,
            location_id=location_id,
            snapshot_date=snapshot_date,
            product_name=f"Product {product_id}",
            category=category,
            available_quantity=available_quantity,
        )
        db.add(snapshot)
        db.commit()
        return snapshot

    return _add
