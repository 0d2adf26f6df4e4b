import random
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from compintel.core.config import get_settings
from compintel.core.dispensaries import ALL_DISPENSARIES, STANDARD_CATEGORIES, get_by_key
from compintel.core.snapshot_day import get_snapshot_date
from compintel.db.base import Base
from compintel.models.competitor import CompetitorProduct, CompetitorProductLocation
from compintel.services.snapshot import SnapshotService

PRODUCTS_PER_CATEGORY = 4
LOCATIONS_PER_DISPENSARY = 6
HISTORY_DAYS = 8


def _demo_quantity(dispensary, rng: random.Random) -> int:
    qty = rng.choice([0, 0, 2, 4, 7, 9, 12, 25, 40, 80])
    if dispensary.inventory_cap is not None:
        qty = min(qty, dispensary.inventory_cap)
    return qty


def seed(days: int = HISTORY_DAYS):
    """
    Seed a local database with a demo competitor catalog and a week of snapshots.

    Only for local development: tables are created if missing, and existing
    demo rows are left alone.
    """
    settings = get_settings()
    engine = create_engine(settings.DATABASE_URL)
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)
    db = Session()
    rng = random.Random(42)

    for dispensary in ALL_DISPENSARIES:
        exists = db.query(CompetitorProduct).filter(
            CompetitorProduct.dispensary_id == dispensary.id
        ).first()
        if exists:
            print(f"{dispensary.name} already seeded.")
            continue

        print(f"Seeding {dispensary.name} catalog...")
        for category in STANDARD_CATEGORIES:
            for n in range(PRODUCTS_PER_CATEGORY):
                product_id = f"{dispensary.key}-{category.lower()}-{n}"
                db.add(CompetitorProduct(
                    dispensary_id=dispensary.id,
                    product_id=product_id,
                    # Shared names across chains so opportunities can match
                    product_name=f"Demo {category} {n}",
                    category=category,
                    brand="Demo Brand",
                    size_display="3.5g" if category == "Flower" else "1g",
                    regular_price=Decimal("45.00"),
                    current_price=Decimal("40.00"),
                ))
                for loc in range(LOCATIONS_PER_DISPENSARY):
                    qty = _demo_quantity(dispensary, rng)
                    db.add(CompetitorProductLocation(
                        dispensary_id=dispensary.id,
                        product_id=product_id,
                        location_id=f"{dispensary.key}-store-{loc}",
                        location_name=f"{dispensary.name} Store {loc}",
                        available_quantity=qty,
                        stock_status="out_of_stock" if qty == 0 else "in_stock",
                        in_stock=qty > 0,
                        regular_price=Decimal("45.00"),
                        current_price=Decimal("40.00"),
                        updated_at=datetime.utcnow(),
                    ))
        db.commit()

    print("Seeding snapshot history...")
    service = SnapshotService(db)
    today = get_snapshot_date(timezone=settings.SNAPSHOT_TIMEZONE)
    for key in ("muv", "trulieve"):
        dispensary = get_by_key(key)
        for i in range(days):
            day = today - timedelta(days=i)
            result = service.capture(dispensary, day)
            print(f"  {dispensary.name} {day}: {result.records_created} records")

    db.close()
    print("Seeding complete!")


if __name__ == "__main__":
    seed()
