"""
Tests for the inventory query layer.
"""
from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from compintel.core.dispensaries import MUV, TRULIEVE
from compintel.core.errors import UpstreamFetchError
from compintel.services.inventory_repository import InventoryRepository


class TestFetchLocations:

    def test_filters_by_dispensary_and_joins_product(self, db, add_product, add_location):
        add_product(MUV.id, "p1", product_name="Blue Dream 3.5g", category="Flower", brand="Acme")
        add_location(MUV.id, "p1", "L1", 12)
        add_product(TRULIEVE.id, "p1", category="Vapes")
        add_location(TRULIEVE.id, "p1", "L9", 3)

        rows = InventoryRepository(db).fetch_locations(MUV.id)

        assert len(rows) == 1
        assert rows[0].product_name == "Blue Dream 3.5g"
        assert rows[0].category == "Flower"
        assert rows[0].brand == "Acme"
        assert rows[0].available_quantity == 12

    def test_require_product_drops_orphans(self, db, add_product, add_location):
        add_product(MUV.id, "p1")
        add_location(MUV.id, "p1", "L1", 5)
        add_location(MUV.id, "orphan", "L1", 5)

        repository = InventoryRepository(db)

        assert len(repository.fetch_locations(MUV.id)) == 2
        assert len(repository.fetch_locations(MUV.id, require_product=True)) == 1

    def test_category_filter(self, db, add_product, add_location):
        add_product(MUV.id, "p1", category="Flower")
        add_product(MUV.id, "p2", category="Vapes")
        add_location(MUV.id, "p1", "L1", 5)
        add_location(MUV.id, "p2", "L1", 5)

        rows = InventoryRepository(db).fetch_locations(MUV.id, category="Vapes")

        assert [r.product_id for r in rows] == ["p2"]

    def test_empty_result_is_not_an_error(self, db):
        assert InventoryRepository(db).fetch_locations(MUV.id) == []

    def test_query_failure_raises_upstream_error(self, db, monkeypatch):
        def broken(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("connection refused"))

        monkeypatch.setattr(db, "execute", broken)

        with pytest.raises(UpstreamFetchError) as exc_info:
            InventoryRepository(db).fetch_locations(MUV.id)

        assert exc_info.value.dispensary_id == MUV.id


class TestLocationPages:

    def test_pages_cover_all_rows(self, db, add_product, add_location):
        add_product(MUV.id, "p1")
        for i in range(5):
            add_location(MUV.id, "p1", f"L{i}", i)

        pages = list(InventoryRepository(db).iter_location_pages(MUV.id, page_size=2))

        assert [len(p) for p in pages] == [2, 2, 1]
        assert [r.location_id for p in pages for r in p] == ["L0", "L1", "L2", "L3", "L4"]

    def test_exact_multiple_of_page_size(self, db, add_product, add_location):
        add_product(MUV.id, "p1")
        for i in range(4):
            add_location(MUV.id, "p1", f"L{i}", i)

        pages = list(InventoryRepository(db).iter_location_pages(MUV.id, page_size=2))

        assert [len(p) for p in pages] == [2, 2]


class TestSnapshotRows:

    def test_fetches_one_day(self, db, add_snapshot):
        add_snapshot(MUV.id, "p1", "L1", date(2024, 6, 1), 10, "Flower")
        add_snapshot(MUV.id, "p1", "L1", date(2024, 6, 2), 7, "Flower")

        rows = InventoryRepository(db).fetch_snapshot_rows(MUV.id, date(2024, 6, 2))

        assert len(rows) == 1
        assert rows[0].available_quantity == 7
