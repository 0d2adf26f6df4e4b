"""
Tests for category and dispensary inventory aggregation.
"""
from datetime import datetime

from compintel.core.dispensaries import MUV, TRULIEVE
from compintel.core.errors import UpstreamFetchError
from compintel.services.inventory_aggregation import (
    InventoryAggregationService,
    summarize_categories,
    summarize_dispensary,
)
from compintel.services.inventory_repository import InventoryRepository, LocationRow


def make_row(product_id, quantity, category="Flower", location_id="L1", stock_status=None, updated_at=None):
    return LocationRow(
        dispensary_id=MUV.id,
        product_id=product_id,
        location_id=location_id,
        location_name=f"Store {location_id}",
        available_quantity=quantity,
        stock_status=stock_status,
        updated_at=updated_at,
        product_name=f"Product {product_id}",
        category=category,
    )


class TestSummarizeCategories:

    def test_groups_and_sorts_by_quantity(self):
        rows = [
            make_row("p1", 5, "Vapes", "L1"),
            make_row("p2", 40, "Flower", "L1"),
            make_row("p2", 20, "Flower", "L2"),
            make_row("p3", 15, "Edibles", "L1"),
        ]

        categories = summarize_categories(rows, MUV.id)

        assert [c.category for c in categories] == ["Flower", "Edibles", "Vapes"]
        flower = categories[0]
        assert flower.total_quantity == 60
        assert flower.unique_products == 1

    def test_null_category_is_unknown(self):
        categories = summarize_categories([make_row("p1", 3, None)], MUV.id)

        assert len(categories) == 1
        assert categories[0].category == "Unknown"

    def test_empty_rows_give_no_categories(self):
        assert summarize_categories([], MUV.id) == []

    def test_out_and_low_counts(self):
        rows = [
            make_row("p1", 0, location_id="L1"),
            make_row("p1", 25, location_id="L2", stock_status="out_of_stock"),
            make_row("p2", 3, location_id="L1"),
            make_row("p2", 10, location_id="L2"),
            make_row("p3", 50, location_id="L1"),
            make_row("p4", None, location_id="L1"),
        ]

        [flower] = summarize_categories(rows, MUV.id)

        assert flower.out_of_stock_count == 2
        assert flower.low_stock_count == 2
        assert flower.unique_products == 4
        # Null quantity adds nothing to the total
        assert flower.total_quantity == 88

    def test_trulieve_cap_not_counted_low(self):
        rows = [
            make_row("p1", 10, location_id="L1"),
            make_row("p1", 9, location_id="L2"),
        ]

        [flower] = summarize_categories(rows, TRULIEVE.id)

        assert flower.low_stock_count == 1

    def test_sum_of_categories_equals_total(self):
        rows = [
            make_row(f"p{i}", i * 3, category, f"L{i % 4}")
            for i, category in enumerate(["Flower", "Vapes", "Edibles", None] * 5)
        ]

        summary = summarize_dispensary(MUV, rows)

        assert sum(c.total_quantity for c in summary.categories) == summary.total_quantity
        assert summary.total_quantity == sum(r.available_quantity for r in rows)


class TestSummarizeDispensary:

    def test_totals_and_last_updated(self):
        rows = [
            make_row("p1", 0, "Flower", "L1", updated_at=datetime(2024, 6, 1, 8)),
            make_row("p2", 4, "Vapes", "L1", updated_at=datetime(2024, 6, 2, 9)),
            make_row("p2", 30, "Vapes", "L2", updated_at=None),
        ]

        summary = summarize_dispensary(MUV, rows)

        assert summary.dispensary_name == "MUV"
        assert summary.total_products == 2
        assert summary.out_of_stock_count == 1
        assert summary.low_stock_count == 1
        assert summary.last_updated == datetime(2024, 6, 2, 9)

    def test_no_rows(self):
        summary = summarize_dispensary(MUV, [])

        assert summary.total_quantity == 0
        assert summary.total_products == 0
        assert summary.categories == []
        assert summary.last_updated is None


class TestInventoryAggregationService:

    def test_reads_joined_rows(self, db, add_product, add_location):
        add_product(MUV.id, "p1", category="Flower")
        add_product(MUV.id, "p2", category="Vapes")
        add_location(MUV.id, "p1", "L1", 20)
        add_location(MUV.id, "p1", "L2", 0)
        add_location(MUV.id, "p2", "L1", 7)
        # Location without a product row still counts, under "Unknown"
        add_location(MUV.id, "orphan", "L1", 4)

        [summary] = InventoryAggregationService(db).get_inventory([MUV])

        by_category = {c.category: c for c in summary.categories}
        assert by_category["Flower"].total_quantity == 20
        assert by_category["Flower"].out_of_stock_count == 1
        assert by_category["Vapes"].low_stock_count == 1
        assert by_category["Unknown"].total_quantity == 4
        assert summary.total_quantity == 31

    def test_failed_dispensary_is_skipped(self, db, add_product, add_location, monkeypatch):
        """One dispensary failing to load does not fail the others."""
        add_product(MUV.id, "p1")
        add_location(MUV.id, "p1", "L1", 12)

        original = InventoryRepository.fetch_locations

        def flaky(self, dispensary_id, *args, **kwargs):
            if dispensary_id == TRULIEVE.id:
                raise UpstreamFetchError("fetch failed", dispensary_id=dispensary_id)
            return original(self, dispensary_id, *args, **kwargs)

        monkeypatch.setattr(InventoryRepository, "fetch_locations", flaky)

        results = InventoryAggregationService(db).get_inventory([MUV, TRULIEVE])

        assert [r.dispensary_name for r in results] == ["MUV"]
