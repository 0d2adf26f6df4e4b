"""
Tests for stock status classification, including the Trulieve display cap.
"""
import pytest

from compintel.core.dispensaries import MUV, TRULIEVE
from compintel.services.stock_status import (
    StockStatus,
    classify_stock,
    is_at_cap,
    is_low_stock,
    is_out_of_stock,
    quantity_display,
)

SEVERITY = {
    StockStatus.OUT: 0,
    StockStatus.CRITICAL: 1,
    StockStatus.LOW: 2,
    StockStatus.NORMAL: 3,
}


class TestClassifyStock:
    """Generic threshold rules."""

    @pytest.mark.parametrize("quantity,expected", [
        (None, StockStatus.UNKNOWN),
        (-3, StockStatus.OUT),
        (0, StockStatus.OUT),
        (1, StockStatus.CRITICAL),
        (5, StockStatus.CRITICAL),
        (6, StockStatus.LOW),
        (10, StockStatus.LOW),
        (11, StockStatus.NORMAL),
        (500, StockStatus.NORMAL),
    ])
    def test_thresholds(self, quantity, expected):
        assert classify_stock(quantity, MUV.id) == expected

    def test_no_dispensary_uses_generic_rules(self):
        assert classify_stock(10) == StockStatus.LOW

    @pytest.mark.parametrize("dispensary_id", [MUV.id, TRULIEVE.id])
    def test_monotonic_except_cap(self, dispensary_id):
        """Severity never decreases as quantity grows, apart from the cap value itself."""
        previous = None
        for quantity in range(-2, 30):
            if dispensary_id == TRULIEVE.id and quantity == TRULIEVE.inventory_cap:
                continue
            severity = SEVERITY[classify_stock(quantity, dispensary_id)]
            if previous is not None:
                assert severity >= previous, f"severity dropped at quantity={quantity}"
            previous = severity


class TestTrulieveCap:
    """Trulieve never shows more than 10, so exactly 10 is not real scarcity."""

    def test_quantity_at_cap_is_normal(self):
        assert classify_stock(10, TRULIEVE.id) == StockStatus.NORMAL
        assert is_low_stock(10, dispensary_id=TRULIEVE.id) is False

    def test_quantity_below_cap_is_low(self):
        assert classify_stock(9, TRULIEVE.id) == StockStatus.LOW
        assert is_low_stock(9, dispensary_id=TRULIEVE.id) is True

    def test_cap_only_applies_to_capped_retailer(self):
        assert is_at_cap(10, TRULIEVE.id) is True
        assert is_at_cap(10, MUV.id) is False
        assert is_low_stock(10, dispensary_id=MUV.id) is True


class TestStockFlags:

    def test_status_flag_overrides_quantity(self):
        assert is_out_of_stock(25, "out_of_stock") is True
        assert is_low_stock(3, "out_of_stock") is False

    def test_zero_is_out_not_low(self):
        assert is_out_of_stock(0) is True
        assert is_low_stock(0) is False

    def test_unknown_is_neither(self):
        assert is_out_of_stock(None) is False
        assert is_low_stock(None) is False

    def test_critical_counts_as_low(self):
        assert is_low_stock(2, dispensary_id=MUV.id) is True


class TestQuantityDisplay:

    def test_unknown(self):
        assert quantity_display(None, MUV.id) == "Unknown"

    def test_cap_shows_plus(self):
        assert quantity_display(10, TRULIEVE.id) == "10+"

    def test_thousands_separator(self):
        assert quantity_display(1234, MUV.id) == "1,234"
