"""Unit tests for the upsell / order ledger."""
from decimal import Decimal

import pytest

from conftest import make_call
from db.models import Product
from errors import ValidationError
from workflow import ledger


class TestMoney:
    def test_float_goes_through_str(self):
        assert ledger.to_money(0.1 + 0.2) == Decimal("0.30")

    def test_rounds_half_up(self):
        assert ledger.to_money("2.345") == Decimal("2.35")

    def test_garbage_is_validation_error(self):
        with pytest.raises(ValidationError):
            ledger.to_money("abc")

    @pytest.mark.parametrize("value", ["nan", "NaN", "inf", "-Infinity", float("nan")])
    def test_non_finite_is_validation_error(self, value):
        with pytest.raises(ValidationError):
            ledger.to_money(value)

    def test_revenue_is_difference(self):
        assert ledger.compute_revenue("100", "250.50") == Decimal("150.50")

    def test_downsell_gives_negative_revenue(self):
        assert ledger.compute_revenue(Decimal("100"), Decimal("80")) == Decimal("-20.00")


class TestResolvePrice:
    def test_catalog_price_by_default(self):
        product = Product(sku="SKU-3", name="Triple", price=Decimal("250.00"))
        assert ledger.resolve_upsell_price(product) == Decimal("250.00")

    def test_manual_price_wins(self):
        product = Product(sku="SKU-3", name="Triple", price=Decimal("250.00"))
        assert ledger.resolve_upsell_price(product, "199.99") == Decimal("199.99")

    def test_unknown_sku_needs_manual_price(self):
        with pytest.raises(ValidationError):
            ledger.resolve_upsell_price(None)

    def test_negative_manual_price_rejected(self):
        with pytest.raises(ValidationError):
            ledger.resolve_upsell_price(None, "-1")


class TestApplyUpsell:
    def test_first_upsell_snapshots_original(self):
        call = make_call(status="in_progress")
        ledger.apply_upsell(call, "SKU-3", Decimal("250.00"))

        assert call.original_order_sku == "SKU-1"
        assert call.original_price == Decimal("100.00")
        assert call.order_sku == "SKU-3"
        assert call.current_price == Decimal("250.00")
        assert call.new_order_sku == "SKU-3"
        assert call.revenue == Decimal("150.00")
        assert call.is_upsell is True
        assert call.order_confirmed is True
        assert call.status == "in_progress"
        assert call.ordered_at is not None

    def test_second_upsell_keeps_first_snapshot(self):
        call = make_call(status="in_progress")
        ledger.apply_upsell(call, "SKU-3", Decimal("250.00"))
        ledger.apply_upsell(call, "SKU-5", Decimal("400.00"))

        assert call.original_order_sku == "SKU-1"
        assert call.original_price == Decimal("100.00")
        assert call.revenue == Decimal("300.00")

    def test_blank_sku_rejected(self):
        with pytest.raises(ValidationError):
            ledger.apply_upsell(make_call(), "  ", Decimal("1"))

    def test_order_views(self):
        call = make_call(status="in_progress")
        assert call.order is None
        ledger.apply_upsell(call, "SKU-3", Decimal("250.00"))
        assert call.order.sku == "SKU-3"
        assert call.original_order.price == Decimal("100.00")


class TestConfirmAndClear:
    def test_decline_keeps_prices(self):
        call = make_call(status="in_progress")
        ledger.decline_upsell(call)
        assert call.order_confirmed is True
        assert call.current_price == Decimal("100.00")
        assert call.revenue is None
        assert call.is_upsell is False

    def test_clear_restores_original_order(self):
        call = make_call(status="completed")
        ledger.apply_upsell(call, "SKU-3", Decimal("250.00"))
        ledger.clear_order(call)

        assert call.order_sku == "SKU-1"
        assert call.current_price == Decimal("100.00")
        assert call.original_order_sku is None
        assert call.revenue is None
        assert call.is_upsell is False
        assert call.order_confirmed is False
        assert call.ordered_at is None
