"""Tests for exact decimal quantity handling."""

from decimal import Decimal

import pytest
from protean.exceptions import ValidationError
from stockledger.balance.balance import InventoryBalance
from stockledger.ledger.quantities import as_quantity, is_finite_quantity, require_finite
from stockledger.purchasing.status import SupplierOrderStatus, derive_status


class TestAsQuantity:
    def test_float_keeps_its_written_value(self):
        assert as_quantity(0.1) == Decimal("0.1")

    def test_none_falls_back_to_default(self):
        assert as_quantity(None) == 0
        assert as_quantity(None, default=None) is None

    def test_junk_is_not_a_quantity(self):
        with pytest.raises(TypeError):
            as_quantity("a dozen")
        with pytest.raises(TypeError):
            as_quantity(True)

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), Decimal("-Infinity"), "NaN", "lots"])
    def test_non_finite_values(self, value):
        assert not is_finite_quantity(value)
        with pytest.raises(ValidationError) as exc_info:
            require_finite(value, "quantity")
        assert "quantity" in exc_info.value.messages


class TestDecimalArithmetic:
    def test_tenths_add_up_to_the_order(self):
        total = as_quantity(0.1) + as_quantity(0.2)
        assert derive_status("0.3", total, "Open") == SupplierOrderStatus.FULLY_RECEIVED

    def test_balance_moves_by_exact_steps(self):
        balance = InventoryBalance.create(component_id="comp-q1")
        balance.apply_delta(0.1)
        balance.apply_delta(0.2)
        balance.apply_delta(-0.3)

        assert balance.quantity_on_hand == 0
        assert not balance.is_negative
