"""Tests for journal rows."""

import math

import pytest
from protean.exceptions import ValidationError
from stockledger.ledger.events import InventoryTransactionRecorded
from stockledger.ledger.transaction import InventoryTransaction, TransactionType


class TestRecord:
    def test_signed_quantity_is_kept(self):
        row = InventoryTransaction.record("comp-1", -4, TransactionType.ISSUE, reason="Line 3")
        assert row.quantity == -4.0
        assert row.transaction_type == "issue"
        assert row.reason == "Line 3"

    def test_occurred_at_defaults_to_recorded_at(self):
        row = InventoryTransaction.record("comp-1", 2, TransactionType.PURCHASE)
        assert row.occurred_at == row.recorded_at

    def test_links_are_stored_as_strings(self):
        row = InventoryTransaction.record(
            "comp-1",
            5,
            TransactionType.PURCHASE,
            supplier_order_id="so-1",
            receipt_id=None,
        )
        assert row.supplier_order_id == "so-1"
        assert row.receipt_id is None

    def test_raises_recorded_event(self):
        row = InventoryTransaction.record("comp-1", 5, TransactionType.PURCHASE)
        events = [e for e in row._events if isinstance(e, InventoryTransactionRecorded)]
        assert len(events) == 1
        assert events[0].transaction_id == str(row.id)
        assert events[0].quantity == 5.0

    @pytest.mark.parametrize("quantity", [0, 0.0, math.inf, -math.inf, math.nan, None])
    def test_zero_and_non_finite_quantities_are_rejected(self, quantity):
        with pytest.raises(ValidationError) as exc_info:
            InventoryTransaction.record("comp-1", quantity, TransactionType.ADJUSTMENT)
        assert "quantity" in exc_info.value.messages

    def test_unknown_link_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            InventoryTransaction.record("comp-1", 1, TransactionType.PURCHASE, invoice_id="inv-1")
        assert "links" in exc_info.value.messages
