"""Application tests for direct stock issuance and issuance reversal."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from stockledger.balance.balance import InventoryBalance
from stockledger.balance.management import CreateInventoryRecord
from stockledger.issuance.direct import IssueStock
from stockledger.issuance.issuance import StockIssuance
from stockledger.issuance.reversal import ReverseStockIssuance
from stockledger.ledger.journal import reconcile
from stockledger.ledger.transaction import InventoryTransaction
from stockledger.operations import run


def _stock(quantity=10, component_id="comp-600"):
    run(CreateInventoryRecord(component_id=component_id, initial_quantity=quantity))


def _issue(quantity, component_id="comp-600", reference="WO-6001", **kwargs):
    return run(IssueStock(component_id=component_id, quantity=quantity, external_reference=reference, **kwargs))


class TestIssueStock:
    def test_issues_from_stock(self):
        _stock(10)
        result = _issue(4)

        assert result["quantity_on_hand"] == 6
        assert result["negative_balance"] is False
        issuance = current_domain.repository_for(StockIssuance).get(result["issuance_id"])
        assert issuance.external_reference == "WO-6001"
        assert issuance.issue_category == "production"

        row = current_domain.repository_for(InventoryTransaction).get(result["transaction_id"])
        assert row.quantity == -4
        assert row.transaction_type == "issue"
        assert row.issuance_id == result["issuance_id"]

    def test_overdraw_is_allowed_and_flagged(self):
        _stock(3)
        result = _issue(5)
        assert result["quantity_on_hand"] == -2
        assert result["negative_balance"] is True
        assert reconcile("comp-600")["balanced"]

    def test_missing_record_is_not_created(self):
        with pytest.raises(ValidationError) as exc_info:
            _issue(1, component_id="comp-unknown")
        assert "component_id" in exc_info.value.messages
        assert current_domain.repository_for(InventoryBalance).find("comp-unknown") is None

    def test_external_reference_is_required(self):
        _stock()
        with pytest.raises(ValidationError):
            _issue(1, reference="  ")
        assert current_domain.repository_for(InventoryBalance).get("comp-600").quantity_on_hand == 10

    def test_lookup_by_external_reference(self):
        _stock()
        _issue(1, reference="WO-7")
        _issue(2, reference="WO-7", issue_category="samples")
        rows = current_domain.repository_for(StockIssuance).by_external_reference("WO-7")
        assert sorted(row.quantity_issued for row in rows) == [1, 2]


class TestReverseStockIssuance:
    def test_partial_reversal_returns_stock(self):
        _stock(10)
        issued = _issue(6)

        result = run(ReverseStockIssuance(issuance_id=issued["issuance_id"], quantity=2, reason="Unused"))

        assert result["quantity_on_hand"] == 6
        assert result["quantity_reversed"] == 2
        row = current_domain.repository_for(InventoryTransaction).get(result["transaction_id"])
        assert row.quantity == 2
        assert row.transaction_type == "issue"
        assert reconcile("comp-600")["balanced"]

    def test_cannot_reverse_more_than_issued(self):
        _stock(10)
        issued = _issue(6)
        run(ReverseStockIssuance(issuance_id=issued["issuance_id"], quantity=5))
        with pytest.raises(ValidationError):
            run(ReverseStockIssuance(issuance_id=issued["issuance_id"], quantity=2))
        assert current_domain.repository_for(InventoryBalance).get("comp-600").quantity_on_hand == 9
