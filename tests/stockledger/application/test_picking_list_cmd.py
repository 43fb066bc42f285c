"""Application tests for picking lists: create, complete, cancel."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from stockledger.balance.balance import InventoryBalance
from stockledger.balance.management import CreateInventoryRecord
from stockledger.issuance.direct import issue_from_stock
from stockledger.issuance.issuance import StockIssuance
from stockledger.issuance.picking import CancelPickingList, CompletePickingList, CreatePickingList
from stockledger.issuance.picking_list import PendingStockIssuance
from stockledger.ledger.transaction import InventoryTransaction
from stockledger.operations import run


def _stock(component_id, quantity):
    run(CreateInventoryRecord(component_id=component_id, initial_quantity=quantity))


def _on_hand(component_id):
    return current_domain.repository_for(InventoryBalance).get(component_id).quantity_on_hand


def _create(lines, reference="WO-7001"):
    return run(CreatePickingList(lines=lines, external_reference=reference))


class TestCreatePickingList:
    def test_rejects_whole_list_when_a_component_is_missing(self, lines_json):
        _stock("comp-701", 10)

        with pytest.raises(ValidationError) as exc_info:
            _create(lines_json(("comp-701", 2), ("comp-missing", 1)))

        assert any("comp-missing" in message for message in exc_info.value.messages["component_id"])
        assert current_domain.repository_for(PendingStockIssuance).with_status("pending") == []
        assert _on_hand("comp-701") == 10

    def test_creating_has_no_inventory_effect(self, lines_json):
        _stock("comp-701", 10)
        pending_id = _create(lines_json(("comp-701", 4)))

        picking_list = current_domain.repository_for(PendingStockIssuance).get(pending_id)
        assert picking_list.status == "pending"
        assert len(picking_list.items) == 1
        assert _on_hand("comp-701") == 10
        assert len(current_domain.repository_for(InventoryTransaction).history_for("comp-701")) == 1

    def test_rejects_non_positive_line(self, lines_json):
        _stock("comp-701", 10)
        with pytest.raises(ValidationError):
            _create(lines_json(("comp-701", 0)))


class TestCompletePickingList:
    def test_issues_every_line(self, lines_json):
        _stock("comp-701", 10)
        _stock("comp-702", 1)
        pending_id = _create(lines_json(("comp-701", 4), ("comp-702", 3)))

        result = run(CompletePickingList(pending_issuance_id=pending_id))

        assert result["status"] == "issued"
        assert len(result["issuances"]) == 2
        assert result["negative_balance"] is True
        assert result["negative_components"] == ["comp-702"]
        assert _on_hand("comp-701") == 6
        assert _on_hand("comp-702") == -2

        issuances = current_domain.repository_for(StockIssuance).by_external_reference("WO-7001")
        assert {issuance.pending_issuance_id for issuance in issuances} == {pending_id}
        picking_list = current_domain.repository_for(PendingStockIssuance).get(pending_id)
        assert all(item.issuance_id for item in picking_list.items)

    def test_cannot_complete_twice(self, lines_json):
        _stock("comp-701", 10)
        pending_id = _create(lines_json(("comp-701", 4)))
        run(CompletePickingList(pending_issuance_id=pending_id))

        with pytest.raises(ValidationError):
            run(CompletePickingList(pending_issuance_id=pending_id))
        with pytest.raises(ValidationError):
            run(CancelPickingList(pending_issuance_id=pending_id))
        assert _on_hand("comp-701") == 6

    def test_failure_on_a_later_line_undoes_the_earlier_ones(self, lines_json, monkeypatch):
        _stock("comp-701", 10)
        _stock("comp-702", 10)
        pending_id = _create(lines_json(("comp-701", 4), ("comp-702", 3)))

        issued = []

        def issue_then_fail(balance, *args, **kwargs):
            issued.append(balance.component_id)
            if len(issued) == 2:
                raise RuntimeError("store unavailable")
            return issue_from_stock(balance, *args, **kwargs)

        monkeypatch.setattr("stockledger.issuance.picking.issue_from_stock", issue_then_fail)

        with pytest.raises(RuntimeError):
            run(CompletePickingList(pending_issuance_id=pending_id))

        assert len(issued) == 2
        journal = current_domain.repository_for(InventoryTransaction)
        for component_id in ("comp-701", "comp-702"):
            assert _on_hand(component_id) == 10
            assert len(journal.history_for(component_id)) == 1
            assert current_domain.repository_for(StockIssuance).for_component(component_id) == []
        assert current_domain.repository_for(PendingStockIssuance).get(pending_id).status == "pending"


class TestCancelPickingList:
    def test_cancel_leaves_stock_alone(self, lines_json):
        _stock("comp-701", 10)
        pending_id = _create(lines_json(("comp-701", 4)))

        result = run(CancelPickingList(pending_issuance_id=pending_id))

        assert result["status"] == "cancelled"
        assert _on_hand("comp-701") == 10
        assert current_domain.repository_for(StockIssuance).for_component("comp-701") == []

    def test_cancelled_list_cannot_be_completed(self, lines_json):
        _stock("comp-701", 10)
        pending_id = _create(lines_json(("comp-701", 4)))
        run(CancelPickingList(pending_issuance_id=pending_id))

        with pytest.raises(ValidationError):
            run(CompletePickingList(pending_issuance_id=pending_id))
        assert _on_hand("comp-701") == 10
