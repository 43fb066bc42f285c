"""The balance always equals the sum of its journal rows, whatever path moved it."""

from protean import current_domain
from stockledger.balance.balance import InventoryBalance
from stockledger.balance.management import AdjustStock, CreateInventoryRecord
from stockledger.issuance.direct import IssueStock
from stockledger.issuance.picking import CompletePickingList, CreatePickingList
from stockledger.issuance.reversal import ReverseStockIssuance
from stockledger.ledger.journal import reconcile
from stockledger.operations import run
from stockledger.purchasing.management import PlaceSupplierOrder
from stockledger.purchasing.receiving import ReceiveOrRejectGoods
from stockledger.purchasing.returns import ReturnGoodsFromStock


def test_mixed_flows_reconcile(lines_json):
    run(CreateInventoryRecord(component_id="comp-870", initial_quantity=5, reorder_level=3))
    order_id = run(PlaceSupplierOrder(component_id="comp-870", order_quantity=20))

    run(
        ReceiveOrRejectGoods(
            supplier_order_id=order_id, quantity_received=12, quantity_rejected=3, rejection_reason="Bent"
        )
    )
    run(ReturnGoodsFromStock(supplier_order_id=order_id, quantity=2, reason="Wrong revision"))
    issued = run(IssueStock(component_id="comp-870", quantity=9, external_reference="WO-870"))
    run(ReverseStockIssuance(issuance_id=issued["issuance_id"], quantity=4))
    run(AdjustStock(component_id="comp-870", quantity_change=-10, reason="Cycle count"))
    # Floors at zero and books a compensating row
    run(ReturnGoodsFromStock(supplier_order_id=order_id, quantity=5, reason="Late defect"))
    pending_id = run(CreatePickingList(lines=lines_json(("comp-870", 2)), external_reference="WO-871"))
    run(CompletePickingList(pending_issuance_id=pending_id))

    result = reconcile("comp-870")
    assert result["balanced"] is True
    assert result["difference"] == 0
    balance = current_domain.repository_for(InventoryBalance).get("comp-870")
    assert result["quantity_on_hand"] == balance.quantity_on_hand
    assert result["quantity_on_hand"] == -2
