"""Domain events for the InventoryTransaction aggregate."""

from protean.fields import DateTime, Decimal, Identifier, String, Text

from stockledger.domain import ledger


@ledger.event(part_of="InventoryTransaction")
class InventoryTransactionRecorded:
    """A signed quantity movement was appended to the ledger."""

    __version__ = 1

    transaction_id = Identifier(required=True)
    component_id = Identifier(required=True)
    quantity = Decimal(required=True)
    transaction_type = String(required=True)
    reason = Text()
    occurred_at = DateTime(required=True)
    supplier_order_id = Identifier()
    receipt_id = Identifier()
    return_id = Identifier()
    issuance_id = Identifier()
