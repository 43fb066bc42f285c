"""Domain events for stock issuances and picking lists."""

from protean.fields import DateTime, Decimal, Identifier, Integer, String, Text

from stockledger.domain import ledger


@ledger.event(part_of="StockIssuance")
class StockIssued:
    """Stock left the store for a consuming activity."""

    __version__ = 1

    issuance_id = Identifier(required=True)
    component_id = Identifier(required=True)
    quantity_issued = Decimal(required=True)
    external_reference = String(required=True)
    issue_category = String(required=True)
    pending_issuance_id = Identifier()
    issued_at = DateTime(required=True)


@ledger.event(part_of="StockIssuance")
class StockIssuanceReversed:
    """Part or all of an issuance came back into stock."""

    __version__ = 1

    issuance_id = Identifier(required=True)
    component_id = Identifier(required=True)
    quantity_reversed = Decimal(required=True)
    total_reversed = Decimal(required=True)
    reason = Text()
    reversed_at = DateTime(required=True)


@ledger.event(part_of="PendingStockIssuance")
class PickingListCreated:
    __version__ = 1

    pending_issuance_id = Identifier(required=True)
    external_reference = String(required=True)
    issue_category = String(required=True)
    line_count = Integer(required=True)
    created_at = DateTime(required=True)


@ledger.event(part_of="PendingStockIssuance")
class PickingListIssued:
    __version__ = 1

    pending_issuance_id = Identifier(required=True)
    external_reference = String(required=True)
    line_count = Integer(required=True)
    issued_at = DateTime(required=True)


@ledger.event(part_of="PendingStockIssuance")
class PickingListCancelled:
    __version__ = 1

    pending_issuance_id = Identifier(required=True)
    external_reference = String(required=True)
    cancelled_at = DateTime(required=True)
