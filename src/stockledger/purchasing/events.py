"""Domain events for supplier orders, receipts and supplier returns."""

from protean.fields import DateTime, Decimal, Identifier, Integer, String, Text

from stockledger.domain import ledger
from stockledger.ledger.quantities import ZERO


@ledger.event(part_of="SupplierOrder")
class SupplierOrderPlaced:
    __version__ = 1

    supplier_order_id = Identifier(required=True)
    purchase_order_id = Identifier()
    component_id = Identifier(required=True)
    order_quantity = Decimal(required=True)
    status = String(required=True)
    placed_at = DateTime(required=True)


@ledger.event(part_of="SupplierOrder")
class SupplierOrderProgressed:
    """Net received quantity changed, and possibly the status with it."""

    __version__ = 1

    supplier_order_id = Identifier(required=True)
    order_quantity = Decimal(default=ZERO)
    total_received = Decimal(default=ZERO)
    previous_status = String(required=True)
    new_status = String(required=True)
    progressed_at = DateTime(required=True)


@ledger.event(part_of="SupplierOrder")
class SupplierOrderApproved:
    __version__ = 1

    supplier_order_id = Identifier(required=True)
    approved_at = DateTime(required=True)


@ledger.event(part_of="SupplierOrder")
class SupplierOrderCancelled:
    __version__ = 1

    supplier_order_id = Identifier(required=True)
    previous_status = String(required=True)
    cancelled_at = DateTime(required=True)


@ledger.event(part_of="SupplierOrderReceipt")
class GoodsReceived:
    """Goods arrived and were accepted into stock."""

    __version__ = 1

    receipt_id = Identifier(required=True)
    supplier_order_id = Identifier(required=True)
    component_id = Identifier(required=True)
    quantity_received = Decimal(required=True)
    received_at = DateTime(required=True)


@ledger.event(part_of="SupplierOrderReturn")
class SupplierReturnRecorded:
    """Goods were rejected at the gate or sent back from stock."""

    __version__ = 1

    return_id = Identifier(required=True)
    supplier_order_id = Identifier(required=True)
    component_id = Identifier(required=True)
    quantity_returned = Decimal(required=True)
    return_type = String(required=True)
    reason = Text(required=True)
    goods_return_number = String(required=True)
    batch_id = Identifier()
    returned_at = DateTime(required=True)


@ledger.event(part_of="SupplierOrderReturn")
class ReturnDocumentAttached:
    __version__ = 1

    return_id = Identifier(required=True)
    goods_return_number = String(required=True)
    document_url = Text(required=True)
    document_version = Integer(default=1)
    attached_at = DateTime(required=True)


@ledger.event(part_of="SupplierOrderReturn")
class ReturnSignatureAdvanced:
    __version__ = 1

    return_id = Identifier(required=True)
    goods_return_number = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    signed_at = DateTime(required=True)


@ledger.event(part_of="SupplierOrderReturn")
class ReturnEmailRecorded:
    __version__ = 1

    return_id = Identifier(required=True)
    goods_return_number = String(required=True)
    email_status = String(required=True)
    email_message_id = String()
    recorded_at = DateTime(required=True)
