"""SupplierOrderReceipt aggregate: one accepted arrival of goods."""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Decimal, Identifier, Text

from stockledger.domain import ledger
from stockledger.ledger.quantities import ZERO
from stockledger.purchasing.events import GoodsReceived
from stockledger.utils.query import fetch_all


@ledger.aggregate
class SupplierOrderReceipt:
    supplier_order_id = Identifier(required=True)
    component_id = Identifier(required=True)
    quantity_received = Decimal(required=True)
    received_at = DateTime(required=True)
    transaction_id = Identifier()
    notes = Text()
    created_at = DateTime()

    @classmethod
    def create(cls, supplier_order_id, component_id, quantity_received, received_at=None, notes=None):
        if quantity_received is None or quantity_received <= 0:
            raise ValidationError({"quantity_received": ["Received quantity must be positive"]})

        now = datetime.now(UTC)
        receipt = cls(
            supplier_order_id=str(supplier_order_id),
            component_id=str(component_id),
            quantity_received=quantity_received,
            received_at=received_at or now,
            notes=notes,
            created_at=now,
        )
        receipt.raise_(
            GoodsReceived(
                receipt_id=str(receipt.id),
                supplier_order_id=receipt.supplier_order_id,
                component_id=receipt.component_id,
                quantity_received=quantity_received,
                received_at=receipt.received_at,
            )
        )
        return receipt


@ledger.repository(part_of=SupplierOrderReceipt)
class SupplierOrderReceiptRepository:
    def for_order(self, supplier_order_id) -> list:
        rows = fetch_all(self, supplier_order_id=str(supplier_order_id))
        return sorted(rows, key=lambda row: row.created_at)

    def total_received_for(self, supplier_order_id):
        rows = fetch_all(self, supplier_order_id=str(supplier_order_id))
        return sum((row.quantity_received for row in rows), ZERO)
