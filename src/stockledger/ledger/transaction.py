"""InventoryTransaction aggregate, the append-only stock journal.

Every change to an ``InventoryBalance`` is explained by one or more rows in
this journal. Rows carry a signed quantity: positive rows move stock in,
negative rows move it out. Rows are never updated or deleted, so for every
component the sum of its rows equals its current quantity on hand.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Decimal, Identifier, String, Text

from stockledger.domain import ledger
from stockledger.ledger.events import InventoryTransactionRecorded
from stockledger.ledger.quantities import ZERO, as_quantity, is_finite_quantity
from stockledger.utils.query import fetch_all


class TransactionType(Enum):
    PURCHASE = "purchase"
    RETURN = "return"
    ISSUE = "issue"
    ADJUSTMENT = "adjustment"


LINK_FIELDS = (
    "supplier_order_id",
    "purchase_order_id",
    "receipt_id",
    "return_id",
    "issuance_id",
    "order_id",
    "goods_return_number",
)


@ledger.aggregate
class InventoryTransaction:
    """One immutable, signed quantity movement for one component."""

    component_id = Identifier(required=True)
    quantity = Decimal(required=True)
    transaction_type = String(choices=TransactionType, required=True)
    reason = Text()
    occurred_at = DateTime(required=True)
    recorded_at = DateTime(required=True)

    # Links back to the record that caused the movement
    supplier_order_id = Identifier()
    purchase_order_id = Identifier()
    receipt_id = Identifier()
    return_id = Identifier()
    issuance_id = Identifier()
    order_id = Identifier()
    goods_return_number = String(max_length=20)

    @classmethod
    def record(cls, component_id, quantity, transaction_type, reason=None, occurred_at=None, **links):
        """Build a new journal row. The caller persists it."""
        if quantity is None or not is_finite_quantity(quantity) or as_quantity(quantity) == 0:
            raise ValidationError({"quantity": ["Ledger quantity must be a non-zero finite number"]})

        unknown = set(links) - set(LINK_FIELDS)
        if unknown:
            raise ValidationError({"links": [f"Unknown ledger link: {name}" for name in sorted(unknown)]})

        if isinstance(transaction_type, TransactionType):
            transaction_type = transaction_type.value

        now = datetime.now(UTC)
        transaction = cls(
            component_id=str(component_id),
            quantity=as_quantity(quantity),
            transaction_type=transaction_type,
            reason=reason,
            occurred_at=occurred_at or now,
            recorded_at=now,
            **{name: str(value) for name, value in links.items() if value is not None},
        )
        transaction.raise_(
            InventoryTransactionRecorded(
                transaction_id=str(transaction.id),
                component_id=transaction.component_id,
                quantity=transaction.quantity,
                transaction_type=transaction.transaction_type,
                reason=reason,
                occurred_at=transaction.occurred_at,
                supplier_order_id=transaction.supplier_order_id,
                receipt_id=transaction.receipt_id,
                return_id=transaction.return_id,
                issuance_id=transaction.issuance_id,
            )
        )
        return transaction


@ledger.repository(part_of=InventoryTransaction)
class InventoryTransactionRepository:
    """Append-only access to the journal."""

    def add(self, transaction):
        try:
            self._dao.get(transaction.id)
        except ObjectNotFoundError:
            return super().add(transaction)
        raise InvalidOperationError(f"Inventory transaction {transaction.id} is immutable")

    def history_for(self, component_id) -> list:
        """All rows for a component, oldest first."""
        rows = fetch_all(self, component_id=str(component_id))
        return sorted(rows, key=lambda row: (row.recorded_at, row.occurred_at))

    def net_quantity_for(self, component_id):
        return sum((row.quantity for row in fetch_all(self, component_id=str(component_id))), ZERO)

    def for_supplier_order(self, supplier_order_id) -> list:
        rows = fetch_all(self, supplier_order_id=str(supplier_order_id))
        return sorted(rows, key=lambda row: row.recorded_at)
