"""SupplierOrder aggregate: one order line placed with a supplier for one component.

``total_received`` is a cache of receipts minus later returns. It is
rewritten, together with the status, by every receipt and every later
return, inside the same Unit of Work as the write that changed it.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Decimal, Identifier, String

from stockledger.domain import ledger
from stockledger.ledger.quantities import ZERO, as_quantity, require_finite
from stockledger.purchasing.events import (
    SupplierOrderApproved,
    SupplierOrderCancelled,
    SupplierOrderPlaced,
    SupplierOrderProgressed,
)
from stockledger.purchasing.status import RECEIVABLE_STATES, SupplierOrderStatus, derive_status

INITIAL_STATES = (
    SupplierOrderStatus.DRAFT,
    SupplierOrderStatus.OPEN,
    SupplierOrderStatus.APPROVED,
)


@ledger.aggregate
class SupplierOrder:
    purchase_order_id = Identifier()
    supplier_id = Identifier()
    supplier_component_id = Identifier()
    component_id = Identifier(required=True)
    order_quantity = Decimal(required=True)
    total_received = Decimal(default=ZERO)
    status = String(
        max_length=30,
        choices=SupplierOrderStatus,
        default=SupplierOrderStatus.OPEN.value,
    )
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def place(
        cls,
        component_id,
        order_quantity,
        purchase_order_id=None,
        supplier_id=None,
        supplier_component_id=None,
        status=SupplierOrderStatus.OPEN.value,
    ):
        order_quantity = require_finite(order_quantity, "order_quantity", default=None)
        if order_quantity <= 0:
            raise ValidationError({"order_quantity": ["Order quantity must be positive"]})
        try:
            initial_status = SupplierOrderStatus(status)
        except ValueError:
            initial_status = None
        if initial_status not in INITIAL_STATES:
            raise ValidationError({"status": [f"A supplier order cannot start as {status}"]})

        now = datetime.now(UTC)
        order = cls(
            purchase_order_id=purchase_order_id,
            supplier_id=supplier_id,
            supplier_component_id=supplier_component_id,
            component_id=str(component_id),
            order_quantity=order_quantity,
            total_received=ZERO,
            status=initial_status.value,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            SupplierOrderPlaced(
                supplier_order_id=str(order.id),
                purchase_order_id=purchase_order_id,
                component_id=order.component_id,
                order_quantity=order_quantity,
                status=order.status,
                placed_at=now,
            )
        )
        return order

    @property
    def remaining_to_fulfill(self):
        return max(self.order_quantity - as_quantity(self.total_received), ZERO)

    def ensure_receivable(self):
        if SupplierOrderStatus(self.status) not in RECEIVABLE_STATES:
            raise ValidationError({"status": [f"Cannot receive or return goods against a {self.status} order"]})

    def apply_net_received(self, total_received):
        """Store the recomputed net received quantity and re-derive the status."""
        total_received = as_quantity(total_received)
        previous_status = self.status
        new_status = derive_status(self.order_quantity, total_received, previous_status).value

        self.total_received = total_received
        self.status = new_status
        self.updated_at = datetime.now(UTC)
        self.raise_(
            SupplierOrderProgressed(
                supplier_order_id=str(self.id),
                order_quantity=self.order_quantity,
                total_received=total_received,
                previous_status=previous_status,
                new_status=new_status,
                progressed_at=self.updated_at,
            )
        )

    def approve(self):
        if SupplierOrderStatus(self.status) != SupplierOrderStatus.DRAFT:
            raise ValidationError({"status": [f"Only Draft orders can be approved, order is {self.status}"]})
        self.status = SupplierOrderStatus.APPROVED.value
        self.updated_at = datetime.now(UTC)
        self.raise_(SupplierOrderApproved(supplier_order_id=str(self.id), approved_at=self.updated_at))

    def cancel(self):
        if SupplierOrderStatus(self.status) == SupplierOrderStatus.CANCELLED:
            raise ValidationError({"status": ["Order is already cancelled"]})
        if as_quantity(self.total_received) > 0:
            raise ValidationError({"status": ["Cannot cancel an order with goods received against it"]})

        previous_status = self.status
        self.status = SupplierOrderStatus.CANCELLED.value
        self.updated_at = datetime.now(UTC)
        self.raise_(
            SupplierOrderCancelled(
                supplier_order_id=str(self.id),
                previous_status=previous_status,
                cancelled_at=self.updated_at,
            )
        )
