"""Supplier order lifecycle states and progress derivation."""

from enum import Enum

from stockledger.ledger.quantities import as_quantity


class SupplierOrderStatus(Enum):
    DRAFT = "Draft"
    OPEN = "Open"
    APPROVED = "Approved"
    PARTIALLY_RECEIVED = "Partially Received"
    FULLY_RECEIVED = "Fully Received"
    CANCELLED = "Cancelled"


# Goods can be received or returned only in these states.
RECEIVABLE_STATES = frozenset(
    {
        SupplierOrderStatus.OPEN,
        SupplierOrderStatus.APPROVED,
        SupplierOrderStatus.PARTIALLY_RECEIVED,
        SupplierOrderStatus.FULLY_RECEIVED,
    }
)


def derive_status(order_quantity, total_received, current_status) -> SupplierOrderStatus:
    """Map net received quantity onto the order's progress state.

    Nothing received (including a return that brings the net back to zero)
    keeps the current state: the deriver never invents an administrative
    state. Any positive quantity short of the order is Partially Received,
    and meeting or exceeding it is Fully Received. Because it is re-run after
    returns as well as receipts, an order can move back from Fully Received
    to Partially Received.
    """
    current_status = SupplierOrderStatus(current_status)
    total_received = as_quantity(total_received)
    order_quantity = as_quantity(order_quantity)

    if total_received <= 0:
        return current_status
    if total_received < order_quantity:
        return SupplierOrderStatus.PARTIALLY_RECEIVED
    return SupplierOrderStatus.FULLY_RECEIVED
