"""Domain events for the InventoryBalance aggregate."""

from protean.fields import Boolean, DateTime, Decimal, Identifier, String

from stockledger.domain import ledger
from stockledger.ledger.quantities import ZERO


@ledger.event(part_of="InventoryBalance")
class InventoryRecordCreated:
    """A balance row was created for a component."""

    __version__ = 1

    component_id = Identifier(required=True)
    reorder_level = Decimal(default=ZERO)
    location = String()
    created_at = DateTime(required=True)


@ledger.event(part_of="InventoryBalance")
class StockLevelChanged:
    """Quantity on hand moved. ``change`` is what was actually applied."""

    __version__ = 1

    component_id = Identifier(required=True)
    previous_quantity = Decimal(default=ZERO)
    new_quantity = Decimal(default=ZERO)
    change = Decimal(default=ZERO)
    floored = Boolean(default=False)
    changed_at = DateTime(required=True)


@ledger.event(part_of="InventoryBalance")
class LowStockDetected:
    """An outbound movement left the balance at or below its reorder level."""

    __version__ = 1

    component_id = Identifier(required=True)
    quantity_on_hand = Decimal(default=ZERO)
    reorder_level = Decimal(default=ZERO)
    detected_at = DateTime(required=True)


@ledger.event(part_of="InventoryBalance")
class NegativeStockDetected:
    """The balance went below zero. Advisory only."""

    __version__ = 1

    component_id = Identifier(required=True)
    quantity_on_hand = Decimal(default=ZERO)
    detected_at = DateTime(required=True)
