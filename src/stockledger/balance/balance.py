"""InventoryBalance aggregate, one row per stocked component.

The balance is never edited directly. It moves only through
``stockledger.ledger.journal.post``, which appends the matching
``InventoryTransaction`` rows in the same Unit of Work.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Decimal, Identifier, String

from stockledger.balance.events import (
    InventoryRecordCreated,
    LowStockDetected,
    NegativeStockDetected,
    StockLevelChanged,
)
from stockledger.domain import ledger
from stockledger.ledger.quantities import ZERO, as_quantity, require_finite
from stockledger.utils.query import fetch_one


@ledger.aggregate
class InventoryBalance:
    """Quantity on hand for one component.

    ``quantity_on_hand`` is signed: manual issuance and explicit overrides
    may drive it below zero, receiving and return flows floor it at zero.
    """

    component_id = Identifier(identifier=True)
    quantity_on_hand = Decimal(default=ZERO)
    reorder_level = Decimal(default=ZERO)
    location = String(max_length=100)
    unit_of_measure = String(max_length=20)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, component_id, reorder_level=ZERO, location=None, unit_of_measure=None):
        """Create an empty balance row. Opening stock is posted separately."""
        if not component_id:
            raise ValidationError({"component_id": ["Component is required"]})
        reorder_level = require_finite(reorder_level, "reorder_level")
        if reorder_level < 0:
            raise ValidationError({"reorder_level": ["Reorder level cannot be negative"]})

        now = datetime.now(UTC)
        balance = cls(
            component_id=str(component_id),
            quantity_on_hand=ZERO,
            reorder_level=reorder_level,
            location=location,
            unit_of_measure=unit_of_measure,
            created_at=now,
            updated_at=now,
        )
        balance.raise_(
            InventoryRecordCreated(
                component_id=balance.component_id,
                reorder_level=balance.reorder_level,
                location=location,
                created_at=now,
            )
        )
        return balance

    @property
    def is_negative(self) -> bool:
        return as_quantity(self.quantity_on_hand) < 0

    def apply_delta(self, delta, floor_at_zero=False):
        """Move quantity on hand by ``delta`` and return the change actually applied.

        With ``floor_at_zero`` the result is clipped at zero, so the applied
        change can be smaller in magnitude than ``delta``.
        """
        delta = as_quantity(delta)
        previous = as_quantity(self.quantity_on_hand)
        new = previous + delta
        floored = False
        if floor_at_zero and new < 0:
            new = ZERO
            floored = True

        now = datetime.now(UTC)
        self.quantity_on_hand = new
        self.updated_at = now
        self.raise_(
            StockLevelChanged(
                component_id=self.component_id,
                previous_quantity=previous,
                new_quantity=new,
                change=new - previous,
                floored=floored,
                changed_at=now,
            )
        )

        if delta < 0:
            self._check_low_stock()
        if new < 0:
            self.raise_(
                NegativeStockDetected(
                    component_id=self.component_id,
                    quantity_on_hand=new,
                    detected_at=now,
                )
            )
        return new - previous

    def _check_low_stock(self):
        """Raise LowStockDetected when stock sits at or below a positive reorder level."""
        reorder_level = as_quantity(self.reorder_level)
        if reorder_level > 0 and self.quantity_on_hand <= reorder_level:
            self.raise_(
                LowStockDetected(
                    component_id=self.component_id,
                    quantity_on_hand=self.quantity_on_hand,
                    reorder_level=reorder_level,
                    detected_at=datetime.now(UTC),
                )
            )

    def update_settings(self, reorder_level=None, location=None):
        if reorder_level is not None:
            reorder_level = require_finite(reorder_level, "reorder_level")
            if reorder_level < 0:
                raise ValidationError({"reorder_level": ["Reorder level cannot be negative"]})
            self.reorder_level = reorder_level
        if location is not None:
            self.location = location
        self.updated_at = datetime.now(UTC)


@ledger.repository(part_of=InventoryBalance)
class InventoryBalanceRepository:
    def find(self, component_id) -> InventoryBalance | None:
        """The balance row for ``component_id``, or ``None`` when none exists."""
        return fetch_one(self, str(component_id))

    def require(self, component_id) -> InventoryBalance:
        """The balance row for ``component_id``; a missing row is a validation error."""
        balance = self.find(component_id)
        if balance is None:
            raise ValidationError({"component_id": [f"No inventory record for component {component_id}"]})
        return balance

    def find_or_create(self, component_id) -> InventoryBalance:
        """Receiving and return flows create a missing row on demand at zero."""
        balance = self.find(component_id)
        if balance is None:
            balance = InventoryBalance.create(component_id=component_id)
        return balance
