"""Inventory record management: creating balance rows and manual corrections."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Decimal, Identifier, String, Text
from protean.utils.globals import current_domain

from stockledger.balance.balance import InventoryBalance
from stockledger.domain import ledger
from stockledger.ledger.journal import post
from stockledger.ledger.quantities import ZERO, as_quantity, require_finite
from stockledger.ledger.transaction import TransactionType

logger = structlog.get_logger(__name__)

OPENING_BALANCE_REASON = "Opening balance"


@ledger.command(part_of="InventoryBalance")
class CreateInventoryRecord:
    """Create the balance row for a component. Idempotent per component."""

    component_id = Identifier(required=True)
    initial_quantity = Decimal(default=ZERO)
    reorder_level = Decimal(default=ZERO)
    location = String(max_length=100)
    unit_of_measure = String(max_length=20)


@ledger.command(part_of="InventoryBalance")
class AdjustStock:
    """Signed manual correction of a component's quantity on hand."""

    component_id = Identifier(required=True)
    quantity_change = Decimal(required=True)
    reason = Text(required=True)
    allow_negative = Boolean(default=False)
    occurred_at = DateTime()


@ledger.command(part_of="InventoryBalance")
class UpdateInventorySettings:
    component_id = Identifier(required=True)
    reorder_level = Decimal()
    location = String(max_length=100)


@ledger.command_handler(part_of=InventoryBalance)
class InventoryRecordHandler:
    @handle(CreateInventoryRecord)
    def create_inventory_record(self, command):
        repo = current_domain.repository_for(InventoryBalance)
        existing = repo.find(command.component_id)
        if existing is not None:
            logger.info("Inventory record already exists", component_id=existing.component_id)
            return {
                "component_id": existing.component_id,
                "created": False,
                "quantity_on_hand": existing.quantity_on_hand,
            }

        initial_quantity = require_finite(command.initial_quantity, "initial_quantity")
        if initial_quantity < 0:
            raise ValidationError({"initial_quantity": ["Initial quantity cannot be negative"]})

        balance = InventoryBalance.create(
            component_id=command.component_id,
            reorder_level=command.reorder_level,
            location=command.location,
            unit_of_measure=command.unit_of_measure,
        )
        if initial_quantity > 0:
            post(balance, initial_quantity, TransactionType.ADJUSTMENT, reason=OPENING_BALANCE_REASON)
        else:
            repo.add(balance)

        logger.info(
            "Inventory record created",
            component_id=balance.component_id,
            initial_quantity=initial_quantity,
        )
        return {
            "component_id": balance.component_id,
            "created": True,
            "quantity_on_hand": balance.quantity_on_hand,
        }

    @handle(AdjustStock)
    def adjust_stock(self, command):
        if not command.reason or not command.reason.strip():
            raise ValidationError({"reason": ["Reason is required for stock adjustments"]})

        balance = current_domain.repository_for(InventoryBalance).require(command.component_id)
        quantity_change = require_finite(command.quantity_change, "quantity_change", default=None)
        new_quantity = as_quantity(balance.quantity_on_hand) + quantity_change
        if new_quantity < 0 and not command.allow_negative:
            raise ValidationError(
                {"quantity_change": [f"Adjustment would result in negative on-hand: {new_quantity}"]}
            )

        posting = post(
            balance,
            quantity_change,
            TransactionType.ADJUSTMENT,
            reason=command.reason,
            occurred_at=command.occurred_at,
        )
        logger.info(
            "Stock adjusted",
            component_id=balance.component_id,
            quantity_change=quantity_change,
            new_quantity=posting.new_quantity,
        )
        return {
            "component_id": balance.component_id,
            "transaction_id": posting.transaction_id,
            "quantity_on_hand": posting.new_quantity,
            "negative_balance": posting.new_quantity < 0,
        }

    @handle(UpdateInventorySettings)
    def update_inventory_settings(self, command):
        repo = current_domain.repository_for(InventoryBalance)
        balance = repo.require(command.component_id)
        balance.update_settings(reorder_level=command.reorder_level, location=command.location)
        repo.add(balance)
