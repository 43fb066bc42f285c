"""Direct issuance: take stock out for an activity identified by an external reference.

The component must already have an inventory record; a missing record is an
error and is never created on the fly. Issuing more than is on hand is
allowed: the balance goes negative and the result is flagged so the caller
can warn.
"""

from dataclasses import dataclass

import structlog
from protean import handle
from protean.fields import DateTime, Decimal, Identifier, String, Text
from protean.utils.globals import current_domain

from stockledger.balance.balance import InventoryBalance
from stockledger.domain import ledger
from stockledger.issuance.issuance import IssueCategory, StockIssuance
from stockledger.ledger.journal import post
from stockledger.ledger.quantities import Quantity
from stockledger.ledger.transaction import TransactionType

logger = structlog.get_logger(__name__)


@dataclass
class IssueOutcome:
    issuance: StockIssuance
    quantity_on_hand: Quantity

    @property
    def negative_balance(self) -> bool:
        return self.quantity_on_hand < 0

    def as_dict(self) -> dict:
        return {
            "issuance_id": str(self.issuance.id),
            "component_id": self.issuance.component_id,
            "transaction_id": self.issuance.transaction_id,
            "quantity_on_hand": self.quantity_on_hand,
            "negative_balance": self.negative_balance,
        }


def issue_from_stock(
    balance,
    quantity,
    external_reference,
    issue_category,
    issued_at=None,
    order_id=None,
    pending_issuance_id=None,
    staff_id=None,
    notes=None,
) -> IssueOutcome:
    """Create the issuance and post its outbound ledger row against ``balance``."""
    issuance = StockIssuance.create(
        component_id=balance.component_id,
        quantity_issued=quantity,
        external_reference=external_reference,
        issue_category=issue_category,
        order_id=order_id,
        pending_issuance_id=pending_issuance_id,
        staff_id=staff_id,
        notes=notes,
        issued_at=issued_at,
    )
    posting = post(
        balance,
        -issuance.quantity_issued,
        TransactionType.ISSUE,
        reason=notes or f"Manual issuance: {issuance.external_reference}",
        occurred_at=issuance.issued_at,
        issuance_id=issuance.id,
        order_id=order_id,
    )
    issuance.transaction_id = posting.transaction_id
    current_domain.repository_for(StockIssuance).add(issuance)

    if posting.new_quantity < 0:
        logger.warning(
            "Issuance left a negative balance",
            component_id=balance.component_id,
            quantity_on_hand=posting.new_quantity,
            external_reference=issuance.external_reference,
        )
    return IssueOutcome(issuance=issuance, quantity_on_hand=posting.new_quantity)


@ledger.command(part_of="StockIssuance")
class IssueStock:
    component_id = Identifier(required=True)
    quantity = Decimal(required=True)
    external_reference = String(required=True, max_length=255)
    issue_category = String(max_length=30, default=IssueCategory.PRODUCTION.value)
    order_id = Identifier()
    staff_id = String(max_length=100)
    notes = Text()
    issued_at = DateTime()


@ledger.command_handler(part_of=StockIssuance)
class DirectIssuanceHandler:
    @handle(IssueStock)
    def issue_stock(self, command):
        balance = current_domain.repository_for(InventoryBalance).require(command.component_id)
        outcome = issue_from_stock(
            balance,
            command.quantity,
            command.external_reference,
            command.issue_category,
            issued_at=command.issued_at,
            order_id=command.order_id,
            staff_id=command.staff_id,
            notes=command.notes,
        )
        logger.info(
            "Stock issued",
            component_id=balance.component_id,
            quantity=command.quantity,
            external_reference=outcome.issuance.external_reference,
        )
        return outcome.as_dict()
