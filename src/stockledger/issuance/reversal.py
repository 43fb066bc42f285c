"""Issuance reversal: bring some or all of an issued quantity back into stock."""

import structlog
from protean import handle
from protean.fields import DateTime, Decimal, Identifier, Text
from protean.utils.globals import current_domain

from stockledger.balance.balance import InventoryBalance
from stockledger.domain import ledger
from stockledger.issuance.issuance import StockIssuance
from stockledger.ledger.journal import post
from stockledger.ledger.transaction import TransactionType

logger = structlog.get_logger(__name__)


@ledger.command(part_of="StockIssuance")
class ReverseStockIssuance:
    issuance_id = Identifier(required=True)
    quantity = Decimal(required=True)
    reason = Text()
    reversed_at = DateTime()


@ledger.command_handler(part_of=StockIssuance)
class IssuanceReversalHandler:
    @handle(ReverseStockIssuance)
    def reverse_stock_issuance(self, command):
        issuance_repo = current_domain.repository_for(StockIssuance)
        issuance = issuance_repo.get(command.issuance_id)
        issuance.reverse(command.quantity, reason=command.reason)

        balance = current_domain.repository_for(InventoryBalance).require(issuance.component_id)
        posting = post(
            balance,
            command.quantity,
            TransactionType.ISSUE,
            reason=command.reason or f"Reversal of issuance: {issuance.external_reference}",
            occurred_at=command.reversed_at,
            issuance_id=issuance.id,
            order_id=issuance.order_id,
        )
        issuance_repo.add(issuance)

        logger.info(
            "Issuance reversed",
            issuance_id=str(issuance.id),
            component_id=issuance.component_id,
            quantity=command.quantity,
            total_reversed=issuance.quantity_reversed,
        )
        return {
            "issuance_id": str(issuance.id),
            "component_id": issuance.component_id,
            "transaction_id": posting.transaction_id,
            "quantity_reversed": issuance.quantity_reversed,
            "quantity_on_hand": posting.new_quantity,
        }
