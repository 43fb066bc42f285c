"""Picking lists: stage issuance lines, then issue or cancel them as one unit."""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from stockledger.balance.balance import InventoryBalance
from stockledger.domain import ledger
from stockledger.issuance.direct import issue_from_stock
from stockledger.issuance.picking_list import PendingStockIssuance

logger = structlog.get_logger(__name__)


@ledger.command(part_of="PendingStockIssuance")
class CreatePickingList:
    lines = Text(required=True)  # JSON list of {"component_id", "quantity"}
    external_reference = String(required=True, max_length=255)
    issue_category = String(max_length=30)
    order_id = Identifier()
    staff_id = String(max_length=100)
    notes = Text()


@ledger.command(part_of="PendingStockIssuance")
class CompletePickingList:
    pending_issuance_id = Identifier(required=True)


@ledger.command(part_of="PendingStockIssuance")
class CancelPickingList:
    pending_issuance_id = Identifier(required=True)


def parse_lines(lines) -> list[dict]:
    if isinstance(lines, str):
        try:
            lines = json.loads(lines)
        except ValueError:
            raise ValidationError({"lines": ["Lines must be a JSON list"]}) from None
    if not isinstance(lines, list) or not all(isinstance(line, dict) for line in lines):
        raise ValidationError({"lines": ["Lines must be a list of component/quantity objects"]})
    return lines


def load_balances(component_ids) -> dict:
    """Balance rows for every component, failing with all missing components named."""
    repo = current_domain.repository_for(InventoryBalance)
    balances = {component_id: repo.find(component_id) for component_id in component_ids}
    missing = [component_id for component_id, balance in balances.items() if balance is None]
    if missing:
        raise ValidationError(
            {"component_id": [f"No inventory record for component {component_id}" for component_id in missing]}
        )
    return balances


@ledger.command_handler(part_of=PendingStockIssuance)
class PickingListHandler:
    @handle(CreatePickingList)
    def create_picking_list(self, command):
        picking_list = PendingStockIssuance.create(
            lines=parse_lines(command.lines),
            external_reference=command.external_reference,
            issue_category=command.issue_category,
            order_id=command.order_id,
            staff_id=command.staff_id,
            notes=command.notes,
        )
        load_balances(picking_list.component_ids)

        current_domain.repository_for(PendingStockIssuance).add(picking_list)
        logger.info(
            "Picking list created",
            pending_issuance_id=str(picking_list.id),
            external_reference=picking_list.external_reference,
            line_count=len(picking_list.items),
        )
        return str(picking_list.id)

    @handle(CompletePickingList)
    def complete_picking_list(self, command):
        repo = current_domain.repository_for(PendingStockIssuance)
        picking_list = repo.get(command.pending_issuance_id)
        picking_list.ensure_pending("issue")
        balances = load_balances(picking_list.component_ids)

        issued = {}
        outcomes = []
        for item in picking_list.items:
            outcome = issue_from_stock(
                balances[str(item.component_id)],
                item.quantity,
                picking_list.external_reference,
                picking_list.issue_category,
                order_id=picking_list.order_id,
                pending_issuance_id=str(picking_list.id),
                staff_id=picking_list.staff_id,
                notes=picking_list.notes,
            )
            issued[str(item.id)] = str(outcome.issuance.id)
            outcomes.append(outcome)

        picking_list.mark_issued(issued)
        repo.add(picking_list)

        negative = sorted({o.issuance.component_id for o in outcomes if o.negative_balance})
        logger.info(
            "Picking list issued",
            pending_issuance_id=str(picking_list.id),
            line_count=len(outcomes),
            negative_components=negative,
        )
        return {
            "pending_issuance_id": str(picking_list.id),
            "status": picking_list.status,
            "issuances": [outcome.as_dict() for outcome in outcomes],
            "negative_balance": bool(negative),
            "negative_components": negative,
        }

    @handle(CancelPickingList)
    def cancel_picking_list(self, command):
        repo = current_domain.repository_for(PendingStockIssuance)
        picking_list = repo.get(command.pending_issuance_id)
        picking_list.cancel()
        repo.add(picking_list)
        return {"pending_issuance_id": str(picking_list.id), "status": picking_list.status}
