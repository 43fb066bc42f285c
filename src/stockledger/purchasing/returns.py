"""Supplier returns: one processor for both gate rejections and returns from stock.

``process_supplier_return`` decides once, from the return type, which
ceiling applies and how the ledger is touched; validation, GRN and batch
handling are shared by both kinds.

- ``rejection``: checked against the full order quantity (rejected goods were
  never netted into ``total_received``); journalled as an arrival/refusal
  pair that leaves the balance untouched.
- ``later_return``: checked against the net received quantity; journalled as
  one outbound ``return`` row with the balance floored at zero.
"""

from dataclasses import dataclass

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Decimal, Identifier, String, Text
from protean.utils.globals import current_domain

from stockledger.balance.balance import InventoryBalance
from stockledger.domain import ledger
from stockledger.ledger.journal import post, record_gate_rejection
from stockledger.ledger.quantities import Quantity, as_quantity, require_finite
from stockledger.ledger.transaction import TransactionType
from stockledger.purchasing.grn import grn_generator, is_goods_return_number, next_goods_return_number
from stockledger.purchasing.receipt import SupplierOrderReceipt
from stockledger.purchasing.supplier_order import SupplierOrder
from stockledger.purchasing.supplier_return import ReturnType, SupplierOrderReturn

logger = structlog.get_logger(__name__)


@dataclass
class ReturnOutcome:
    supplier_return: SupplierOrderReturn
    quantity_on_hand: Quantity | None

    @property
    def goods_return_number(self) -> str:
        return self.supplier_return.goods_return_number


def net_received_for(supplier_order_id):
    """Receipts minus later returns for one order. Rejections never count."""
    receipts = current_domain.repository_for(SupplierOrderReceipt).total_received_for(supplier_order_id)
    returned = current_domain.repository_for(SupplierOrderReturn).later_returns_total_for(supplier_order_id)
    return as_quantity(receipts) - as_quantity(returned)


def resume_goods_return_numbers() -> str | None:
    """Move the GRN counter past the highest number already stored. Run once at startup."""
    highest = current_domain.repository_for(SupplierOrderReturn).highest_goods_return_number()
    if highest:
        grn_generator.resume_after(highest)
        logger.info("Goods return numbers resumed", after=highest, next_sequence=grn_generator.peek)
    return highest


def check_supplier_return(order, return_type, quantity, reason, net_received):
    """Validate a return before anything is written."""
    return_type = ReturnType(return_type)

    quantity = require_finite(quantity, "quantity", default=None)
    if quantity <= 0:
        raise ValidationError({"quantity": ["Return quantity must be positive"]})
    if not reason or not reason.strip():
        raise ValidationError({"reason": ["A reason is required for supplier returns"]})

    if return_type == ReturnType.REJECTION:
        if quantity > order.order_quantity:
            raise ValidationError(
                {"quantity": [f"Cannot reject {quantity}: order quantity is {order.order_quantity}"]}
            )
    elif quantity > net_received:
        raise ValidationError(
            {"quantity": [f"Cannot return {quantity}: only {net_received} received and not yet returned"]}
        )
    return quantity


def _check_unclaimed(repo, goods_return_number):
    if not grn_generator.has_issued(goods_return_number):
        raise ValidationError(
            {"goods_return_number": [f"{goods_return_number} was never issued by the return number counter"]}
        )
    if repo.by_goods_return_number(goods_return_number):
        raise ValidationError(
            {"goods_return_number": [f"{goods_return_number} already belongs to another return document"]}
        )


def resolve_goods_return_number(batch_id=None, goods_return_number=None) -> tuple[str, str | None]:
    """Pick the GRN for a new return row. Returns ``(goods_return_number, batch_id)``.

    A batch that already has rows dictates the GRN; a supplied GRN that
    disagrees with it is rejected. A new batch may start under a supplied GRN
    only if the counter has issued it and no other return document uses it,
    which is what ``open_return_batch`` hands out. A supplied GRN without a
    batch may only join a document that already exists. Otherwise a fresh
    number is drawn.
    """
    if goods_return_number and not is_goods_return_number(goods_return_number):
        raise ValidationError({"goods_return_number": [f"Malformed goods return number: {goods_return_number}"]})

    repo = current_domain.repository_for(SupplierOrderReturn)

    if batch_id:
        existing = repo.by_batch(batch_id)
        if existing:
            batch_number = existing[0].goods_return_number
            if goods_return_number and goods_return_number != batch_number:
                raise ValidationError(
                    {
                        "goods_return_number": [
                            f"Batch {batch_id} uses {batch_number}, not {goods_return_number}"
                        ]
                    }
                )
            return batch_number, str(batch_id)
        if goods_return_number:
            _check_unclaimed(repo, goods_return_number)
            return goods_return_number, str(batch_id)
        return next_goods_return_number(), str(batch_id)

    if goods_return_number:
        existing = repo.by_goods_return_number(goods_return_number)
        if not existing:
            raise ValidationError(
                {
                    "goods_return_number": [
                        f"No return document uses {goods_return_number}; open a return batch to start one"
                    ]
                }
            )
        shared_batch = next((row.batch_id for row in existing if row.batch_id), None)
        return goods_return_number, shared_batch

    return next_goods_return_number(), None


def _journal_rejection(order, quantity, reason, returned_at, links):
    rows = record_gate_rejection(order.component_id, quantity, reason, occurred_at=returned_at, **links)
    return str(rows[-1].id), None


def _journal_return_from_stock(order, quantity, reason, returned_at, links):
    balance = current_domain.repository_for(InventoryBalance).find_or_create(order.component_id)
    posting = post(
        balance,
        -quantity,
        TransactionType.RETURN,
        reason=reason,
        occurred_at=returned_at,
        floor_at_zero=True,
        **links,
    )
    return posting.transaction_id, posting.new_quantity


def process_supplier_return(
    order,
    return_type,
    quantity,
    reason,
    net_received,
    returned_at=None,
    signature_status=None,
    batch_id=None,
    goods_return_number=None,
    receipt_id=None,
    notes=None,
) -> ReturnOutcome:
    """Write one supplier return: the return row and its journal rows."""
    return_type = ReturnType(return_type)
    journal = _journal_rejection if return_type == ReturnType.REJECTION else _journal_return_from_stock

    quantity = check_supplier_return(order, return_type, quantity, reason, net_received)

    goods_return_number, batch_id = resolve_goods_return_number(batch_id, goods_return_number)
    supplier_return = SupplierOrderReturn.create(
        supplier_order_id=order.id,
        component_id=order.component_id,
        quantity_returned=quantity,
        reason=reason,
        return_type=return_type.value,
        goods_return_number=goods_return_number,
        batch_id=batch_id,
        receipt_id=receipt_id,
        notes=notes,
        signature_status=signature_status,
        returned_at=returned_at,
    )
    links = {
        "supplier_order_id": order.id,
        "purchase_order_id": order.purchase_order_id,
        "return_id": supplier_return.id,
        "goods_return_number": goods_return_number,
    }
    supplier_return.transaction_id, quantity_on_hand = journal(order, quantity, reason, returned_at, links)

    current_domain.repository_for(SupplierOrderReturn).add(supplier_return)
    logger.info(
        "Supplier return recorded",
        supplier_order_id=str(order.id),
        component_id=order.component_id,
        return_type=return_type.value,
        quantity=quantity,
        goods_return_number=goods_return_number,
        batch_id=batch_id,
    )
    return ReturnOutcome(supplier_return=supplier_return, quantity_on_hand=quantity_on_hand)


@ledger.command(part_of="SupplierOrderReturn")
class ReturnGoodsFromStock:
    """Send previously received goods back to the supplier."""

    supplier_order_id = Identifier(required=True)
    quantity = Decimal(required=True)
    reason = Text(required=True)
    signature_status = String(max_length=20)
    batch_id = Identifier()
    goods_return_number = String(max_length=20)
    receipt_id = Identifier()
    notes = Text()
    returned_at = DateTime()


@ledger.command_handler(part_of=SupplierOrderReturn)
class SupplierReturnHandler:
    @handle(ReturnGoodsFromStock)
    def return_goods_from_stock(self, command):
        order_repo = current_domain.repository_for(SupplierOrder)
        order = order_repo.get(command.supplier_order_id)
        order.ensure_receivable()

        net_before = net_received_for(order.id)
        outcome = process_supplier_return(
            order,
            ReturnType.LATER_RETURN,
            command.quantity,
            command.reason,
            net_received=net_before,
            returned_at=command.returned_at,
            signature_status=command.signature_status,
            batch_id=command.batch_id,
            goods_return_number=command.goods_return_number,
            receipt_id=command.receipt_id,
            notes=command.notes,
        )

        order.apply_net_received(net_before - command.quantity)
        order_repo.add(order)

        return {
            "supplier_order_id": str(order.id),
            "return_id": str(outcome.supplier_return.id),
            "goods_return_number": outcome.goods_return_number,
            "batch_id": outcome.supplier_return.batch_id,
            "status": order.status,
            "total_received": order.total_received,
            "quantity_on_hand": outcome.quantity_on_hand,
        }
