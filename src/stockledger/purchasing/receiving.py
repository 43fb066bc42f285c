"""Receiving at the gate: accept goods into stock, reject them, or both at once."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Decimal, Identifier, String, Text
from protean.utils.globals import current_domain

from stockledger.balance.balance import InventoryBalance
from stockledger.domain import ledger
from stockledger.ledger.journal import post
from stockledger.ledger.quantities import ZERO, as_quantity, require_finite
from stockledger.ledger.transaction import TransactionType
from stockledger.purchasing.receipt import SupplierOrderReceipt
from stockledger.purchasing.returns import check_supplier_return, net_received_for, process_supplier_return
from stockledger.purchasing.supplier_order import SupplierOrder
from stockledger.purchasing.supplier_return import ReturnType

logger = structlog.get_logger(__name__)


@ledger.command(part_of="SupplierOrder")
class ReceiveOrRejectGoods:
    """One delivery inspection against a supplier order.

    ``quantity_received`` enters stock; ``quantity_rejected`` is refused at
    the gate and sent back under a fresh Goods Return Number.
    """

    supplier_order_id = Identifier(required=True)
    quantity_received = Decimal(default=ZERO)
    quantity_rejected = Decimal(default=ZERO)
    rejection_reason = Text()
    signature_status = String(max_length=20)
    notes = Text()
    received_at = DateTime()


def _check_quantities(received, rejected, rejection_reason):
    received = require_finite(received, "quantity_received")
    rejected = require_finite(rejected, "quantity_rejected")
    if received < 0:
        raise ValidationError({"quantity_received": ["Received quantity cannot be negative"]})
    if rejected < 0:
        raise ValidationError({"quantity_rejected": ["Rejected quantity cannot be negative"]})
    if received + rejected <= 0:
        raise ValidationError({"quantity_received": ["Nothing to receive or reject"]})
    if rejected > 0 and not (rejection_reason or "").strip():
        raise ValidationError({"rejection_reason": ["A rejection reason is required when goods are rejected"]})
    return received, rejected


@ledger.command_handler(part_of=SupplierOrder)
class ReceivingHandler:
    @handle(ReceiveOrRejectGoods)
    def receive_or_reject_goods(self, command):
        order_repo = current_domain.repository_for(SupplierOrder)
        order = order_repo.get(command.supplier_order_id)
        order.ensure_receivable()

        received, rejected = _check_quantities(
            command.quantity_received, command.quantity_rejected, command.rejection_reason
        )

        net_before = net_received_for(order.id)
        remaining = order.order_quantity - net_before
        if received > remaining:
            raise ValidationError(
                {"quantity_received": [f"Cannot receive {received}: only {remaining} remaining on the order"]}
            )
        if rejected > 0:
            check_supplier_return(order, ReturnType.REJECTION, rejected, command.rejection_reason, net_before)

        balance_repo = current_domain.repository_for(InventoryBalance)
        receipt = None
        if received > 0:
            balance = balance_repo.find_or_create(order.component_id)
            receipt = SupplierOrderReceipt.create(
                supplier_order_id=order.id,
                component_id=order.component_id,
                quantity_received=received,
                received_at=command.received_at,
                notes=command.notes,
            )
            posting = post(
                balance,
                received,
                TransactionType.PURCHASE,
                reason=f"Received against supplier order {order.id}",
                occurred_at=command.received_at,
                supplier_order_id=order.id,
                purchase_order_id=order.purchase_order_id,
                receipt_id=receipt.id,
            )
            receipt.transaction_id = posting.transaction_id
            current_domain.repository_for(SupplierOrderReceipt).add(receipt)
            quantity_on_hand = posting.new_quantity
        else:
            balance = balance_repo.find(order.component_id)
            quantity_on_hand = as_quantity(balance.quantity_on_hand) if balance else ZERO

        rejection = None
        if rejected > 0:
            rejection = process_supplier_return(
                order,
                ReturnType.REJECTION,
                rejected,
                command.rejection_reason,
                net_received=net_before,
                returned_at=command.received_at,
                signature_status=command.signature_status,
                receipt_id=receipt.id if receipt else None,
                notes=command.notes,
            )

        order.apply_net_received(net_before + received)
        order_repo.add(order)

        logger.info(
            "Delivery processed",
            supplier_order_id=str(order.id),
            component_id=order.component_id,
            quantity_received=received,
            quantity_rejected=rejected,
            status=order.status,
            total_received=order.total_received,
        )
        return {
            "supplier_order_id": str(order.id),
            "receipt_id": str(receipt.id) if receipt else None,
            "return_id": str(rejection.supplier_return.id) if rejection else None,
            "goods_return_number": rejection.goods_return_number if rejection else None,
            "status": order.status,
            "total_received": order.total_received,
            "quantity_on_hand": quantity_on_hand,
        }
