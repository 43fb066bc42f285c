"""Supplier order registration, approval and cancellation."""

from protean import handle
from protean.fields import Decimal, Identifier, String
from protean.utils.globals import current_domain

from stockledger.domain import ledger
from stockledger.purchasing.status import SupplierOrderStatus
from stockledger.purchasing.supplier_order import SupplierOrder


@ledger.command(part_of="SupplierOrder")
class PlaceSupplierOrder:
    """Register an order line issued to a supplier for one component."""

    component_id = Identifier(required=True)
    order_quantity = Decimal(required=True)
    purchase_order_id = Identifier()
    supplier_id = Identifier()
    supplier_component_id = Identifier()
    status = String(max_length=30, default=SupplierOrderStatus.OPEN.value)


@ledger.command(part_of="SupplierOrder")
class ApproveSupplierOrder:
    supplier_order_id = Identifier(required=True)


@ledger.command(part_of="SupplierOrder")
class CancelSupplierOrder:
    supplier_order_id = Identifier(required=True)


@ledger.command_handler(part_of=SupplierOrder)
class SupplierOrderManagementHandler:
    @handle(PlaceSupplierOrder)
    def place_supplier_order(self, command):
        order = SupplierOrder.place(
            component_id=command.component_id,
            order_quantity=command.order_quantity,
            purchase_order_id=command.purchase_order_id,
            supplier_id=command.supplier_id,
            supplier_component_id=command.supplier_component_id,
            status=command.status or SupplierOrderStatus.OPEN.value,
        )
        current_domain.repository_for(SupplierOrder).add(order)
        return str(order.id)

    @handle(ApproveSupplierOrder)
    def approve_supplier_order(self, command):
        repo = current_domain.repository_for(SupplierOrder)
        order = repo.get(command.supplier_order_id)
        order.approve()
        repo.add(order)

    @handle(CancelSupplierOrder)
    def cancel_supplier_order(self, command):
        repo = current_domain.repository_for(SupplierOrder)
        order = repo.get(command.supplier_order_id)
        order.cancel()
        repo.add(order)
