"""Lock-then-process entry point for every ledger write.

``run(command)`` works out which rows the command will read and write,
holds their row locks, and only then hands the command to Protean, so the
handler's whole Unit of Work runs under the locks. Callers (the HTTP API,
tests, scripts) never call ``current_domain.process`` for ledger writes
directly.
"""

from functools import singledispatch

import structlog
from protean.utils.globals import current_domain

from stockledger.balance.management import AdjustStock, CreateInventoryRecord, UpdateInventorySettings
from stockledger.issuance.direct import IssueStock
from stockledger.issuance.issuance import StockIssuance
from stockledger.issuance.picking import CancelPickingList, CompletePickingList, CreatePickingList, parse_lines
from stockledger.issuance.picking_list import PendingStockIssuance
from stockledger.issuance.reversal import ReverseStockIssuance
from stockledger.locking import (
    balance_key,
    customer_order_key,
    finished_goods_key,
    issuance_key,
    picking_list_key,
    return_batch_key,
    row_locks,
    supplier_order_key,
    supplier_return_key,
)
from stockledger.purchasing.documents import RecordReturnDocument, RecordReturnEmail, RecordReturnSignature
from stockledger.purchasing.management import ApproveSupplierOrder, CancelSupplierOrder
from stockledger.purchasing.receiving import ReceiveOrRejectGoods
from stockledger.purchasing.returns import ReturnGoodsFromStock
from stockledger.purchasing.supplier_order import SupplierOrder
from stockledger.reservations.allocation import (
    AddFinishedGoods,
    ConsumeFinishedGoods,
    ReleaseFinishedGoods,
    ReserveFinishedGoods,
    ordered_quantities,
)
from stockledger.reservations.finished_goods import ProductReservation
from stockledger.utils.logging import operation_context

logger = structlog.get_logger(__name__)


@singledispatch
def lock_keys(command) -> list[str]:
    """Row lock keys ``command`` needs. Unknown commands need none."""
    return []


@lock_keys.register
def _(command: CreateInventoryRecord):
    return [balance_key(command.component_id)]


@lock_keys.register
def _(command: AdjustStock):
    return [balance_key(command.component_id)]


@lock_keys.register
def _(command: UpdateInventorySettings):
    return [balance_key(command.component_id)]


@lock_keys.register
def _(command: ApproveSupplierOrder):
    return [supplier_order_key(command.supplier_order_id)]


@lock_keys.register
def _(command: CancelSupplierOrder):
    return [supplier_order_key(command.supplier_order_id)]


def _order_and_balance(supplier_order_id):
    order = current_domain.repository_for(SupplierOrder).get(supplier_order_id)
    return [supplier_order_key(order.id), balance_key(order.component_id)]


@lock_keys.register
def _(command: ReceiveOrRejectGoods):
    return _order_and_balance(command.supplier_order_id)


@lock_keys.register
def _(command: ReturnGoodsFromStock):
    keys = _order_and_balance(command.supplier_order_id)
    if command.batch_id:
        keys.append(return_batch_key(command.batch_id))
    if command.goods_return_number:
        keys.append(supplier_return_key(command.goods_return_number))
    return keys


@lock_keys.register
def _(command: RecordReturnDocument):
    return [supplier_return_key(command.goods_return_number)]


@lock_keys.register
def _(command: RecordReturnSignature):
    return [supplier_return_key(command.goods_return_number)]


@lock_keys.register
def _(command: RecordReturnEmail):
    return [supplier_return_key(command.goods_return_number)]


@lock_keys.register
def _(command: IssueStock):
    return [balance_key(command.component_id)]


@lock_keys.register
def _(command: CreatePickingList):
    lines = parse_lines(command.lines)
    return [balance_key(line["component_id"]) for line in lines if line.get("component_id")]


@lock_keys.register
def _(command: CompletePickingList):
    picking_list = current_domain.repository_for(PendingStockIssuance).get(command.pending_issuance_id)
    keys = [balance_key(component_id) for component_id in picking_list.component_ids]
    return [picking_list_key(picking_list.id), *keys]


@lock_keys.register
def _(command: CancelPickingList):
    return [picking_list_key(command.pending_issuance_id)]


@lock_keys.register
def _(command: ReverseStockIssuance):
    issuance = current_domain.repository_for(StockIssuance).get(command.issuance_id)
    return [issuance_key(issuance.id), balance_key(issuance.component_id)]


@lock_keys.register
def _(command: AddFinishedGoods):
    return [finished_goods_key(command.product_id)]


@lock_keys.register
def _(command: ReserveFinishedGoods):
    products = ordered_quantities(command.lines)
    return [customer_order_key(command.order_id), *(finished_goods_key(p) for p in products)]


def _order_reservation_keys(order_id):
    reservations = current_domain.repository_for(ProductReservation).for_order(order_id)
    return [customer_order_key(order_id), *(finished_goods_key(r.product_id) for r in reservations)]


@lock_keys.register
def _(command: ReleaseFinishedGoods):
    return _order_reservation_keys(command.order_id)


@lock_keys.register
def _(command: ConsumeFinishedGoods):
    return _order_reservation_keys(command.order_id)


def run(command):
    """Process ``command`` synchronously while holding its row locks.

    Returns whatever the command handler returns. Raises ``RowLockTimeout``
    without writing anything when a lock cannot be had in time.
    """
    name = type(command).__name__
    with operation_context(name):
        keys = lock_keys(command)
        with row_locks.hold(*keys):
            logger.debug("Row locks held", keys=sorted(set(keys)))
            return current_domain.process(command, asynchronous=False)

