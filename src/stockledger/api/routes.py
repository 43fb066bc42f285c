"""FastAPI routes for the stock ledger.

Thin adapters: request schema to command, ``operations.run`` to process it
under its row locks, handler result to response schema. Write routes are
plain ``def`` so a request waiting on a row lock blocks a worker thread, not
the event loop.
"""

import json

from fastapi import APIRouter, Query
from protean.utils.globals import current_domain

from stockledger.api.schemas import (
    AddFinishedGoodsRequest,
    AdjustStockRequest,
    AdjustStockResponse,
    BalanceResponse,
    CompletePickingListResponse,
    ConsumptionResponse,
    CreateInventoryRecordRequest,
    CreatePickingListRequest,
    DocumentUpdateResponse,
    FinishedGoodsResponse,
    InventoryRecordResponse,
    IssuanceResponse,
    IssueStockRequest,
    PickingLineSchema,
    PickingListIdResponse,
    PickingListListResponse,
    PickingListResponse,
    PlaceSupplierOrderRequest,
    ReceiveGoodsRequest,
    ReceiveGoodsResponse,
    ReconciliationResponse,
    ReleaseResponse,
    ReservationResponse,
    ReserveFinishedGoodsRequest,
    ReturnBatchResponse,
    ReturnDocumentRequest,
    ReturnEmailRequest,
    ReturnGoodsRequest,
    ReturnGoodsResponse,
    ReturnSignatureRequest,
    ReversalResponse,
    ReverseIssuanceRequest,
    StatusResponse,
    SupplierOrderIdResponse,
    SupplierOrderResponse,
    SupplierReturnListResponse,
    SupplierReturnResponse,
    TransactionListResponse,
    TransactionResponse,
    UpdateInventorySettingsRequest,
)
from stockledger.balance.balance import InventoryBalance
from stockledger.balance.management import AdjustStock, CreateInventoryRecord, UpdateInventorySettings
from stockledger.issuance.direct import IssueStock
from stockledger.issuance.picking import CancelPickingList, CompletePickingList, CreatePickingList
from stockledger.issuance.picking_list import PendingIssuanceStatus, PendingStockIssuance
from stockledger.issuance.reversal import ReverseStockIssuance
from stockledger.ledger.journal import reconcile
from stockledger.ledger.transaction import InventoryTransaction
from stockledger.operations import run
from stockledger.purchasing.documents import RecordReturnDocument, RecordReturnEmail, RecordReturnSignature
from stockledger.purchasing.grn import open_return_batch
from stockledger.purchasing.management import CancelSupplierOrder, PlaceSupplierOrder
from stockledger.purchasing.receiving import ReceiveOrRejectGoods
from stockledger.purchasing.returns import ReturnGoodsFromStock
from stockledger.purchasing.supplier_order import SupplierOrder
from stockledger.purchasing.supplier_return import SupplierOrderReturn
from stockledger.reservations.allocation import (
    AddFinishedGoods,
    ConsumeFinishedGoods,
    ReleaseFinishedGoods,
    ReserveFinishedGoods,
)

# ---------------------------------------------------------------------------
# Inventory Router
# ---------------------------------------------------------------------------
inventory_router = APIRouter(prefix="/inventory", tags=["inventory"])


@inventory_router.post("", status_code=201, response_model=InventoryRecordResponse)
def create_inventory_record(body: CreateInventoryRecordRequest) -> InventoryRecordResponse:
    command = CreateInventoryRecord(
        component_id=body.component_id,
        initial_quantity=body.initial_quantity,
        reorder_level=body.reorder_level,
        location=body.location,
        unit_of_measure=body.unit_of_measure,
    )
    return InventoryRecordResponse(**run(command))


@inventory_router.get("/{component_id}", response_model=BalanceResponse)
async def get_balance(component_id: str) -> BalanceResponse:
    balance = current_domain.repository_for(InventoryBalance).require(component_id)
    return BalanceResponse(
        component_id=balance.component_id,
        quantity_on_hand=balance.quantity_on_hand,
        reorder_level=balance.reorder_level,
        location=balance.location,
        unit_of_measure=balance.unit_of_measure,
        negative_balance=balance.is_negative,
    )


@inventory_router.get("/{component_id}/transactions", response_model=TransactionListResponse)
async def get_transactions(component_id: str) -> TransactionListResponse:
    history = current_domain.repository_for(InventoryTransaction).history_for(component_id)
    return TransactionListResponse(
        component_id=component_id,
        transactions=[
            TransactionResponse(
                transaction_id=str(row.id),
                component_id=row.component_id,
                quantity=row.quantity,
                transaction_type=row.transaction_type,
                reason=row.reason,
                occurred_at=row.occurred_at,
                supplier_order_id=row.supplier_order_id,
                receipt_id=row.receipt_id,
                return_id=row.return_id,
                issuance_id=row.issuance_id,
                goods_return_number=row.goods_return_number,
            )
            for row in history
        ],
    )


@inventory_router.get("/{component_id}/reconciliation", response_model=ReconciliationResponse)
async def get_reconciliation(component_id: str) -> ReconciliationResponse:
    return ReconciliationResponse(**reconcile(component_id))


@inventory_router.put("/{component_id}/adjust", response_model=AdjustStockResponse)
def adjust_stock(component_id: str, body: AdjustStockRequest) -> AdjustStockResponse:
    command = AdjustStock(
        component_id=component_id,
        quantity_change=body.quantity_change,
        reason=body.reason,
        allow_negative=body.allow_negative,
        occurred_at=body.occurred_at,
    )
    return AdjustStockResponse(**run(command))


@inventory_router.put("/{component_id}/settings", response_model=StatusResponse)
def update_inventory_settings(component_id: str, body: UpdateInventorySettingsRequest) -> StatusResponse:
    command = UpdateInventorySettings(
        component_id=component_id,
        reorder_level=body.reorder_level,
        location=body.location,
    )
    run(command)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Supplier Order Router
# ---------------------------------------------------------------------------
supplier_order_router = APIRouter(prefix="/supplier-orders", tags=["supplier-orders"])


@supplier_order_router.post("", status_code=201, response_model=SupplierOrderIdResponse)
def place_supplier_order(body: PlaceSupplierOrderRequest) -> SupplierOrderIdResponse:
    command = PlaceSupplierOrder(
        component_id=body.component_id,
        order_quantity=body.order_quantity,
        purchase_order_id=body.purchase_order_id,
        supplier_id=body.supplier_id,
        supplier_component_id=body.supplier_component_id,
        status=body.status,
    )
    return SupplierOrderIdResponse(supplier_order_id=run(command))


@supplier_order_router.get("/{supplier_order_id}", response_model=SupplierOrderResponse)
async def get_supplier_order(supplier_order_id: str) -> SupplierOrderResponse:
    order = current_domain.repository_for(SupplierOrder).get(supplier_order_id)
    return SupplierOrderResponse(
        supplier_order_id=str(order.id),
        component_id=order.component_id,
        order_quantity=order.order_quantity,
        total_received=order.total_received,
        remaining_to_fulfill=order.remaining_to_fulfill,
        status=order.status,
        purchase_order_id=order.purchase_order_id,
        supplier_id=order.supplier_id,
    )


@supplier_order_router.post("/{supplier_order_id}/receipts", status_code=201, response_model=ReceiveGoodsResponse)
def receive_goods(supplier_order_id: str, body: ReceiveGoodsRequest) -> ReceiveGoodsResponse:
    command = ReceiveOrRejectGoods(
        supplier_order_id=supplier_order_id,
        quantity_received=body.quantity_received,
        quantity_rejected=body.quantity_rejected,
        rejection_reason=body.rejection_reason,
        signature_status=body.signature_status,
        notes=body.notes,
        received_at=body.received_at,
    )
    return ReceiveGoodsResponse(**run(command))


@supplier_order_router.post("/{supplier_order_id}/returns", status_code=201, response_model=ReturnGoodsResponse)
def return_goods(supplier_order_id: str, body: ReturnGoodsRequest) -> ReturnGoodsResponse:
    command = ReturnGoodsFromStock(
        supplier_order_id=supplier_order_id,
        quantity=body.quantity,
        reason=body.reason,
        signature_status=body.signature_status,
        batch_id=body.batch_id,
        goods_return_number=body.goods_return_number,
        receipt_id=body.receipt_id,
        notes=body.notes,
        returned_at=body.returned_at,
    )
    return ReturnGoodsResponse(**run(command))


@supplier_order_router.put("/{supplier_order_id}/cancel", response_model=StatusResponse)
def cancel_supplier_order(supplier_order_id: str) -> StatusResponse:
    run(CancelSupplierOrder(supplier_order_id=supplier_order_id))
    return StatusResponse()


# ---------------------------------------------------------------------------
# Supplier Return Router
# ---------------------------------------------------------------------------
supplier_return_router = APIRouter(prefix="/supplier-returns", tags=["supplier-returns"])


def _return_response(row) -> SupplierReturnResponse:
    return SupplierReturnResponse(
        return_id=str(row.id),
        supplier_order_id=row.supplier_order_id,
        component_id=row.component_id,
        quantity_returned=row.quantity_returned,
        return_type=row.return_type,
        reason=row.reason,
        goods_return_number=row.goods_return_number,
        batch_id=row.batch_id,
        signature_status=row.signature_status,
        document_url=row.document_url,
        signed_document_url=row.signed_document_url,
        document_version=row.document_version or 0,
        email_status=row.email_status,
        email_message_id=row.email_message_id,
        returned_at=row.returned_at,
    )


@supplier_return_router.post("/batches", status_code=201, response_model=ReturnBatchResponse)
async def create_return_batch() -> ReturnBatchResponse:
    batch = open_return_batch()
    return ReturnBatchResponse(batch_id=batch.batch_id, goods_return_number=batch.goods_return_number)


@supplier_return_router.get("", response_model=SupplierReturnListResponse)
async def list_supplier_returns(
    goods_return_number: str | None = Query(default=None),
    batch_id: str | None = Query(default=None),
) -> SupplierReturnListResponse:
    repo = current_domain.repository_for(SupplierOrderReturn)
    if batch_id:
        rows = repo.by_batch(batch_id)
        if goods_return_number:
            rows = [row for row in rows if row.goods_return_number == goods_return_number]
    elif goods_return_number:
        rows = repo.by_goods_return_number(goods_return_number)
    else:
        rows = []
    return SupplierReturnListResponse(returns=[_return_response(row) for row in rows])


@supplier_return_router.put("/{goods_return_number}/document", response_model=DocumentUpdateResponse)
def record_return_document(goods_return_number: str, body: ReturnDocumentRequest) -> DocumentUpdateResponse:
    command = RecordReturnDocument(goods_return_number=goods_return_number, document_url=body.document_url)
    return DocumentUpdateResponse(**run(command))


@supplier_return_router.put("/{goods_return_number}/signature", response_model=DocumentUpdateResponse)
def record_return_signature(goods_return_number: str, body: ReturnSignatureRequest) -> DocumentUpdateResponse:
    command = RecordReturnSignature(
        goods_return_number=goods_return_number,
        signature_status=body.signature_status,
        signed_document_url=body.signed_document_url,
    )
    return DocumentUpdateResponse(**run(command))


@supplier_return_router.put("/{goods_return_number}/email", response_model=DocumentUpdateResponse)
def record_return_email(goods_return_number: str, body: ReturnEmailRequest) -> DocumentUpdateResponse:
    command = RecordReturnEmail(
        goods_return_number=goods_return_number,
        email_status=body.email_status,
        email_message_id=body.email_message_id,
        email_sent_at=body.email_sent_at,
    )
    return DocumentUpdateResponse(**run(command))


# ---------------------------------------------------------------------------
# Issuance Router
# ---------------------------------------------------------------------------
issuance_router = APIRouter(tags=["issuance"])


@issuance_router.post("/stock-issuances", status_code=201, response_model=IssuanceResponse)
def issue_stock(body: IssueStockRequest) -> IssuanceResponse:
    command = IssueStock(
        component_id=body.component_id,
        quantity=body.quantity,
        external_reference=body.external_reference,
        issue_category=body.issue_category,
        order_id=body.order_id,
        staff_id=body.staff_id,
        notes=body.notes,
        issued_at=body.issued_at,
    )
    return IssuanceResponse(**run(command))


@issuance_router.post("/stock-issuances/{issuance_id}/reverse", status_code=201, response_model=ReversalResponse)
def reverse_issuance(issuance_id: str, body: ReverseIssuanceRequest) -> ReversalResponse:
    command = ReverseStockIssuance(
        issuance_id=issuance_id,
        quantity=body.quantity,
        reason=body.reason,
        reversed_at=body.reversed_at,
    )
    return ReversalResponse(**run(command))


@issuance_router.post("/picking-lists", status_code=201, response_model=PickingListIdResponse)
def create_picking_list(body: CreatePickingListRequest) -> PickingListIdResponse:
    command = CreatePickingList(
        lines=json.dumps([line.model_dump() for line in body.lines], default=str),
        external_reference=body.external_reference,
        issue_category=body.issue_category,
        order_id=body.order_id,
        staff_id=body.staff_id,
        notes=body.notes,
    )
    return PickingListIdResponse(pending_issuance_id=run(command))


@issuance_router.get("/picking-lists", response_model=PickingListListResponse)
async def list_picking_lists(
    status: str = Query(default=PendingIssuanceStatus.PENDING.value),
) -> PickingListListResponse:
    rows = current_domain.repository_for(PendingStockIssuance).with_status(status)
    return PickingListListResponse(
        picking_lists=[
            PickingListResponse(
                pending_issuance_id=str(row.id),
                external_reference=row.external_reference,
                issue_category=row.issue_category,
                status=row.status,
                lines=[PickingLineSchema(component_id=item.component_id, quantity=item.quantity) for item in row.items],
            )
            for row in rows
        ]
    )


@issuance_router.put("/picking-lists/{pending_issuance_id}/complete", response_model=CompletePickingListResponse)
def complete_picking_list(pending_issuance_id: str) -> CompletePickingListResponse:
    return CompletePickingListResponse(**run(CompletePickingList(pending_issuance_id=pending_issuance_id)))


@issuance_router.put("/picking-lists/{pending_issuance_id}/cancel", response_model=StatusResponse)
def cancel_picking_list(pending_issuance_id: str) -> StatusResponse:
    run(CancelPickingList(pending_issuance_id=pending_issuance_id))
    return StatusResponse()


# ---------------------------------------------------------------------------
# Finished Goods Router
# ---------------------------------------------------------------------------
finished_goods_router = APIRouter(prefix="/finished-goods", tags=["finished-goods"])


@finished_goods_router.post("/orders/{order_id}/reserve", response_model=ReservationResponse)
def reserve_finished_goods(order_id: str, body: ReserveFinishedGoodsRequest) -> ReservationResponse:
    command = ReserveFinishedGoods(
        order_id=order_id,
        lines=json.dumps([line.model_dump() for line in body.lines], default=str),
    )
    return ReservationResponse(order_id=order_id, reservations=run(command))


@finished_goods_router.post("/orders/{order_id}/release", response_model=ReleaseResponse)
def release_finished_goods(order_id: str) -> ReleaseResponse:
    return ReleaseResponse(order_id=order_id, released=run(ReleaseFinishedGoods(order_id=order_id)))


@finished_goods_router.post("/orders/{order_id}/consume", response_model=ConsumptionResponse)
def consume_finished_goods(order_id: str) -> ConsumptionResponse:
    return ConsumptionResponse(order_id=order_id, consumed=run(ConsumeFinishedGoods(order_id=order_id)))


@finished_goods_router.post("/{product_id}", response_model=FinishedGoodsResponse)
def add_finished_goods(product_id: str, body: AddFinishedGoodsRequest) -> FinishedGoodsResponse:
    command = AddFinishedGoods(product_id=product_id, quantity=body.quantity, location=body.location)
    return FinishedGoodsResponse(**run(command))
