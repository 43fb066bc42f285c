"""Pydantic request/response schemas for the stock ledger API.

These are external contracts, kept separate from the internal Protean
commands. Quantities are parsed as exact decimals and rendered as JSON
numbers. Quantity rules that depend on stored state (remaining to fulfill,
net received) are enforced by the domain, not here.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, Field, PlainSerializer

# Exact inside the service, plain JSON numbers on the wire
Quantity = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Inventory records
# ---------------------------------------------------------------------------
class CreateInventoryRecordRequest(BaseModel):
    component_id: str
    initial_quantity: Quantity = Field(ge=0, default=0)
    reorder_level: Quantity = Field(ge=0, default=0)
    location: str | None = None
    unit_of_measure: str | None = None


class InventoryRecordResponse(BaseModel):
    component_id: str
    created: bool
    quantity_on_hand: Quantity


class AdjustStockRequest(BaseModel):
    quantity_change: Quantity
    reason: str
    allow_negative: bool = False
    occurred_at: datetime | None = None


class AdjustStockResponse(BaseModel):
    component_id: str
    transaction_id: str
    quantity_on_hand: Quantity
    negative_balance: bool


class UpdateInventorySettingsRequest(BaseModel):
    reorder_level: Quantity | None = Field(ge=0, default=None)
    location: str | None = None


class BalanceResponse(BaseModel):
    component_id: str
    quantity_on_hand: Quantity
    reorder_level: Quantity
    location: str | None = None
    unit_of_measure: str | None = None
    negative_balance: bool


class TransactionResponse(BaseModel):
    transaction_id: str
    component_id: str
    quantity: Quantity
    transaction_type: str
    reason: str | None = None
    occurred_at: datetime
    supplier_order_id: str | None = None
    receipt_id: str | None = None
    return_id: str | None = None
    issuance_id: str | None = None
    goods_return_number: str | None = None


class TransactionListResponse(BaseModel):
    component_id: str
    transactions: list[TransactionResponse]


class ReconciliationResponse(BaseModel):
    component_id: str
    quantity_on_hand: Quantity
    journal_total: Quantity
    difference: Quantity
    balanced: bool


# ---------------------------------------------------------------------------
# Supplier orders
# ---------------------------------------------------------------------------
class PlaceSupplierOrderRequest(BaseModel):
    component_id: str
    order_quantity: Quantity = Field(gt=0)
    purchase_order_id: str | None = None
    supplier_id: str | None = None
    supplier_component_id: str | None = None
    status: str = "Open"


class SupplierOrderIdResponse(BaseModel):
    supplier_order_id: str


class SupplierOrderResponse(BaseModel):
    supplier_order_id: str
    component_id: str
    order_quantity: Quantity
    total_received: Quantity
    remaining_to_fulfill: Quantity
    status: str
    purchase_order_id: str | None = None
    supplier_id: str | None = None


class ReceiveGoodsRequest(BaseModel):
    quantity_received: Quantity = Field(ge=0, default=0)
    quantity_rejected: Quantity = Field(ge=0, default=0)
    rejection_reason: str | None = None
    signature_status: str | None = None
    notes: str | None = None
    received_at: datetime | None = None


class ReceiveGoodsResponse(BaseModel):
    supplier_order_id: str
    receipt_id: str | None = None
    return_id: str | None = None
    goods_return_number: str | None = None
    status: str
    total_received: Quantity
    quantity_on_hand: Quantity | None = None


class ReturnGoodsRequest(BaseModel):
    quantity: Quantity = Field(gt=0)
    reason: str
    signature_status: str | None = None
    batch_id: str | None = None
    goods_return_number: str | None = None
    receipt_id: str | None = None
    notes: str | None = None
    returned_at: datetime | None = None


class ReturnGoodsResponse(BaseModel):
    supplier_order_id: str
    return_id: str
    goods_return_number: str
    batch_id: str | None = None
    status: str
    total_received: Quantity
    quantity_on_hand: Quantity | None = None


# ---------------------------------------------------------------------------
# Supplier returns
# ---------------------------------------------------------------------------
class ReturnBatchResponse(BaseModel):
    batch_id: str
    goods_return_number: str


class SupplierReturnResponse(BaseModel):
    return_id: str
    supplier_order_id: str
    component_id: str
    quantity_returned: Quantity
    return_type: str
    reason: str
    goods_return_number: str
    batch_id: str | None = None
    signature_status: str
    document_url: str | None = None
    signed_document_url: str | None = None
    document_version: int = 0
    email_status: str | None = None
    email_message_id: str | None = None
    returned_at: datetime


class SupplierReturnListResponse(BaseModel):
    returns: list[SupplierReturnResponse]


class ReturnDocumentRequest(BaseModel):
    document_url: str


class ReturnSignatureRequest(BaseModel):
    signature_status: str
    signed_document_url: str | None = None


class ReturnEmailRequest(BaseModel):
    email_status: str
    email_message_id: str | None = None
    email_sent_at: datetime | None = None


class DocumentUpdateResponse(BaseModel):
    goods_return_number: str
    updated: int


# ---------------------------------------------------------------------------
# Issuance
# ---------------------------------------------------------------------------
class IssueStockRequest(BaseModel):
    component_id: str
    quantity: Quantity = Field(gt=0)
    external_reference: str
    issue_category: str = "production"
    order_id: str | None = None
    staff_id: str | None = None
    notes: str | None = None
    issued_at: datetime | None = None


class IssuanceResponse(BaseModel):
    issuance_id: str
    component_id: str
    transaction_id: str
    quantity_on_hand: Quantity
    negative_balance: bool


class ReverseIssuanceRequest(BaseModel):
    quantity: Quantity = Field(gt=0)
    reason: str | None = None
    reversed_at: datetime | None = None


class ReversalResponse(BaseModel):
    issuance_id: str
    component_id: str
    transaction_id: str
    quantity_reversed: Quantity
    quantity_on_hand: Quantity


class PickingLineSchema(BaseModel):
    component_id: str
    quantity: Quantity = Field(gt=0)


class CreatePickingListRequest(BaseModel):
    lines: list[PickingLineSchema] = Field(min_length=1)
    external_reference: str
    issue_category: str = "production"
    order_id: str | None = None
    staff_id: str | None = None
    notes: str | None = None


class PickingListIdResponse(BaseModel):
    pending_issuance_id: str


class PickingListResponse(BaseModel):
    pending_issuance_id: str
    external_reference: str
    issue_category: str
    status: str
    lines: list[PickingLineSchema]


class PickingListListResponse(BaseModel):
    picking_lists: list[PickingListResponse]


class CompletePickingListResponse(BaseModel):
    pending_issuance_id: str
    status: str
    issuances: list[IssuanceResponse]
    negative_balance: bool
    negative_components: list[str]


# ---------------------------------------------------------------------------
# Finished goods
# ---------------------------------------------------------------------------
class AddFinishedGoodsRequest(BaseModel):
    quantity: Quantity = Field(gt=0)
    location: str | None = None


class FinishedGoodsResponse(BaseModel):
    product_id: str
    quantity_on_hand: Quantity


class OrderLineSchema(BaseModel):
    product_id: str
    quantity: Quantity = Field(ge=0)


class ReserveFinishedGoodsRequest(BaseModel):
    lines: list[OrderLineSchema]


class ReservedLine(BaseModel):
    product_id: str
    quantity_reserved: Quantity


class ReservationResponse(BaseModel):
    order_id: str
    reservations: list[ReservedLine]


class ReleaseResponse(BaseModel):
    order_id: str
    released: int


class ConsumedLine(BaseModel):
    product_id: str
    quantity_consumed: Quantity


class ConsumptionResponse(BaseModel):
    order_id: str
    consumed: list[ConsumedLine]
