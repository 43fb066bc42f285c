"""PendingStockIssuance aggregate: a picking list staged before it is issued.

A picking list starts ``pending`` and leaves that state exactly once, either
to ``issued`` (every line becomes a StockIssuance) or to ``cancelled``
(no inventory effect). Both states are terminal.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Decimal, HasMany, Identifier, String, Text

from stockledger.domain import ledger
from stockledger.issuance.events import PickingListCancelled, PickingListCreated, PickingListIssued
from stockledger.issuance.issuance import check_external_reference, check_issue_category
from stockledger.ledger.quantities import as_quantity, is_finite_quantity
from stockledger.utils.query import fetch_all


class PendingIssuanceStatus(Enum):
    PENDING = "pending"
    ISSUED = "issued"
    CANCELLED = "cancelled"


@ledger.entity(part_of="PendingStockIssuance")
class PendingStockIssuanceItem:
    """One component line on a picking list."""

    component_id = Identifier(required=True)
    quantity = Decimal(required=True)
    issuance_id = Identifier()  # Set when the list is issued


@ledger.aggregate
class PendingStockIssuance:
    external_reference = String(required=True, max_length=255)
    issue_category = String(required=True, max_length=30)
    status = String(
        max_length=20,
        choices=PendingIssuanceStatus,
        default=PendingIssuanceStatus.PENDING.value,
    )
    order_id = Identifier()
    staff_id = String(max_length=100)
    notes = Text()
    items = HasMany(PendingStockIssuanceItem)
    created_at = DateTime()
    issued_at = DateTime()
    cancelled_at = DateTime()

    @classmethod
    def create(cls, lines, external_reference, issue_category=None, order_id=None, staff_id=None, notes=None):
        """Stage a picking list. ``lines`` is a list of ``{"component_id", "quantity"}`` dicts."""
        external_reference = check_external_reference(external_reference)
        issue_category = check_issue_category(issue_category)
        if not lines:
            raise ValidationError({"lines": ["A picking list needs at least one line"]})
        for line in lines:
            if not line.get("component_id"):
                raise ValidationError({"lines": ["Every line needs a component"]})
            quantity = line.get("quantity")
            if quantity is None or not is_finite_quantity(quantity) or as_quantity(quantity) <= 0:
                raise ValidationError(
                    {"lines": [f"Quantity for component {line['component_id']} must be positive"]}
                )

        now = datetime.now(UTC)
        picking_list = cls(
            external_reference=external_reference,
            issue_category=issue_category,
            order_id=order_id,
            staff_id=staff_id,
            notes=notes,
            created_at=now,
        )
        for line in lines:
            picking_list.add_items(
                PendingStockIssuanceItem(
                    component_id=str(line["component_id"]),
                    quantity=as_quantity(line["quantity"]),
                )
            )
        picking_list.raise_(
            PickingListCreated(
                pending_issuance_id=str(picking_list.id),
                external_reference=external_reference,
                issue_category=issue_category,
                line_count=len(lines),
                created_at=now,
            )
        )
        return picking_list

    @property
    def component_ids(self) -> list[str]:
        return sorted({str(item.component_id) for item in (self.items or [])})

    def ensure_pending(self, action):
        if PendingIssuanceStatus(self.status) != PendingIssuanceStatus.PENDING:
            raise ValidationError({"status": [f"Cannot {action} a picking list that is {self.status}"]})

    def mark_issued(self, issuance_ids_by_item=None):
        self.ensure_pending("issue")
        for item in self.items or []:
            issuance_id = (issuance_ids_by_item or {}).get(str(item.id))
            if issuance_id:
                item.issuance_id = issuance_id

        self.status = PendingIssuanceStatus.ISSUED.value
        self.issued_at = datetime.now(UTC)
        self.raise_(
            PickingListIssued(
                pending_issuance_id=str(self.id),
                external_reference=self.external_reference,
                line_count=len(self.items or []),
                issued_at=self.issued_at,
            )
        )

    def cancel(self):
        self.ensure_pending("cancel")
        self.status = PendingIssuanceStatus.CANCELLED.value
        self.cancelled_at = datetime.now(UTC)
        self.raise_(
            PickingListCancelled(
                pending_issuance_id=str(self.id),
                external_reference=self.external_reference,
                cancelled_at=self.cancelled_at,
            )
        )


@ledger.repository(part_of=PendingStockIssuance)
class PendingStockIssuanceRepository:
    def with_status(self, status) -> list:
        rows = fetch_all(self, status=PendingIssuanceStatus(status).value)
        return sorted(rows, key=lambda row: row.created_at)
