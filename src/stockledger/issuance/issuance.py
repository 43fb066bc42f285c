"""StockIssuance aggregate: stock consumed outside of a supplier order.

Issuance covers production use, samples, wastage and the like. The quantity
issued never changes after creation; reversals are tracked separately in
``quantity_reversed`` and journalled as their own inbound rows.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Decimal, Identifier, String, Text

from stockledger.domain import ledger
from stockledger.issuance.events import StockIssuanceReversed, StockIssued
from stockledger.ledger.quantities import ZERO, as_quantity, require_finite
from stockledger.utils.query import fetch_all


class IssueCategory(Enum):
    PRODUCTION = "production"
    CUSTOMER_ORDER = "customer_order"
    SAMPLES = "samples"
    WASTAGE = "wastage"
    REWORK = "rework"
    OTHER = "other"


def check_issue_category(issue_category) -> str:
    try:
        return IssueCategory(issue_category or IssueCategory.PRODUCTION.value).value
    except ValueError:
        raise ValidationError({"issue_category": [f"Unknown issue category: {issue_category}"]}) from None


def check_external_reference(external_reference) -> str:
    if not external_reference or not external_reference.strip():
        raise ValidationError({"external_reference": ["External reference is required"]})
    return external_reference.strip()


@ledger.aggregate
class StockIssuance:
    component_id = Identifier(required=True)
    quantity_issued = Decimal(required=True)
    quantity_reversed = Decimal(default=ZERO)
    external_reference = String(required=True, max_length=255)
    issue_category = String(
        max_length=30,
        choices=IssueCategory,
        default=IssueCategory.PRODUCTION.value,
    )
    order_id = Identifier()
    pending_issuance_id = Identifier()
    staff_id = String(max_length=100)
    notes = Text()
    transaction_id = Identifier()
    issued_at = DateTime(required=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(
        cls,
        component_id,
        quantity_issued,
        external_reference,
        issue_category=IssueCategory.PRODUCTION.value,
        order_id=None,
        pending_issuance_id=None,
        staff_id=None,
        notes=None,
        issued_at=None,
    ):
        quantity_issued = require_finite(quantity_issued, "quantity", default=None)
        if quantity_issued <= 0:
            raise ValidationError({"quantity": ["Issued quantity must be positive"]})
        external_reference = check_external_reference(external_reference)
        issue_category = check_issue_category(issue_category)

        now = datetime.now(UTC)
        issuance = cls(
            component_id=str(component_id),
            quantity_issued=quantity_issued,
            external_reference=external_reference,
            issue_category=issue_category,
            order_id=order_id,
            pending_issuance_id=pending_issuance_id,
            staff_id=staff_id,
            notes=notes,
            issued_at=issued_at or now,
            created_at=now,
            updated_at=now,
        )
        issuance.raise_(
            StockIssued(
                issuance_id=str(issuance.id),
                component_id=issuance.component_id,
                quantity_issued=quantity_issued,
                external_reference=external_reference,
                issue_category=issue_category,
                pending_issuance_id=pending_issuance_id,
                issued_at=issuance.issued_at,
            )
        )
        return issuance

    @property
    def reversible_quantity(self):
        return as_quantity(self.quantity_issued) - as_quantity(self.quantity_reversed)

    def reverse(self, quantity, reason=None):
        quantity = require_finite(quantity, "quantity", default=None)
        if quantity <= 0:
            raise ValidationError({"quantity": ["Reversal quantity must be positive"]})
        if quantity > self.reversible_quantity:
            raise ValidationError(
                {"quantity": [f"Cannot reverse {quantity}: only {self.reversible_quantity} left to reverse"]}
            )

        self.quantity_reversed = as_quantity(self.quantity_reversed) + quantity
        self.updated_at = datetime.now(UTC)
        self.raise_(
            StockIssuanceReversed(
                issuance_id=str(self.id),
                component_id=self.component_id,
                quantity_reversed=quantity,
                total_reversed=self.quantity_reversed,
                reason=reason,
                reversed_at=self.updated_at,
            )
        )


@ledger.repository(part_of=StockIssuance)
class StockIssuanceRepository:
    def by_external_reference(self, external_reference) -> list:
        rows = fetch_all(self, external_reference=external_reference)
        return sorted(rows, key=lambda row: row.created_at)

    def for_component(self, component_id) -> list:
        rows = fetch_all(self, component_id=str(component_id))
        return sorted(rows, key=lambda row: row.created_at)
