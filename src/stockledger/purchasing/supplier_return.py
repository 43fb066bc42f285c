"""SupplierOrderReturn aggregate: goods refused at the gate or sent back from stock.

Every row carries a Goods Return Number. Rows written for several components
under one return document share a ``batch_id`` and that batch's GRN.
Document, signature and email fields are written back by collaborators and
never affect quantities.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Decimal, Identifier, Integer, String, Text

from stockledger.domain import ledger
from stockledger.ledger.quantities import ZERO
from stockledger.purchasing.events import (
    ReturnDocumentAttached,
    ReturnEmailRecorded,
    ReturnSignatureAdvanced,
    SupplierReturnRecorded,
)
from stockledger.purchasing.grn import parse_goods_return_number
from stockledger.utils.query import fetch_all


class ReturnType(Enum):
    REJECTION = "rejection"
    LATER_RETURN = "later_return"


class SignatureStatus(Enum):
    NONE = "none"
    OPERATOR = "operator"
    DRIVER = "driver"


SIGNATURE_ORDER = [SignatureStatus.NONE, SignatureStatus.OPERATOR, SignatureStatus.DRIVER]


class EmailStatus(Enum):
    SENT = "sent"
    SKIPPED = "skipped"
    FAILED = "failed"


def _choice(enum_cls, value, field_name):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError({field_name: [f"Invalid {field_name}: {value}"]}) from None


@ledger.aggregate
class SupplierOrderReturn:
    supplier_order_id = Identifier(required=True)
    component_id = Identifier(required=True)
    quantity_returned = Decimal(required=True)
    reason = Text(required=True)
    return_type = String(max_length=20, choices=ReturnType, required=True)
    goods_return_number = String(max_length=20, required=True)
    batch_id = Identifier()
    receipt_id = Identifier()
    transaction_id = Identifier()
    notes = Text()
    returned_at = DateTime(required=True)

    signature_status = String(
        max_length=20,
        choices=SignatureStatus,
        default=SignatureStatus.NONE.value,
    )
    document_url = Text()
    signed_document_url = Text()
    document_version = Integer(default=0)

    email_status = String(max_length=20, choices=EmailStatus)
    email_sent_at = DateTime()
    email_message_id = String(max_length=255)

    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(
        cls,
        supplier_order_id,
        component_id,
        quantity_returned,
        reason,
        return_type,
        goods_return_number,
        batch_id=None,
        receipt_id=None,
        notes=None,
        signature_status=None,
        returned_at=None,
    ):
        return_type = _choice(ReturnType, return_type, "return_type").value
        signature_status = _choice(
            SignatureStatus,
            signature_status or SignatureStatus.NONE.value,
            "signature_status",
        ).value

        now = datetime.now(UTC)
        supplier_return = cls(
            supplier_order_id=str(supplier_order_id),
            component_id=str(component_id),
            quantity_returned=quantity_returned,
            reason=reason,
            return_type=return_type,
            goods_return_number=goods_return_number,
            batch_id=batch_id,
            receipt_id=receipt_id,
            notes=notes,
            signature_status=signature_status,
            returned_at=returned_at or now,
            created_at=now,
            updated_at=now,
        )
        supplier_return.raise_(
            SupplierReturnRecorded(
                return_id=str(supplier_return.id),
                supplier_order_id=supplier_return.supplier_order_id,
                component_id=supplier_return.component_id,
                quantity_returned=quantity_returned,
                return_type=return_type,
                reason=reason,
                goods_return_number=goods_return_number,
                batch_id=batch_id,
                returned_at=supplier_return.returned_at,
            )
        )
        return supplier_return

    def attach_document(self, document_url):
        """Store a freshly rendered return document. Each render bumps the version."""
        if not document_url:
            raise ValidationError({"document_url": ["Document URL is required"]})

        self.document_url = document_url
        self.document_version = (self.document_version or 0) + 1
        self.updated_at = datetime.now(UTC)
        self.raise_(
            ReturnDocumentAttached(
                return_id=str(self.id),
                goods_return_number=self.goods_return_number,
                document_url=document_url,
                document_version=self.document_version,
                attached_at=self.updated_at,
            )
        )

    def advance_signature(self, signature_status, signed_document_url=None) -> bool:
        """Move the signature forward. Returns False when already at that stage.

        Signatures only accumulate (none, then operator, then driver); moving
        back to an earlier stage is rejected.
        """
        target = _choice(SignatureStatus, signature_status, "signature_status")
        current = SignatureStatus(self.signature_status)

        if SIGNATURE_ORDER.index(target) < SIGNATURE_ORDER.index(current):
            raise ValidationError(
                {"signature_status": [f"Cannot move signature from {current.value} back to {target.value}"]}
            )

        if signed_document_url:
            self.signed_document_url = signed_document_url
        if target == current:
            return False

        self.signature_status = target.value
        self.updated_at = datetime.now(UTC)
        self.raise_(
            ReturnSignatureAdvanced(
                return_id=str(self.id),
                goods_return_number=self.goods_return_number,
                previous_status=current.value,
                new_status=target.value,
                signed_at=self.updated_at,
            )
        )
        return True

    def record_email(self, email_status, email_message_id=None, email_sent_at=None):
        status = _choice(EmailStatus, email_status, "email_status")
        if status == EmailStatus.SENT and not email_message_id:
            raise ValidationError({"email_message_id": ["A sent email needs its message id"]})

        now = datetime.now(UTC)
        self.email_status = status.value
        self.email_message_id = email_message_id
        self.email_sent_at = (email_sent_at or now) if status == EmailStatus.SENT else None
        self.updated_at = now
        self.raise_(
            ReturnEmailRecorded(
                return_id=str(self.id),
                goods_return_number=self.goods_return_number,
                email_status=status.value,
                email_message_id=email_message_id,
                recorded_at=now,
            )
        )


@ledger.repository(part_of=SupplierOrderReturn)
class SupplierOrderReturnRepository:
    def add(self, supplier_return):
        try:
            stored = self._dao.get(supplier_return.id)
        except ObjectNotFoundError:
            return super().add(supplier_return)
        if stored.return_type != supplier_return.return_type:
            raise InvalidOperationError(f"Return type of {supplier_return.id} cannot change once recorded")
        return super().add(supplier_return)

    def for_order(self, supplier_order_id) -> list:
        rows = fetch_all(self, supplier_order_id=str(supplier_order_id))
        return sorted(rows, key=lambda row: row.created_at)

    def by_goods_return_number(self, goods_return_number) -> list:
        rows = fetch_all(self, goods_return_number=goods_return_number)
        return sorted(rows, key=lambda row: row.created_at)

    def by_batch(self, batch_id) -> list:
        rows = fetch_all(self, batch_id=str(batch_id))
        return sorted(rows, key=lambda row: row.created_at)

    def later_returns_total_for(self, supplier_order_id):
        return sum(
            (
                row.quantity_returned
                for row in fetch_all(self, supplier_order_id=str(supplier_order_id))
                if row.return_type == ReturnType.LATER_RETURN.value
            ),
            ZERO,
        )

    def highest_goods_return_number(self) -> str | None:
        """The stored GRN with the largest sequence number, if any."""
        numbers = [row.goods_return_number for row in fetch_all(self) if row.goods_return_number]
        if not numbers:
            return None
        return max(numbers, key=lambda grn: parse_goods_return_number(grn)[1])
