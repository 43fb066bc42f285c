"""Write-backs from the return document and supplier email collaborators.

A return document covers every row sharing a Goods Return Number, so each
write-back is applied to all of them. None of these commands touch
quantities.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, String, Text
from protean.utils.globals import current_domain

from stockledger.domain import ledger
from stockledger.purchasing.supplier_return import EmailStatus, SupplierOrderReturn

logger = structlog.get_logger(__name__)


@ledger.command(part_of="SupplierOrderReturn")
class RecordReturnDocument:
    goods_return_number = String(required=True, max_length=20)
    document_url = Text(required=True)


@ledger.command(part_of="SupplierOrderReturn")
class RecordReturnSignature:
    goods_return_number = String(required=True, max_length=20)
    signature_status = String(required=True, max_length=20)
    signed_document_url = Text()


@ledger.command(part_of="SupplierOrderReturn")
class RecordReturnEmail:
    goods_return_number = String(required=True, max_length=20)
    email_status = String(required=True, max_length=20)
    email_message_id = String(max_length=255)
    email_sent_at = DateTime()


def _returns_for_document(goods_return_number) -> list:
    rows = current_domain.repository_for(SupplierOrderReturn).by_goods_return_number(goods_return_number)
    if not rows:
        raise ObjectNotFoundError(f"No supplier return with goods return number {goods_return_number}")
    return rows


@ledger.command_handler(part_of=SupplierOrderReturn)
class ReturnDocumentHandler:
    @handle(RecordReturnDocument)
    def record_return_document(self, command):
        repo = current_domain.repository_for(SupplierOrderReturn)
        rows = _returns_for_document(command.goods_return_number)
        for row in rows:
            row.attach_document(command.document_url)
            repo.add(row)
        logger.info(
            "Return document attached",
            goods_return_number=command.goods_return_number,
            document_version=rows[0].document_version,
        )
        return {"goods_return_number": command.goods_return_number, "updated": len(rows)}

    @handle(RecordReturnSignature)
    def record_return_signature(self, command):
        repo = current_domain.repository_for(SupplierOrderReturn)
        rows = _returns_for_document(command.goods_return_number)
        advanced = 0
        for row in rows:
            if row.advance_signature(command.signature_status, command.signed_document_url):
                advanced += 1
            repo.add(row)
        return {"goods_return_number": command.goods_return_number, "updated": advanced}

    @handle(RecordReturnEmail)
    def record_return_email(self, command):
        repo = current_domain.repository_for(SupplierOrderReturn)
        rows = _returns_for_document(command.goods_return_number)
        for row in rows:
            row.record_email(
                command.email_status,
                email_message_id=command.email_message_id,
                email_sent_at=command.email_sent_at,
            )
            repo.add(row)
        if command.email_status == EmailStatus.FAILED.value:
            logger.warning("Supplier return email failed", goods_return_number=command.goods_return_number)
        return {"goods_return_number": command.goods_return_number, "updated": len(rows)}
