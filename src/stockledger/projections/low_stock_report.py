"""Low stock report: components sitting at or below their reorder level."""

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, DateTime, Decimal, Identifier
from protean.utils.globals import current_domain

from stockledger.balance.balance import InventoryBalance
from stockledger.balance.events import LowStockDetected, StockLevelChanged
from stockledger.domain import ledger
from stockledger.ledger.quantities import ZERO


@ledger.projection
class LowStockReport:
    component_id = Identifier(identifier=True, required=True)
    quantity_on_hand = Decimal(default=ZERO)
    reorder_level = Decimal(default=ZERO)
    is_critical = Boolean(default=False)  # on hand <= 0
    detected_at = DateTime()


@ledger.projector(projector_for=LowStockReport, aggregates=[InventoryBalance])
class LowStockReportProjector:
    @on(LowStockDetected)
    def on_low_stock_detected(self, event):
        repo = current_domain.repository_for(LowStockReport)
        try:
            report = repo.get(event.component_id)
            report.quantity_on_hand = event.quantity_on_hand
            report.reorder_level = event.reorder_level
            report.is_critical = event.quantity_on_hand <= 0
            report.detected_at = event.detected_at
        except ObjectNotFoundError:
            report = LowStockReport(
                component_id=event.component_id,
                quantity_on_hand=event.quantity_on_hand,
                reorder_level=event.reorder_level,
                is_critical=event.quantity_on_hand <= 0,
                detected_at=event.detected_at,
            )
        repo.add(report)

    @on(StockLevelChanged)
    def on_stock_level_changed(self, event):
        """Drop the component from the report once it is restocked above its reorder level."""
        repo = current_domain.repository_for(LowStockReport)
        try:
            report = repo.get(event.component_id)
        except ObjectNotFoundError:
            return

        if event.new_quantity > report.reorder_level:
            repo._dao.delete(report)
        else:
            report.quantity_on_hand = event.new_quantity
            report.is_critical = event.new_quantity <= 0
            repo.add(report)
