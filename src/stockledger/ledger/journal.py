"""Posting rules: the only code path that changes a quantity on hand.

``post`` appends journal rows and moves the balance together, inside the
caller's Unit of Work. Because journal rows are never edited, a balance that
was clipped by a non-negative floor gets an explicit compensating
``adjustment`` row, which keeps ``sum(rows) == quantity_on_hand`` exact.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from protean.utils.globals import current_domain

from stockledger.balance.balance import InventoryBalance
from stockledger.ledger.quantities import ZERO, as_quantity
from stockledger.ledger.transaction import InventoryTransaction, TransactionType

FLOOR_COMPENSATION_REASON = "Balance floored at zero"


@dataclass
class Posting:
    component_id: str
    previous_quantity: Decimal
    new_quantity: Decimal
    transactions: list = field(default_factory=list)

    @property
    def applied(self) -> Decimal:
        return self.new_quantity - self.previous_quantity

    @property
    def floored(self) -> bool:
        return len(self.transactions) > 1

    @property
    def transaction_id(self) -> str:
        return str(self.transactions[0].id)


def post(
    balance: InventoryBalance,
    quantity,
    transaction_type: TransactionType,
    reason: str | None = None,
    occurred_at=None,
    floor_at_zero: bool = False,
    **links,
) -> Posting:
    transaction = InventoryTransaction.record(
        component_id=balance.component_id,
        quantity=quantity,
        transaction_type=transaction_type,
        reason=reason,
        occurred_at=occurred_at,
        **links,
    )

    previous = as_quantity(balance.quantity_on_hand)
    applied = balance.apply_delta(transaction.quantity, floor_at_zero=floor_at_zero)
    rows = [transaction]

    clipped = as_quantity(applied) - transaction.quantity
    if clipped:
        rows.append(
            InventoryTransaction.record(
                component_id=balance.component_id,
                quantity=clipped,
                transaction_type=TransactionType.ADJUSTMENT,
                reason=FLOOR_COMPENSATION_REASON,
                occurred_at=occurred_at,
                **links,
            )
        )

    repo = current_domain.repository_for(InventoryTransaction)
    for row in rows:
        repo.add(row)
    current_domain.repository_for(InventoryBalance).add(balance)

    return Posting(
        component_id=balance.component_id,
        previous_quantity=previous,
        new_quantity=balance.quantity_on_hand,
        transactions=rows,
    )


def record_gate_rejection(component_id, quantity, reason, occurred_at=None, **links) -> list:
    """Journal goods that arrived and were refused at the gate.

    The goods never enter stock, so the arrival and the refusal are written
    as a pair that nets to zero and the balance is not touched.
    """
    quantity = as_quantity(quantity)
    arrival = InventoryTransaction.record(
        component_id=component_id,
        quantity=quantity,
        transaction_type=TransactionType.PURCHASE,
        reason=f"Arrived at gate: {reason}",
        occurred_at=occurred_at,
        **links,
    )
    refusal = InventoryTransaction.record(
        component_id=component_id,
        quantity=-quantity,
        transaction_type=TransactionType.RETURN,
        reason=f"Rejected at gate: {reason}",
        occurred_at=occurred_at,
        **links,
    )

    repo = current_domain.repository_for(InventoryTransaction)
    repo.add(arrival)
    repo.add(refusal)
    return [arrival, refusal]


def reconcile(component_id) -> dict:
    """Compare a component's balance with the sum of its journal rows."""
    balance = current_domain.repository_for(InventoryBalance).find(component_id)
    journal_total = current_domain.repository_for(InventoryTransaction).net_quantity_for(component_id)
    on_hand = as_quantity(balance.quantity_on_hand) if balance else ZERO
    return {
        "component_id": str(component_id),
        "quantity_on_hand": on_hand,
        "journal_total": journal_total,
        "difference": on_hand - journal_total,
        "balanced": on_hand == journal_total,
    }
