"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state; nothing is shared across users.
State tracks entity IDs returned by creation endpoints so follow-up
operations can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class SupplierOrderState:
    """Tracks state for a single supplier order lifecycle."""

    component_id: str | None = None
    supplier_order_id: str | None = None
    order_quantity: int = 0
    total_received: int = 0
    goods_return_numbers: list[str] = field(default_factory=list)


@dataclass
class ReturnBatchState:
    """Tracks a return batch shared by several supplier orders."""

    batch: dict | None = None
    supplier_order_ids: list[str] = field(default_factory=list)


@dataclass
class IssuanceState:
    """Tracks state for issuance and picking list journeys."""

    component_ids: list[str] = field(default_factory=list)
    issuance_ids: list[str] = field(default_factory=list)
    pending_issuance_id: str | None = None


@dataclass
class FinishedGoodsState:
    """Tracks state for a customer order's finished goods reservations."""

    order_id: str | None = None
    product_ids: list[str] = field(default_factory=list)
