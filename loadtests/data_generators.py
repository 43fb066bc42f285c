"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the ledger's validation rules
(positive quantities, required reasons and external references) and match
the exact field names expected by the API's Pydantic request schemas.
"""

import random
import uuid

from faker import Faker

fake = Faker()

REJECTION_REASONS = ["Damaged in transit", "Wrong part", "Out of tolerance", "Missing certificate"]
RETURN_REASONS = ["Wrong revision", "Failed inspection", "Supplier recall", "Surplus"]
ISSUE_CATEGORIES = ["production", "samples", "wastage", "rework"]

# ---------- Inventory records ----------


def component_id() -> str:
    """Generate unique component IDs like 'CMP-LT-a1b2c3d4'."""
    return f"CMP-LT-{uuid.uuid4().hex[:8]}"


def inventory_record_data(component: str | None = None, initial_quantity: int | None = None) -> dict:
    """Generate CreateInventoryRecordRequest payload."""
    return {
        "component_id": component or component_id(),
        "initial_quantity": initial_quantity if initial_quantity is not None else random.randint(0, 200),
        "reorder_level": random.choice([0, 10, 25]),
        "location": f"Rack {random.randint(1, 40)}-{random.choice('ABCDEF')}",
        "unit_of_measure": random.choice(["pcs", "m", "kg"]),
    }


def adjustment_data(low: int = -5, high: int = 5) -> dict:
    """Generate AdjustStockRequest payload with a non-zero change."""
    change = random.choice([n for n in range(low, high + 1) if n != 0])
    return {"quantity_change": change, "reason": f"Cycle count by {fake.first_name()}"}


# ---------- Supplier orders ----------


def supplier_order_data(component: str, order_quantity: int | None = None) -> dict:
    """Generate PlaceSupplierOrderRequest payload."""
    return {
        "component_id": component,
        "order_quantity": order_quantity or random.randint(10, 100),
        "purchase_order_id": f"PO-{uuid.uuid4().hex[:6].upper()}",
        "supplier_id": f"SUP-{fake.company().split()[0][:12].upper()}",
    }


def receipt_data(quantity_received: int, quantity_rejected: int = 0) -> dict:
    """Generate ReceiveGoodsRequest payload; a rejection carries a reason."""
    payload = {"quantity_received": quantity_received, "quantity_rejected": quantity_rejected}
    if quantity_rejected:
        payload["rejection_reason"] = random.choice(REJECTION_REASONS)
    return payload


def return_data(quantity: int, batch: dict | None = None) -> dict:
    """Generate ReturnGoodsRequest payload, optionally inside a return batch."""
    payload = {"quantity": quantity, "reason": random.choice(RETURN_REASONS)}
    if batch:
        payload.update(batch_id=batch["batch_id"], goods_return_number=batch["goods_return_number"])
    return payload


# ---------- Issuance ----------


def external_reference() -> str:
    return f"WO-{random.randint(10000, 99999)}"


def issuance_data(component: str, quantity: int | None = None) -> dict:
    """Generate IssueStockRequest payload."""
    return {
        "component_id": component,
        "quantity": quantity or random.randint(1, 10),
        "external_reference": external_reference(),
        "issue_category": random.choice(ISSUE_CATEGORIES),
        "staff_id": fake.user_name()[:100],
    }


def picking_list_data(components: list[str]) -> dict:
    """Generate CreatePickingListRequest payload with one line per component."""
    return {
        "external_reference": external_reference(),
        "issue_category": "production",
        "lines": [{"component_id": c, "quantity": random.randint(1, 5)} for c in components],
    }


# ---------- Finished goods ----------


def product_id() -> str:
    return f"FG-LT-{uuid.uuid4().hex[:8]}"


def order_lines(products: list[str]) -> dict:
    """Generate ReserveFinishedGoodsRequest payload."""
    return {"lines": [{"product_id": p, "quantity": random.randint(1, 10)} for p in products]}
