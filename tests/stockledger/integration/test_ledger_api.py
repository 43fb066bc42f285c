"""Integration tests for the stock ledger API endpoints via TestClient."""

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from protean.exceptions import ExpectedVersionError
from protean import current_domain
from stockledger.api import register_error_handlers, routers
from stockledger.domain import ledger
from stockledger.issuance.picking_list import PendingStockIssuance
from stockledger.locking import balance_key, row_locks
from stockledger.purchasing.supplier_order import SupplierOrder


@pytest.fixture()
def client():
    app = FastAPI()

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        with ledger.domain_context():
            return await call_next(request)

    for router in routers:
        app.include_router(router)
    register_error_handlers(app)
    return TestClient(app)


def _create_record(client, component_id="comp-900", initial_quantity=0, **overrides):
    response = client.post(
        "/inventory",
        json={"component_id": component_id, "initial_quantity": initial_quantity, **overrides},
    )
    assert response.status_code == 201
    return response.json()


def _place_order(client, component_id="comp-900", order_quantity=10):
    response = client.post("/supplier-orders", json={"component_id": component_id, "order_quantity": order_quantity})
    assert response.status_code == 201
    return response.json()["supplier_order_id"]


class TestInventoryEndpoints:
    def test_create_and_read_balance(self, client):
        data = _create_record(client, initial_quantity=25, reorder_level=5, location="Rack 1")
        assert data == {"component_id": "comp-900", "created": True, "quantity_on_hand": 25}

        response = client.get("/inventory/comp-900")
        assert response.status_code == 200
        assert response.json()["reorder_level"] == 5
        assert response.json()["negative_balance"] is False

    def test_adjust_and_history(self, client):
        _create_record(client, initial_quantity=10)
        response = client.put("/inventory/comp-900/adjust", json={"quantity_change": -3, "reason": "Damaged"})
        assert response.status_code == 200
        assert response.json()["quantity_on_hand"] == 7

        history = client.get("/inventory/comp-900/transactions").json()["transactions"]
        assert [row["quantity"] for row in history] == [10, -3]

        reconciliation = client.get("/inventory/comp-900/reconciliation").json()
        assert reconciliation["balanced"] is True
        assert reconciliation["journal_total"] == 7

    def test_update_settings(self, client):
        _create_record(client)
        response = client.put("/inventory/comp-900/settings", json={"reorder_level": 12})
        assert response.status_code == 200
        assert client.get("/inventory/comp-900").json()["reorder_level"] == 12

    def test_unknown_component_is_a_client_error(self, client):
        response = client.get("/inventory/comp-none")
        assert response.status_code == 400

    def test_adjust_without_reason_is_rejected(self, client):
        _create_record(client, initial_quantity=10)
        response = client.put("/inventory/comp-900/adjust", json={"quantity_change": -3, "reason": " "})
        assert response.status_code == 400
        assert client.get("/inventory/comp-900").json()["quantity_on_hand"] == 10


class TestSupplierOrderEndpoints:
    def test_receive_reject_and_return(self, client):
        order_id = _place_order(client)

        response = client.post(
            f"/supplier-orders/{order_id}/receipts",
            json={"quantity_received": 6, "quantity_rejected": 2, "rejection_reason": "Damaged"},
        )
        assert response.status_code == 201
        receipt = response.json()
        assert receipt["status"] == "Partially Received"
        assert receipt["total_received"] == 6
        assert receipt["goods_return_number"].startswith("GRN-")

        response = client.post(f"/supplier-orders/{order_id}/returns", json={"quantity": 1, "reason": "Wrong revision"})
        assert response.status_code == 201
        assert response.json()["total_received"] == 5
        assert response.json()["quantity_on_hand"] == 5

        order = client.get(f"/supplier-orders/{order_id}").json()
        assert order["remaining_to_fulfill"] == 5

    def test_over_return_is_rejected(self, client):
        order_id = _place_order(client)
        client.post(f"/supplier-orders/{order_id}/receipts", json={"quantity_received": 2})

        response = client.post(f"/supplier-orders/{order_id}/returns", json={"quantity": 3, "reason": "Wrong revision"})

        assert response.status_code == 400
        assert client.get("/inventory/comp-900").json()["quantity_on_hand"] == 2

    def test_request_schema_rejects_non_positive_quantity(self, client):
        response = client.post("/supplier-orders", json={"component_id": "comp-900", "order_quantity": 0})
        assert response.status_code == 422

    def test_cancel(self, client):
        order_id = _place_order(client)
        response = client.put(f"/supplier-orders/{order_id}/cancel")
        assert response.status_code == 200
        assert current_domain.repository_for(SupplierOrder).get(order_id).status == "Cancelled"


class TestSupplierReturnEndpoints:
    def test_batch_shares_one_document(self, client):
        batch = client.post("/supplier-returns/batches").json()
        for component_id in ("comp-901", "comp-902"):
            order_id = _place_order(client, component_id=component_id)
            client.post(f"/supplier-orders/{order_id}/receipts", json={"quantity_received": 4})
            response = client.post(
                f"/supplier-orders/{order_id}/returns",
                json={"quantity": 1, "reason": "Out of tolerance", **batch},
            )
            assert response.json()["goods_return_number"] == batch["goods_return_number"]

        grn = batch["goods_return_number"]
        listing = client.get("/supplier-returns", params={"batch_id": batch["batch_id"]}).json()["returns"]
        assert len(listing) == 2

        response = client.put(f"/supplier-returns/{grn}/document", json={"document_url": "https://docs/a.pdf"})
        assert response.json() == {"goods_return_number": grn, "updated": 2}

        response = client.put(f"/supplier-returns/{grn}/signature", json={"signature_status": "driver"})
        assert response.json()["updated"] == 2

        response = client.put(f"/supplier-returns/{grn}/email", json={"email_status": "sent", "email_message_id": "m1"})
        assert response.status_code == 200

        listing = client.get("/supplier-returns", params={"goods_return_number": grn}).json()["returns"]
        assert {row["signature_status"] for row in listing} == {"driver"}
        assert {row["document_version"] for row in listing} == {1}


class TestIssuanceEndpoints:
    def test_issue_and_reverse(self, client):
        _create_record(client, initial_quantity=5)

        response = client.post(
            "/stock-issuances",
            json={"component_id": "comp-900", "quantity": 7, "external_reference": "WO-1"},
        )
        assert response.status_code == 201
        issued = response.json()
        assert issued["negative_balance"] is True
        assert issued["quantity_on_hand"] == -2

        response = client.post(f"/stock-issuances/{issued['issuance_id']}/reverse", json={"quantity": 3})
        assert response.status_code == 201
        assert response.json()["quantity_on_hand"] == 1

    def test_picking_list_lifecycle(self, client):
        _create_record(client, component_id="comp-901", initial_quantity=10)
        _create_record(client, component_id="comp-902", initial_quantity=10)

        response = client.post(
            "/picking-lists",
            json={
                "external_reference": "WO-2",
                "lines": [{"component_id": "comp-901", "quantity": 2}, {"component_id": "comp-902", "quantity": 3}],
            },
        )
        assert response.status_code == 201
        pending_id = response.json()["pending_issuance_id"]

        pending = client.get("/picking-lists").json()["picking_lists"]
        assert [row["pending_issuance_id"] for row in pending] == [pending_id]

        response = client.put(f"/picking-lists/{pending_id}/complete")
        assert response.status_code == 200
        assert len(response.json()["issuances"]) == 2
        assert client.get("/inventory/comp-902").json()["quantity_on_hand"] == 7

        assert client.put(f"/picking-lists/{pending_id}/cancel").status_code == 400

    def test_picking_list_with_unknown_component(self, client):
        response = client.post(
            "/picking-lists",
            json={"external_reference": "WO-3", "lines": [{"component_id": "comp-none", "quantity": 1}]},
        )
        assert response.status_code == 400
        assert current_domain.repository_for(PendingStockIssuance).with_status("pending") == []


class TestFinishedGoodsEndpoints:
    def test_reserve_release_consume(self, client):
        response = client.post("/finished-goods/prod-1", json={"quantity": 5})
        assert response.json() == {"product_id": "prod-1", "quantity_on_hand": 5}

        lines = {"lines": [{"product_id": "prod-1", "quantity": 8}]}
        response = client.post("/finished-goods/orders/order-1/reserve", json=lines)
        assert response.status_code == 200
        assert response.json()["reservations"] == [{"product_id": "prod-1", "quantity_reserved": 5}]

        assert client.post("/finished-goods/orders/order-1/release").json()["released"] == 1

        client.post("/finished-goods/orders/order-1/reserve", json=lines)
        consumed = client.post("/finished-goods/orders/order-1/consume").json()["consumed"]
        assert consumed == [{"product_id": "prod-1", "quantity_consumed": 5}]


class TestRowLockTimeout:
    def test_blocked_writer_gets_retryable_conflict(self, client, monkeypatch):
        _create_record(client, initial_quantity=10)
        monkeypatch.setenv("STOCKLEDGER_LOCK_TIMEOUT", "0.05")

        with row_locks.hold(balance_key("comp-900")):
            response = client.put("/inventory/comp-900/adjust", json={"quantity_change": -1, "reason": "Count"})

        assert response.status_code == 409
        assert response.json()["retryable"] is True
        assert client.get("/inventory/comp-900").json()["quantity_on_hand"] == 10


class TestVersionConflict:
    def test_lost_version_race_is_a_retryable_conflict(self, client, monkeypatch):
        _create_record(client, initial_quantity=10)

        def conflicting_run(command):
            raise ExpectedVersionError("Wrong expected version: 3 (Aggregate: InventoryBalance(comp-900), Version: 4)")

        monkeypatch.setattr("stockledger.api.routes.run", conflicting_run)
        response = client.put("/inventory/comp-900/adjust", json={"quantity_change": -1, "reason": "Count"})

        assert response.status_code == 409
        assert response.json()["retryable"] is True


class TestFractionalQuantities:
    def test_fractional_receipts_complete_the_order(self, client):
        _create_record(client, component_id="comp-901", initial_quantity=0)
        order_id = _place_order(client, component_id="comp-901", order_quantity="0.3")

        client.post(f"/supplier-orders/{order_id}/receipts", json={"quantity_received": "0.1"})
        response = client.post(f"/supplier-orders/{order_id}/receipts", json={"quantity_received": "0.2"})

        assert response.status_code == 201
        assert client.get(f"/supplier-orders/{order_id}").json()["status"] == "Fully Received"
        assert client.get("/inventory/comp-901").json()["quantity_on_hand"] == 0.3
