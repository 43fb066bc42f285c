"""Supplier receiving load test scenarios.

Stateful SequentialTaskSet journeys covering deliveries with gate
rejections, returns from stock and batched supplier return documents.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import (
    component_id,
    inventory_record_data,
    receipt_data,
    return_data,
    supplier_order_data,
)
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import ReturnBatchState, SupplierOrderState


def place_order(client, state: SupplierOrderState) -> bool:
    with client.post(
        "/supplier-orders",
        json=supplier_order_data(state.component_id),
        catch_response=True,
        name="POST /supplier-orders",
    ) as resp:
        if resp.status_code == 201:
            state.supplier_order_id = resp.json()["supplier_order_id"]
            state.order_quantity = 0
            return True
        resp.failure(f"Place order failed: {resp.status_code}: {extract_error_detail(resp)}")
        return False


class DeliveryJourney(SequentialTaskSet):
    """Create Record -> Place Order -> Receive with rejection -> Receive rest -> Check.

    Models goods inwards booking two deliveries against one supplier order,
    refusing part of the first at the gate.
    """

    def on_start(self):
        self.state = SupplierOrderState(component_id=component_id())

    @task
    def create_record(self):
        with self.client.post(
            "/inventory",
            json=inventory_record_data(self.state.component_id, initial_quantity=0),
            catch_response=True,
            name="POST /inventory",
        ) as resp:
            if resp.status_code != 201:
                resp.failure(f"Create record failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def place_order(self):
        if not place_order(self.client, self.state):
            self.interrupt()

    @task
    def first_delivery(self):
        with self.client.get(
            f"/supplier-orders/{self.state.supplier_order_id}",
            catch_response=True,
            name="GET /supplier-orders/{id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Get order failed: {extract_error_detail(resp)}")
                self.interrupt()
            self.state.order_quantity = int(resp.json()["order_quantity"])

        received = self.state.order_quantity // 2
        rejected = random.randint(1, max(1, self.state.order_quantity // 10))
        with self.client.post(
            f"/supplier-orders/{self.state.supplier_order_id}/receipts",
            json=receipt_data(received, rejected),
            catch_response=True,
            name="POST /supplier-orders/{id}/receipts",
        ) as resp:
            if resp.status_code == 201:
                self.state.total_received = received
                self.state.goods_return_numbers.append(resp.json()["goods_return_number"])
            else:
                resp.failure(f"Receive failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def second_delivery(self):
        remaining = self.state.order_quantity - self.state.total_received
        with self.client.post(
            f"/supplier-orders/{self.state.supplier_order_id}/receipts",
            json=receipt_data(remaining),
            catch_response=True,
            name="POST /supplier-orders/{id}/receipts",
        ) as resp:
            if resp.status_code == 201 and resp.json()["status"] == "Fully Received":
                self.state.total_received += remaining
            else:
                resp.failure(f"Second delivery failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def reconcile(self):
        with self.client.get(
            f"/inventory/{self.state.component_id}/reconciliation",
            catch_response=True,
            name="GET /inventory/{id}/reconciliation",
        ) as resp:
            if resp.status_code != 200 or not resp.json()["balanced"]:
                resp.failure(f"Ledger out of balance: {resp.text[:300]}")

    @task
    def done(self):
        self.interrupt()


class BatchReturnJourney(SequentialTaskSet):
    """Open Batch -> (Place Order -> Receive -> Return) x N -> Document -> Sign -> Email.

    Models a buyer returning goods from several supplier orders to the same
    supplier under one goods return document.
    """

    def on_start(self):
        self.batch_state = ReturnBatchState()

    @task
    def open_batch(self):
        with self.client.post(
            "/supplier-returns/batches",
            catch_response=True,
            name="POST /supplier-returns/batches",
        ) as resp:
            if resp.status_code == 201:
                self.batch_state.batch = resp.json()
            else:
                resp.failure(f"Open batch failed: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def return_from_orders(self):
        for _ in range(random.randint(2, 4)):
            state = SupplierOrderState(component_id=component_id())
            if not place_order(self.client, state):
                continue
            with self.client.post(
                f"/supplier-orders/{state.supplier_order_id}/receipts",
                json=receipt_data(10),
                catch_response=True,
                name="POST /supplier-orders/{id}/receipts",
            ) as resp:
                if resp.status_code != 201:
                    resp.failure(f"Receive failed: {extract_error_detail(resp)}")
                    continue
            with self.client.post(
                f"/supplier-orders/{state.supplier_order_id}/returns",
                json=return_data(random.randint(1, 10), batch=self.batch_state.batch),
                catch_response=True,
                name="POST /supplier-orders/{id}/returns",
            ) as resp:
                if resp.status_code == 201:
                    self.batch_state.supplier_order_ids.append(state.supplier_order_id)
                else:
                    resp.failure(f"Return failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def write_back_document(self):
        grn = self.batch_state.batch["goods_return_number"]
        updates = [
            ("document", {"document_url": f"https://documents.example.com/{grn}.pdf"}),
            ("signature", {"signature_status": "operator"}),
            ("signature", {"signature_status": "driver"}),
            ("email", {"email_status": "sent", "email_message_id": f"<{grn}@mail.example.com>"}),
        ]
        for endpoint, payload in updates:
            with self.client.put(
                f"/supplier-returns/{grn}/{endpoint}",
                json=payload,
                catch_response=True,
                name=f"PUT /supplier-returns/{{grn}}/{endpoint}",
            ) as resp:
                if resp.status_code != 200:
                    resp.failure(f"{endpoint} write-back failed: {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class ReceivingUser(HttpUser):
    """Locust user simulating goods inwards and supplier returns.

    Weighted distribution:
    - 70% Deliveries (daily receiving)
    - 30% Batched returns (weekly supplier returns)
    """

    wait_time = between(0.5, 2.0)
    tasks = {
        DeliveryJourney: 7,
        BatchReturnJourney: 3,
    }
