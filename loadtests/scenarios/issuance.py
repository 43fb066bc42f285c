"""Issuance load test scenarios.

Direct issuance with partial reversal, and picking lists that are either
issued or cancelled.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import (
    component_id,
    inventory_record_data,
    issuance_data,
    order_lines,
    picking_list_data,
    product_id,
)
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import FinishedGoodsState, IssuanceState


class StockedComponentsMixin:
    def create_components(self, count: int, initial_quantity: int = 50):
        for _ in range(count):
            component = component_id()
            with self.client.post(
                "/inventory",
                json=inventory_record_data(component, initial_quantity=initial_quantity),
                catch_response=True,
                name="POST /inventory",
            ) as resp:
                if resp.status_code == 201:
                    self.state.component_ids.append(component)
                else:
                    resp.failure(f"Create record failed: {extract_error_detail(resp)}")
        if not self.state.component_ids:
            self.interrupt()


class DirectIssuanceJourney(StockedComponentsMixin, SequentialTaskSet):
    """Create Record -> Issue x N -> Reverse one -> Check history."""

    def on_start(self):
        self.state = IssuanceState()

    @task
    def create_record(self):
        self.create_components(1)

    @task
    def issue(self):
        for _ in range(random.randint(1, 4)):
            with self.client.post(
                "/stock-issuances",
                json=issuance_data(self.state.component_ids[0]),
                catch_response=True,
                name="POST /stock-issuances",
            ) as resp:
                if resp.status_code == 201:
                    self.state.issuance_ids.append(resp.json()["issuance_id"])
                else:
                    resp.failure(f"Issue failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def reverse(self):
        if not self.state.issuance_ids:
            return
        with self.client.post(
            f"/stock-issuances/{self.state.issuance_ids[0]}/reverse",
            json={"quantity": 1, "reason": "Returned unused"},
            catch_response=True,
            name="POST /stock-issuances/{id}/reverse",
        ) as resp:
            if resp.status_code != 201:
                resp.failure(f"Reverse failed: {extract_error_detail(resp)}")

    @task
    def history(self):
        self.client.get(
            f"/inventory/{self.state.component_ids[0]}/transactions",
            name="GET /inventory/{id}/transactions",
        )

    @task
    def done(self):
        self.interrupt()


class PickingListJourney(StockedComponentsMixin, SequentialTaskSet):
    """Create Records -> Create Picking List -> List Pending -> Complete or Cancel."""

    def on_start(self):
        self.state = IssuanceState()

    @task
    def create_records(self):
        self.create_components(random.randint(2, 5))

    @task
    def create_picking_list(self):
        with self.client.post(
            "/picking-lists",
            json=picking_list_data(self.state.component_ids),
            catch_response=True,
            name="POST /picking-lists",
        ) as resp:
            if resp.status_code == 201:
                self.state.pending_issuance_id = resp.json()["pending_issuance_id"]
            else:
                resp.failure(f"Create picking list failed: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def list_pending(self):
        self.client.get("/picking-lists", name="GET /picking-lists")

    @task
    def complete_or_cancel(self):
        action = "complete" if random.random() < 0.8 else "cancel"
        with self.client.put(
            f"/picking-lists/{self.state.pending_issuance_id}/{action}",
            catch_response=True,
            name=f"PUT /picking-lists/{{id}}/{action}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"{action} failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class FinishedGoodsJourney(SequentialTaskSet):
    """Add Stock -> Reserve -> Re-reserve -> Consume or Release."""

    def on_start(self):
        self.state = FinishedGoodsState(order_id=f"SO-{random.randint(100000, 999999)}")

    @task
    def add_stock(self):
        for _ in range(random.randint(1, 3)):
            product = product_id()
            with self.client.post(
                f"/finished-goods/{product}",
                json={"quantity": random.randint(5, 30)},
                catch_response=True,
                name="POST /finished-goods/{id}",
            ) as resp:
                if resp.status_code == 200:
                    self.state.product_ids.append(product)
                else:
                    resp.failure(f"Add finished goods failed: {extract_error_detail(resp)}")

    @task
    def reserve(self):
        for _ in range(2):
            with self.client.post(
                f"/finished-goods/orders/{self.state.order_id}/reserve",
                json=order_lines(self.state.product_ids),
                catch_response=True,
                name="POST /finished-goods/orders/{id}/reserve",
            ) as resp:
                if resp.status_code != 200:
                    resp.failure(f"Reserve failed: {extract_error_detail(resp)}")

    @task
    def consume_or_release(self):
        action = "consume" if random.random() < 0.7 else "release"
        with self.client.post(
            f"/finished-goods/orders/{self.state.order_id}/{action}",
            catch_response=True,
            name=f"POST /finished-goods/orders/{{id}}/{action}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"{action} failed: {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class IssuanceUser(HttpUser):
    """Locust user simulating production issuing stock and dispatch consuming finished goods.

    Weighted distribution:
    - 40% Direct issuance
    - 35% Picking lists
    - 25% Finished goods reservations
    """

    wait_time = between(0.5, 2.0)
    tasks = {
        DirectIssuanceJourney: 8,
        PickingListJourney: 7,
        FinishedGoodsJourney: 5,
    }
