"""Row lock contention scenario.

Every user hammers the same small set of components with adjustments and
issuances, so writers queue on the same row locks. A 409 with
``retryable: true`` is the expected answer to a writer that waited too
long and is counted as a success; anything else is a failure. At the end
each component's balance must still reconcile with its journal.
"""

import random

import requests
from locust import HttpUser, between, events, task

from loadtests.data_generators import adjustment_data, inventory_record_data, issuance_data
from loadtests.helpers.response import extract_error_detail

HOT_COMPONENTS = [f"CMP-HOT-{n:02d}" for n in range(5)]


@events.test_start.add_listener
def create_hot_components(environment, **_kwargs):
    """Create the shared records once; creation is idempotent."""
    for component in HOT_COMPONENTS:
        requests.post(
            f"{environment.host}/inventory",
            json=inventory_record_data(component, initial_quantity=1000),
            timeout=10,
        )


@events.test_stop.add_listener
def check_hot_components(environment, **_kwargs):
    for component in HOT_COMPONENTS:
        resp = requests.get(f"{environment.host}/inventory/{component}/reconciliation", timeout=10)
        if resp.status_code == 200:
            body = resp.json()
            marker = "OK" if body["balanced"] else "OUT OF BALANCE"
            print(f"[CONTENTION] {component}: on hand {body['quantity_on_hand']} [{marker}]")


class RowContentionUser(HttpUser):
    """Many writers, few rows."""

    wait_time = between(0.05, 0.3)

    def _check(self, resp, expected: int):
        if resp.status_code == expected:
            return
        if resp.status_code == 409 and resp.json().get("retryable"):
            resp.success()
            return
        resp.failure(f"{resp.status_code}: {extract_error_detail(resp)}")

    @task(3)
    def adjust(self):
        component = random.choice(HOT_COMPONENTS)
        payload = adjustment_data()
        payload["allow_negative"] = True
        with self.client.put(
            f"/inventory/{component}/adjust",
            json=payload,
            catch_response=True,
            name="PUT /inventory/{hot}/adjust",
        ) as resp:
            self._check(resp, 200)

    @task(2)
    def issue(self):
        with self.client.post(
            "/stock-issuances",
            json=issuance_data(random.choice(HOT_COMPONENTS), quantity=1),
            catch_response=True,
            name="POST /stock-issuances (hot)",
        ) as resp:
            self._check(resp, 201)

    @task(1)
    def read_balance(self):
        self.client.get(f"/inventory/{random.choice(HOT_COMPONENTS)}", name="GET /inventory/{hot}")
