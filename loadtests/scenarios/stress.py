"""Stress test scenarios for order numbering and version contention.

OrderFloodUser creates orders as fast as possible, so every request
allocates a fresh order number. PaymentRaceUser points many users at a
small pool of orders and records payments concurrently, forcing version
conflicts and retries inside the store.
"""

import random
import threading

from locust import HttpUser, constant_pacing, task

from loadtests.data_generators import order_data, payment_record

_shared_orders: list[str] = []
_shared_lock = threading.Lock()
POOL_SIZE = 5


class OrderFloodUser(HttpUser):
    """Stress test: maximum order creation throughput.

    Every task creates a new order. Watch for duplicate order numbers
    or 5xx responses under load.
    """

    wait_time = constant_pacing(0.1)  # ~10 requests/sec per user

    @task(5)
    def create_order(self):
        self.client.post("/orders", json=order_data(), name="[STRESS] POST /orders")

    @task(1)
    def lookup_by_number(self):
        resp = self.client.post("/orders", json=order_data(), name="[STRESS] POST /orders")
        if resp.status_code == 201:
            number = resp.json()["order_number"]
            self.client.get(f"/orders/by-number/{number}", name="[STRESS] GET /orders/by-number/{number}")


class PaymentRaceUser(HttpUser):
    """Stress test: concurrent payments against a shared pool of orders.

    Small amounts keep the orders open for a long time. A 409 here means
    the store ran out of write attempts.
    """

    wait_time = constant_pacing(0.05)  # ~20 req/sec per user

    def on_start(self):
        with _shared_lock:
            if len(_shared_orders) >= POOL_SIZE:
                return
            resp = self.client.post("/orders", json=order_data("paypal"), name="[RACE] POST /orders")
            if resp.status_code == 201:
                _shared_orders.append(resp.json()["id"])

    @task
    def record_small_payment(self):
        if not _shared_orders:
            return
        order_id = random.choice(_shared_orders)
        self.client.patch(
            f"/orders/{order_id}/payment",
            json=payment_record(1),
            name="[RACE] PATCH /orders/{id}/payment",
        )
