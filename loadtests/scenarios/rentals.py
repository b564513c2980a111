"""Rental order load test scenarios.

Stateful SequentialTaskSet journeys covering the order lifecycle:
create, send the agreement, receive the signed webhook, then pay. A
contention journey replays payments and stale writes against a single
order to exercise optimistic versioning.
"""

import os

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import order_data, order_patch, payment_record, signed_webhook
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import OrderState

ADMIN_ID = os.environ.get("LOADTEST_ADMIN_ID", "admin-001")


class _OrderJourney(SequentialTaskSet):
    def on_start(self):
        self.state = OrderState()

    def create_order(self, payment_method: str | None = None):
        with self.client.post(
            "/orders",
            json=order_data(payment_method),
            catch_response=True,
            name="POST /orders",
        ) as resp:
            if resp.status_code == 201:
                self.state.absorb(resp)
            else:
                resp.failure(f"Create order failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    def record_payment(self, amount: int, name: str = "PATCH /orders/{id}/payment"):
        payload = payment_record(amount)
        with self.client.patch(
            f"/orders/{self.state.order_id}/payment",
            json=payload,
            catch_response=True,
            name=name,
        ) as resp:
            if resp.status_code == 200:
                self.state.absorb(resp)
                self.state.transaction_ids.append(payload["transactionId"])
            else:
                resp.failure(f"Record payment failed: {resp.status_code}: {extract_error_detail(resp)}")
        return payload


class SignedOrderJourney(_OrderJourney):
    """Create -> Send Agreement -> Signed Webhook -> Initiate -> Record Payment.

    The happy path. Ends with the order Paid and delivery released.
    """

    @task
    def create(self):
        self.create_order("paypal")

    @task
    def send_agreement(self):
        with self.client.post(
            f"/orders/{self.state.order_id}/send-agreement",
            catch_response=True,
            name="POST /orders/{id}/send-agreement",
        ) as resp:
            if resp.status_code == 200:
                self.state.absorb(resp)
            else:
                resp.failure(f"Send agreement failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def webhook_viewed(self):
        body, headers = signed_webhook(self.state.submission_id, "viewed")
        with self.client.post(
            "/webhooks/signature",
            data=body,
            headers=headers,
            catch_response=True,
            name="POST /webhooks/signature (viewed)",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Viewed webhook failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def webhook_completed(self):
        body, headers = signed_webhook(self.state.submission_id, "completed")
        with self.client.post(
            "/webhooks/signature",
            data=body,
            headers=headers,
            catch_response=True,
            name="POST /webhooks/signature (completed)",
        ) as resp:
            if resp.status_code == 200:
                self.state.agreement_status = resp.json().get("agreement_status") or self.state.agreement_status
            else:
                resp.failure(f"Completed webhook failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def initiate_payment(self):
        with self.client.post(
            f"/orders/{self.state.order_id}/payment",
            json={"amount": self.state.balance_due, "currency": "USD"},
            catch_response=True,
            name="POST /orders/{id}/payment",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Initiate payment failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def capture_payment(self):
        self.record_payment(self.state.balance_due)

    @task
    def check_agreement(self):
        with self.client.get(
            f"/orders/{self.state.order_id}/send-agreement",
            catch_response=True,
            name="GET /orders/{id}/send-agreement",
        ) as resp:
            if resp.status_code == 200 and resp.json()["delivery_blocked"]:
                resp.failure("Delivery still blocked after a signed agreement")

    @task
    def done(self):
        self.interrupt()


class OverrideJourney(_OrderJourney):
    """Create -> Edit -> Admin Override -> Cash Payment.

    Models a paper agreement on file: delivery is released by an
    administrator rather than the signature provider.
    """

    @task
    def create(self):
        self.create_order("cash")

    @task
    def edit_order(self):
        with self.client.patch(
            f"/orders/{self.state.order_id}",
            json=order_patch(),
            headers={"If-Match": self.state.version},
            catch_response=True,
            name="PATCH /orders/{id}",
        ) as resp:
            if resp.status_code == 200:
                self.state.absorb(resp)
            else:
                resp.failure(f"Edit order failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def override_block(self):
        with self.client.post(
            f"/orders/{self.state.order_id}/override-delivery-block",
            json={"reason": "Paper agreement on file"},
            headers={"X-Actor-Id": ADMIN_ID},
            catch_response=True,
            name="POST /orders/{id}/override-delivery-block",
        ) as resp:
            if resp.status_code == 200:
                self.state.absorb(resp)
            else:
                resp.failure(f"Override failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def pay_in_cash(self):
        self.record_payment(self.state.balance_due)

    @task
    def done(self):
        self.interrupt()


class ContentionJourney(_OrderJourney):
    """Create -> Partial Payments -> Replay -> Stale Write.

    Replays a transaction id and sends a write with an outdated ETag.
    The replay must leave the balance alone and the stale write must be
    answered with 409.
    """

    @task
    def create(self):
        self.create_order("paypal")
        self.state.stale_version = self.state.version

    @task
    def deposit(self):
        self.record_payment(max(1, self.state.balance_due // 2), name="PATCH /orders/{id}/payment (deposit)")

    @task
    def replay_deposit(self):
        balance = self.state.balance_due
        payload = {**payment_record(1), "transactionId": self.state.transaction_ids[-1]}
        with self.client.patch(
            f"/orders/{self.state.order_id}/payment",
            json=payload,
            catch_response=True,
            name="PATCH /orders/{id}/payment (replay)",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Replay failed: {resp.status_code}: {extract_error_detail(resp)}")
            elif resp.json()["balance_due"] != balance:
                resp.failure("Replayed transaction changed the balance")

    @task
    def stale_write(self):
        with self.client.patch(
            f"/orders/{self.state.order_id}",
            json={"notes": "stale edit"},
            headers={"If-Match": self.state.stale_version},
            catch_response=True,
            name="PATCH /orders/{id} (stale)",
        ) as resp:
            if resp.status_code == 409:
                resp.success()
            else:
                resp.failure(f"Stale write was not rejected: {resp.status_code}")

    @task
    def done(self):
        self.interrupt()


class RentalsUser(HttpUser):
    """Locust user simulating rental order interactions.

    Weighted distribution:
    - 60% Signed agreement and online payment
    - 25% Admin override and cash payment
    - 15% Contention on a single order
    """

    wait_time = between(0.5, 2.0)
    tasks = {
        SignedOrderJourney: 12,
        OverrideJourney: 5,
        ContentionJourney: 3,
    }
