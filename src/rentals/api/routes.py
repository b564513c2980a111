"""FastAPI routes for rental orders, agreements, payments and signature webhooks.

The order version is exposed as the ``ETag`` header and accepted back in
``If-Match`` for optimistic concurrency.
"""

from fastapi import APIRouter, Header, Query, Request, Response
from protean.exceptions import ValidationError

from rentals.agreement.coordinator import AgreementCoordinator
from rentals.agreement.webhook import WebhookProcessor
from rentals.api.schemas import (
    AgreementStatusResponse,
    CreateOrderRequest,
    CustomerSchema,
    DeliveryOverrideResponse,
    InitiatePaymentRequest,
    LineItemResponse,
    OrderResponse,
    OverrideDeliveryBlockRequest,
    PaymentIntentResponse,
    PaymentTransactionResponse,
    RecordPaymentRequest,
    SyncAllResponse,
    SyncResponse,
    UpdateOrderRequest,
    WebhookResponse,
)
from rentals.delivery.gate import DeliveryGate
from rentals.exceptions import NotFoundError
from rentals.order.management import CUSTOMER_FIELDS, OrderManager
from rentals.payment.recorder import PaymentRecorder


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _etag(version: int) -> str:
    return f'"{version}"'


def _parse_if_match(value: str | None) -> int | None:
    """Return the version carried by an If-Match header, or None when absent."""
    if value is None or value.strip() in ("", "*"):
        return None
    raw = value.strip()
    if raw.startswith("W/"):
        raw = raw[2:]
    raw = raw.strip('"')
    try:
        version = int(raw)
    except ValueError:
        raise ValidationError({"If-Match": [f"Invalid version: {value}"]}) from None
    if version < 1:
        raise ValidationError({"If-Match": [f"Invalid version: {value}"]})
    return version


def _order_response(order) -> OrderResponse:
    override = order.delivery_override
    return OrderResponse(
        id=str(order.id),
        order_number=order.order_number,
        items=[
            LineItemResponse(
                kind=item.kind,
                name=item.name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                line_total=item.line_total,
            )
            for item in order.sorted_items()
        ],
        subtotal=order.subtotal,
        tax_amount=order.tax_amount,
        discount_amount=order.discount_amount,
        delivery_fee=order.delivery_fee,
        processing_fee=order.processing_fee,
        total_amount=order.total_amount,
        deposit_amount=order.deposit_amount,
        balance_due=order.balance_due,
        status=order.status,
        payment_status=order.payment_status,
        payment_method=order.payment_method,
        payment_transactions=[
            PaymentTransactionResponse(
                transaction_id=txn.transaction_id,
                amount=txn.amount,
                currency=txn.currency,
                gateway_status=txn.gateway_status,
                recorded_at=txn.recorded_at,
            )
            for txn in order.payment_transactions
        ],
        agreement_status=order.agreement_status,
        agreement_submission_id=order.agreement_submission_id,
        agreement_sent_at=order.agreement_sent_at,
        agreement_viewed_at=order.agreement_viewed_at,
        agreement_signed_at=order.agreement_signed_at,
        signed_document_url=order.signed_document_url,
        delivery_blocked=order.delivery_blocked,
        delivery_override=(
            DeliveryOverrideResponse(reason=override.reason, by_user_id=str(override.by_user_id), at=override.at)
            if override is not None
            else None
        ),
        customer=CustomerSchema(**{field: getattr(order, field) for field in CUSTOMER_FIELDS}),
        event_date=order.event_date,
        delivery_date=order.delivery_date,
        notes=order.notes,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def _respond(order, response: Response) -> OrderResponse:
    response.headers["ETag"] = _etag(order.version)
    return _order_response(order)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def create_order(body: CreateOrderRequest, response: Response) -> OrderResponse:
    """Create a rental order and allocate its order number."""
    order = OrderManager().create_order(
        items=[item.model_dump() for item in body.items],
        payment_method=body.payment_method,
        customer=body.customer.model_dump(exclude_none=True),
        fees=body.fees.model_dump(exclude_none=True),
        notes=body.notes,
        event_date=body.event_date,
        delivery_date=body.delivery_date,
    )
    return _respond(order, response)


@order_router.post("/sync-all-agreements", response_model=SyncAllResponse)
async def sync_all_agreements() -> SyncAllResponse:
    """Poll the signature provider for every order awaiting signature."""
    report = AgreementCoordinator().sync_all()
    return SyncAllResponse(
        updated=report.updated,
        unchanged=report.unchanged,
        failed=report.failed,
        stopped=report.stopped,
    )


@order_router.get("/by-number/{order_number}", response_model=OrderResponse)
async def get_order_by_number(order_number: str, response: Response) -> OrderResponse:
    order = OrderManager().get_by_order_number(order_number)
    return _respond(order, response)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, response: Response) -> OrderResponse:
    order = OrderManager().get_order(order_id)
    return _respond(order, response)


@order_router.patch("/{order_id}", response_model=OrderResponse)
async def update_order(
    order_id: str,
    body: UpdateOrderRequest,
    response: Response,
    if_match: str | None = Header(default=None),
) -> OrderResponse:
    """Partially update an order; a stale If-Match version is rejected with 409."""
    patch = body.model_dump(exclude_unset=True)
    if body.items is not None:
        patch["items"] = [item.model_dump() for item in body.items]
    order = OrderManager().update_order(order_id, patch, expected_version=_parse_if_match(if_match))
    return _respond(order, response)


@order_router.delete("/{order_id}", status_code=204)
async def delete_order(order_id: str, if_match: str | None = Header(default=None)) -> Response:
    OrderManager().delete_order(order_id, expected_version=_parse_if_match(if_match))
    return Response(status_code=204)


# Agreements
@order_router.post("/{order_id}/send-agreement", response_model=OrderResponse)
async def send_agreement(order_id: str, response: Response) -> OrderResponse:
    """Send the rental agreement for signature."""
    order = AgreementCoordinator().send_agreement(order_id)
    return _respond(order, response)


@order_router.get("/{order_id}/send-agreement", response_model=AgreementStatusResponse)
async def get_agreement_status(order_id: str) -> AgreementStatusResponse:
    summary = AgreementCoordinator().agreement_status(order_id)
    return AgreementStatusResponse(
        order_id=summary.order_id,
        order_number=summary.order_number,
        agreement_status=summary.agreement_status,
        submission_id=summary.submission_id,
        sent_at=summary.sent_at,
        viewed_at=summary.viewed_at,
        signed_at=summary.signed_at,
        signed_document_url=summary.signed_document_url,
        delivery_blocked=summary.delivery_blocked,
    )


@order_router.post("/{order_id}/sync-agreement", response_model=SyncResponse)
async def sync_agreement(order_id: str) -> SyncResponse:
    coordinator = AgreementCoordinator()
    changed = coordinator.sync_status(order_id)
    order = coordinator.store.get(order_id)
    return SyncResponse(order_id=order_id, changed=changed, agreement_status=order.agreement_status)


# Delivery
@order_router.post("/{order_id}/override-delivery-block", response_model=OrderResponse)
async def override_delivery_block(
    order_id: str,
    body: OverrideDeliveryBlockRequest,
    response: Response,
    x_actor_id: str | None = Header(default=None),
) -> OrderResponse:
    """Release the delivery block without a signed agreement (admins only)."""
    order = DeliveryGate().override_delivery_block(order_id, body.reason, x_actor_id)
    return _respond(order, response)


# Payments
@order_router.post("/{order_id}/payment", response_model=PaymentIntentResponse)
async def initiate_payment(order_id: str, body: InitiatePaymentRequest) -> PaymentIntentResponse:
    """Start a payment with the gateway for the total, deposit or balance due."""
    intent = PaymentRecorder().initiate_payment(order_id, body.amount, body.currency)
    return PaymentIntentResponse(
        reference=intent.reference,
        amount=intent.amount,
        currency=intent.currency,
        order_number=intent.order_number,
        approval_url=intent.approval_url,
    )


@order_router.patch("/{order_id}/payment", response_model=OrderResponse)
async def record_payment(
    order_id: str,
    body: RecordPaymentRequest,
    response: Response,
    if_match: str | None = Header(default=None),
) -> OrderResponse:
    """Record a gateway transaction; replaying a transaction id is a no-op."""
    order = PaymentRecorder().record_payment(
        order_id,
        transaction_id=body.transaction_id,
        amount=body.amount,
        gateway_status=body.status,
        expected_version=_parse_if_match(if_match),
        currency=body.currency,
    )
    return _respond(order, response)


# ---------------------------------------------------------------------------
# Webhook Router
# ---------------------------------------------------------------------------
webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@webhook_router.get("/signature")
async def verify_webhook_endpoint(challenge: str | None = Query(default=None)) -> dict:
    """Endpoint verification handshake used when registering the webhook."""
    if challenge is not None:
        return {"challenge": challenge}
    return {"status": "ok"}


@webhook_router.post("/signature", response_model=WebhookResponse)
async def signature_webhook(
    request: Request,
    x_signature: str | None = Header(default=None),
) -> WebhookResponse:
    """Apply a signature provider event. Events for unknown submissions are acknowledged and ignored."""
    raw_payload = await request.body()
    try:
        outcome = WebhookProcessor().handle_event(raw_payload, x_signature)
    except NotFoundError:
        return WebhookResponse(status="ignored")

    if outcome.applied:
        status = "processed"
    elif outcome.anomaly:
        status = "anomaly"
    else:
        status = "duplicate"
    return WebhookResponse(
        status=status,
        order_id=outcome.order_id,
        applied=outcome.applied,
        previous_status=outcome.previous_status,
        agreement_status=outcome.status,
        anomaly=outcome.anomaly,
    )
