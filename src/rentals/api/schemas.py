"""Pydantic request/response schemas for the Rentals API.

These are external contracts, kept separate from the domain model. All
amounts are integer cents. The order ``version`` is never part of a body;
it travels in the ``ETag`` / ``If-Match`` headers.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class LineItemSchema(BaseModel):
    kind: str = "rental"
    name: str
    quantity: int = Field(ge=1)
    unit_price: int = Field(ge=0)


class LineItemResponse(LineItemSchema):
    line_total: int


class CustomerSchema(BaseModel):
    contact_id: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None


class FeesSchema(BaseModel):
    tax_amount: int | None = Field(None, ge=0)
    discount_amount: int | None = Field(None, ge=0)
    delivery_fee: int | None = Field(None, ge=0)
    processing_fee: int | None = Field(None, ge=0)
    deposit_amount: int | None = Field(None, ge=0)


# ---------------------------------------------------------------------------
# Order requests
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [
                        {"kind": "rental", "name": "Castle Bounce House", "quantity": 2, "unit_price": 7500},
                    ],
                    "payment_method": "paypal",
                    "customer": {"customer_name": "Jane Doe", "customer_email": "jane@example.com"},
                    "fees": {"delivery_fee": 2000},
                    "event_date": "2026-06-20",
                }
            ]
        }
    }

    items: list[LineItemSchema]
    payment_method: str | None = None
    customer: CustomerSchema = Field(default_factory=CustomerSchema)
    fees: FeesSchema = Field(default_factory=FeesSchema)
    notes: str | None = None
    event_date: date | None = None
    delivery_date: date | None = None


class UpdateOrderRequest(BaseModel):
    """Partial update. Unknown fields are passed through and rejected by the domain."""

    model_config = ConfigDict(extra="allow")

    items: list[LineItemSchema] | None = None
    tax_amount: int | None = None
    discount_amount: int | None = None
    delivery_fee: int | None = None
    processing_fee: int | None = None
    deposit_amount: int | None = None
    status: str | None = None
    notes: str | None = None
    contact_id: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    event_date: date | None = None
    delivery_date: date | None = None
    payment_method: str | None = None


class OverrideDeliveryBlockRequest(BaseModel):
    reason: str


class InitiatePaymentRequest(BaseModel):
    amount: int = Field(gt=0)
    currency: str = "USD"


class RecordPaymentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    transaction_id: str = Field(alias="transactionId")
    amount: int = Field(ge=0)
    status: str
    currency: str = "USD"


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------
class PaymentTransactionResponse(BaseModel):
    transaction_id: str
    amount: int
    currency: str
    gateway_status: str
    recorded_at: datetime | None = None


class DeliveryOverrideResponse(BaseModel):
    reason: str
    by_user_id: str
    at: datetime | None = None


class OrderResponse(BaseModel):
    id: str
    order_number: str
    items: list[LineItemResponse]
    subtotal: int
    tax_amount: int
    discount_amount: int
    delivery_fee: int
    processing_fee: int
    total_amount: int
    deposit_amount: int
    balance_due: int
    status: str
    payment_status: str
    payment_method: str
    payment_transactions: list[PaymentTransactionResponse]
    agreement_status: str
    agreement_submission_id: str | None = None
    agreement_sent_at: datetime | None = None
    agreement_viewed_at: datetime | None = None
    agreement_signed_at: datetime | None = None
    signed_document_url: str | None = None
    delivery_blocked: bool
    delivery_override: DeliveryOverrideResponse | None = None
    customer: CustomerSchema
    event_date: date | None = None
    delivery_date: date | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AgreementStatusResponse(BaseModel):
    order_id: str
    order_number: str
    agreement_status: str
    submission_id: str | None = None
    sent_at: datetime | None = None
    viewed_at: datetime | None = None
    signed_at: datetime | None = None
    signed_document_url: str | None = None
    delivery_blocked: bool


class SyncResponse(BaseModel):
    order_id: str
    changed: bool
    agreement_status: str


class SyncAllResponse(BaseModel):
    updated: int
    unchanged: int
    failed: int
    stopped: bool


class PaymentIntentResponse(BaseModel):
    reference: str
    amount: int
    currency: str
    order_number: str
    approval_url: str | None = None


class StatusResponse(BaseModel):
    status: str


class WebhookResponse(BaseModel):
    status: str
    order_id: str | None = None
    applied: bool | None = None
    previous_status: str | None = None
    agreement_status: str | None = None
    anomaly: bool | None = None
