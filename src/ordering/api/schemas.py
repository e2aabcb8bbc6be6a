"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands. Order input is deliberately loose: the domain
validates it and answers with 400, not 422.
"""

from typing import Any

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ShippingAddressSchema(BaseModel):
    address: str
    city: str
    postal_code: str | None = None
    country: str
    phone: str


class OrderItemSchema(BaseModel):
    id: str
    product_id: str
    name: str
    quantity: int
    unit_price: float
    image: str | None = None
    commit_outcome: str
    commit_reason: str | None = None


class PaymentResultSchema(BaseModel):
    id: str | None = None
    status: str | None = None
    update_time: str | None = None
    gateway_order_id: str | None = None
    message: str | None = None


class SagaStepSchema(BaseModel):
    name: str
    status: str
    detail: str | None = None
    recorded_at: str | None = None


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    items: list[Any] = []
    shipping: dict[str, Any] | None = None
    payment_method: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [{"product_id": "prod-001", "quantity": 2}],
                    "shipping": {
                        "address": "12 Nile St",
                        "city": "Cairo",
                        "postal_code": "11511",
                        "country": "EG",
                        "phone": "+201000000000",
                    },
                    "payment_method": "credit_card",
                }
            ]
        }
    }


class PaymentStatusRequest(BaseModel):
    status: str
    payment_result: dict[str, Any] | None = None


class UpdateOrderStatusRequest(BaseModel):
    status: str


class ResolveCaseRequest(BaseModel):
    resolution: str


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderResponse(BaseModel):
    id: str
    customer_id: str
    items: list[OrderItemSchema]
    shipping: ShippingAddressSchema | None = None
    payment_method: str
    items_price: float
    shipping_price: float
    tax_price: float
    total_price: float
    is_paid: bool
    paid_at: str | None = None
    is_delivered: bool
    delivered_at: str | None = None
    status: str
    payment_result: PaymentResultSchema | None = None
    refund_due: bool
    saga_steps: list[SagaStepSchema]
    created_at: str | None = None
    updated_at: str | None = None


class CheckoutSessionResponse(BaseModel):
    payment_token: str
    iframe_url: str


class ReconciliationCaseResponse(BaseModel):
    id: str
    order_id: str
    kind: str
    status: str
    details: dict[str, Any]
    opened_at: str | None = None
    resolved_at: str | None = None
    resolution: str | None = None
    resolved_by: str | None = None
