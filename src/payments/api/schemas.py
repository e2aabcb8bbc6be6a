"""Pydantic request/response schemas for the Payments API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands.
"""

from typing import Any

from pydantic import BaseModel, Field


class BillingDataSchema(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: str
    street: str
    city: str
    postal_code: str
    country: str
    state: str | None = None
    apartment: str | None = None
    floor: str | None = None
    building: str | None = None


class InitiatePaymentRequest(BaseModel):
    order_id: str
    user_id: str
    amount: float = Field(gt=0)
    currency: str | None = None
    billing_data: BillingDataSchema

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "order_id": "ord-001",
                    "user_id": "cust-001",
                    "amount": 125.0,
                    "currency": "EGP",
                    "billing_data": {
                        "first_name": "Mona",
                        "last_name": "Adel",
                        "email": "mona@example.com",
                        "phone": "+201000000000",
                        "street": "12 Nile St",
                        "city": "Cairo",
                        "postal_code": "11511",
                        "country": "EG",
                    },
                }
            ]
        }
    }


class CheckoutResponse(BaseModel):
    payment_id: str
    payment_token: str
    iframe_url: str


class CallbackResponse(BaseModel):
    status: str
    payment_id: str | None = None


class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool
    failure_reason: str = "Gateway rejected the request"


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str
