"""FastAPI routes for the Payments domain: checkout and gateway callbacks."""

import json
import os

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from protean.utils.globals import current_domain
from shared.auth import require_internal_caller

from payments.api.schemas import (
    CallbackResponse,
    CheckoutResponse,
    ConfigureGatewayRequest,
    GatewayConfigResponse,
    InitiatePaymentRequest,
)
from payments.domain import logger
from payments.gateway import SUPPORTED_GATEWAYS, get_gateway
from payments.gateway.fake_adapter import FakeGateway
from payments.payment.delivery import deliver_outcome
from payments.payment.initiation import InitiatePayment
from payments.payment.webhook import ProcessGatewayCallback

payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post(
    "/initiate/{gateway}",
    response_model=CheckoutResponse,
    dependencies=[Depends(require_internal_caller)],
)
def initiate_payment(gateway: str, body: InitiatePaymentRequest) -> CheckoutResponse:
    """Register the order with the gateway and return the hosted checkout token."""
    command = InitiatePayment(
        order_id=body.order_id,
        customer_id=body.user_id,
        amount=body.amount,
        currency=body.currency,
        billing_data=json.dumps(body.billing_data.model_dump()),
        gateway=gateway,
    )
    result = current_domain.process(command, asynchronous=False)
    return CheckoutResponse(**result)


def _settle_callback(gateway: str, transaction: dict, signature: str) -> CallbackResponse:
    if gateway not in SUPPORTED_GATEWAYS or not get_gateway().verify_callback_signature(transaction, signature):
        logger.warning("callback_rejected", gateway=gateway, reason="signature")
        return CallbackResponse(status="rejected")

    result = current_domain.process(
        ProcessGatewayCallback(gateway=gateway, transaction=json.dumps(transaction)),
        asynchronous=False,
    )
    if result["status"] == "processed":
        deliver_outcome(result["payment_id"])
    return CallbackResponse(status=result["status"], payment_id=result.get("payment_id"))


@payment_router.post("/callback/{gateway}", response_model=CallbackResponse)
async def gateway_callback(gateway: str, request: Request, hmac: str = "") -> CallbackResponse:
    """Transaction callback from the gateway.

    Always answered with 200 so the gateway does not start a retry storm; the
    status field tells what happened. A callback that failed with ``error``
    left its payment pending and can be replayed.
    """
    try:
        payload = await request.json()
    except ValueError:
        logger.warning("callback_malformed", gateway=gateway, reason="invalid json")
        return CallbackResponse(status="malformed")

    transaction = payload.get("obj") if isinstance(payload, dict) else None
    if not isinstance(transaction, dict):
        logger.warning("callback_malformed", gateway=gateway, reason="missing transaction")
        return CallbackResponse(status="malformed")

    try:
        return await run_in_threadpool(_settle_callback, gateway, transaction, hmac)
    except Exception:
        logger.exception("callback_processing_failed", gateway=gateway)
        return CallbackResponse(status="error")


@payment_router.get("/callback/{gateway}", response_model=CallbackResponse)
async def gateway_redirect(gateway: str, success: str | None = None) -> CallbackResponse:
    """Browser redirect after checkout; settlement happens via the POST callback."""
    logger.info("checkout_redirect_received", gateway=gateway, success=success)
    return CallbackResponse(status="received")


@payment_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeGateway behavior (non-production only)."""
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(should_succeed=body.should_succeed, failure_reason=body.failure_reason)
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
    )
