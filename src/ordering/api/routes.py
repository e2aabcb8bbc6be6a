"""FastAPI routes for the Ordering domain: orders and the reconciliation queue.

Routes that call another service are plain functions so FastAPI runs them in
its threadpool; the in-process ones stay ``async``.
"""

import json

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain
from shared.auth import ADMIN_ROLE, Principal, authorize, current_principal, require_admin, require_internal_caller

from ordering.api.schemas import (
    CheckoutSessionResponse,
    CreateOrderRequest,
    OrderResponse,
    PaymentStatusRequest,
    ReconciliationCaseResponse,
    ResolveCaseRequest,
    UpdateOrderStatusRequest,
)
from ordering.checkout.saga import advance, resume_order_saga
from ordering.order.creation import CreateOrder
from ordering.order.order import Order
from ordering.order.payment import ApplyPaymentResult, InitiateOrderPayment
from ordering.order.status import UpdateOrderStatus
from ordering.reconciliation.resolution import ResolveReconciliationCase, open_cases

order_router = APIRouter(prefix="/orders", tags=["orders"])


def _newest_first(orders) -> list[OrderResponse]:
    ordered = sorted(orders, key=lambda order: order.created_at, reverse=True)
    return [OrderResponse(**order.to_response()) for order in ordered]


@order_router.post("", status_code=201, response_model=OrderResponse)
def create_order(body: CreateOrderRequest, principal: Principal = Depends(current_principal)) -> OrderResponse:
    command = CreateOrder(
        customer_id=principal.user_id,
        items=json.dumps(body.items),
        shipping=json.dumps(body.shipping) if body.shipping else None,
        payment_method=body.payment_method,
    )
    order = current_domain.process(command, asynchronous=False)
    return OrderResponse(**order.to_response())


@order_router.get("/mine", response_model=list[OrderResponse])
async def my_orders(principal: Principal = Depends(current_principal)) -> list[OrderResponse]:
    repo = current_domain.repository_for(Order)
    return _newest_first(repo._dao.query.filter(customer_id=principal.user_id).all().items)


@order_router.get("", response_model=list[OrderResponse], dependencies=[Depends(require_admin)])
async def all_orders() -> list[OrderResponse]:
    return _newest_first(current_domain.repository_for(Order)._dao.query.all().items)


# ---------------------------------------------------------------------------
# Reconciliation queue
# ---------------------------------------------------------------------------
@order_router.get(
    "/reconciliation",
    response_model=list[ReconciliationCaseResponse],
    dependencies=[Depends(require_admin)],
)
async def reconciliation_queue() -> list[ReconciliationCaseResponse]:
    return [ReconciliationCaseResponse(**case.to_response()) for case in open_cases()]


@order_router.post("/reconciliation/{case_id}/resolve", response_model=ReconciliationCaseResponse)
async def resolve_case(
    case_id: str, body: ResolveCaseRequest, principal: Principal = Depends(require_admin)
) -> ReconciliationCaseResponse:
    command = ResolveReconciliationCase(case_id=case_id, resolution=body.resolution, resolved_by=principal.user_id)
    case = current_domain.process(command, asynchronous=False)
    return ReconciliationCaseResponse(**case.to_response())


# ---------------------------------------------------------------------------
# Single order
# ---------------------------------------------------------------------------
@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, principal: Principal = Depends(current_principal)) -> OrderResponse:
    order = current_domain.repository_for(Order).get(order_id)
    authorize(principal, owner_id=str(order.customer_id), role=ADMIN_ROLE)
    return OrderResponse(**order.to_response())


@order_router.post("/{order_id}/initiate-payment", response_model=CheckoutSessionResponse)
def initiate_payment(
    order_id: str, principal: Principal = Depends(current_principal)
) -> CheckoutSessionResponse:
    command = InitiateOrderPayment(
        order_id=order_id,
        customer_id=principal.user_id,
        email=principal.email,
        name=principal.name,
    )
    result = current_domain.process(command, asynchronous=False)
    return CheckoutSessionResponse(**result)


@order_router.put(
    "/{order_id}/payment-status",
    response_model=OrderResponse,
    dependencies=[Depends(require_internal_caller)],
)
def apply_payment_status(order_id: str, body: PaymentStatusRequest) -> OrderResponse:
    """Payment outcome relayed by the payments service. Safe to repeat."""
    command = ApplyPaymentResult(
        order_id=order_id,
        status=body.status,
        payment_result=json.dumps(body.payment_result or {}),
    )
    result = current_domain.process(command, asynchronous=False)
    if result["applied"]:
        order = advance(order_id)
    else:
        order = current_domain.repository_for(Order).get(order_id)
    return OrderResponse(**order.to_response())


@order_router.put("/{order_id}/status", response_model=OrderResponse, dependencies=[Depends(require_admin)])
async def update_order_status(order_id: str, body: UpdateOrderStatusRequest) -> OrderResponse:
    order = current_domain.process(UpdateOrderStatus(order_id=order_id, status=body.status), asynchronous=False)
    return OrderResponse(**order.to_response())


@order_router.post("/{order_id}/resume", response_model=OrderResponse, dependencies=[Depends(require_admin)])
def resume_saga(order_id: str) -> OrderResponse:
    return OrderResponse(**resume_order_saga(order_id).to_response())
