"""FastAPI routes for the Inventory domain: products and stock."""

import json

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain
from shared.auth import Principal, require_admin, require_internal_caller

from inventory.api.schemas import (
    ProductDetailResponse,
    ProductIdResponse,
    RegisterProductRequest,
    StockChangeRequest,
    StockLevelResponse,
)
from inventory.product.queries import low_stock_products, product_detail
from inventory.product.registration import RegisterProduct
from inventory.product.stock import DecreaseStock, IncreaseStock

product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.post("", status_code=201, response_model=ProductIdResponse)
async def register_product(
    body: RegisterProductRequest,
    principal: Principal = Depends(require_admin),
) -> ProductIdResponse:
    command = RegisterProduct(
        name=body.name,
        description=body.description,
        price=body.price,
        category=body.category,
        images=json.dumps(body.images),
        seller_id=principal.user_id,
        stock_quantity=body.stock_quantity,
        low_stock_threshold=body.low_stock_threshold,
    )
    result = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=result)


@product_router.get(
    "/low-stock",
    response_model=list[StockLevelResponse],
    dependencies=[Depends(require_admin)],
)
async def list_low_stock() -> list[StockLevelResponse]:
    return [StockLevelResponse(**level) for level in low_stock_products()]


@product_router.get("/{product_id}", response_model=ProductDetailResponse)
async def get_product(product_id: str) -> ProductDetailResponse:
    return ProductDetailResponse(**product_detail(product_id))


@product_router.patch(
    "/{product_id}/stock/decrease",
    response_model=StockLevelResponse,
    dependencies=[Depends(require_internal_caller)],
)
async def decrease_stock(product_id: str, body: StockChangeRequest) -> StockLevelResponse:
    """Atomically commit stock; 400 when insufficient, 404 for unknown products."""
    command = DecreaseStock(
        product_id=product_id,
        quantity=body.quantity,
        idempotency_key=body.idempotency_key,
    )
    result = current_domain.process(command, asynchronous=False)
    return StockLevelResponse(**result)


@product_router.patch(
    "/{product_id}/stock/increase",
    response_model=StockLevelResponse,
    dependencies=[Depends(require_internal_caller)],
)
async def increase_stock(product_id: str, body: StockChangeRequest) -> StockLevelResponse:
    command = IncreaseStock(
        product_id=product_id,
        quantity=body.quantity,
        idempotency_key=body.idempotency_key,
    )
    result = current_domain.process(command, asynchronous=False)
    return StockLevelResponse(**result)
