"""Pydantic request/response schemas for the Inventory API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands. Quantities are range-checked by the commands so
that violations surface as 400s.
"""

from pydantic import BaseModel, Field


class RegisterProductRequest(BaseModel):
    name: str
    description: str | None = None
    price: float = Field(ge=0)
    category: str | None = None
    images: list[str] = Field(default_factory=list)
    stock_quantity: int = 0
    low_stock_threshold: int = 10

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Desk Lamp",
                    "description": "Adjustable LED lamp",
                    "price": 50.0,
                    "category": "Home",
                    "images": ["https://cdn.example.com/lamp.png"],
                    "stock_quantity": 25,
                    "low_stock_threshold": 5,
                }
            ]
        }
    }


class StockChangeRequest(BaseModel):
    quantity: int
    idempotency_key: str | None = None


class ProductIdResponse(BaseModel):
    product_id: str


class StockLevelResponse(BaseModel):
    product_id: str
    stock_quantity: int
    low_stock_threshold: int
    is_low_stock: bool


class ProductDetailResponse(BaseModel):
    id: str
    name: str
    description: str | None = None
    price: float
    category: str | None = None
    images: list[str] = Field(default_factory=list)
    seller_id: str | None = None
    low_stock_threshold: int
    stock_quantity: int
    is_low_stock: bool
    created_at: str | None = None
