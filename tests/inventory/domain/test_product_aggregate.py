"""Tests for Product aggregate registration and representation."""

import pytest
from inventory.product.events import ProductRegistered
from inventory.product.product import DEFAULT_LOW_STOCK_THRESHOLD, Product, ProductCategory
from protean.exceptions import ValidationError


class TestProductRegistration:
    def test_register_sets_fields(self):
        product = Product.register(name="Desk Lamp", price=50.0, images=["lamp.png"], category="Home")
        assert product.name == "Desk Lamp"
        assert product.price == 50.0
        assert product.category == ProductCategory.HOME.value
        assert product.image_list == ["lamp.png"]
        assert product.low_stock_threshold == DEFAULT_LOW_STOCK_THRESHOLD

    def test_register_raises_event(self):
        product = Product.register(name="Desk Lamp", price=50.0)
        assert len(product._events) == 1
        event = product._events[0]
        assert isinstance(event, ProductRegistered)
        assert event.product_id == str(product.id)

    def test_category_defaults_to_other(self):
        assert Product.register(name="Thing", price=1.0).category == ProductCategory.OTHER.value

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            Product.register(name="Broken", price=-1.0)

    def test_unknown_category_rejected(self):
        with pytest.raises(ValidationError):
            Product.register(name="Odd", price=1.0, category="Spaceships")


class TestProductDetail:
    def test_to_detail_is_json_ready(self):
        product = Product.register(name="Desk Lamp", price=50.0, images=["a.png", "b.png"])
        detail = product.to_detail()
        assert detail["id"] == str(product.id)
        assert detail["images"] == ["a.png", "b.png"]
        assert isinstance(detail["created_at"], str)
