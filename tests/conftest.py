"""Pytest configuration and fixtures"""
import os
from decimal import Decimal

import pytest

# Set test environment variables
os.environ.setdefault("CART_API_BASE_URL", "http://cart.test")
os.environ.setdefault("CART_CURRENCY", "INR")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from storefront.cart.models import CartSnapshot, CartSummary, LineItem  # noqa: E402
from storefront.cart.store import CartStore, Product, ProductVariant  # noqa: E402
from storefront.config import Settings  # noqa: E402


@pytest.fixture
def settings():
    """Settings with fast retries for tests"""
    return Settings(api_base_url="http://cart.test", fetch_retries=2)


@pytest.fixture
def make_item():
    """Factory for line items"""
    def _make(item_id, product_id="prod-1", quantity=1, price="10.00", weight=None, variant_id=None):
        return LineItem(
            id=item_id,
            product_id=product_id,
            variant_id=variant_id,
            quantity=quantity,
            unit_price=Decimal(price),
            selected_weight=Decimal(weight) if weight is not None else None,
            product={"id": product_id, "name": f"Product {product_id}", "slug": product_id, "images": []},
        )
    return _make


@pytest.fixture
def make_snapshot():
    """Factory for cart snapshots with a derived summary"""
    def _make(items, cart_id="cart-1"):
        return CartSnapshot(
            cart_id=cart_id,
            items=tuple(items),
            summary=CartSummary.from_items(list(items)),
        )
    return _make


@pytest.fixture
def sample_cart_payload():
    """Cart document as returned by PUT /api/cart/items/{id}"""
    return {
        "message": "Cart updated successfully",
        "cart": {
            "id": "cart-1",
            "items": [
                {
                    "id": "item-b",
                    "productId": "prod-2",
                    "variantId": None,
                    "quantity": 2,
                    "price": 150.0,
                    "selectedWeight": None,
                    "product": {
                        "id": "prod-2",
                        "name": "Basmati Rice",
                        "slug": "basmati-rice",
                        "weightBasedPricing": False,
                        "images": [{"url": "/img/rice.jpg", "alt": None}],
                    },
                    "variant": None,
                },
                {
                    "id": "item-a",
                    "productId": "prod-1",
                    "variantId": "var-1",
                    "quantity": 3,
                    "price": 49.5,
                    "selectedWeight": 0.5,
                    "product": {
                        "id": "prod-1",
                        "name": "Cashews",
                        "slug": "cashews",
                        "weightBasedPricing": True,
                        "images": [],
                    },
                    "variant": {"name": "Roasted", "options": "{}"},
                },
            ],
        },
        "summary": {"subtotal": 448.5, "itemCount": 2, "totalQuantity": 5},
    }


@pytest.fixture
def cart_store():
    """In-memory store with a small catalogue"""
    store = CartStore(guest_cart_ttl_days=30)
    store.add_product(Product(
        id="prod-tea",
        name="Green Tea",
        slug="green-tea",
        price=Decimal("120.00"),
        stock_quantity=10,
    ))
    store.add_product(Product(
        id="prod-almond",
        name="Almonds",
        slug="almonds",
        price=Decimal("800.00"),
        stock_quantity=50,
        weight_based_pricing=True,
    ))
    store.add_product(Product(
        id="prod-mug",
        name="Mug",
        slug="mug",
        price=Decimal("300.00"),
        stock_quantity=0,
        track_inventory=False,
        variants={
            "var-blue": ProductVariant(id="var-blue", name="Blue", options="color=blue", price=Decimal("320.00"), stock_quantity=3),
            "var-red": ProductVariant(id="var-red", name="Red", options="color=red", stock_quantity=3, is_active=False),
        },
    ))
    store.add_product(Product(
        id="prod-draft",
        name="Draft",
        slug="draft",
        price=Decimal("1.00"),
        stock_quantity=5,
        status="draft",
    ))
    return store
