"""
Tests for cart models
"""

from dataclasses import FrozenInstanceError
from decimal import Decimal

import pytest
from pydantic import ValidationError

from storefront.cart import CartSnapshot, CartSummary, LineItem, PendingUpdate
from storefront.cart.schemas import CartResponse


class TestLineItem:
    """Tests for LineItem dataclass."""

    def test_create_line_item(self):
        """Test creating a line item normalizes numbers to Decimal."""
        item = LineItem(
            id="item-1",
            product_id="prod-1",
            quantity=2,
            unit_price=99.9,
            selected_weight=0.25,
        )

        assert item.unit_price == Decimal("99.9")
        assert item.selected_weight == Decimal("0.25")
        assert item.variant_id is None

    def test_total_price_calculation(self):
        """Test total price for quantity."""
        item = LineItem(id="item-1", product_id="prod-1", quantity=3, unit_price="100.00")

        assert item.total_price == Decimal("300.00")

    def test_to_dict_uses_wire_keys(self):
        """Test serialization uses the camelCase wire keys."""
        item = LineItem(id="item-1", product_id="prod-1", quantity=1, unit_price="10.5")

        data = item.to_dict()
        assert data["productId"] == "prod-1"
        assert data["price"] == 10.5
        assert data["selectedWeight"] is None

    def test_from_dict(self):
        """Test deserialization from the wire format."""
        data = {
            "id": "item-1",
            "productId": "prod-1",
            "variantId": "var-9",
            "quantity": 4,
            "price": 12.25,
            "selectedWeight": 1.5,
            "product": {"name": "Walnuts"},
        }

        item = LineItem.from_dict(data)
        assert item.variant_id == "var-9"
        assert item.selected_weight == Decimal("1.5")
        assert item.product_name == "Walnuts"


class TestCartSummary:
    """Tests for summary derivation."""

    def test_empty_cart_summary(self):
        """Test summary of an empty cart."""
        summary = CartSummary.from_items([])

        assert summary.subtotal == 0
        assert summary.item_count == 0
        assert summary.total_quantity == 0

    def test_summary_with_items(self):
        """Test subtotal, item count and total quantity."""
        items = [
            LineItem(id="a", product_id="p1", quantity=2, unit_price="100"),
            LineItem(id="b", product_id="p2", quantity=1, unit_price="200"),
        ]

        summary = CartSummary.from_items(items)

        assert summary.subtotal == Decimal("400")
        assert summary.item_count == 2
        assert summary.total_quantity == 3

    def test_summary_from_dict(self):
        """Test summary deserialization."""
        summary = CartSummary.from_dict({"subtotal": 12.5, "itemCount": 1, "totalQuantity": 5})

        assert summary.subtotal == Decimal("12.5")
        assert summary.to_dict() == {"subtotal": 12.5, "itemCount": 1, "totalQuantity": 5}


class TestCartSnapshot:
    """Tests for CartSnapshot and its wire parsing."""

    def test_empty_snapshot(self):
        """Test the empty snapshot."""
        snapshot = CartSnapshot.empty()

        assert snapshot.is_empty
        assert snapshot.get_item("missing") is None

    def test_parse_response(self, sample_cart_payload):
        """Test parsing a cart service response."""
        snapshot = CartResponse.model_validate(sample_cart_payload).to_snapshot()

        assert snapshot.cart_id == "cart-1"
        assert [item.id for item in snapshot.items] == ["item-b", "item-a"]
        assert snapshot.summary.total_quantity == 5
        assert snapshot.get_item("item-a").variant == {"name": "Roasted", "options": "{}"}

    def test_parse_response_without_summary_derives_it(self, sample_cart_payload):
        """Test a missing summary is derived from the items."""
        sample_cart_payload["summary"] = None

        snapshot = CartResponse.model_validate(sample_cart_payload).to_snapshot()

        assert snapshot.summary.item_count == 2
        assert snapshot.summary.subtotal == Decimal("150.0") * 2 + Decimal("49.5") * 3

    @pytest.mark.parametrize("payload", [{}, {"message": "ok"}, {"cart": None, "summary": None}, {"cart": {"id": "cart-1"}}])
    def test_parse_response_requires_cart(self, payload):
        """Test a body without a cart document is rejected, not read as an empty cart."""
        with pytest.raises(ValidationError):
            CartResponse.model_validate(payload)

    def test_to_dict_shape(self, make_item, make_snapshot):
        """Test snapshot serialization shape."""
        snapshot = make_snapshot([make_item("a", quantity=2)])

        data = snapshot.to_dict()
        assert data["cart"]["id"] == "cart-1"
        assert data["cart"]["items"][0]["quantity"] == 2
        assert data["summary"]["totalQuantity"] == 2


class TestPendingUpdate:
    """Tests for PendingUpdate."""

    def test_is_frozen(self):
        """Test pending updates are immutable."""
        update = PendingUpdate(quantity=3)

        with pytest.raises(FrozenInstanceError):
            update.quantity = 4

    def test_enqueued_at_is_monotonic(self):
        """Test enqueue timestamps never go backwards."""
        first = PendingUpdate(quantity=1)
        second = PendingUpdate(quantity=2)

        assert second.enqueued_at >= first.enqueued_at
