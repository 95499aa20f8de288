"""Tests for the in-memory cart service"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest


@pytest.mark.asyncio
async def test_get_or_create_requires_identity(cart_store):
    """Test a user or session id is required."""
    with pytest.raises(ValueError):
        await cart_store.get_or_create_cart()


@pytest.mark.asyncio
async def test_guest_and_user_carts_are_reused(cart_store):
    """Test carts are reused and user carts win over guest carts."""
    guest = await cart_store.get_or_create_cart(session_id="guest_1")
    user = await cart_store.get_or_create_cart(user_id="user-1")

    assert guest.expires_at is not None
    assert user.expires_at is None
    assert (await cart_store.get_or_create_cart(session_id="guest_1")).id == guest.id
    assert (await cart_store.get_or_create_cart(user_id="user-1", session_id="guest_1")).id == user.id


@pytest.mark.asyncio
async def test_add_item_merges_identical_lines(cart_store):
    """Test adding the same product again merges the line."""
    cart = await cart_store.get_or_create_cart(session_id="guest_1")

    await cart_store.add_item(cart.id, "prod-tea", 2)
    result = await cart_store.add_item(cart.id, "prod-tea", 3)

    assert result.success
    assert len(result.cart.items) == 1
    assert result.cart.items[0].quantity == 5
    assert result.cart.summary.subtotal == Decimal("600.00")


@pytest.mark.asyncio
async def test_add_item_checks_stock(cart_store):
    """Test stock limits on add."""
    cart = await cart_store.get_or_create_cart(session_id="guest_1")

    result = await cart_store.add_item(cart.id, "prod-tea", 11)
    assert not result.success
    assert result.message == "Only 10 items available in stock"

    await cart_store.add_item(cart.id, "prod-tea", 8)
    result = await cart_store.add_item(cart.id, "prod-tea", 3)
    assert result.message == "Cannot add more items. Only 10 available in stock"


@pytest.mark.asyncio
async def test_add_item_rejects_unknown_or_unpublished(cart_store):
    """Test unknown and unpublished products are rejected."""
    cart = await cart_store.get_or_create_cart(session_id="guest_1")

    assert (await cart_store.add_item(cart.id, "nope", 1)).message == "Product not found"
    assert (await cart_store.add_item(cart.id, "prod-draft", 1)).message == "Product is not available"


@pytest.mark.asyncio
async def test_weight_priced_lines_are_separate(cart_store):
    """Test each selected weight gets its own priced line."""
    cart = await cart_store.get_or_create_cart(session_id="guest_1")

    await cart_store.add_item(cart.id, "prod-almond", 1, selected_weight=0.5)
    result = await cart_store.add_item(cart.id, "prod-almond", 1, selected_weight=1.0)

    prices = sorted(item.unit_price for item in result.cart.items)
    assert prices == [Decimal("400.000"), Decimal("800.00")]


@pytest.mark.asyncio
async def test_variant_price_and_activity(cart_store):
    """Test variant pricing and inactive variants."""
    cart = await cart_store.get_or_create_cart(session_id="guest_1")

    result = await cart_store.add_item(cart.id, "prod-mug", 1, variant_id="var-blue")
    assert result.cart.items[0].unit_price == Decimal("320.00")
    assert result.cart.items[0].variant == {"name": "Blue", "options": "color=blue"}

    result = await cart_store.add_item(cart.id, "prod-mug", 1, variant_id="var-red")
    assert result.message == "Product variant is not available"


@pytest.mark.asyncio
async def test_update_item(cart_store):
    """Test quantity updates, stock checks and zero removal."""
    cart = await cart_store.get_or_create_cart(session_id="guest_1")
    added = await cart_store.add_item(cart.id, "prod-tea", 1)
    item_id = added.cart.items[0].id

    result = await cart_store.update_item(item_id, 4)
    assert result.success
    assert result.cart.get_item(item_id).quantity == 4

    result = await cart_store.update_item(item_id, 20)
    assert result.message == "Only 10 items available in stock"

    result = await cart_store.update_item(item_id, 0)
    assert result.success
    assert result.cart.is_empty


@pytest.mark.asyncio
async def test_update_unknown_item(cart_store):
    """Test updating a missing line item."""
    result = await cart_store.update_item("missing", 1)

    assert not result.success
    assert result.message == "Cart item not found"


@pytest.mark.asyncio
async def test_remove_and_clear(cart_store):
    """Test removing one line and clearing the cart."""
    cart = await cart_store.get_or_create_cart(session_id="guest_1")
    await cart_store.add_item(cart.id, "prod-tea", 1)
    added = await cart_store.add_item(cart.id, "prod-almond", 2)
    almond_id = next(i.id for i in added.cart.items if i.product_id == "prod-almond")

    removed = await cart_store.remove_item(almond_id)
    assert [i.product_id for i in removed.cart.items] == ["prod-tea"]

    cleared = await cart_store.clear_cart(cart.id)
    assert cleared.message == "Cart cleared successfully"
    assert (await cart_store.get_cart(cart.id)).is_empty


@pytest.mark.asyncio
async def test_merge_guest_cart(cart_store):
    """Test guest items move into the user cart."""
    guest = await cart_store.get_or_create_cart(session_id="guest_1")
    await cart_store.add_item(guest.id, "prod-tea", 2)
    user = await cart_store.get_or_create_cart(user_id="user-1")
    await cart_store.add_item(user.id, "prod-tea", 1)

    result = await cart_store.merge_guest_cart("guest_1", "user-1")

    assert result.message == "Cart merged successfully"
    assert result.cart.items[0].quantity == 3
    assert await cart_store.get_cart(guest.id) is None


@pytest.mark.asyncio
async def test_merge_without_guest_cart(cart_store):
    """Test merging with no guest cart."""
    result = await cart_store.merge_guest_cart("guest_none", "user-1")

    assert result.success
    assert result.message == "No guest cart to merge"


@pytest.mark.asyncio
async def test_cleanup_expired_carts(cart_store):
    """Test expired guest carts are deleted."""
    await cart_store.get_or_create_cart(session_id="guest_old")
    await cart_store.get_or_create_cart(user_id="user-1")

    later = datetime.now(timezone.utc) + timedelta(days=31)
    assert await cart_store.cleanup_expired_carts(now=later) == 1
    assert await cart_store.cleanup_expired_carts(now=later) == 0
