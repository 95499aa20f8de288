"""
In-memory Cart Data Service.

Holds carts, line items and the product catalogue the cart rules need
(activity, stock tracking, variant pricing, weight pricing). Methods are
async so a database-backed store can replace this one without touching
the API layer.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from storefront.config import get_settings
from storefront.errors import (
    ERROR_CART_ADD_FAILED,
    ERROR_CART_IDENTITY_REQUIRED,
    ERROR_CART_ITEM_NOT_FOUND,
    ERROR_PRODUCT_NOT_FOUND,
    ERROR_PRODUCT_UNAVAILABLE,
    ERROR_VARIANT_UNAVAILABLE,
)
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.services.money import to_decimal, to_optional_decimal, multiply

from .models import CartSnapshot, CartSummary, LineItem

logger = get_logger(__name__)


@dataclass
class ProductVariant:
    id: str
    name: str
    options: str = ""
    price: Optional[Decimal] = None
    stock_quantity: int = 0
    is_active: bool = True

    def __post_init__(self):
        self.price = to_optional_decimal(self.price)


@dataclass
class Product:
    id: str
    name: str
    slug: str
    price: Decimal
    stock_quantity: int = 0
    track_inventory: bool = True
    weight_based_pricing: bool = False
    is_active: bool = True
    status: str = "published"
    images: List[dict] = field(default_factory=list)
    variants: Dict[str, ProductVariant] = field(default_factory=dict)

    def __post_init__(self):
        self.price = to_decimal(self.price)

    @property
    def is_available(self) -> bool:
        return self.is_active and self.status == "published"

    def display_data(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "weightBasedPricing": self.weight_based_pricing,
            "images": self.images[:1],
        }


@dataclass
class StoredItem:
    id: str
    cart_id: str
    product_id: str
    quantity: int
    price: Decimal
    variant_id: Optional[str] = None
    selected_weight: Optional[Decimal] = None
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class StoredCart:
    id: str
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    expires_at: Optional[datetime] = None
    items: Dict[str, StoredItem] = field(default_factory=dict)
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)


@dataclass
class CartOperationResult:
    success: bool
    message: str
    cart: Optional[CartSnapshot] = None


class CartStore:
    """
    Cart storage and cart rules.

    Features:
    - Carts keyed by user id or guest session id
    - Guest carts expire after GUEST_CART_TTL_DAYS
    - Stock checks for products that track inventory
    - Weight priced products store price * selected weight
    """

    def __init__(self, guest_cart_ttl_days: Optional[int] = None):
        if guest_cart_ttl_days is None:
            guest_cart_ttl_days = get_settings().guest_cart_ttl_days
        self.guest_cart_ttl = timedelta(days=guest_cart_ttl_days)
        self.products: Dict[str, Product] = {}
        self._carts: Dict[str, StoredCart] = {}
        self._item_index: Dict[str, str] = {}  # item id -> cart id

    # ==================== CATALOGUE ====================

    def add_product(self, product: Product) -> Product:
        self.products[product.id] = product
        return product

    # ==================== CARTS ====================

    async def get_or_create_cart(
        self, user_id: Optional[str] = None, session_id: Optional[str] = None
    ) -> StoredCart:
        """Find the cart for a user (preferred) or guest session, creating it if needed."""
        if not user_id and not session_id:
            raise ValueError(ERROR_CART_IDENTITY_REQUIRED)

        if user_id:
            cart = next((c for c in self._carts.values() if c.user_id == user_id), None)
            if cart is None:
                cart = self._create_cart(user_id=user_id)
        else:
            cart = next((c for c in self._carts.values() if c.session_id == session_id), None)
            if cart is None:
                cart = self._create_cart(
                    session_id=session_id,
                    expires_at=datetime.now(timezone.utc) + self.guest_cart_ttl,
                )
        return cart

    def _create_cart(self, **kwargs) -> StoredCart:
        cart = StoredCart(id=uuid.uuid4().hex, **kwargs)
        self._carts[cart.id] = cart
        logger.debug(f"Created cart {sanitize_id_for_logging(cart.id)}")
        return cart

    async def get_cart(self, cart_id: str) -> Optional[CartSnapshot]:
        cart = self._carts.get(cart_id)
        if cart is None:
            return None
        return self.to_snapshot(cart)

    def to_snapshot(self, cart: StoredCart) -> CartSnapshot:
        items = [self._to_line_item(item) for item in cart.items.values()]
        return CartSnapshot(
            cart_id=cart.id,
            items=tuple(items),
            summary=CartSummary.from_items(items),
        )

    def _to_line_item(self, item: StoredItem) -> LineItem:
        product = self.products.get(item.product_id)
        variant = product.variants.get(item.variant_id) if product and item.variant_id else None
        return LineItem(
            id=item.id,
            product_id=item.product_id,
            variant_id=item.variant_id,
            quantity=item.quantity,
            unit_price=item.price,
            selected_weight=item.selected_weight,
            product=product.display_data() if product else {},
            variant={"name": variant.name, "options": variant.options} if variant else None,
        )

    # ==================== ITEMS ====================

    async def add_item(
        self,
        cart_id: str,
        product_id: str,
        quantity: int,
        variant_id: Optional[str] = None,
        selected_weight: Optional[float] = None,
    ) -> CartOperationResult:
        """Add a product to the cart, merging with an identical line."""
        cart = self._carts.get(cart_id)
        if cart is None:
            return CartOperationResult(False, ERROR_CART_ADD_FAILED)

        product = self.products.get(product_id)
        if product is None:
            return CartOperationResult(False, ERROR_PRODUCT_NOT_FOUND)
        if not product.is_available:
            return CartOperationResult(False, ERROR_PRODUCT_UNAVAILABLE)

        available_stock = product.stock_quantity
        price = product.price

        if variant_id and variant_id in product.variants:
            variant = product.variants[variant_id]
            if not variant.is_active:
                return CartOperationResult(False, ERROR_VARIANT_UNAVAILABLE)
            available_stock = variant.stock_quantity
            price = variant.price or product.price

        if product.track_inventory and available_stock < quantity:
            return CartOperationResult(False, f"Only {available_stock} items available in stock")

        weight = to_optional_decimal(selected_weight)
        if product.weight_based_pricing and weight:
            price = multiply(price, weight)

        existing = next(
            (
                item for item in cart.items.values()
                if item.product_id == product_id
                and item.variant_id == (variant_id or None)
                and item.selected_weight == weight
            ),
            None,
        )

        if existing:
            new_quantity = existing.quantity + quantity
            if product.track_inventory and new_quantity > available_stock:
                return CartOperationResult(
                    False, f"Cannot add more items. Only {available_stock} available in stock"
                )
            existing.quantity = new_quantity
            existing.updated_at = datetime.now(timezone.utc)
        else:
            item = StoredItem(
                id=uuid.uuid4().hex,
                cart_id=cart.id,
                product_id=product_id,
                variant_id=variant_id or None,
                quantity=quantity,
                price=price,
                selected_weight=weight,
            )
            cart.items[item.id] = item
            self._item_index[item.id] = cart.id

        cart.touch()
        return CartOperationResult(True, "Item added to cart successfully", self.to_snapshot(cart))

    async def update_item(self, item_id: str, quantity: int) -> CartOperationResult:
        """Set a line item's quantity; zero or less removes it."""
        cart, item = self._find_item(item_id)
        if item is None:
            return CartOperationResult(False, ERROR_CART_ITEM_NOT_FOUND)

        product = self.products.get(item.product_id)
        if product is not None:
            available_stock = product.stock_quantity
            variant = product.variants.get(item.variant_id) if item.variant_id else None
            if variant is not None:
                available_stock = variant.stock_quantity
            if product.track_inventory and quantity > available_stock:
                return CartOperationResult(False, f"Only {available_stock} items available in stock")

        if quantity <= 0:
            self._delete_item(cart, item_id)
        else:
            logger.debug(f"Updating cart item {sanitize_id_for_logging(item_id)} to quantity {quantity}")
            item.quantity = quantity
            item.updated_at = datetime.now(timezone.utc)

        cart.touch()
        return CartOperationResult(True, "Cart updated successfully", self.to_snapshot(cart))

    async def remove_item(self, item_id: str) -> CartOperationResult:
        cart, item = self._find_item(item_id)
        if item is None:
            return CartOperationResult(False, ERROR_CART_ITEM_NOT_FOUND)

        self._delete_item(cart, item_id)
        cart.touch()
        return CartOperationResult(True, "Item removed from cart", self.to_snapshot(cart))

    async def clear_cart(self, cart_id: str) -> CartOperationResult:
        cart = self._carts.get(cart_id)
        if cart is None:
            return CartOperationResult(False, "Cart not found")

        for item_id in list(cart.items):
            self._delete_item(cart, item_id)
        cart.touch()
        return CartOperationResult(True, "Cart cleared successfully")

    def _find_item(self, item_id: str) -> tuple[Optional[StoredCart], Optional[StoredItem]]:
        cart_id = self._item_index.get(item_id)
        cart = self._carts.get(cart_id) if cart_id else None
        if cart is None:
            return None, None
        return cart, cart.items.get(item_id)

    def _delete_item(self, cart: StoredCart, item_id: str) -> None:
        cart.items.pop(item_id, None)
        self._item_index.pop(item_id, None)

    # ==================== MAINTENANCE ====================

    async def merge_guest_cart(self, session_id: str, user_id: str) -> CartOperationResult:
        """Move a guest cart's items into the user's cart and delete the guest cart."""
        guest = next((c for c in self._carts.values() if c.session_id == session_id), None)
        if guest is None or not guest.items:
            return CartOperationResult(True, "No guest cart to merge")

        user_cart = await self.get_or_create_cart(user_id=user_id)
        for item in list(guest.items.values()):
            result = await self.add_item(
                user_cart.id,
                item.product_id,
                item.quantity,
                variant_id=item.variant_id,
                selected_weight=item.selected_weight,
            )
            if not result.success:
                logger.warning(
                    f"Skipped guest item {sanitize_id_for_logging(item.id)} during merge: {result.message}"
                )

        self._drop_cart(guest)
        return CartOperationResult(True, "Cart merged successfully", self.to_snapshot(user_cart))

    async def cleanup_expired_carts(self, now: Optional[datetime] = None) -> int:
        """Delete guest carts past their expiry. Returns how many were removed."""
        now = now or datetime.now(timezone.utc)
        expired = [c for c in self._carts.values() if c.expires_at is not None and c.expires_at < now]
        for cart in expired:
            self._drop_cart(cart)
        logger.info(f"Cleaned up {len(expired)} expired carts")
        return len(expired)

    def _drop_cart(self, cart: StoredCart) -> None:
        for item_id in list(cart.items):
            self._item_index.pop(item_id, None)
        self._carts.pop(cart.id, None)


# Singleton instance
_cart_store: Optional[CartStore] = None


def get_cart_store() -> CartStore:
    """Get CartStore singleton."""
    global _cart_store
    if _cart_store is None:
        _cart_store = CartStore()
    return _cart_store
