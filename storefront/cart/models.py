"""Cart models with Decimal-based pricing."""
import time
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, List, Optional

from storefront.services.money import to_decimal, to_optional_decimal, to_float, multiply


@dataclass
class LineItem:
    """Single entry in the cart: one product/variant/weight combination."""
    id: str
    product_id: str
    quantity: int
    unit_price: Decimal
    variant_id: Optional[str] = None
    selected_weight: Optional[Decimal] = None
    # Display data carried through untouched
    product: dict = field(default_factory=dict)
    variant: Optional[dict] = None

    def __post_init__(self):
        self.unit_price = to_decimal(self.unit_price)
        self.selected_weight = to_optional_decimal(self.selected_weight)

    @property
    def total_price(self) -> Decimal:
        """Total price for all units."""
        return multiply(self.unit_price, self.quantity)

    @property
    def product_name(self) -> str:
        return self.product.get("name", "")

    def to_dict(self) -> dict:
        """Convert to the wire representation."""
        return {
            "id": self.id,
            "productId": self.product_id,
            "variantId": self.variant_id,
            "quantity": self.quantity,
            "price": to_float(self.unit_price),
            "selectedWeight": to_float(self.selected_weight) if self.selected_weight is not None else None,
            "product": self.product,
            "variant": self.variant,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LineItem":
        """Create from the wire representation."""
        return cls(
            id=str(data["id"]),
            product_id=str(data["productId"]),
            variant_id=data.get("variantId"),
            quantity=int(data["quantity"]),
            unit_price=to_decimal(data["price"]),
            selected_weight=to_optional_decimal(data.get("selectedWeight")),
            product=data.get("product") or {},
            variant=data.get("variant"),
        )


@dataclass(frozen=True)
class CartSummary:
    """Derived totals shown next to the cart."""
    subtotal: Decimal = Decimal("0")
    item_count: int = 0
    total_quantity: int = 0

    @classmethod
    def from_items(cls, items: List[LineItem]) -> "CartSummary":
        """Compute the summary the same way the cart service does."""
        if not items:
            return cls()
        return cls(
            subtotal=sum((item.total_price for item in items), Decimal("0")),
            item_count=len(items),
            total_quantity=sum(item.quantity for item in items),
        )

    def to_dict(self) -> dict:
        return {
            "subtotal": to_float(self.subtotal),
            "itemCount": self.item_count,
            "totalQuantity": self.total_quantity,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartSummary":
        return cls(
            subtotal=to_decimal(data.get("subtotal", 0)),
            item_count=int(data.get("itemCount", 0)),
            total_quantity=int(data.get("totalQuantity", 0)),
        )


@dataclass(frozen=True)
class CartSnapshot:
    """
    Authoritative cart state as returned by the cart service.

    A snapshot is only ever replaced as a whole, never patched field by
    field, so the view always matches one server response.
    """
    cart_id: Optional[str]
    items: tuple = ()
    summary: CartSummary = CartSummary()
    currency: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.items

    def get_item(self, line_item_id: str) -> Optional[LineItem]:
        return next((item for item in self.items if item.id == line_item_id), None)

    def with_items(self, items: List[LineItem]) -> "CartSnapshot":
        return replace(self, items=tuple(items))

    def to_dict(self) -> dict:
        """Convert to the `{cart, summary, currency}` response document."""
        data: dict[str, Any] = {
            "cart": {
                "id": self.cart_id,
                "items": [item.to_dict() for item in self.items],
            },
            "summary": self.summary.to_dict(),
        }
        if self.currency:
            data["currency"] = self.currency
        return data

    @classmethod
    def empty(cls) -> "CartSnapshot":
        return cls(cart_id=None)


@dataclass(frozen=True)
class PendingUpdate:
    """A requested quantity for one line item, not yet confirmed by the server."""
    quantity: int
    enqueued_at: float = field(default_factory=time.monotonic)
