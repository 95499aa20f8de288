"""
Cart Data Service Pydantic Models

Request bodies and response documents exchanged with the cart service.
Field names follow the camelCase wire format; Python code uses the
snake_case attribute names.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import CartSnapshot, CartSummary, LineItem


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ==================== RESPONSE MODELS ====================

class LineItemPayload(_WireModel):
    id: str
    product_id: str = Field(alias="productId")
    variant_id: str | None = Field(default=None, alias="variantId")
    quantity: int = Field(ge=0)
    price: float
    selected_weight: float | None = Field(default=None, alias="selectedWeight")
    product: dict = Field(default_factory=dict)
    variant: dict | None = None

    def to_line_item(self) -> LineItem:
        return LineItem(
            id=self.id,
            product_id=self.product_id,
            variant_id=self.variant_id,
            quantity=self.quantity,
            unit_price=self.price,
            selected_weight=self.selected_weight,
            product=self.product,
            variant=self.variant,
        )


class CartPayload(_WireModel):
    id: str
    items: list[LineItemPayload]


class SummaryPayload(_WireModel):
    subtotal: float = 0
    item_count: int = Field(default=0, alias="itemCount")
    total_quantity: int = Field(default=0, alias="totalQuantity")


class CartResponse(_WireModel):
    """
    `{message?, cart, summary?, currency?}` returned by fetch, add, update and remove.

    `cart` is required: a success body without it is malformed, not an empty cart.
    """
    message: str | None = None
    cart: CartPayload
    summary: SummaryPayload | None = None
    currency: str | None = None

    def to_snapshot(self) -> CartSnapshot:
        items = [item.to_line_item() for item in self.cart.items]
        if self.summary is not None:
            summary = CartSummary.from_dict(self.summary.model_dump(by_alias=True))
        else:
            summary = CartSummary.from_items(items)

        return CartSnapshot(
            cart_id=self.cart.id,
            items=tuple(items),
            summary=summary,
            currency=self.currency,
        )


class ErrorResponse(_WireModel):
    error: str


# ==================== REQUEST MODELS ====================

class AddToCartRequest(_WireModel):
    product_id: str = Field(alias="productId", min_length=1)
    variant_id: Optional[str] = Field(default=None, alias="variantId")
    quantity: int = Field(ge=1, strict=True)
    selected_weight: Optional[float] = Field(default=None, alias="selectedWeight", gt=0)
    session_id: Optional[str] = Field(default=None, alias="sessionId")


class UpdateCartItemRequest(_WireModel):
    quantity: int = Field(ge=0, strict=True)  # 0 removes the line


class MergeCartRequest(_WireModel):
    session_id: str = Field(alias="sessionId", min_length=1)
    user_id: str = Field(alias="userId", min_length=1)
