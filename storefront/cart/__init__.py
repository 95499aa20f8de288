"""Cart package: models, service client, quantity coordinator and in-memory store."""
from .client import CartApiClient, generate_guest_session_id
from .coordinator import QuantityUpdateCoordinator
from .exceptions import CartError, CartServiceError, MalformedResponseError
from .models import CartSnapshot, CartSummary, LineItem, PendingUpdate
from .ordering import sort_line_items, stable_snapshot
from .store import CartStore, Product, ProductVariant, get_cart_store

__all__ = [
    "CartApiClient",
    "CartError",
    "CartServiceError",
    "CartSnapshot",
    "CartStore",
    "CartSummary",
    "LineItem",
    "MalformedResponseError",
    "PendingUpdate",
    "Product",
    "ProductVariant",
    "QuantityUpdateCoordinator",
    "generate_guest_session_id",
    "get_cart_store",
    "sort_line_items",
    "stable_snapshot",
]
