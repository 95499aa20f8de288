"""
Cart Router

Cart Data Service endpoints. Every mutation answers with the full cart and
its summary so clients can replace their state wholesale.

Error format: `{"error": "<message>"}` with status 400 for rejected
operations and 500 for unexpected failures.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query
from fastapi.responses import JSONResponse

from storefront.cart.models import CartSnapshot
from storefront.cart.schemas import AddToCartRequest, MergeCartRequest, UpdateCartItemRequest
from storefront.cart.store import CartOperationResult, CartStore, get_cart_store
from storefront.config import get_settings
from storefront.errors import (
    ERROR_CART_ADD_FAILED,
    ERROR_CART_CLEAR_FAILED,
    ERROR_CART_FETCH_FAILED,
    ERROR_CART_ITEM_UPDATE_FAILED,
    ERROR_CART_MERGE_FAILED,
    ERROR_CART_REMOVE_FAILED,
)
from storefront.logging import get_logger, sanitize_id_for_logging

logger = get_logger(__name__)

router = APIRouter(tags=["cart"])


def error_response(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _cart_body(result: CartOperationResult) -> dict:
    body = {"message": result.message, "cart": None, "summary": None}
    if result.cart is not None:
        body.update(result.cart.to_dict())
    return body


@router.get("/cart")
async def get_cart(
    session_id: Optional[str] = Query(default=None, alias="sessionId"),
    user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
    store: CartStore = Depends(get_cart_store),
):
    """Get the cart of the current user or guest session."""
    try:
        cart = await store.get_or_create_cart(user_id, session_id)
        snapshot: CartSnapshot = store.to_snapshot(cart)
        body = snapshot.to_dict()
        body["currency"] = get_settings().currency
        return body
    except ValueError as e:
        return error_response(str(e))
    except Exception:
        logger.exception("Error fetching cart")
        return error_response(ERROR_CART_FETCH_FAILED, 500)


@router.post("/cart")
async def add_to_cart(
    request: AddToCartRequest,
    user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
    store: CartStore = Depends(get_cart_store),
):
    """Add item to cart."""
    try:
        cart = await store.get_or_create_cart(user_id, request.session_id)
        result = await store.add_item(
            cart.id,
            request.product_id,
            request.quantity,
            variant_id=request.variant_id,
            selected_weight=request.selected_weight,
        )
        if not result.success:
            return error_response(result.message)
        return _cart_body(result)
    except ValueError as e:
        return error_response(str(e))
    except Exception:
        logger.exception("Error adding to cart")
        return error_response(ERROR_CART_ADD_FAILED, 500)


@router.delete("/cart")
async def clear_cart(
    session_id: Optional[str] = Query(default=None, alias="sessionId"),
    user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
    store: CartStore = Depends(get_cart_store),
):
    """Remove every item from the cart."""
    try:
        cart = await store.get_or_create_cart(user_id, session_id)
        result = await store.clear_cart(cart.id)
        if not result.success:
            return error_response(result.message)
        return {"message": result.message}
    except ValueError as e:
        return error_response(str(e))
    except Exception:
        logger.exception("Error clearing cart")
        return error_response(ERROR_CART_CLEAR_FAILED, 500)


@router.put("/cart/items/{item_id}")
async def update_cart_item(
    item_id: str,
    request: UpdateCartItemRequest,
    store: CartStore = Depends(get_cart_store),
):
    """Update cart item quantity (0 removes the item)."""
    try:
        result = await store.update_item(item_id, request.quantity)
        if not result.success:
            logger.info(f"Rejected update for cart item {sanitize_id_for_logging(item_id)}: {result.message}")
            return error_response(result.message)
        return _cart_body(result)
    except Exception:
        logger.exception("Error updating cart item")
        return error_response(ERROR_CART_ITEM_UPDATE_FAILED, 500)


@router.delete("/cart/items/{item_id}")
async def remove_cart_item(item_id: str, store: CartStore = Depends(get_cart_store)):
    """Remove item from cart."""
    try:
        result = await store.remove_item(item_id)
        if not result.success:
            return error_response(result.message)
        return _cart_body(result)
    except Exception:
        logger.exception("Error removing cart item")
        return error_response(ERROR_CART_REMOVE_FAILED, 500)


@router.post("/cart/merge")
async def merge_cart(request: MergeCartRequest, store: CartStore = Depends(get_cart_store)):
    """Merge a guest session cart into a user cart after login."""
    try:
        result = await store.merge_guest_cart(request.session_id, request.user_id)
        if not result.success:
            return error_response(result.message)
        return {"message": result.message}
    except Exception:
        logger.exception("Error merging carts")
        return error_response(ERROR_CART_MERGE_FAILED, 500)
