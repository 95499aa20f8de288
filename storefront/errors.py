"""
Common Error Constants

Centralized error messages to avoid string duplication.
"""

# Cart errors
ERROR_CART_ITEM_NOT_FOUND = "Cart item not found"
ERROR_CART_IDENTITY_REQUIRED = "Either userId or sessionId is required"
ERROR_CART_UPDATE_FAILED = "Failed to update cart"
ERROR_CART_ITEM_UPDATE_FAILED = "Failed to update cart item"
ERROR_CART_FETCH_FAILED = "Failed to fetch cart"
ERROR_CART_ADD_FAILED = "Failed to add item to cart"
ERROR_CART_REMOVE_FAILED = "Failed to remove item from cart"
ERROR_CART_CLEAR_FAILED = "Failed to clear cart"
ERROR_CART_MERGE_FAILED = "Failed to merge carts"
ERROR_MALFORMED_RESPONSE = "Unexpected response from cart service"

# Product errors
ERROR_PRODUCT_NOT_FOUND = "Product not found"
ERROR_PRODUCT_UNAVAILABLE = "Product is not available"
ERROR_VARIANT_UNAVAILABLE = "Product variant is not available"

# Generic errors
ERROR_INVALID_REQUEST = "Invalid request"
