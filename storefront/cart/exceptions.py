"""Cart exceptions."""
from typing import Optional

from storefront.errors import ERROR_CART_UPDATE_FAILED, ERROR_MALFORMED_RESPONSE


class CartError(Exception):
    """Base class for cart errors."""


class CartServiceError(CartError):
    """The cart service could not be reached or answered with an error."""

    def __init__(self, message: str = ERROR_CART_UPDATE_FAILED, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (HTTP {self.status_code})"
        return self.message


class MalformedResponseError(CartServiceError):
    """The cart service answered with a body we could not interpret."""

    def __init__(self, message: str = ERROR_MALFORMED_RESPONSE, status_code: Optional[int] = None):
        super().__init__(message, status_code)
